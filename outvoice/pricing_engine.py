"""
Pricing Engine.

Recalculates itemized pricing tables for proposal pricing sections.
Pure math — no I/O, never raises. Quantity × price, then discount, then tax.

Item-level discount/tax are dual purpose: a value under 100 is a percentage,
anything from 100 up is a fixed currency amount. Section-level discount/tax
use separate percentage and amount fields; the percentage wins when both are set.

Capping is asymmetric and stored proposals depend on it: fixed discounts are
capped at the amount they apply to, fixed taxes are never capped.
"""

import math
import re
from typing import List

from .schemas import PricingItem, PricingSectionData, PricingValidation

# Values at or above this are fixed amounts, below it percentages
PERCENT_THRESHOLD = 100

SUPPORTED_CURRENCIES = ["USD", "EUR", "GBP", "CAD", "AUD", "JPY"]

# en-US display symbols; codes not listed render as "XYZ 1,234.50"
CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "CAD": "CA$",
    "AUD": "A$",
    "JPY": "¥",
    "NZD": "NZ$",
    "MXN": "MX$",
    "CNY": "CN¥",
    "INR": "₹",
    "HKD": "HK$",
}

_NUMERIC_PREFIX = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def to_number(value) -> float:
    """Coerce a possibly missing / NaN / junk numeric field to a float (0 if unusable)."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number):
        return 0.0
    return number


def calculate_item_subtotal(item: PricingItem) -> float:
    """
    Subtotal for one pricing line.

    base = quantity × unit_price
    discount: < 100 → percent of base, else fixed (capped at base)
    tax:      < 100 → percent of the discounted amount, else fixed (not capped)
    """
    base = to_number(item.quantity) * to_number(item.unit_price)

    discount = to_number(item.discount)
    discount_amount = 0.0
    if discount > 0:
        if discount < PERCENT_THRESHOLD:
            discount_amount = base * (discount / 100)
        else:
            discount_amount = min(discount, base)

    after_discount = base - discount_amount

    tax = to_number(item.tax)
    tax_amount = 0.0
    if tax > 0:
        if tax < PERCENT_THRESHOLD:
            tax_amount = after_discount * (tax / 100)
        else:
            tax_amount = tax

    return after_discount + tax_amount


def calculate_pricing_total(data: PricingSectionData) -> PricingSectionData:
    """
    Recalculate every derived field of a pricing section.

    Returns a new PricingSectionData; the input is left untouched. Running it
    again on its own output gives the same subtotal and total.
    discount_amount / tax_amount come back as None when nothing applies, so a
    renderer can treat "field present" as "show this line".
    """
    items = [
        item.model_copy(update={"subtotal": calculate_item_subtotal(item)})
        for item in data.items
    ]
    subtotal = sum(item.subtotal for item in items)

    discount_percentage = to_number(data.discount_percentage)
    given_discount = to_number(data.discount_amount)
    discount_amount = 0.0
    if discount_percentage > 0:
        discount_amount = subtotal * (discount_percentage / 100)
    elif given_discount > 0:
        discount_amount = min(given_discount, subtotal)

    after_discount = subtotal - discount_amount

    tax_percentage = to_number(data.tax_percentage)
    given_tax = to_number(data.tax_amount)
    tax_amount = 0.0
    if tax_percentage > 0:
        tax_amount = after_discount * (tax_percentage / 100)
    elif given_tax > 0:
        tax_amount = given_tax

    total = after_discount + tax_amount

    return data.model_copy(update={
        "items": items,
        "subtotal": subtotal,
        "discount_amount": discount_amount if discount_amount > 0 else None,
        "tax_amount": tax_amount if tax_amount > 0 else None,
        "total": total,
    })


def validate_pricing_data(data: PricingSectionData) -> PricingValidation:
    """Advisory checks only — calculate_pricing_total still runs on invalid data."""
    errors: List[str] = []

    for index, item in enumerate(data.items, start=1):
        if not (item.description or "").strip():
            errors.append(f"Item {index}: Description is required")
        if to_number(item.quantity) < 0:
            errors.append(f"Item {index}: Quantity cannot be negative")
        if to_number(item.unit_price) < 0:
            errors.append(f"Item {index}: Unit price cannot be negative")

    if data.discount_percentage is not None and not 0 <= data.discount_percentage <= 100:
        errors.append("Discount percentage must be between 0 and 100")
    if data.discount_amount is not None and data.discount_amount < 0:
        errors.append("Discount amount cannot be negative")

    if data.tax_percentage is not None and not 0 <= data.tax_percentage <= 100:
        errors.append("Tax percentage must be between 0 and 100")
    if data.tax_amount is not None and data.tax_amount < 0:
        errors.append("Tax amount cannot be negative")

    return PricingValidation(valid=not errors, errors=errors)


def format_currency(amount, currency: str = "USD") -> str:
    """Format as en-US currency with two decimals: $1,234.50, -€5.00, CHF 12.00"""
    value = to_number(amount)
    code = (currency or "USD").upper()
    digits = f"{abs(value):,.2f}"
    sign = "-" if value < 0 else ""
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol is None:
        return f"{sign}{code} {digits}"
    return f"{sign}{symbol}{digits}"


def parse_currency(text) -> float:
    """Parse a user-typed money string. "$1,234.56" → 1234.56, junk → 0.0"""
    if text is None:
        return 0.0
    cleaned = re.sub(r"[^\d.\-]", "", str(text))
    match = _NUMERIC_PREFIX.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0)) or 0.0


def format_number(value) -> str:
    """Shortest display form of a number: 2 → "2", 2.5 → "2.5"."""
    number = to_number(value)
    if math.isfinite(number) and number == int(number):
        return str(int(number))
    return str(number)


def format_item_discount(item: PricingItem, currency: str = "USD") -> str:
    """Discount cell text: "-" when none, "10%" for a percentage, "$150.00" for a fixed amount."""
    discount = to_number(item.discount)
    if not discount:
        return "-"
    if discount < PERCENT_THRESHOLD:
        return f"{format_number(discount)}%"
    return format_currency(discount, currency)
