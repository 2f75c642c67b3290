"""
Section editing helpers — pricing mode toggle, pricing item edits, new sections.

Every helper returns a new model and leaves its input untouched. Pricing item
edits return the recalculated PricingSectionData, matching what the editor
shows after each keystroke.
"""

import random
import string
import time
from typing import List, Optional

from .config import settings
from .models import SectionType
from .pricing_engine import calculate_pricing_total
from .schemas import PricingItem, PricingSectionData, ProposalSection

DEFAULT_PRICING_TEXT = "Breakdown of costs and payment terms."


def _random_suffix(length: int = 9) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def _generate_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{_random_suffix()}"


def generate_proposal_id() -> str:
    return _generate_id("proposal")


def generate_section_id() -> str:
    return _generate_id("section")


def empty_pricing_data(currency: Optional[str] = None) -> PricingSectionData:
    return PricingSectionData(items=[], subtotal=0.0, total=0.0, currency=currency or settings.DEFAULT_CURRENCY)


def new_section(section_type: SectionType, order: int, title: Optional[str] = None) -> ProposalSection:
    """Blank section titled "<Type> Section", e.g. "Pricing Section"."""
    section_type = SectionType(section_type)
    return ProposalSection(
        id=generate_section_id(),
        type=section_type,
        title=title or f"{section_type.value.capitalize()} Section",
        content="",
        order=order,
    )


def append_section(sections: List[ProposalSection], section_type: SectionType) -> List[ProposalSection]:
    return [*sections, new_section(section_type, order=len(sections))]


def remove_section(sections: List[ProposalSection], section_id: str) -> List[ProposalSection]:
    return [s for s in sections if s.id != section_id]


def reorder_sections(sections: List[ProposalSection], ordered_ids: List[str]) -> List[ProposalSection]:
    """
    Renumber `order` to follow `ordered_ids` (e.g. after a drag and drop).
    Sections whose id is not listed keep their relative order after the listed ones.
    """
    by_id = {s.id: s for s in sections}
    listed_ids = set(ordered_ids)
    listed = [by_id[i] for i in ordered_ids if i in by_id]
    rest = [s for s in sorted(sections, key=lambda s: s.order) if s.id not in listed_ids]
    return [s.model_copy(update={"order": index}) for index, s in enumerate(listed + rest)]


def toggle_pricing_mode(section: ProposalSection) -> ProposalSection:
    """
    Switch a pricing section between structured pricing and free text.

    Structured → text parks the table in saved_pricing_data so switching back
    restores it. Text → structured restores the parked table (or starts an
    empty table in the default currency) and clears the text content.
    Non-pricing sections are returned unchanged.
    """
    if section.type != SectionType.PRICING:
        return section

    if section.pricing_data is not None:
        return section.model_copy(update={
            "saved_pricing_data": section.pricing_data,
            "pricing_data": None,
            "content": section.content or DEFAULT_PRICING_TEXT,
        })

    restored = section.saved_pricing_data or empty_pricing_data()
    return section.model_copy(update={
        "pricing_data": calculate_pricing_total(restored),
        "content": "",
    })


def new_pricing_item(description: str = "", quantity: float = 1, unit_price: float = 0) -> PricingItem:
    return PricingItem(
        id=_generate_id("item"),
        description=description,
        quantity=quantity,
        unit_price=unit_price,
        subtotal=0.0,
    )


def add_pricing_item(data: PricingSectionData, item: Optional[PricingItem] = None) -> PricingSectionData:
    item = item or new_pricing_item()
    return calculate_pricing_total(data.model_copy(update={"items": [*data.items, item]}))


def update_pricing_item(data: PricingSectionData, item_id: str, **changes) -> PricingSectionData:
    """Apply field changes (snake_case names) to one item. Unknown ids change nothing."""
    items = [
        item.model_copy(update=changes) if item.id == item_id else item
        for item in data.items
    ]
    return calculate_pricing_total(data.model_copy(update={"items": items}))


def remove_pricing_item(data: PricingSectionData, item_id: str) -> PricingSectionData:
    items = [item for item in data.items if item.id != item_id]
    return calculate_pricing_total(data.model_copy(update={"items": items}))
