"""
Pricing endpoints — recalculate and validate a pricing section.

POST /api/pricing/calculate — derived subtotals / discount / tax / total
POST /api/pricing/validate  — advisory errors, never blocks calculation
"""

from typing import List

from fastapi import APIRouter

from ..pricing_engine import SUPPORTED_CURRENCIES, calculate_pricing_total, validate_pricing_data
from ..schemas import PricingSectionData, PricingValidation

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.post("/calculate", response_model=PricingSectionData, response_model_by_alias=True)
def calculate(data: PricingSectionData):
    return calculate_pricing_total(data)


@router.post("/validate", response_model=PricingValidation)
def validate(data: PricingSectionData):
    return validate_pricing_data(data)


@router.get("/currencies", response_model=List[str])
def currencies():
    return SUPPORTED_CURRENCIES
