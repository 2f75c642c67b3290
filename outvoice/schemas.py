from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from .models import SectionType, ProposalStatus, Orientation, PageFormat, TitleTheme, TitleLayout


class CamelModel(BaseModel):
    """Accepts both the editor's camelCase keys and snake_case names."""
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# --- Pricing ---

class PricingItem(CamelModel):
    id: str
    description: str = ""
    quantity: Optional[float] = 1.0
    unit_price: Optional[float] = 0.0
    discount: Optional[float] = None  # < 100 → percent, otherwise fixed amount
    tax: Optional[float] = None       # < 100 → percent, otherwise fixed amount
    subtotal: float = 0.0             # derived


class PricingSectionData(CamelModel):
    items: List[PricingItem] = []
    subtotal: float = 0.0  # derived
    discount_percentage: Optional[float] = None
    discount_amount: Optional[float] = None
    tax_percentage: Optional[float] = None
    tax_amount: Optional[float] = None
    total: float = 0.0  # derived
    currency: str = "USD"
    notes: Optional[str] = None


class PricingValidation(BaseModel):
    valid: bool
    errors: List[str] = []


# --- Proposal ---

class ProposalSection(CamelModel):
    id: str
    type: SectionType = SectionType.CUSTOM
    title: str = ""
    content: str = ""
    order: int = 0
    pricing_data: Optional[PricingSectionData] = None
    # Pricing table parked while the section is in text mode
    saved_pricing_data: Optional[PricingSectionData] = None

    @property
    def is_structured_pricing(self) -> bool:
        return self.type == SectionType.PRICING and self.pricing_data is not None


class TitlePageStyle(CamelModel):
    theme: TitleTheme = TitleTheme.LIGHT
    layout: TitleLayout = TitleLayout.CENTERED
    logo_url: Optional[str] = None


class Proposal(CamelModel):
    id: str
    user_id: str = "guest"
    title: str = ""
    template_id: Optional[str] = None
    sections: List[ProposalSection] = []
    orientation: Orientation = Orientation.PORTRAIT
    title_page_style: TitlePageStyle = Field(default_factory=TitlePageStyle)
    status: ProposalStatus = ProposalStatus.DRAFT
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def sorted_sections(self) -> List[ProposalSection]:
        """Sections in rendering order (ascending `order`, stable)."""
        return sorted(self.sections, key=lambda s: s.order)


class ProposalSummary(CamelModel):
    id: str
    user_id: str
    title: str
    status: ProposalStatus
    updated_at: datetime


# --- Export ---

class ExportOptions(CamelModel):
    filename: Optional[str] = None
    format: PageFormat = PageFormat.A4
    orientation: Optional[Orientation] = None
