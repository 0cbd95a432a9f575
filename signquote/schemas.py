from datetime import date
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from .config import settings
from .models import SignCategory, DiscountType, PdfTemplate, PIPE_SIZES, SIGN_TYPES_HIERARCHY


# --- Price book ---

class LaborRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    tier1: float = 0.0  # area < 10 sq ft
    tier2: float = 0.0  # 10 <= area < 20
    tier3: float = 0.0  # area >= 20


class StructuralRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    steel_per_ft: float = 0.0
    beading_per_ft: float = 0.0
    depth_cover_per_ft: float = 0.0
    back_cover_per_sqft: float = 0.0


class ElectricalRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    tube_light_unit: float = 0.0


class OtherRates(BaseModel):
    model_config = ConfigDict(frozen=True)

    off_cut_per_sqft: float = 0.0
    angle_support_unit: float = 0.0
    concrete_base_unit: float = 0.0


class PriceBook(BaseModel):
    """
    Rate table in effect for a computation.

    materials: {category display name: {subtype: price per sq ft}}
    pipes:     {pipe size: price per GI stand}
    """
    model_config = ConfigDict(frozen=True)

    currency_symbol: str = "Rs."
    materials: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    pipes: Dict[str, float] = Field(default_factory=dict)
    labor: LaborRates = Field(default_factory=LaborRates)
    structural: StructuralRates = Field(default_factory=StructuralRates)
    electrical: ElectricalRates = Field(default_factory=ElectricalRates)
    others: OtherRates = Field(default_factory=OtherRates)

    @model_validator(mode="after")
    def _fill_catalog_gaps(self):
        # Every known category/subtype gets a rate (0 when unpriced) so lookups stay total.
        for category, subtypes in SIGN_TYPES_HIERARCHY.items():
            rates = self.materials.setdefault(category.value, {})
            for subtype in subtypes:
                rates.setdefault(subtype, 0.0)
        return self

    def material_rate(self, category: SignCategory, sub_type: str) -> Optional[float]:
        return self.materials.get(SignCategory(category).value, {}).get(sub_type)


# --- Sign specification + breakdown ---

class SignSpecification(BaseModel):
    category: SignCategory = SignCategory.SSWOL
    sub_type: str = SIGN_TYPES_HIERARCHY[SignCategory.SSWOL][0]
    width: float = Field(default=0.0, ge=0)    # feet
    height: float = Field(default=0.0, ge=0)   # feet
    off_cut_sqft: float = Field(default=0.0, ge=0)
    gi_stand_qty: int = Field(default=0, ge=0)
    gi_pipe_size: str = PIPE_SIZES[0]
    angle_support_qty: int = Field(default=0, ge=0)
    concrete_base_qty: int = Field(default=0, ge=0)
    concrete_base_rate: Optional[float] = Field(default=None, ge=0)  # None -> price book default

    @model_validator(mode="after")
    def _sub_type_matches_category(self):
        allowed = SIGN_TYPES_HIERARCHY[self.category]
        if self.sub_type not in allowed:
            raise ValueError(
                f"'{self.sub_type}' is not a subtype of {self.category.value}. "
                f"Allowed: {allowed}"
            )
        return self


class ItemCostBreakdown(BaseModel):
    area: float = 0.0
    material_cost: float = 0.0
    steel_length: float = 0.0
    steel_cost: float = 0.0
    beading_length: float = 0.0
    beading_cost: float = 0.0
    labor_rate: float = 0.0
    labor_cost: float = 0.0
    light_qty: int = 0
    light_cost: float = 0.0
    perimeter_length: float = 0.0
    depth_cover_cost: float = 0.0
    back_cover_cost: float = 0.0
    off_cut_cost: float = 0.0
    stand_cost: float = 0.0
    angle_support_cost: float = 0.0
    concrete_base_cost: float = 0.0
    item_total: float = 0.0
    missing_rates: List[str] = Field(default_factory=list)


# --- Line items ---

class SignLineItem(BaseModel):
    kind: Literal["sign"] = "sign"
    id: str
    spec: SignSpecification
    breakdown: ItemCostBreakdown

    @computed_field
    @property
    def total(self) -> float:
        return self.breakdown.item_total


class ManualLineItem(BaseModel):
    kind: Literal["manual"] = "manual"
    id: str
    description: str
    quantity: float = 1.0
    rate: float = 0.0

    @computed_field
    @property
    def total(self) -> float:
        return round(self.quantity * self.rate, 2)


LineItem = Annotated[Union[SignLineItem, ManualLineItem], Field(discriminator="kind")]


# --- Quote-level inputs ---

class ClientDetails(BaseModel):
    serial_number: str
    client_name: str = settings.DEFAULT_CLIENT_NAME
    client_address: str = ""
    client_contact: str = ""
    issue_date: date
    expire_date: date
    quote_by: str = ""
    subject: str = ""


class ServiceCharges(BaseModel):
    installation_needed: bool = False
    installation_cost: float = Field(default=0.0, ge=0)
    transportation_needed: bool = False
    transportation_cost: float = Field(default=0.0, ge=0)
    artwork_cost: float = Field(default=settings.ARTWORK_COST_DEFAULT, ge=0)


class Discount(BaseModel):
    amount: float = 0.0
    kind: DiscountType = DiscountType.FIXED


class ExportOptions(BaseModel):
    show_area: bool = True
    template: PdfTemplate = PdfTemplate(settings.PDF_TEMPLATE_DEFAULT)


class GrandTotal(BaseModel):
    items_subtotal: float = 0.0
    installation_cost: float = 0.0
    transportation_cost: float = 0.0
    artwork_cost: float = 0.0
    sub_total_before_discount: float = 0.0
    discount_amount: float = 0.0
    final_total: float = 0.0
