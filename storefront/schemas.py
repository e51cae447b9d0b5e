"""
Pydantic models for the estimation core and the storefront JSON boundary.

Reference models are read-only snapshots of database rows, resolved by
reference_data.py before the calculator runs.
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, List

from .config import Settings


# --- Estimation inputs ---

class FabricReference(BaseModel):
    name: str
    price_per_meter: float = Field(0.0, ge=0)
    width_cm: Optional[float] = None          # None/0 → config default (140cm)
    pattern_repeat_cm: float = Field(0.0, ge=0)  # 0 = plain fabric


class TemplateReference(BaseModel):
    fullness_ratio: Optional[float] = None    # None/0 → config default (2.0)


class OptionPrice(BaseModel):
    """Resolved price for one option selection. A flat modifier takes precedence."""
    price_modifier: Optional[float] = None
    price_per_meter: Optional[float] = None


class BusinessConfig(BaseModel):
    tax_rate_percent: float = Field(0.0, ge=0)
    margin_percent: float = 0.0  # informational, not applied
    currency: str = "EUR"


class EstimationConfig(BaseModel):
    header_allowance_m: float = 0.15
    hem_allowance_m: float = 0.15
    base_making_cost: float = 50.0
    labor_rate_per_meter: float = 5.0
    default_fabric_width_cm: float = 140.0
    default_fullness_ratio: float = 2.0
    fabric_increment_m: float = 0.1
    money_places: int = 2

    @classmethod
    def from_settings(cls, settings: Settings) -> "EstimationConfig":
        return cls(
            header_allowance_m=settings.HEADER_ALLOWANCE_M,
            hem_allowance_m=settings.HEM_ALLOWANCE_M,
            base_making_cost=settings.BASE_MAKING_COST,
            labor_rate_per_meter=settings.LABOR_RATE_PER_METER,
            default_fabric_width_cm=settings.DEFAULT_FABRIC_WIDTH_CM,
            default_fullness_ratio=settings.DEFAULT_FULLNESS_RATIO,
            fabric_increment_m=settings.FABRIC_INCREMENT_M,
        )


# --- Estimation output ---

class Dimensions(BaseModel):
    width_mm: float
    drop_mm: float


class EstimateResult(BaseModel):
    fabric_name: Optional[str] = None
    fabric_meters: float
    fabric_cost: float
    making_cost: float
    options_cost: float
    options_breakdown: Dict[str, float] = {}
    subtotal: float
    tax_rate: float
    tax_amount: float
    total: float
    currency: str
    quantity: int
    dimensions: Dimensions
    note: str


# --- Storefront requests ---
# Fields are optional so the router can produce the exact error messages
# callers depend on instead of pydantic's 422 detail list.

class EstimateRequest(BaseModel):
    account_id: Optional[str] = None
    api_key: Optional[str] = None
    fabric_id: Optional[str] = None
    template_id: Optional[str] = None
    width_mm: Optional[float] = None
    drop_mm: Optional[float] = None
    quantity: Optional[int] = None
    options: Optional[Dict[str, str]] = None


class CustomerInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ProjectItem(BaseModel):
    fabric_id: Optional[str] = None
    template_id: Optional[str] = None
    width_mm: Optional[float] = None
    drop_mm: Optional[float] = None
    quantity: Optional[int] = None
    room_name: Optional[str] = None
    options: Optional[Dict[str, str]] = None
    notes: Optional[str] = None


class ProjectRequest(BaseModel):
    account_id: Optional[str] = None
    api_key: Optional[str] = None
    customer: Optional[CustomerInfo] = None
    items: Optional[List[ProjectItem]] = None
    source: str = "storefront"
    message: Optional[str] = None


# --- Storefront responses ---

class EstimateResponse(BaseModel):
    success: bool = True
    estimate: EstimateResult


class ProjectSummary(BaseModel):
    id: str
    title: str
    quote_number: str


class QuoteSummary(BaseModel):
    id: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total: float
    currency: str


class TreatmentSummary(BaseModel):
    id: str
    room_name: str
    fabric_name: Optional[str] = None
    unit_price: float
    total_price: float


class ProjectResponse(BaseModel):
    success: bool = True
    project: ProjectSummary
    quote: QuoteSummary
    treatments: List[TreatmentSummary] = []
    client_id: str
    is_new_client: bool


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
