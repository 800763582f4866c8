from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pricing_service.core.enums import BookingStatus
from pricing_service.schemas.audit import AuditEntry
from pricing_service.schemas.pricing import PriceBreakdown


class JobItemRecord(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    name: str
    quantity: int = 1
    weight_kg: Optional[float] = None
    volume_m3: Optional[float] = None
    requires_dismantling: bool = False


class JobRecord(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    id: str
    job_type: Optional[str] = None
    # One-way driving distance in miles
    distance_miles: Optional[float] = None
    pickup_floor: Optional[int] = None
    pickup_has_lift: Optional[bool] = None
    delivery_floor: Optional[int] = None
    delivery_has_lift: Optional[bool] = None
    needs_packing: Optional[bool] = None
    move_date: Optional[date] = None
    created_at: datetime
    estimated_price: Optional[float] = None


class BookingRecord(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    id: str
    job_id: str
    status: BookingStatus
    final_price: float


class RecalculateRequest(BaseModel):
    job: JobRecord
    items: List[JobItemRecord] = Field(default_factory=list)


class RecalculateResponse(BaseModel):
    job_id: str
    old_price: Optional[float] = None
    new_price: float
    price_min: float
    price_max: float
    profile: str
    vat_enabled: bool


class RepriceRequest(BaseModel):
    admin_user_id: str
    booking: BookingRecord
    job: JobRecord
    items: List[JobItemRecord] = Field(default_factory=list)


class RepriceResponse(BaseModel):
    success: bool = True
    old_price: float
    new_price: float
    breakdown: PriceBreakdown
    audit: AuditEntry
