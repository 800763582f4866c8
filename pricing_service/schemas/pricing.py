from datetime import date, datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class PricingItem(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    name: str = "Item"
    quantity: int = 1
    weight_kg: float
    volume_m3: float


class JobDetails(BaseModel):
    """Job attributes shared by the engine input and the estimate request body."""
    model_config = ConfigDict(allow_inf_nan=False)

    job_type: str
    distance_miles: float
    items: Tuple[PricingItem, ...]
    pickup_floor: int = 0
    pickup_has_elevator: bool = False
    delivery_floor: int = 0
    delivery_has_elevator: bool = False
    requires_packaging: bool = False
    requires_assembly: bool = False
    requires_disassembly: bool = False
    requires_cleaning: bool = False
    insurance_level: str = "basic"
    preferred_date: date


class PricingInput(JobDetails):
    model_config = ConfigDict(frozen=True)

    requested_at: datetime


class PricingRequest(JobDetails):
    """Draft estimate body; ``requested_at`` defaults to the time of the call."""
    requested_at: Optional[datetime] = None

    def to_input(self, requested_at: datetime) -> PricingInput:
        data = self.model_dump()
        data["requested_at"] = self.requested_at or requested_at
        return PricingInput(**data)


class BreakdownLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    amount: float


class PriceBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: str
    base_price: float
    distance_cost: float
    weight_volume_cost: float
    floor_cost: float
    extra_services: float
    demand_multiplier: float
    vehicle_multiplier: float
    recommended_vehicle: str
    vehicle_class: str
    subtotal: float
    vat_rate: float
    vat_amount: float
    total_price: float
    price_min: float
    price_max: float
    total_weight_kg: float
    total_volume_m3: float
    vehicles_required: int
    estimated_duration_hours: float
    lines: Tuple[BreakdownLine, ...] = Field(default_factory=tuple)
