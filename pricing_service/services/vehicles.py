import logging
import math
from dataclasses import dataclass
from decimal import Decimal

from pricing_service.services.rates import VEHICLE_CLASSES, VehicleClass
from pricing_service.utils.money import ZERO

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VehicleRecommendation:
    vehicle: VehicleClass
    # Advisory only; the price uses a single multiplier for the chosen class
    vehicles_required: int

    @property
    def multiplier(self) -> Decimal:
        return self.vehicle.multiplier


def recommend_vehicle(
    total_weight_kg: Decimal,
    total_volume_m3: Decimal,
    vehicles: tuple = VEHICLE_CLASSES,
) -> VehicleRecommendation:
    weight = max(total_weight_kg, ZERO)
    volume = max(total_volume_m3, ZERO)

    for vehicle in vehicles:
        if weight <= vehicle.max_weight_kg and volume <= vehicle.max_volume_m3:
            return VehicleRecommendation(vehicle=vehicle, vehicles_required=1)

    largest = vehicles[-1]
    by_volume = math.ceil(volume / largest.max_volume_m3)
    by_weight = math.ceil(weight / largest.max_weight_kg)
    required = max(by_volume, by_weight, 1)
    logger.info(
        f"Load of {weight}kg / {volume}m3 exceeds every vehicle class; "
        f"pricing as {largest.vehicle_type} ({required} trips advised)"
    )
    return VehicleRecommendation(vehicle=largest, vehicles_required=required)
