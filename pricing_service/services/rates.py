"""Rate profiles for the removals pricing engine.

All money is GBP. Each profile is a plain data bundle: the calculator
walks the same arithmetic path for every profile and only the numbers
in these tables differ.
"""
import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional

from pricing_service.core.enums import ExtraService, InsuranceLevel, PricingProfile, VehicleType

logger = logging.getLogger(__name__)

DEFAULT_JOB_TYPE = "man_and_van"

BASE_PRICES: Mapping[str, Decimal] = MappingProxyType({
    "man_and_van": Decimal("45"),
    "furniture": Decimal("55"),
    "home_removal_studio": Decimal("180"),
    "home_removal_1bed": Decimal("250"),
    "home_removal_2bed": Decimal("350"),
    "home_removal_3bed": Decimal("480"),
    "home_removal_4bed": Decimal("650"),
    "home_removal_5bed": Decimal("850"),
    "piano_upright": Decimal("120"),
    "piano_grand": Decimal("250"),
    "student_move": Decimal("80"),
    "office_small": Decimal("300"),
    "office_medium": Decimal("550"),
    "office_large": Decimal("900"),
    "international_europe": Decimal("1200"),
    "storage_monthly": Decimal("60"),
    "single_item": Decimal("40"),
    "house_move": Decimal("280"),
    "office_move": Decimal("400"),
    "packing": Decimal("80"),
    "piano_specialist": Decimal("150"),
    "storage": Decimal("100"),
})

JOB_TYPE_LABELS: Mapping[str, str] = MappingProxyType({
    "man_and_van": "Man & Van",
    "furniture": "Furniture Delivery",
    "home_removal_studio": "Studio Flat Removal",
    "home_removal_1bed": "1-Bed Removal",
    "home_removal_2bed": "2-Bed Removal",
    "home_removal_3bed": "3-Bed Removal",
    "home_removal_4bed": "4-Bed Removal",
    "home_removal_5bed": "5-Bed Removal",
    "piano_upright": "Upright Piano Move",
    "piano_grand": "Grand Piano Move",
    "student_move": "Student Move",
    "office_small": "Small Office Move",
    "office_medium": "Medium Office Move",
    "office_large": "Large Office Move",
    "international_europe": "International (Europe)",
    "storage_monthly": "Monthly Storage",
    "single_item": "Single Item Delivery",
    "house_move": "House Move",
    "office_move": "Office Move",
    "packing": "Packing Service",
    "piano_specialist": "Specialist Item Move",
    "storage": "Storage & Collection",
})

EXTRA_SERVICE_LABELS: Mapping[ExtraService, str] = MappingProxyType({
    ExtraService.PACKAGING: "Professional Packing",
    ExtraService.ASSEMBLY: "Furniture Assembly",
    ExtraService.DISASSEMBLY: "Furniture Disassembly",
    ExtraService.CLEANING: "End-of-Tenancy Cleaning",
})

INSURANCE_LABELS: Mapping[InsuranceLevel, str] = MappingProxyType({
    InsuranceLevel.BASIC: "Basic Cover (included)",
    InsuranceLevel.STANDARD: "Standard Cover (£10k)",
    InsuranceLevel.PREMIUM: "Premium Cover (£25k)",
})


@dataclass(frozen=True)
class DistanceTier:
    # Cumulative boundary; None marks the open-ended final tier
    up_to_miles: Optional[Decimal]
    rate_per_mile: Decimal


@dataclass(frozen=True)
class VehicleClass:
    vehicle_type: VehicleType
    label: str
    max_volume_m3: Decimal
    max_weight_kg: Decimal
    multiplier: Decimal


@dataclass(frozen=True)
class DemandTable:
    """Demand factors keyed by Python weekday (Mon=0) and calendar month.

    ``lead_time`` is an ordered tuple of ``(days_below, factor)``; a lead
    time at or beyond the last bound gets ``early_booking_factor``.
    """
    day_of_week: Mapping[int, Decimal]
    month: Mapping[int, Decimal]
    lead_time: tuple
    early_booking_factor: Decimal
    minimum_multiplier: Decimal


VEHICLE_CLASSES = (
    VehicleClass(VehicleType.SMALL_VAN, "Small Van (SWB)", Decimal("5"), Decimal("500"), Decimal("1.00")),
    VehicleClass(VehicleType.MEDIUM_VAN, "Medium Van (MWB)", Decimal("9"), Decimal("900"), Decimal("1.15")),
    VehicleClass(VehicleType.LWB_VAN, "Large Van (LWB)", Decimal("14"), Decimal("1200"), Decimal("1.30")),
    VehicleClass(VehicleType.LUTON_VAN, "Luton Van", Decimal("20"), Decimal("1500"), Decimal("1.50")),
    VehicleClass(VehicleType.LUTON_TAIL_LIFT, "Luton Van with Tail Lift", Decimal("22"), Decimal("1800"), Decimal("1.65")),
)

DEFAULT_DEMAND_TABLE = DemandTable(
    day_of_week=MappingProxyType({
        0: Decimal("0.95"),  # Monday
        1: Decimal("0.95"),
        2: Decimal("1.00"),
        3: Decimal("1.00"),
        4: Decimal("1.10"),  # Friday
        5: Decimal("1.20"),  # Saturday
        6: Decimal("1.15"),  # Sunday
    }),
    month=MappingProxyType({
        1: Decimal("0.90"),  # January (quiet)
        2: Decimal("0.90"),
        3: Decimal("0.95"),
        4: Decimal("1.00"),
        5: Decimal("1.05"),
        6: Decimal("1.10"),  # summer peak
        7: Decimal("1.15"),
        8: Decimal("1.15"),
        9: Decimal("1.10"),  # student season
        10: Decimal("1.00"),
        11: Decimal("0.95"),
        12: Decimal("0.90"),
    }),
    lead_time=(
        (Decimal("1"), Decimal("1.50")),   # same day
        (Decimal("2"), Decimal("1.30")),   # next day
        (Decimal("4"), Decimal("1.15")),
        (Decimal("8"), Decimal("1.05")),
        (Decimal("28"), Decimal("1.00")),
    ),
    early_booking_factor=Decimal("0.97"),
    minimum_multiplier=Decimal("0.80"),
)

STANDARD_DISTANCE_TIERS = (
    DistanceTier(Decimal("6"), Decimal("4.00")),
    DistanceTier(Decimal("31"), Decimal("2.90")),
    DistanceTier(Decimal("62"), Decimal("2.25")),
    DistanceTier(Decimal("186"), Decimal("1.75")),
    DistanceTier(None, Decimal("1.45")),
)

COMPETITIVE_DISTANCE_TIERS = (
    DistanceTier(Decimal("6"), Decimal("2.80")),
    DistanceTier(Decimal("31"), Decimal("2.00")),
    DistanceTier(Decimal("62"), Decimal("1.50")),
    DistanceTier(Decimal("186"), Decimal("1.20")),
    DistanceTier(None, Decimal("1.00")),
)


@dataclass(frozen=True)
class RateProfile:
    name: PricingProfile
    distance_tiers: tuple
    round_trip_multiplier: Decimal
    vat_enabled: bool
    vat_rate: Decimal = Decimal("0.20")
    # Applies to any positive distance, after the round-trip multiplier
    minimum_distance_charge: Decimal = Decimal("0")
    base_prices: Mapping[str, Decimal] = field(default_factory=lambda: BASE_PRICES)
    per_kg_rate: Decimal = Decimal("0.00")
    per_m3_rate: Decimal = Decimal("0.00")
    floor_charge_per_floor: Decimal = Decimal("15")
    extra_services: Mapping[ExtraService, Decimal] = field(default_factory=lambda: MappingProxyType({
        ExtraService.PACKAGING: Decimal("30"),
        ExtraService.ASSEMBLY: Decimal("25"),
        ExtraService.DISASSEMBLY: Decimal("20"),
        ExtraService.CLEANING: Decimal("80"),
    }))
    insurance_surcharges: Mapping[InsuranceLevel, Decimal] = field(default_factory=lambda: MappingProxyType({
        InsuranceLevel.BASIC: Decimal("0"),
        InsuranceLevel.STANDARD: Decimal("15"),
        InsuranceLevel.PREMIUM: Decimal("35"),
    }))
    demand: DemandTable = DEFAULT_DEMAND_TABLE
    vehicles: tuple = VEHICLE_CLASSES
    band_percent: Decimal = Decimal("15")
    display_increment: Decimal = Decimal("5")

    def base_price_for(self, job_type: str) -> Decimal:
        return self.base_prices.get(job_type, self.base_prices[DEFAULT_JOB_TYPE])


RATE_PROFILES: Mapping[PricingProfile, RateProfile] = MappingProxyType({
    PricingProfile.STANDARD: RateProfile(
        name=PricingProfile.STANDARD,
        distance_tiers=STANDARD_DISTANCE_TIERS,
        round_trip_multiplier=Decimal("1.4"),  # driver returns empty or part-loaded
        minimum_distance_charge=Decimal("15"),
        vat_enabled=True,
    ),
    PricingProfile.COMPETITIVE: RateProfile(
        name=PricingProfile.COMPETITIVE,
        distance_tiers=COMPETITIVE_DISTANCE_TIERS,
        round_trip_multiplier=Decimal("1.0"),  # one-way pricing only
        minimum_distance_charge=Decimal("10"),
        vat_enabled=False,
    ),
})


def resolve_rate_profile(name, enable_vat: bool = True) -> RateProfile:
    """Return the constant bundle for ``name``; unknown names price as standard.

    ``enable_vat`` only switches VAT on where the profile allows it:
    competitive pricing never charges VAT.
    """
    try:
        key = PricingProfile(str(name).strip().lower())
    except ValueError:
        logger.debug(f"Unknown pricing profile {name!r}, falling back to standard")
        key = PricingProfile.STANDARD

    profile = RATE_PROFILES[key]
    return replace(profile, vat_enabled=profile.vat_enabled and bool(enable_vat))


def describe_rate_profile(profile: RateProfile) -> dict:
    """Flatten a profile into JSON-friendly numbers for display."""
    return {
        "profile": str(profile.name),
        "vat_enabled": profile.vat_enabled,
        "vat_rate": float(profile.vat_rate) if profile.vat_enabled else 0.0,
        "round_trip_multiplier": float(profile.round_trip_multiplier),
        "minimum_distance_charge": float(profile.minimum_distance_charge),
        "distance_tiers": [
            {
                "up_to_miles": float(t.up_to_miles) if t.up_to_miles is not None else None,
                "rate_per_mile": float(t.rate_per_mile),
            }
            for t in profile.distance_tiers
        ],
        "base_prices": {k: float(v) for k, v in profile.base_prices.items()},
        "per_kg_rate": float(profile.per_kg_rate),
        "per_m3_rate": float(profile.per_m3_rate),
        "floor_charge_per_floor": float(profile.floor_charge_per_floor),
        "extra_services": {str(k): float(v) for k, v in profile.extra_services.items()},
        "insurance": {str(k): float(v) for k, v in profile.insurance_surcharges.items()},
        "vehicles": [
            {
                "vehicle_class": str(v.vehicle_type),
                "label": v.label,
                "max_volume_m3": float(v.max_volume_m3),
                "max_weight_kg": float(v.max_weight_kg),
                "multiplier": float(v.multiplier),
            }
            for v in profile.vehicles
        ],
        "price_band_percent": float(profile.band_percent),
        "display_increment": float(profile.display_increment),
    }
