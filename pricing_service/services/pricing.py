"""Deterministic price calculation for removal jobs.

Every money term is rounded to pennies before it is summed, and the
multipliers are kept at full precision, so a stored breakdown can be
re-derived by hand: ``subtotal = round2(sum(terms) * demand * vehicle)``.
"""
import logging
from decimal import ROUND_CEILING, Decimal
from typing import Iterable, List, Mapping, Tuple, Union

from pricing_service.core.enums import ExtraService, InsuranceLevel
from pricing_service.schemas.pricing import BreakdownLine, PriceBreakdown, PricingInput, PricingItem
from pricing_service.services.demand import calculate_demand_multiplier
from pricing_service.services.rates import (
    EXTRA_SERVICE_LABELS,
    INSURANCE_LABELS,
    JOB_TYPE_LABELS,
    RateProfile,
    resolve_rate_profile,
)
from pricing_service.services.vehicles import recommend_vehicle
from pricing_service.utils.money import (
    SIX_DEC,
    ZERO,
    ceil_to_increment,
    floor_to_increment,
    quantize,
    round2,
    round_to_increment,
    to_decimal,
)

logger = logging.getLogger(__name__)

ONE = Decimal("1")
HUNDRED = Decimal("100")
AVERAGE_SPEED_MPH = Decimal("25")


def calculate_distance_cost(
    distance_miles,
    tiers: tuple,
    round_trip_multiplier: Decimal,
    minimum_charge: Decimal = ZERO,
) -> Decimal:
    """Tiered one-way cost times the round-trip multiplier.

    Each tier prices the block of miles between the previous boundary and
    its own; miles past the last boundary use the last tier's rate. Any
    positive distance costs at least ``minimum_charge``.
    """
    remaining = to_decimal(distance_miles)
    if remaining <= ZERO:
        return ZERO

    cost = ZERO
    previous_limit = ZERO
    for tier in tiers:
        if remaining <= ZERO:
            break
        if tier.up_to_miles is None:
            block = remaining
        else:
            block = min(remaining, tier.up_to_miles - previous_limit)
            previous_limit = tier.up_to_miles
        cost += block * tier.rate_per_mile
        remaining -= block

    if remaining > ZERO:
        cost += remaining * tiers[-1].rate_per_mile

    return round2(max(cost * round_trip_multiplier, minimum_charge))


def _item_quantity(item: PricingItem) -> int:
    return max(item.quantity, 0)


def item_totals(items: Iterable[PricingItem]) -> Tuple[Decimal, Decimal, int]:
    """Total weight (kg), total volume (m3) and piece count across items."""
    weight = ZERO
    volume = ZERO
    pieces = 0
    for item in items:
        qty = _item_quantity(item)
        weight += qty * max(to_decimal(item.weight_kg), ZERO)
        volume += qty * max(to_decimal(item.volume_m3), ZERO)
        pieces += qty
    return weight, volume, pieces


def calculate_weight_volume_cost(items: Iterable[PricingItem], per_kg_rate: Decimal, per_m3_rate: Decimal) -> Decimal:
    weight, volume, _ = item_totals(items)
    return round2(weight * per_kg_rate + volume * per_m3_rate)


def calculate_floor_cost(
    pickup_floor: int,
    pickup_has_elevator: bool,
    delivery_floor: int,
    delivery_has_elevator: bool,
    charge_per_floor: Decimal,
) -> Decimal:
    cost = ZERO
    if pickup_floor > 0 and not pickup_has_elevator:
        cost += pickup_floor * charge_per_floor
    if delivery_floor > 0 and not delivery_has_elevator:
        cost += delivery_floor * charge_per_floor
    return round2(cost)


def normalize_insurance_level(level) -> InsuranceLevel:
    try:
        return InsuranceLevel(str(level).strip().lower())
    except ValueError:
        logger.debug(f"Unknown insurance level {level!r}, treating as basic")
        return InsuranceLevel.BASIC


def calculate_extra_services(pricing_input: PricingInput, profile: RateProfile) -> Tuple[Decimal, List[Tuple[str, Decimal]]]:
    """Flat once-per-job surcharges for requested services plus insurance."""
    requested = {
        ExtraService.PACKAGING: pricing_input.requires_packaging,
        ExtraService.ASSEMBLY: pricing_input.requires_assembly,
        ExtraService.DISASSEMBLY: pricing_input.requires_disassembly,
        ExtraService.CLEANING: pricing_input.requires_cleaning,
    }

    cost = ZERO
    lines = []
    for service, wanted in requested.items():
        if not wanted:
            continue
        amount = round2(profile.extra_services.get(service, ZERO))
        cost += amount
        lines.append((EXTRA_SERVICE_LABELS[service], amount))

    level = normalize_insurance_level(pricing_input.insurance_level)
    insurance = round2(profile.insurance_surcharges.get(level, ZERO))
    if insurance > ZERO:
        cost += insurance
        lines.append((INSURANCE_LABELS[level], insurance))

    return cost, lines


def estimate_duration_hours(total_items: int, pickup_floor: int, delivery_floor: int, distance_miles) -> Decimal:
    loading = max(total_items * 5, 20)
    unloading = max(total_items * 4, 15)
    floors = (max(pickup_floor, 0) + max(delivery_floor, 0)) * 3
    driving = max(to_decimal(distance_miles), ZERO) / AVERAGE_SPEED_MPH * 60
    minutes = loading + unloading + floors + driving
    return quantize(minutes / 60, Decimal("0.1"))


def limit_demand_discount(
    demand_multiplier: Decimal,
    raw_subtotal: Decimal,
    vehicle_multiplier: Decimal,
    base_price: Decimal,
) -> Decimal:
    """Raise a discounting demand multiplier just enough that the subtotal
    stays at or above the base fee.

    The result is rounded up to the multiplier's 6 dp, so the reported
    multiplier still reproduces the subtotal exactly.
    """
    scaled = raw_subtotal * vehicle_multiplier
    if demand_multiplier >= ONE or scaled <= ZERO or scaled * demand_multiplier >= base_price:
        return demand_multiplier
    floor = min(quantize(base_price / scaled, SIX_DEC, ROUND_CEILING), ONE)
    logger.debug(f"Demand multiplier {demand_multiplier} limited to {floor} to keep the base fee")
    return max(demand_multiplier, floor)


def price_band(total: Decimal, band_percent: Decimal, increment: Decimal) -> Tuple[Decimal, Decimal]:
    """Display range around ``total``; never used for billing."""
    spread = band_percent / HUNDRED
    low = round_to_increment(total * (ONE - spread), increment)
    high = round_to_increment(total * (ONE + spread), increment)
    if low > total:
        low = floor_to_increment(total, increment)
    if high < total:
        high = ceil_to_increment(total, increment)
    return max(low, ZERO), high


def _as_float_lines(lines: List[Tuple[str, Decimal]]) -> tuple:
    return tuple(BreakdownLine(label=label, amount=float(amount)) for label, amount in lines)


def price_job(pricing_input: PricingInput, profile: RateProfile) -> PriceBreakdown:
    """Price one job against an explicit rate profile."""
    total_weight, total_volume, total_pieces = item_totals(pricing_input.items)

    base_price = round2(profile.base_price_for(pricing_input.job_type))
    distance_cost = calculate_distance_cost(
        pricing_input.distance_miles,
        profile.distance_tiers,
        profile.round_trip_multiplier,
        profile.minimum_distance_charge,
    )
    weight_volume_cost = calculate_weight_volume_cost(
        pricing_input.items, profile.per_kg_rate, profile.per_m3_rate
    )
    floor_cost = calculate_floor_cost(
        pricing_input.pickup_floor,
        pricing_input.pickup_has_elevator,
        pricing_input.delivery_floor,
        pricing_input.delivery_has_elevator,
        profile.floor_charge_per_floor,
    )
    extra_services, extra_lines = calculate_extra_services(pricing_input, profile)

    recommendation = recommend_vehicle(total_weight, total_volume, profile.vehicles)
    vehicle_multiplier = recommendation.multiplier
    demand_multiplier = calculate_demand_multiplier(
        pricing_input.preferred_date, pricing_input.requested_at, profile.demand
    )

    raw_subtotal = base_price + distance_cost + weight_volume_cost + floor_cost + extra_services
    demand_multiplier = limit_demand_discount(demand_multiplier, raw_subtotal, vehicle_multiplier, base_price)
    subtotal = round2(raw_subtotal * demand_multiplier * vehicle_multiplier)

    vat_rate = profile.vat_rate if profile.vat_enabled else ZERO
    vat_amount = round2(subtotal * vat_rate)
    total_price = subtotal + vat_amount
    price_min, price_max = price_band(total_price, profile.band_percent, profile.display_increment)

    job_label = JOB_TYPE_LABELS.get(pricing_input.job_type, pricing_input.job_type)
    distance_shown = max(to_decimal(pricing_input.distance_miles), ZERO)
    lines = [
        (f"Base price ({job_label})", base_price),
        (f"Distance ({distance_shown:.1f} mi)", distance_cost),
    ]
    if weight_volume_cost > ZERO:
        lines.append((f"Load ({total_weight.normalize():f} kg, {total_volume.normalize():f} m³)", weight_volume_cost))
    if floor_cost > ZERO:
        lines.append(("Floor access surcharge", floor_cost))
    lines.extend(extra_lines)
    if vehicle_multiplier != ONE:
        lines.append((
            f"Vehicle: {recommendation.vehicle.label}",
            round2(raw_subtotal * (vehicle_multiplier - ONE)),
        ))
    if demand_multiplier != ONE:
        lines.append((
            f"Demand adjustment (x{demand_multiplier.normalize():f})",
            round2(raw_subtotal * vehicle_multiplier * (demand_multiplier - ONE)),
        ))
    if vat_amount > ZERO:
        lines.append((f"VAT ({(vat_rate * HUNDRED).normalize():f}%)", vat_amount))

    duration = estimate_duration_hours(
        total_pieces, pricing_input.pickup_floor, pricing_input.delivery_floor, pricing_input.distance_miles
    )

    logger.debug(
        f"Priced {pricing_input.job_type} job on {profile.name} profile: "
        f"subtotal={subtotal} vat={vat_amount} total={total_price}"
    )

    return PriceBreakdown(
        profile=str(profile.name),
        base_price=float(base_price),
        distance_cost=float(distance_cost),
        weight_volume_cost=float(weight_volume_cost),
        floor_cost=float(floor_cost),
        extra_services=float(extra_services),
        demand_multiplier=float(demand_multiplier),
        vehicle_multiplier=float(vehicle_multiplier),
        recommended_vehicle=recommendation.vehicle.label,
        vehicle_class=str(recommendation.vehicle.vehicle_type),
        subtotal=float(subtotal),
        vat_rate=float(vat_rate),
        vat_amount=float(vat_amount),
        total_price=float(total_price),
        price_min=float(price_min),
        price_max=float(price_max),
        total_weight_kg=float(round2(total_weight)),
        total_volume_m3=float(round2(total_volume)),
        vehicles_required=recommendation.vehicles_required,
        estimated_duration_hours=float(duration),
        lines=_as_float_lines(lines),
    )


def calculate_price(
    pricing_input: Union[PricingInput, Mapping],
    profile: str = "standard",
    enable_vat: bool = True,
) -> PriceBreakdown:
    """Price a job on the named profile.

    A mapping is validated into ``PricingInput`` first, so structurally
    invalid input raises ``pydantic.ValidationError`` before any arithmetic.
    """
    if not isinstance(pricing_input, PricingInput):
        pricing_input = PricingInput.model_validate(pricing_input)
    return price_job(pricing_input, resolve_rate_profile(profile, enable_vat))
