"""Price recalculation for persisted jobs and admin booking reprices.

Rows arrive as plain records; the caller loads them and stores whatever
comes back (new price, breakdown, audit entry).
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from pricing_service.core.audit_log import log_audit, price_change_diff
from pricing_service.core.enums import AuditAction, BookingStatus
from pricing_service.core.metrics import reprices, track_pricing
from pricing_service.schemas.booking import (
    BookingRecord,
    JobItemRecord,
    JobRecord,
    RecalculateResponse,
    RepriceResponse,
)
from pricing_service.schemas.pricing import PricingInput, PricingItem
from pricing_service.services.pricing import calculate_price
from pricing_service.services.rates import DEFAULT_JOB_TYPE

logger = logging.getLogger(__name__)


class RepriceRejected(Exception):
    """The stored job or booking cannot be priced in its current state."""


@dataclass(frozen=True)
class ItemDefaults:
    weight_kg: float
    volume_m3: float


REPRICE_ITEM_DEFAULTS = ItemDefaults(weight_kg=5.0, volume_m3=0.1)
RECALCULATE_ITEM_DEFAULTS = ItemDefaults(weight_kg=10.0, volume_m3=0.05)
GENERAL_ITEMS = PricingItem(name="General items", quantity=1, weight_kg=10.0, volume_m3=0.5)
FALLBACK_DISTANCE_MILES = 10.0

_price_for_recalculation = track_pricing("recalculate")(calculate_price)
_price_for_reprice = track_pricing("reprice")(calculate_price)


def to_pricing_items(items: Iterable[JobItemRecord], defaults: ItemDefaults) -> List[PricingItem]:
    return [
        PricingItem(
            name=item.name,
            quantity=item.quantity,
            # A stored zero means "not measured", same as a missing value
            weight_kg=item.weight_kg or defaults.weight_kg,
            volume_m3=item.volume_m3 or defaults.volume_m3,
        )
        for item in items
    ]


def build_pricing_input(
    job: JobRecord,
    items: List[JobItemRecord],
    *,
    requested_at: datetime,
    item_defaults: ItemDefaults,
    default_job_type: str = DEFAULT_JOB_TYPE,
    fallback_distance_miles: Optional[float] = None,
    ensure_items: bool = False,
) -> PricingInput:
    if job.move_date is None:
        raise RepriceRejected("Job has no move date.")

    distance = job.distance_miles or 0.0
    if distance <= 0 and fallback_distance_miles is not None:
        logger.warning(f"Job {job.id} has no stored distance, using {fallback_distance_miles} miles")
        distance = fallback_distance_miles

    pricing_items = to_pricing_items(items, item_defaults)
    if ensure_items and not pricing_items:
        pricing_items.append(GENERAL_ITEMS)

    return PricingInput(
        job_type=job.job_type or default_job_type,
        distance_miles=distance,
        items=pricing_items,
        pickup_floor=job.pickup_floor or 0,
        pickup_has_elevator=bool(job.pickup_has_lift),
        delivery_floor=job.delivery_floor or 0,
        delivery_has_elevator=bool(job.delivery_has_lift),
        requires_packaging=bool(job.needs_packing),
        requires_disassembly=any(item.requires_dismantling for item in items),
        insurance_level="basic",
        preferred_date=job.move_date,
        requested_at=requested_at,
    )


def recalculate_job_price(
    job: JobRecord,
    items: List[JobItemRecord],
    *,
    profile: str,
    enable_vat: bool,
    now: datetime,
) -> RecalculateResponse:
    """Re-estimate a job with the currently configured profile, as of ``now``."""
    pricing_input = build_pricing_input(
        job,
        items,
        requested_at=now,
        item_defaults=RECALCULATE_ITEM_DEFAULTS,
        default_job_type="single_item",
    )
    breakdown = _price_for_recalculation(pricing_input, profile=profile, enable_vat=enable_vat)

    logger.info(f"Recalculated job {job.id}: {job.estimated_price} -> {breakdown.total_price}")
    return RecalculateResponse(
        job_id=job.id,
        old_price=job.estimated_price,
        new_price=breakdown.total_price,
        price_min=breakdown.price_min,
        price_max=breakdown.price_max,
        profile=breakdown.profile,
        vat_enabled=breakdown.vat_rate > 0,
    )


def reprice_booking(
    booking: BookingRecord,
    job: JobRecord,
    items: List[JobItemRecord],
    *,
    admin_user_id: str,
    profile: str,
    enable_vat: bool,
    now: datetime,
) -> RepriceResponse:
    """Recompute a booking's price from its stored job and record an audit entry.

    Lead time is measured from when the job was created, so a reprice of an
    unchanged job reproduces the original demand multiplier.
    """
    if booking.status == BookingStatus.CANCELLED:
        reprices.labels(outcome="rejected").inc()
        raise RepriceRejected("Cannot reprice a cancelled booking.")

    try:
        pricing_input = build_pricing_input(
            job,
            items,
            requested_at=job.created_at,
            item_defaults=REPRICE_ITEM_DEFAULTS,
            fallback_distance_miles=FALLBACK_DISTANCE_MILES,
            ensure_items=True,
        )
    except RepriceRejected:
        reprices.labels(outcome="rejected").inc()
        raise

    breakdown = _price_for_reprice(pricing_input, profile=profile, enable_vat=enable_vat)

    old_price = booking.final_price
    new_price = breakdown.total_price
    audit = log_audit(
        admin_user_id,
        AuditAction.REPRICE,
        price_change_diff(old_price, breakdown),
        resource_id=booking.id,
        now=now,
    )

    reprices.labels(outcome="changed" if new_price != old_price else "unchanged").inc()
    return RepriceResponse(
        old_price=old_price,
        new_price=new_price,
        breakdown=breakdown,
        audit=audit,
    )
