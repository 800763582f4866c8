import pytest
from datetime import date, datetime, timezone

from pricing_service.core.enums import AuditAction, BookingStatus
from pricing_service.core.metrics import registry
from pricing_service.schemas.booking import JobItemRecord, JobRecord
from pricing_service.services.repricing import (
    FALLBACK_DISTANCE_MILES,
    RECALCULATE_ITEM_DEFAULTS,
    REPRICE_ITEM_DEFAULTS,
    RepriceRejected,
    build_pricing_input,
    recalculate_job_price,
    reprice_booking,
)

NOW = datetime(2026, 2, 14, 0, 0)


def _reprices(outcome):
    return registry.get_sample_value("reprices_total", {"outcome": outcome}) or 0.0


class TestBuildPricingInput:

    def test_maps_stored_job_fields(self, job_record):
        job = job_record.model_copy(update={
            "pickup_floor": 2,
            "delivery_has_lift": True,
            "needs_packing": True,
        })
        items = [JobItemRecord(name="Wardrobe", weight_kg=80, volume_m3=1.2, requires_dismantling=True)]

        pricing_input = build_pricing_input(
            job, items, requested_at=NOW, item_defaults=REPRICE_ITEM_DEFAULTS
        )

        assert pricing_input.job_type == "single_item"
        assert pricing_input.distance_miles == 99
        assert pricing_input.pickup_floor == 2
        assert pricing_input.delivery_has_elevator is True
        assert pricing_input.requires_packaging is True
        assert pricing_input.requires_disassembly is True
        assert pricing_input.requires_assembly is False
        assert pricing_input.insurance_level == "basic"
        assert pricing_input.preferred_date == date(2026, 2, 18)
        assert pricing_input.requested_at == NOW

    def test_missing_measurements_use_defaults(self, job_record):
        items = [JobItemRecord(name="Boxes", quantity=4), JobItemRecord(name="Rug", weight_kg=0, volume_m3=0)]

        reprice_input = build_pricing_input(
            job_record, items, requested_at=NOW, item_defaults=REPRICE_ITEM_DEFAULTS
        )
        recalc_input = build_pricing_input(
            job_record, items, requested_at=NOW, item_defaults=RECALCULATE_ITEM_DEFAULTS
        )

        assert [(i.weight_kg, i.volume_m3) for i in reprice_input.items] == [(5.0, 0.1), (5.0, 0.1)]
        assert [(i.weight_kg, i.volume_m3) for i in recalc_input.items] == [(10.0, 0.05), (10.0, 0.05)]
        assert reprice_input.items[0].quantity == 4

    def test_missing_job_fields_use_defaults(self):
        job = JobRecord(id="job_9", move_date=date(2026, 3, 2), created_at=NOW)

        pricing_input = build_pricing_input(
            job,
            [],
            requested_at=NOW,
            item_defaults=REPRICE_ITEM_DEFAULTS,
            fallback_distance_miles=FALLBACK_DISTANCE_MILES,
            ensure_items=True,
        )

        assert pricing_input.job_type == "man_and_van"
        assert pricing_input.distance_miles == 10.0
        assert pricing_input.pickup_floor == 0
        assert pricing_input.pickup_has_elevator is False
        assert len(pricing_input.items) == 1
        assert pricing_input.items[0].name == "General items"

    def test_no_fallback_keeps_zero_distance(self, job_record):
        job = job_record.model_copy(update={"distance_miles": None})
        pricing_input = build_pricing_input(
            job, [], requested_at=NOW, item_defaults=RECALCULATE_ITEM_DEFAULTS
        )
        assert pricing_input.distance_miles == 0.0
        assert pricing_input.items == ()

    def test_missing_move_date_is_rejected(self, job_record):
        job = job_record.model_copy(update={"move_date": None})
        with pytest.raises(RepriceRejected, match="no move date"):
            build_pricing_input(job, [], requested_at=NOW, item_defaults=REPRICE_ITEM_DEFAULTS)


class TestRecalculateJobPrice:

    def test_competitive_recalculation(self, job_record, job_items):
        result = recalculate_job_price(
            job_record, job_items, profile="competitive", enable_vat=False, now=NOW
        )

        assert result.job_id == "job_1"
        assert result.old_price == 186.83
        assert result.new_price == 186.83
        assert result.price_min == 160.0
        assert result.price_max == 215.0
        assert result.profile == "competitive"
        assert result.vat_enabled is False

    def test_standard_recalculation_with_vat(self, job_record, job_items):
        result = recalculate_job_price(
            job_record, job_items, profile="standard", enable_vat=True, now=NOW
        )
        assert result.new_price == 412.09
        assert result.vat_enabled is True

    def test_lead_time_measured_from_now(self, job_record, job_items):
        early = recalculate_job_price(job_record, job_items, profile="competitive", enable_vat=False, now=NOW)
        late = recalculate_job_price(
            job_record, job_items, profile="competitive", enable_vat=False, now=datetime(2026, 2, 17, 12, 0)
        )
        assert late.new_price > early.new_price

    def test_untyped_job_prices_as_single_item(self, job_record, job_items):
        typed = recalculate_job_price(job_record, job_items, profile="standard", enable_vat=True, now=NOW)
        untyped = recalculate_job_price(
            job_record.model_copy(update={"job_type": None}), job_items, profile="standard", enable_vat=True, now=NOW
        )
        assert untyped.new_price == typed.new_price

    def test_missing_move_date(self, job_record, job_items):
        job = job_record.model_copy(update={"move_date": None})
        with pytest.raises(RepriceRejected):
            recalculate_job_price(job, job_items, profile="standard", enable_vat=True, now=NOW)


class TestRepriceBooking:

    def test_reprice_standard_with_vat(self, booking_record, job_record, job_items):
        now = datetime(2026, 2, 16, 9, 0, tzinfo=timezone.utc)
        before = _reprices("changed")

        result = reprice_booking(
            booking_record,
            job_record,
            job_items,
            admin_user_id="admin_1",
            profile="standard",
            enable_vat=True,
            now=now,
        )

        assert result.success is True
        assert result.old_price == 400.0
        assert result.new_price == 412.09
        assert result.breakdown.subtotal == 343.41
        assert result.breakdown.vat_amount == 68.68
        assert _reprices("changed") == before + 1

        audit = result.audit
        assert audit.user_id == "admin_1"
        assert audit.action == AuditAction.REPRICE
        assert audit.resource_id == "booking_1"
        assert audit.created_at == now
        assert audit.diff["final_price"] == {"old": 400.0, "new": 412.09}
        assert audit.diff["breakdown"]["demand_multiplier"] == 0.945
        assert len(audit.payload_hash) == 64

    def test_lead_time_measured_from_job_creation(self, booking_record, job_record, job_items):
        # Repricing after the move date must not pick up the same-day surcharge
        result = reprice_booking(
            booking_record,
            job_record,
            job_items,
            admin_user_id="admin_1",
            profile="competitive",
            enable_vat=False,
            now=datetime(2026, 3, 1),
        )
        assert result.new_price == 186.83

    def test_unchanged_price(self, booking_record, job_record, job_items):
        booking = booking_record.model_copy(update={"final_price": 186.83})
        before = _reprices("unchanged")

        result = reprice_booking(
            booking, job_record, job_items,
            admin_user_id="admin_1", profile="competitive", enable_vat=False, now=NOW,
        )

        assert result.new_price == result.old_price
        assert _reprices("unchanged") == before + 1

    def test_cancelled_booking_rejected(self, booking_record, job_record, job_items):
        booking = booking_record.model_copy(update={"status": BookingStatus.CANCELLED})
        before = _reprices("rejected")

        with pytest.raises(RepriceRejected, match="cancelled"):
            reprice_booking(
                booking, job_record, job_items,
                admin_user_id="admin_1", profile="standard", enable_vat=True, now=NOW,
            )
        assert _reprices("rejected") == before + 1

    def test_job_without_move_date_rejected(self, booking_record, job_record, job_items):
        job = job_record.model_copy(update={"move_date": None})
        with pytest.raises(RepriceRejected):
            reprice_booking(
                booking_record, job, job_items,
                admin_user_id="admin_1", profile="standard", enable_vat=True, now=NOW,
            )

    @pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED])
    def test_other_statuses_can_be_repriced(self, booking_record, job_record, job_items, status):
        booking = booking_record.model_copy(update={"status": status})
        result = reprice_booking(
            booking, job_record, job_items,
            admin_user_id="admin_1", profile="standard", enable_vat=True, now=NOW,
        )
        assert result.new_price == 412.09
