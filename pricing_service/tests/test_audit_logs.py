import pytest
from datetime import datetime, timezone

from pricing_service.core.audit_log import (
    BREAKDOWN_AUDIT_FIELDS,
    build_audit_entry,
    log_audit,
    price_change_diff,
)
from pricing_service.core.enums import AuditAction
from pricing_service.core.metrics import registry
from pricing_service.services.pricing import calculate_price
from pricing_service.utils.hashing import payload_hash


class TestAuditLogging:

    def test_audit_entry_structure(self):
        now = datetime(2026, 2, 16, 9, 0, tzinfo=timezone.utc)
        entry = build_audit_entry("admin_1", AuditAction.REPRICE, {"final_price": {"old": 1, "new": 2}}, "booking_1", now)

        assert entry.user_id == "admin_1"
        assert entry.action == AuditAction.REPRICE
        assert entry.resource_id == "booking_1"
        assert entry.diff == {"final_price": {"old": 1, "new": 2}}
        assert entry.created_at == now

    def test_payload_hash_is_stable(self):
        a = build_audit_entry("admin_1", AuditAction.REPRICE, {"b": 2, "a": 1})
        b = build_audit_entry("admin_2", AuditAction.REPRICE, {"a": 1, "b": 2})

        assert a.payload_hash == b.payload_hash == payload_hash({"a": 1, "b": 2})

    def test_empty_payload(self):
        entry = build_audit_entry(42, AuditAction.REPRICE)

        assert entry.user_id == "42"
        assert entry.diff == {}
        assert entry.resource_id is None
        assert entry.created_at.tzinfo is not None

    def test_model_payload_is_dumped(self, vanity_job):
        entry = build_audit_entry("admin_1", AuditAction.REPRICE, vanity_job)
        assert entry.diff["distance_miles"] == 99

    def test_entries_are_immutable(self):
        entry = build_audit_entry("admin_1", AuditAction.REPRICE)
        with pytest.raises(Exception):
            entry.user_id = "someone_else"


class TestPriceChangeAudit:

    def test_price_change_diff(self, vanity_job):
        breakdown = calculate_price(vanity_job, profile="standard", enable_vat=True)

        diff = price_change_diff(400.0, breakdown)

        assert diff["final_price"] == {"old": 400.0, "new": 412.09}
        assert set(diff["breakdown"]) == set(BREAKDOWN_AUDIT_FIELDS)
        assert diff["breakdown"]["subtotal"] == 343.41
        assert diff["breakdown"]["recommended_vehicle"] == "Small Van (SWB)"

    def test_log_audit_counts_and_logs(self, vanity_job, caplog):
        breakdown = calculate_price(vanity_job, profile="competitive", enable_vat=False)
        before = registry.get_sample_value("audit_logs_created_total", {"action": "reprice"}) or 0.0

        with caplog.at_level("INFO", logger="pricing_service.core.audit_log"):
            entry = log_audit("admin_1", AuditAction.REPRICE, price_change_diff(None, breakdown), resource_id="booking_7")

        assert entry.diff["final_price"] == {"old": None, "new": 186.83}
        assert registry.get_sample_value("audit_logs_created_total", {"action": "reprice"}) == before + 1
        assert "booking_7" in caplog.text
        assert "admin_1" in caplog.text
