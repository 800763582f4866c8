"""Audit entries for price changes.

Entries are returned to the caller, which owns persistence; this module
only shapes, hashes, logs and counts them.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from pricing_service.core.enums import AuditAction
from pricing_service.core.metrics import audit_logs_created
from pricing_service.schemas.audit import AuditEntry
from pricing_service.schemas.pricing import PriceBreakdown
from pricing_service.utils.hashing import payload_hash

logger = logging.getLogger(__name__)

BREAKDOWN_AUDIT_FIELDS = (
    "profile",
    "base_price",
    "distance_cost",
    "weight_volume_cost",
    "floor_cost",
    "extra_services",
    "demand_multiplier",
    "vehicle_multiplier",
    "subtotal",
    "vat_amount",
    "total_price",
    "recommended_vehicle",
)


def price_change_diff(old_price: Optional[float], breakdown: PriceBreakdown) -> dict:
    return {
        "final_price": {"old": old_price, "new": breakdown.total_price},
        "breakdown": {name: getattr(breakdown, name) for name in BREAKDOWN_AUDIT_FIELDS},
    }


def build_audit_entry(
    user_id: str,
    action: AuditAction,
    payload: Optional[dict] = None,
    resource_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AuditEntry:
    if payload is None:
        payload = {}

    if hasattr(payload, "model_dump"):
        payload_dict = payload.model_dump(exclude_unset=True)
    elif isinstance(payload, dict):
        payload_dict = payload
    else:
        payload_dict = {}

    return AuditEntry(
        user_id=str(user_id),
        action=action,
        resource_id=resource_id,
        payload_hash=payload_hash(payload_dict),
        diff=payload_dict,
        created_at=now or datetime.now(timezone.utc),
    )


def log_audit(
    user_id: str,
    action: AuditAction,
    payload: Optional[dict] = None,
    resource_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AuditEntry:
    entry = build_audit_entry(user_id, action, payload, resource_id=resource_id, now=now)
    audit_logs_created.labels(action=str(action)).inc()
    logger.info(
        f"Audit {entry.action} on {entry.resource_id or '-'} by user {entry.user_id} "
        f"(payload {entry.payload_hash[:12]})"
    )
    return entry
