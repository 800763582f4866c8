import logging
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks

from pricing_service.core.config import settings
from pricing_service.core.errors import bad_request, check_not_found, check_record_id
from pricing_service.schemas.booking import RepriceRequest, RepriceResponse
from pricing_service.services.repricing import RepriceRejected, reprice_booking
from pricing_service.services.webhook import price_changed_payload, send_webhook

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/bookings", tags=["admin"])


@router.post("/{booking_id}/reprice", response_model=RepriceResponse)
async def reprice(
    booking_id: str,
    payload: RepriceRequest,
    background_tasks: BackgroundTasks,
):
    check_record_id(payload.booking, booking_id, "Booking")
    check_not_found(payload.job if payload.job.id == payload.booking.job_id else None, "Linked job")

    try:
        result = reprice_booking(
            payload.booking,
            payload.job,
            payload.items,
            admin_user_id=payload.admin_user_id,
            profile=settings.PRICING_PROFILE,
            enable_vat=settings.ENABLE_VAT,
            now=datetime.now(timezone.utc),
        )
    except RepriceRejected as exc:
        raise bad_request(str(exc))

    # Notify only if price changed
    if result.new_price != result.old_price:
        background_tasks.add_task(
            send_webhook,
            price_changed_payload(booking_id, result.old_price, result.new_price, payload.admin_user_id),
        )

    return result
