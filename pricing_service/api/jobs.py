import logging
from datetime import datetime, timezone

from fastapi import APIRouter

from pricing_service.core.config import settings
from pricing_service.core.errors import bad_request, check_record_id
from pricing_service.schemas.booking import RecalculateRequest, RecalculateResponse
from pricing_service.services.repricing import RepriceRejected, recalculate_job_price

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.patch("/{job_id}/recalculate-price", response_model=RecalculateResponse)
async def recalculate_price(job_id: str, payload: RecalculateRequest):
    """Refresh a job's estimate with the currently configured profile"""
    check_record_id(payload.job, job_id, "Job")

    try:
        return recalculate_job_price(
            payload.job,
            payload.items,
            profile=settings.PRICING_PROFILE,
            enable_vat=settings.ENABLE_VAT,
            now=datetime.now(timezone.utc),
        )
    except RepriceRejected as exc:
        raise bad_request(str(exc))
