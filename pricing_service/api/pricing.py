"""Draft price estimate endpoint with Redis caching"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query
from redis.exceptions import RedisError

from pricing_service.core.config import settings
from pricing_service.core.metrics import cache_hits, cache_misses, track_pricing
from pricing_service.core.redis import get_redis
from pricing_service.schemas.pricing import PriceBreakdown, PricingInput, PricingRequest
from pricing_service.services.pricing import calculate_price, item_totals
from pricing_service.services.rates import describe_rate_profile, resolve_rate_profile
from pricing_service.utils.hashing import price_cache_key
from pricing_service.utils.money import format_gbp

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/pricing", tags=["pricing"])

_price_for_estimate = track_pricing("estimate")(calculate_price)


def _request_time() -> datetime:
    return datetime.now(timezone.utc)


def _cache_key(pricing_input: PricingInput) -> str:
    # The engine sees the exact request time; the key only keeps the minute,
    # so repeat estimates within a minute share a cache entry
    payload = pricing_input.model_dump(mode="json")
    payload["requested_at"] = pricing_input.requested_at.replace(second=0, microsecond=0).isoformat()
    return price_cache_key(payload, settings.PRICING_PROFILE, settings.ENABLE_VAT)


def _log_debug_breakdown(pricing_input: PricingInput, result: PriceBreakdown) -> None:
    # No addresses or names: only the numbers that drove the price
    total_weight, total_volume, _ = item_totals(pricing_input.items)
    logger.info(
        f"[PRICING_DEBUG] profile={settings.PRICING_PROFILE} vat={settings.ENABLE_VAT} "
        f"job_type={pricing_input.job_type} miles={pricing_input.distance_miles} "
        f"items={len(pricing_input.items)} weight={total_weight}kg volume={total_volume}m3 "
        f"floors={pricing_input.pickup_floor}/{pricing_input.delivery_floor} "
        f"date={pricing_input.preferred_date.isoformat()}"
    )
    logger.info(
        f"[PRICING_DEBUG] base={result.base_price} distance={result.distance_cost} "
        f"load={result.weight_volume_cost} floors={result.floor_cost} extras={result.extra_services} "
        f"vehicle=x{result.vehicle_multiplier} demand=x{result.demand_multiplier} "
        f"subtotal={result.subtotal} vat={result.vat_amount} total={format_gbp(result.total_price)} "
        f"range={format_gbp(result.price_min)}-{format_gbp(result.price_max)}"
    )


@router.post("/calculate", response_model=PriceBreakdown)
async def calculate(req: PricingRequest):
    pricing_input = req.to_input(requested_at=_request_time())
    cache_key = _cache_key(pricing_input)
    redis = get_redis()

    if redis is not None:
        try:
            cached = await redis.get(cache_key)
            if cached:
                cache_hits.inc()
                return PriceBreakdown.model_validate_json(cached)
            cache_misses.inc()
        except RedisError as e:
            logger.warning(f"Cache retrieval failed: {e}")

    result = _price_for_estimate(
        pricing_input, profile=settings.PRICING_PROFILE, enable_vat=settings.ENABLE_VAT
    )

    if settings.PRICING_DEBUG:
        _log_debug_breakdown(pricing_input, result)

    if redis is not None:
        try:
            await redis.set(cache_key, result.model_dump_json(), ex=settings.PRICE_CACHE_TTL)
        except RedisError as e:
            logger.warning(f"Cache write failed: {e}")

    return result


@router.get("/rates")
async def rates(profile: Optional[str] = Query(None)):
    resolved = resolve_rate_profile(profile or settings.PRICING_PROFILE, settings.ENABLE_VAT)
    return describe_rate_profile(resolved)
