import httpx
import asyncio
import logging
from typing import Optional
from pricing_service.core.config import settings
from pricing_service.core.metrics import webhook_deliveries

logger = logging.getLogger(__name__)

PRICE_CHANGED_EVENT = "price.changed"


def price_changed_payload(booking_id: str, old_price: Optional[float], new_price: float, admin_user_id: str) -> dict:
    return {
        "event": PRICE_CHANGED_EVENT,
        "booking_id": booking_id,
        "old_price": old_price,
        "new_price": new_price,
        "repriced_by": admin_user_id,
    }


async def send_webhook(payload: dict, retries: int | None = None, url: str | None = None) -> bool:
    url = url or settings.WEBHOOK_URL
    if not url:
        logger.debug("WEBHOOK_URL not set, skipping webhook delivery")
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    backoff = 1.0
    booking_id = payload.get("booking_id")

    for attempt in range(1, retries + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT) as client:
                response = await client.post(url, json=payload)

                if 200 <= response.status_code < 300:
                    webhook_deliveries.labels(status="success").inc()
                    logger.info(f"Webhook delivery succeeded for booking {booking_id}")
                    return True
                else:
                    webhook_deliveries.labels(status="http_error").inc()
                    logger.warning(
                        f"Webhook delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for booking {booking_id}"
                    )
        except httpx.TimeoutException:
            webhook_deliveries.labels(status="timeout").inc()
            logger.warning(
                f"Webhook timeout (attempt {attempt}/{retries}) for booking {booking_id}"
            )
        except httpx.HTTPError as e:
            webhook_deliveries.labels(status="error").inc()
            logger.warning(
                f"Webhook delivery error (attempt {attempt}/{retries}): {e} "
                f"for booking {booking_id}"
            )

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    logger.error(f"Webhook delivery failed after {retries} attempts for booking {booking_id}")
    return False
