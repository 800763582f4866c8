from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from pricing_service.api import bookings, jobs, pricing
from pricing_service.core.config import settings
from pricing_service.core.redis import init_redis, close_redis, get_redis
from pricing_service.core.metrics import request_count, request_duration, redis_connected, get_metrics_text
import time
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception:
            request_count.labels(
                method=request.method,
                endpoint=request.url.path,
                status=500
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=request.url.path
            ).observe(time.time() - start_time)
            raise

        request_count.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()
        request_duration.labels(
            method=request.method,
            endpoint=request.url.path
        ).observe(time.time() - start_time)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Application starting (profile={settings.PRICING_PROFILE}, vat={settings.ENABLE_VAT})"
    )

    try:
        client = await init_redis()
        redis_connected.set(1 if client is not None else 0)
    except Exception as e:
        # The cache is optional; estimates are computed without it
        logger.error(f"Redis connection failed, continuing without cache: {e}")
        redis_connected.set(0)

    yield

    logger.info("Application shutting down...")
    await close_redis()
    redis_connected.set(0)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan
)

app.add_middleware(MetricsMiddleware)

app.include_router(pricing.router)
app.include_router(jobs.router)
app.include_router(bookings.router)


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/health", tags=["monitoring"])
async def health_check():
    redis = get_redis()

    return {
        "status": "healthy",
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "pricing_profile": settings.PRICING_PROFILE,
        "vat_enabled": settings.ENABLE_VAT,
        "dependencies": {
            "redis": "connected" if redis is not None else "disconnected",
        }
    }


@app.get("/readiness", tags=["monitoring"])
async def readiness_check():
    # The engine has no external dependencies, so the service is ready once it serves requests
    return JSONResponse({
        "ready": True,
        "service": settings.API_TITLE,
        "cache": get_redis() is not None,
    })


@app.get("/", tags=["root"])
async def root():
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }
