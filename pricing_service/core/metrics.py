"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry, generate_latest
import time
from functools import wraps
from typing import Callable

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

price_calculations = Counter(
    'price_calculations_total',
    'Total price calculations',
    ['profile', 'flow'],
    registry=registry
)

price_calculation_duration = Histogram(
    'price_calculation_duration_seconds',
    'Time spent in the pricing engine',
    ['flow'],
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1),
    registry=registry
)

cache_hits = Counter(
    'cache_hits_total',
    'Total price cache hits',
    registry=registry
)

cache_misses = Counter(
    'cache_misses_total',
    'Total price cache misses',
    registry=registry
)

reprices = Counter(
    'reprices_total',
    'Admin reprice attempts',
    ['outcome'],
    registry=registry
)

audit_logs_created = Counter(
    'audit_logs_created_total',
    'Total audit entries created',
    ['action'],
    registry=registry
)

webhook_deliveries = Counter(
    'webhook_deliveries_total',
    'Total webhook delivery attempts',
    ['status'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)


def track_pricing(flow: str) -> Callable:
    """Decorator recording engine latency and a per-profile call count.

    The wrapped function must return a ``PriceBreakdown``.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.perf_counter()
            result = func(*args, **kwargs)
            price_calculation_duration.labels(flow=flow).observe(time.perf_counter() - start_time)
            price_calculations.labels(profile=result.profile, flow=flow).inc()
            return result
        return wrapper
    return decorator


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    return generate_latest(registry).decode('utf-8')
