import pytest
import inspect
from datetime import date, datetime
from httpx import AsyncClient, ASGITransport

from pricing_service.main import app
from pricing_service.core.config import settings
from pricing_service.core.enums import BookingStatus
from pricing_service.schemas.booking import BookingRecord, JobItemRecord, JobRecord
from pricing_service.schemas.pricing import PricingInput


@pytest.fixture
async def test_client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def use_pricing_settings(monkeypatch):
    """Point the service at a given profile / VAT flag for one test."""
    def _apply(profile: str, enable_vat: bool, debug: bool = False):
        monkeypatch.setattr(settings, "PRICING_PROFILE", profile)
        monkeypatch.setattr(settings, "ENABLE_VAT", enable_vat)
        monkeypatch.setattr(settings, "PRICING_DEBUG", debug)
    return _apply


@pytest.fixture
def vanity_job_data():
    """99 miles, one bathroom vanity, ground to ground, Wednesday with 4 days notice"""
    return {
        "job_type": "single_item",
        "distance_miles": 99,
        "items": [
            {"name": "Bathroom vanity 36 inch", "quantity": 1, "weight_kg": 65, "volume_m3": 0.065}
        ],
        "pickup_floor": 0,
        "pickup_has_elevator": False,
        "delivery_floor": 0,
        "delivery_has_elevator": False,
        "requires_packaging": False,
        "requires_assembly": False,
        "requires_disassembly": False,
        "requires_cleaning": False,
        "insurance_level": "basic",
        "preferred_date": date(2026, 2, 18),
        "requested_at": datetime(2026, 2, 14, 0, 0),
    }


@pytest.fixture
def vanity_job(vanity_job_data):
    return PricingInput(**vanity_job_data)


@pytest.fixture
def make_input(vanity_job_data):
    def _make(**overrides):
        data = dict(vanity_job_data)
        data.update(overrides)
        return PricingInput(**data)
    return _make


@pytest.fixture
def job_record():
    return JobRecord(
        id="job_1",
        job_type="single_item",
        distance_miles=99,
        pickup_floor=0,
        pickup_has_lift=False,
        delivery_floor=0,
        delivery_has_lift=False,
        needs_packing=False,
        move_date=date(2026, 2, 18),
        created_at=datetime(2026, 2, 14, 0, 0),
        estimated_price=186.83,
    )


@pytest.fixture
def job_items():
    return [JobItemRecord(name="Bathroom vanity 36 inch", quantity=1, weight_kg=65, volume_m3=0.065)]


@pytest.fixture
def booking_record():
    return BookingRecord(id="booking_1", job_id="job_1", status=BookingStatus.CONFIRMED, final_price=400.0)


@pytest.fixture
def reprice_body(booking_record, job_record, job_items):
    return {
        "admin_user_id": "admin_1",
        "booking": booking_record.model_dump(mode="json"),
        "job": job_record.model_dump(mode="json"),
        "items": [item.model_dump(mode="json") for item in job_items],
    }


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "pricing: marks tests related to pricing"
    )
    config.addinivalue_line(
        "markers", "reprice: marks tests related to recalculation and repricing"
    )
    config.addinivalue_line(
        "markers", "webhooks: marks tests related to webhooks"
    )
    config.addinivalue_line(
        "markers", "audit: marks tests related to audit logging"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify test collection to handle asyncio tests
    """
    for item in items:
        if inspect.iscoroutinefunction(getattr(item, "function", None)):
            item.add_marker(pytest.mark.asyncio)
