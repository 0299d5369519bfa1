"""
Pytest configuration and shared fixtures.

Nothing here touches a real database: the session is a mock and the
tenant-scoped query helpers are patched per test. Service ids are plain
strings ("S1") the way they appear inside navigation tokens.
"""
import uuid
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from concierge.core.config import Settings
from concierge.models import Customer, Service, ServiceCategory
from concierge.tenancy.context import TenantContext, TenantResolutionSource


TENANT_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")
TODAY = date(2025, 6, 9)


@pytest.fixture
def settings():
    return Settings(
        database_url="postgresql+asyncpg://localhost:5432/concierge_test",
        environment="development",
        chat_timezone="Asia/Kolkata",
        default_country_code="91",
        whatsapp_verify_token="test-verify-token",
        whatsapp_api_url="https://graph.example.test/v18.0",
        whatsapp_phone_number_id="env-phone-id",
        whatsapp_access_token="env-token",
        default_tenant_id=None,
        tenant_first_row_fallback=False,
    )


@pytest.fixture
def tenant():
    return TenantContext(
        tenant_id=TENANT_ID,
        name="Ely Salon",
        timezone="Asia/Kolkata",
        phone="+91 98765 43210",
        address="12 MG Road, Bengaluru",
        whatsapp_number="918000000000",
        whatsapp_phone_number_id="tenant-phone-id",
        whatsapp_access_token="tenant-token",
        source=TenantResolutionSource.WHATSAPP_NUMBER,
    )


@pytest.fixture
def mock_db_session():
    """Mock async database session (add is sync, the rest are awaited)."""
    session = MagicMock()
    session.add = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


def make_service(service_id="S1", name="Haircut", price="500", minutes=45, category=None, **overrides):
    service = Service(
        id=service_id,
        tenant_id=TENANT_ID,
        name=name,
        base_price=Decimal(price) if price is not None else None,
        duration_minutes=minutes,
        is_active=overrides.pop("is_active", True),
        description=overrides.pop("description", None),
    )
    service.category = ServiceCategory(name=category) if category else None
    return service


def make_customer(full_name="Priya Sharma", phone="9876543210"):
    return Customer(id=uuid.uuid4(), tenant_id=TENANT_ID, full_name=full_name, phone=phone)
