"""
tests/conftest.py

Test fixtures for API integration and unit tests.
Includes async clients, fake users for each role, schema mock data, and
dependency overrides.
"""
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EMAILS_ENABLED", "false")

# --- Imports ---
from collections.abc import AsyncGenerator, Generator
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from main import app
from app.auth.schemas import AuthSuccessResponse, AuthUserResponse
from app.core.dependencies import get_current_user
from app.database.enums import UserRole
from app.database.models import User
from app.database.session import get_db
from app.order.models import OrderStatus, PaymentStatus
from app.order.schemas import OrderItemRead, OrderRead


# --- Core Test Fixtures ---


@pytest.fixture(scope="session")
def transport() -> ASGITransport:
    """Fixture for ASGI transport."""
    return ASGITransport(app=app)


@pytest_asyncio.fixture(scope="function")
async def async_client(transport: ASGITransport) -> AsyncGenerator[AsyncClient, None]:
    """Fixture for HTTP async client."""
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# --- Fake User Fixtures ---


def _make_user(role: UserRole, email: str, phone: str) -> User:
    now = datetime.now(timezone.utc)
    return User(
        id=uuid4(),
        email=email,
        role=role,
        first_name=role.value.capitalize(),
        last_name="Test",
        hashed_password="fakehashedpassword",
        phone_number=phone,
        is_active=True,
        is_verified=True,
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def fake_admin_user() -> User:
    return _make_user(UserRole.ADMIN, "admin.test@example.com", "08011110000")


@pytest.fixture
def fake_customer_user() -> User:
    return _make_user(UserRole.USER, "customer.test@example.com", "08022220000")


@pytest.fixture
def fake_vendor_user() -> User:
    return _make_user(UserRole.VENDOR, "vendor.test@example.com", "08033330000")


@pytest.fixture
def fake_rider_user() -> User:
    return _make_user(UserRole.RIDER, "rider.test@example.com", "08044440000")


# --- Dependency Override Fixtures ---


@pytest_asyncio.fixture
async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
    """Replaces the database session with an AsyncMock for route tests."""
    session = AsyncMock()

    async def _override() -> AsyncGenerator[AsyncMock, None]:
        yield session

    app.dependency_overrides[get_db] = _override
    yield session
    app.dependency_overrides.pop(get_db, None)


def _override_user(user: User) -> Generator[User, None, None]:
    app.dependency_overrides[get_current_user] = lambda: user
    yield user
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture
def mock_current_admin_user(fake_admin_user: User) -> Generator[User, None, None]:
    yield from _override_user(fake_admin_user)


@pytest.fixture
def mock_current_customer_user(fake_customer_user: User) -> Generator[User, None, None]:
    yield from _override_user(fake_customer_user)


@pytest.fixture
def mock_current_vendor_user(fake_vendor_user: User) -> Generator[User, None, None]:
    yield from _override_user(fake_vendor_user)


@pytest.fixture
def mock_current_rider_user(fake_rider_user: User) -> Generator[User, None, None]:
    yield from _override_user(fake_rider_user)


# --- Schema Mock Data ---


@pytest.fixture
def fake_auth_user_response(fake_customer_user: User) -> AuthUserResponse:
    return AuthUserResponse.model_validate(fake_customer_user)


@pytest.fixture
def fake_auth_success_response(fake_auth_user_response: AuthUserResponse) -> AuthSuccessResponse:
    return AuthSuccessResponse(access_token="fake-jwt-token", user=fake_auth_user_response)


@pytest.fixture
def fake_order_read(
    fake_customer_user: User, fake_vendor_user: User, fake_rider_user: User
) -> OrderRead:
    now = datetime.now(timezone.utc)
    return OrderRead(
        id=uuid4(),
        user_id=fake_customer_user.id,
        vendor_id=fake_vendor_user.id,
        rider_id=fake_rider_user.id,
        status=OrderStatus.ASSIGNED,
        payment_status=PaymentStatus.PAID,
        payment_method="paystack",
        payment_reference="ref_123",
        subtotal=Decimal("3000.00"),
        delivery_fee=Decimal("250.00"),
        total_amount=Decimal("3250.00"),
        delivery_address="12 Allen Avenue, Ikeja",
        delivery_latitude=6.6018,
        delivery_longitude=3.3515,
        distance_km=2.5,
        assigned_at=now,
        created_at=now,
        updated_at=now,
        items=[
            OrderItemRead(
                id=uuid4(),
                menu_item_id=uuid4(),
                name="Jollof Rice",
                unit_price=Decimal("1500.00"),
                quantity=2,
                line_total=Decimal("3000.00"),
            )
        ],
    )
