"""
tests/conftest.py
Shared fixtures: environment, a fake managed backend, signed-in users,
and an httpx client bound to the ASGI app.
"""

import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_URL", "http://backend.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

from config.backend_client import BackendError, get_backend, get_health_backend
from config.settings import settings
from main import app
from shared.schemas.schemas import AuthSession, Booking, LoyaltyProgram, PaymentOrder, Profile
from shared.utils.views import ViewRegistry


# ── Users & tokens ─────────────────────────────────────────────────────────────

@dataclass
class TestUser:
    __test__ = False

    id: str
    email: str
    name: Optional[str]
    user_type: Optional[str]
    profile_image_url: Optional[str] = None


def make_access_token(user: TestUser, expires_in: int = 3600) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "email": user.email,
        "aud": settings.SUPABASE_JWT_AUDIENCE,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
        "user_metadata": {"name": user.name, "profile_image_url": user.profile_image_url},
    }
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


def auth_headers(user: TestUser) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_access_token(user)}"}


# ── Fake backend ───────────────────────────────────────────────────────────────

class FakeBackend:
    """In-memory stand-in for BackendClient. Set *_error attributes to make calls fail."""

    def __init__(self):
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.bookings: List[Dict[str, Any]] = []
        self.loyalty: Dict[str, Dict[str, Any]] = {}
        self.verified_user: Optional[TestUser] = None
        self.calls: List[tuple] = []

        self.verify_error: Optional[BackendError] = None
        self.resend_error: Optional[BackendError] = None
        self.sign_out_error: Optional[BackendError] = None
        self.profile_error: Optional[BackendError] = None
        self.update_error: Optional[BackendError] = None
        self.bookings_error: Optional[BackendError] = None
        self.payment_error: Optional[BackendError] = None

    def add_user(self, user: TestUser) -> TestUser:
        self.profiles[user.id] = {
            "id": user.id,
            "user_type": user.user_type,
            "name": user.name,
            "email": user.email,
        }
        return user

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    async def verify_otp(self, email: str, token: str, otp_type: str = "email") -> AuthSession:
        self.calls.append(("verify_otp", email, token, otp_type))
        if self.verify_error:
            raise self.verify_error
        user = self.verified_user or TestUser(str(uuid.uuid4()), email, None, "customer")
        return AuthSession(access_token=make_access_token(user), refresh_token="refresh-token")

    async def resend_otp(self, email: str, otp_type: str = "signup", redirect_to: Optional[str] = None) -> None:
        self.calls.append(("resend_otp", email, otp_type, redirect_to))
        if self.resend_error:
            raise self.resend_error

    async def sign_out(self, access_token: str) -> None:
        self.calls.append(("sign_out", access_token))
        if self.sign_out_error:
            raise self.sign_out_error

    async def get_profile(self, access_token: str, user_id: str) -> Optional[Profile]:
        self.calls.append(("get_profile", user_id))
        if self.profile_error:
            raise self.profile_error
        row = self.profiles.get(user_id)
        return Profile.model_validate(row) if row else None

    async def update_profile(self, access_token: str, user_id: str, updates: Dict[str, Any]) -> Profile:
        self.calls.append(("update_profile", user_id, updates))
        if self.update_error:
            raise self.update_error
        row = self.profiles.setdefault(user_id, {"id": user_id})
        row.update(updates)
        return Profile.model_validate(row)

    async def list_bookings(self, access_token: str) -> List[Booking]:
        self.calls.append(("list_bookings",))
        if self.bookings_error:
            raise self.bookings_error
        return [Booking.model_validate(row) for row in self.bookings]

    async def get_loyalty_program(self, access_token: str, user_id: str) -> Optional[LoyaltyProgram]:
        self.calls.append(("get_loyalty_program", user_id))
        row = self.loyalty.get(user_id)
        return LoyaltyProgram.model_validate(row) if row else None

    async def create_payment_order(self, access_token: str, booking: Booking) -> PaymentOrder:
        self.calls.append(("create_payment_order", booking.id))
        if self.payment_error:
            raise self.payment_error
        return PaymentOrder(order_id=f"order_{booking.id}", key_id="rzp_test_key", amount=booking.payable_amount)

    async def ping(self) -> bool:
        return True


def booking_row(
    booking_id: str = "b-1",
    status: str = "confirmed",
    payment_status: str = "pending",
    service: Optional[Dict[str, Any]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    row = {
        "id": booking_id,
        "service_id": 1,
        "fromdate": "2025-01-15",
        "todate": "2025-01-16",
        "preferred_time": "Morning",
        "status": status,
        "payment_status": payment_status,
        "location": "Varanasi",
        "address": "12 Ghat Road",
        "phone": "+919876543210",
        "created_at": "2025-01-01T10:00:00Z",
        "total_amount": 150000,
        "services": service if service is not None else {"name": "Ganesh Puja", "price": 250000},
    }
    row.update(extra)
    return row


# ── Fixtures ───────────────────────────────────────────────────────────────────

@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def customer(backend: FakeBackend) -> TestUser:
    return backend.add_user(TestUser(str(uuid.uuid4()), "asha@test.com", "Asha Sharma", "customer"))


@pytest.fixture
def pandit_user(backend: FakeBackend) -> TestUser:
    return backend.add_user(TestUser(str(uuid.uuid4()), "pandit@test.com", "Pandit Ji", "pandit"))


@pytest.fixture
def admin_user(backend: FakeBackend) -> TestUser:
    return backend.add_user(TestUser(str(uuid.uuid4()), "admin@test.com", "Admin", "admin"))


@pytest_asyncio.fixture
async def client(backend: FakeBackend):
    app.dependency_overrides[get_backend] = lambda: backend
    app.dependency_overrides[get_health_backend] = lambda: backend
    app.state.views = ViewRegistry()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.state.views.unmount_all()
    app.dependency_overrides.clear()
