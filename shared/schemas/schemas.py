"""
shared/schemas/schemas.py
Pydantic v2 schemas for records read from (and written to) the managed backend,
plus the transient UI notification type.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shared.models.models import PAYABLE_STATUSES, PaymentStatus, ToastVariant

UNKNOWN_SERVICE = "Unknown Service"


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True, extra="ignore")


# ── Session ───────────────────────────────────────────────────

class UserMetadata(BaseSchema):
    name: Optional[str] = None
    profile_image_url: Optional[str] = None


class SessionUser(BaseSchema):
    id: str
    email: Optional[str] = None
    user_metadata: UserMetadata = Field(default_factory=UserMetadata)

    @property
    def avatar_initial(self) -> str:
        name = self.user_metadata.name
        return name[0].upper() if name else "A"


class AuthSession(BaseSchema):
    """Tokens returned by a successful OTP verification."""
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    user: Optional[Dict[str, Any]] = None


# ── Profile ───────────────────────────────────────────────────

class Profile(BaseSchema):
    id: str
    user_type: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    profile_image_url: Optional[str] = None


class ProfileUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=500)
    profile_image_url: Optional[str] = None


# ── Bookings ──────────────────────────────────────────────────

class ServiceRef(BaseSchema):
    name: Optional[str] = None
    price: Optional[float] = None  # minor currency units


class Booking(BaseSchema):
    id: str
    service_id: Optional[int] = None
    fromdate: Optional[str] = None
    todate: Optional[str] = None
    preferred_time: Optional[str] = None
    status: Optional[str] = None
    payment_status: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[str] = None
    total_amount: Optional[float] = None
    services: Optional[ServiceRef] = None

    # Always populated after normalisation
    display_date: Optional[str] = None
    service_name: str = UNKNOWN_SERVICE

    @model_validator(mode="before")
    @classmethod
    def normalise(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        services = data.get("services") or {}
        data["display_date"] = data.get("fromdate")
        data["service_name"] = services.get("name") or UNKNOWN_SERVICE
        return data

    @property
    def price(self) -> Optional[float]:
        return self.services.price if self.services else None

    @property
    def is_payable(self) -> bool:
        return (
            self.status in {s.value for s in PAYABLE_STATUSES}
            and self.payment_status == PaymentStatus.PENDING.value
        )

    @property
    def payable_amount(self) -> float:
        return self.price or self.total_amount or 0


# ── Loyalty ───────────────────────────────────────────────────

class LoyaltyProgram(BaseSchema):
    user_id: Optional[str] = None
    tier_level: str = "base"
    points_balance: int = 0
    total_points_earned: int = 0


# ── Payments ──────────────────────────────────────────────────

class PaymentOrder(BaseSchema):
    """Checkout details handed back by the backend payment function."""
    order_id: Optional[str] = None
    key_id: Optional[str] = None
    amount: Optional[float] = None
    currency: str = "INR"
    checkout_url: Optional[str] = None


# ── Notifications ─────────────────────────────────────────────

class Toast(BaseSchema):
    title: str
    description: str = ""
    variant: ToastVariant = ToastVariant.DEFAULT
