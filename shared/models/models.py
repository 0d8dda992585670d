"""
shared/models/models.py
Domain enumerations shared by every view.
Records themselves live in the managed backend; these enums describe the
values the UI branches on.
"""

from enum import Enum as PyEnum
from typing import Optional


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, PyEnum):
    ADMIN = "admin"
    PANDIT = "pandit"
    CUSTOMER = "customer"

    @classmethod
    def parse(cls, value: Optional[str]) -> "UserRole":
        """Absent or unrecognised user_type falls back to CUSTOMER."""
        try:
            return cls(value)
        except ValueError:
            return cls.CUSTOMER


class BookingStatus(str, PyEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, PyEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class LoyaltyTier(str, PyEnum):
    PLATINUM = "platinum"
    GOLD = "gold"
    SILVER = "silver"
    BASE = "base"


class ToastVariant(str, PyEnum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class OTPState(str, PyEnum):
    IDLE = "idle"              # a rejected code lands back here
    SUBMITTING = "submitting"
    VERIFIED = "verified"


# Booking states in which an unpaid booking can be paid from the dashboard
PAYABLE_STATUSES = frozenset({BookingStatus.BOOKED, BookingStatus.CONFIRMED})
