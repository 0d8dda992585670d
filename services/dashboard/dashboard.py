"""
services/dashboard/dashboard.py
Customer dashboard view: the signed-in user's bookings and loyalty status,
plus the badge styling rules used to render them.
"""

import logging
from typing import List, Optional

from config.backend_client import BackendClient, BackendError
from shared.models.models import LoyaltyTier, ToastVariant
from shared.schemas.schemas import Booking, LoyaltyProgram, Toast

logger = logging.getLogger(__name__)

DASHBOARD_VIEW = "customer_dashboard"

NEUTRAL_BADGE = "bg-gray-100 text-gray-800"

STATUS_COLORS = {
    "pending": "bg-yellow-100 text-yellow-800",
    "confirmed": "bg-blue-100 text-blue-800",
    "booked": "bg-blue-100 text-blue-800",
    "completed": "bg-green-100 text-green-800",
    "cancelled": "bg-red-100 text-red-800",
}

PAYMENT_STATUS_COLORS = {
    "paid": "bg-green-100 text-green-800",
    "pending": "bg-yellow-100 text-yellow-800",
    "failed": "bg-red-100 text-red-800",
}

BASE_TIER_COLOR = "bg-orange-100 text-orange-800"

TIER_COLORS = {
    LoyaltyTier.PLATINUM: "bg-purple-100 text-purple-800",
    LoyaltyTier.GOLD: "bg-yellow-100 text-yellow-800",
    LoyaltyTier.SILVER: "bg-gray-100 text-gray-800",
    LoyaltyTier.BASE: BASE_TIER_COLOR,
}


def status_color(status: Optional[str]) -> str:
    return STATUS_COLORS.get((status or "").lower(), NEUTRAL_BADGE)


def payment_status_color(status: Optional[str]) -> str:
    return PAYMENT_STATUS_COLORS.get((status or "").lower(), NEUTRAL_BADGE)


def tier_color(tier: Optional[str]) -> str:
    """Unknown or missing tiers are shown as the base tier."""
    try:
        return TIER_COLORS[LoyaltyTier(tier)]
    except ValueError:
        return BASE_TIER_COLOR


class CustomerDashboard:
    """
    Per-session cache of what the dashboard shows. The booking list is
    read-only here and replaced wholesale on every fetch.
    """

    def __init__(self, user_id: str):
        self.user_id = user_id
        self.bookings: List[Booking] = []
        self.loyalty: Optional[LoyaltyProgram] = None
        self.selected_booking: Optional[Booking] = None
        self.loaded = False

    def mount(self) -> None:
        """Nothing to start: data is fetched by load()."""

    def unmount(self) -> None:
        self.selected_booking = None

    async def load(self, backend: BackendClient, access_token: str) -> List[Toast]:
        """Initial fetch: bookings and loyalty record."""
        toasts = await self.refresh_bookings(backend, access_token)
        try:
            self.loyalty = await backend.get_loyalty_program(access_token, self.user_id)
        except BackendError as e:
            logger.error(f"Error fetching loyalty program for {self.user_id}: {e.message}")
            self.loyalty = None
        self.loaded = True
        return toasts

    async def refresh_bookings(self, backend: BackendClient, access_token: str) -> List[Toast]:
        try:
            self.bookings = await backend.list_bookings(access_token)
        except BackendError as e:
            logger.error(f"Error fetching bookings for {self.user_id}: {e.message}")
            return [Toast(title="Error", description="Could not load your bookings", variant=ToastVariant.DESTRUCTIVE)]
        logger.info(f"Fetched {len(self.bookings)} bookings for {self.user_id}")
        return []

    def find_booking(self, booking_id: str) -> Optional[Booking]:
        return next((b for b in self.bookings if b.id == booking_id), None)

    def select_for_payment(self, booking_id: str) -> Optional[Booking]:
        """Only bookings that pass the Pay Now rule can be selected."""
        booking = self.find_booking(booking_id)
        if booking is None or not booking.is_payable:
            return None
        self.selected_booking = booking
        return booking

    async def close_payment(self, backend: BackendClient, access_token: str) -> List[Toast]:
        """Payment flow finished or was dismissed: re-read bookings either way."""
        self.selected_booking = None
        return await self.refresh_bookings(backend, access_token)
