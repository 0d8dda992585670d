"""
config/backend_client.py
Async HTTP client for the managed backend: GoTrue auth, PostgREST tables
(profiles, bookings, loyalty_programs) and edge functions (payments).
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from config.settings import settings
from shared.schemas.schemas import (
    AuthSession,
    Booking,
    LoyaltyProgram,
    PaymentOrder,
    Profile,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class BackendError(Exception):
    """The backend answered, but rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BackendUnavailable(BackendError):
    """The backend could not be reached."""


# ── Global client (initialized on startup) ───────────────────
http_client: Optional[httpx.AsyncClient] = None


async def init_backend() -> None:
    """Initialize the shared HTTP connection pool."""
    global http_client
    http_client = httpx.AsyncClient(
        timeout=settings.BACKEND_TIMEOUT_SECONDS,
        headers={"apikey": settings.SUPABASE_ANON_KEY},
    )


async def close_backend() -> None:
    """Close the HTTP connection pool."""
    global http_client
    if http_client:
        await http_client.aclose()
        http_client = None


def get_backend() -> "BackendClient":
    """FastAPI dependency to get the backend client."""
    if not http_client:
        raise RuntimeError("Backend client not initialized. Call init_backend() first.")
    return BackendClient(http_client)


def get_health_backend() -> Optional["BackendClient"]:
    """Like get_backend, but None instead of an error before init_backend() has run."""
    try:
        return get_backend()
    except RuntimeError:
        return None


def _parse(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a backend payload; a malformed one is reported like any other backend failure."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Unexpected {model.__name__} payload from backend: {e}")
        raise BackendError("Unexpected response from server") from e


def _first_row(rows: Any) -> Optional[Dict[str, Any]]:
    """PostgREST answers with a list of rows; the first one, if any."""
    if rows is None:
        return None
    if not isinstance(rows, list):
        raise BackendError("Unexpected response from server")
    return rows[0] if rows else None


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Backend error ({response.status_code})"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"Backend error ({response.status_code})"


# ── Client ────────────────────────────────────────────────────
class BackendClient:
    """Typed wrapper over the backend REST surface. Each call is a single request."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def _request(
        self,
        method: str,
        url: str,
        access_token: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> Any:
        request_headers = {"apikey": settings.SUPABASE_ANON_KEY}
        request_headers["Authorization"] = f"Bearer {access_token or settings.SUPABASE_ANON_KEY}"
        request_headers.update(headers or {})
        try:
            response = await self.client.request(method, url, headers=request_headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Backend request {method} {url} failed: {e}")
            raise BackendUnavailable("Could not reach the server") from e

        if response.status_code >= 400:
            raise BackendError(_error_message(response), response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Backend {method} {url} returned a non-JSON body")
            raise BackendError("Unexpected response from server", response.status_code) from e

    # ── Auth ──────────────────────────────────────────────────
    async def verify_otp(self, email: str, token: str, otp_type: str = "email") -> AuthSession:
        data = await self._request(
            "POST",
            f"{settings.auth_url}/verify",
            json={"type": otp_type, "email": email, "token": token},
        )
        return _parse(AuthSession, data)

    async def resend_otp(self, email: str, otp_type: str = "signup", redirect_to: Optional[str] = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        await self._request(
            "POST",
            f"{settings.auth_url}/resend",
            params=params,
            json={"type": otp_type, "email": email},
        )

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", f"{settings.auth_url}/logout", access_token=access_token)

    # ── Profiles ──────────────────────────────────────────────
    async def get_profile(self, access_token: str, user_id: str) -> Optional[Profile]:
        rows = await self._request(
            "GET",
            f"{settings.rest_url}/profiles",
            access_token=access_token,
            params={"id": f"eq.{user_id}", "select": "*"},
        )
        row = _first_row(rows)
        return _parse(Profile, row) if row else None

    async def update_profile(self, access_token: str, user_id: str, updates: Dict[str, Any]) -> Profile:
        rows = await self._request(
            "PATCH",
            f"{settings.rest_url}/profiles",
            access_token=access_token,
            params={"id": f"eq.{user_id}"},
            headers={"Prefer": "return=representation"},
            json=updates,
        )
        row = _first_row(rows)
        if not row:
            raise BackendError("Profile not found", 404)
        return _parse(Profile, row)

    # ── Bookings ──────────────────────────────────────────────
    async def list_bookings(self, access_token: str) -> List[Booking]:
        """Bookings visible to the session (row-level security), newest first."""
        rows = await self._request(
            "GET",
            f"{settings.rest_url}/bookings",
            access_token=access_token,
            params={"select": "*,services(name,price)", "order": "created_at.desc"},
        )
        if rows is not None and not isinstance(rows, list):
            raise BackendError("Unexpected response from server")
        return [_parse(Booking, row) for row in rows or []]

    # ── Loyalty ───────────────────────────────────────────────
    async def get_loyalty_program(self, access_token: str, user_id: str) -> Optional[LoyaltyProgram]:
        rows = await self._request(
            "GET",
            f"{settings.rest_url}/loyalty_programs",
            access_token=access_token,
            params={"user_id": f"eq.{user_id}", "select": "*"},
        )
        row = _first_row(rows)
        return _parse(LoyaltyProgram, row) if row else None

    # ── Payments ──────────────────────────────────────────────
    async def create_payment_order(self, access_token: str, booking: Booking) -> PaymentOrder:
        data = await self._request(
            "POST",
            f"{settings.functions_url}/{settings.PAYMENT_FUNCTION}",
            access_token=access_token,
            json={"booking_id": booking.id, "amount": booking.payable_amount},
        )
        return _parse(PaymentOrder, data or {})

    # ── Health ────────────────────────────────────────────────
    async def ping(self) -> bool:
        try:
            response = await self.client.get(f"{settings.auth_url}/health")
        except httpx.HTTPError:
            return False
        return response.status_code < 500
