"""
shared/middleware/auth.py
FastAPI dependencies for the browser session and the signed-in user's profile.
The access token is read from the session cookie (or a Bearer header) and
decoded locally. Profile reads and writes go through SessionContext so every
view shares the same fallback and error-surfacing rules.
"""

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from config.backend_client import BackendClient, BackendError, get_backend
from shared.models.models import ToastVariant, UserRole
from shared.schemas.schemas import AuthSession, Profile, ProfileUpdateRequest, SessionUser
from shared.utils.notifications import push_toast
from shared.utils.security import session_user_from_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"


class LoginRequired(Exception):
    """Raised when a page needs a signed-in user. Handled as a redirect."""


class SessionContext:
    """
    Per-request view of the session: who is signed in, and their profile.
    The profile is fetched at most once per request; invalidate_profile()
    forces the next read to go back to the backend.
    """

    def __init__(
        self,
        request: Request,
        backend: BackendClient,
        access_token: Optional[str],
        user: Optional[SessionUser],
    ):
        self.request = request
        self.backend = backend
        self.access_token = access_token
        self.user = user
        self._profile: Optional[Profile] = None
        self._profile_loaded = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def profile(self) -> Optional[Profile]:
        if not self.user:
            return None
        if not self._profile_loaded:
            try:
                self._profile = await self.backend.get_profile(self.access_token, self.user.id)
            except BackendError as e:
                logger.error(f"Error fetching profile for {self.user.id}: {e.message}")
                self._profile = None
            self._profile_loaded = True
        return self._profile

    def invalidate_profile(self) -> None:
        self._profile = None
        self._profile_loaded = False

    async def role(self) -> Optional[UserRole]:
        """None when signed out; CUSTOMER when the profile is missing or unreadable."""
        if not self.user:
            return None
        profile = await self.profile()
        return UserRole.parse(profile.user_type if profile else None)

    async def update_profile(self, data: ProfileUpdateRequest) -> Optional[Profile]:
        """Shared profile-update operation. Failures are toasted here."""
        if not self.user:
            return None
        updates = data.model_dump(exclude_none=True)
        if not updates:
            return await self.profile()
        try:
            profile = await self.backend.update_profile(self.access_token, self.user.id, updates)
        except BackendError as e:
            logger.error(f"Error updating profile for {self.user.id}: {e.message}")
            push_toast(self.request, "Error", e.message, ToastVariant.DESTRUCTIVE)
            return None
        self._profile = profile
        self._profile_loaded = True
        return profile

    def sign_in(self, auth_session: AuthSession) -> None:
        self.request.session[ACCESS_TOKEN_KEY] = auth_session.access_token
        if auth_session.refresh_token:
            self.request.session[REFRESH_TOKEN_KEY] = auth_session.refresh_token
        self.access_token = auth_session.access_token
        self.user = session_user_from_token(auth_session.access_token)
        self.invalidate_profile()

    def clear(self) -> None:
        self.request.session.pop(ACCESS_TOKEN_KEY, None)
        self.request.session.pop(REFRESH_TOKEN_KEY, None)
        self.access_token = None
        self.user = None
        self.invalidate_profile()


async def get_session_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    backend: BackendClient = Depends(get_backend),
) -> SessionContext:
    """Session for every page. Signed-out visitors get an empty context."""
    token = credentials.credentials if credentials else request.session.get(ACCESS_TOKEN_KEY)
    user = session_user_from_token(token)
    if user is None and token and not credentials:
        # Expired or tampered cookie: forget it
        request.session.pop(ACCESS_TOKEN_KEY, None)
        request.session.pop(REFRESH_TOKEN_KEY, None)
    return SessionContext(request, backend, token if user else None, user)


async def require_session(
    context: SessionContext = Depends(get_session_context),
) -> SessionContext:
    if not context.is_authenticated:
        raise LoginRequired()
    return context
