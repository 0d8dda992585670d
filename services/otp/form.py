"""
services/otp/form.py
Email OTP verification form.

State machine: IDLE -> SUBMITTING -> VERIFIED, or back to IDLE (code kept)
when the backend rejects the code. Resend is gated by an independent
countdown that ticks once per second while the form is mounted.
No backend error escapes the form; every outcome is reported as a Toast.
"""

import asyncio
import logging
import re
from typing import Awaitable, Callable, Optional

from config.backend_client import BackendClient, BackendError, BackendUnavailable
from config.settings import settings
from shared.models.models import OTPState, ToastVariant
from shared.schemas.schemas import AuthSession, SessionUser, Toast

logger = logging.getLogger(__name__)

OTP_VIEW = "otp_verification"

_NON_DIGITS = re.compile(r"[^0-9]")


def sanitize_otp(raw: Optional[str], length: int = settings.OTP_LENGTH) -> str:
    """Digits only, capped at `length`."""
    return _NON_DIGITS.sub("", raw or "")[:length]


class ResendCountdown:
    """
    Seconds left before a code may be resent.
    While active, a single asyncio task decrements `remaining` every `interval`
    seconds until it reaches zero. cancel() stops the task for good.
    """

    def __init__(
        self,
        duration: int = settings.OTP_RESEND_COOLDOWN_SECONDS,
        interval: float = 1.0,
    ):
        self.duration = duration
        self.interval = interval
        self.remaining = duration
        self._active = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def can_resend(self) -> bool:
        return self.remaining == 0

    def tick(self) -> None:
        if self.remaining > 0:
            self.remaining -= 1

    def start(self) -> None:
        self._active = True
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def reset(self) -> None:
        self.remaining = self.duration
        if self._active:
            self.start()

    def cancel(self) -> None:
        self._active = False
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        while self.remaining > 0:
            await asyncio.sleep(self.interval)
            self.tick()


class OTPVerificationForm:
    def __init__(
        self,
        email: str,
        on_complete: Optional[Callable[["OTPVerificationForm"], None]] = None,
        countdown: Optional[ResendCountdown] = None,
    ):
        self.email = email
        self.on_complete = on_complete
        self.countdown = countdown or ResendCountdown()
        self.code = ""
        self.state = OTPState.IDLE
        self.resending = False
        self.error: Optional[str] = None
        self.completed = False
        self.auth_session: Optional[AuthSession] = None

    # ── Lifetime ──────────────────────────────────────────────
    def mount(self) -> None:
        self.countdown.start()

    def unmount(self) -> None:
        self.countdown.cancel()

    # ── Input ─────────────────────────────────────────────────
    def set_code(self, raw: Optional[str]) -> str:
        self.code = sanitize_otp(raw)
        return self.code

    @property
    def can_submit(self) -> bool:
        return self.state == OTPState.IDLE and len(self.code) == settings.OTP_LENGTH

    @property
    def can_resend(self) -> bool:
        return not self.resending and self.countdown.can_resend

    @property
    def resend_label(self) -> str:
        if self.resending:
            return "Sending..."
        if self.countdown.remaining > 0:
            return f"Resend in {self.countdown.remaining}s"
        return "Resend Code"

    # ── Actions ───────────────────────────────────────────────
    async def submit(self, backend: BackendClient) -> Toast:
        if len(self.code) != settings.OTP_LENGTH:
            return Toast(
                title="Invalid OTP",
                description=f"Please enter a {settings.OTP_LENGTH}-digit OTP",
                variant=ToastVariant.DESTRUCTIVE,
            )
        if self.state != OTPState.IDLE:
            return Toast(title="Please wait", description="Verification is already in progress")

        self.state = OTPState.SUBMITTING
        self.error = None
        try:
            self.auth_session = await backend.verify_otp(self.email, self.code, otp_type="email")
        except BackendUnavailable as e:
            logger.error(f"Unexpected error during OTP verification for {self.email}: {e.message}")
            self.state = OTPState.IDLE
            self.error = "An unexpected error occurred during verification"
            return Toast(title="Error", description=self.error, variant=ToastVariant.DESTRUCTIVE)
        except BackendError as e:
            logger.warning(f"OTP verification rejected for {self.email}: {e.message}")
            self.state = OTPState.IDLE
            self.error = e.message
            return Toast(title="Verification Failed", description=e.message, variant=ToastVariant.DESTRUCTIVE)

        self.state = OTPState.VERIFIED
        self._complete()
        return Toast(title="Success", description="Email verified successfully!")

    async def resend(self, backend: BackendClient) -> Toast:
        if not self.can_resend:
            return Toast(
                title="Please wait",
                description=f"You can request a new code in {self.countdown.remaining}s",
            )

        self.resending = True
        try:
            await backend.resend_otp(
                self.email,
                otp_type="signup",
                redirect_to=f"{settings.SITE_URL.rstrip('/')}/",
            )
        except BackendUnavailable as e:
            logger.error(f"Unexpected error during OTP resend for {self.email}: {e.message}")
            return Toast(
                title="Error",
                description="Failed to resend verification email",
                variant=ToastVariant.DESTRUCTIVE,
            )
        except BackendError as e:
            logger.warning(f"OTP resend rejected for {self.email}: {e.message}")
            return Toast(title="Resend Failed", description=e.message, variant=ToastVariant.DESTRUCTIVE)
        finally:
            self.resending = False

        self.countdown.reset()
        self.code = ""
        self.error = None
        return Toast(title="OTP Sent", description="A new verification email has been sent")

    async def skip(self, lookup_session: Callable[[], Awaitable[Optional[SessionUser]]]) -> Toast:
        """
        Continue without verifying. Completes in every case; only the message
        depends on whether a session already exists.
        """
        try:
            session = await lookup_session()
        except Exception:
            logger.exception(f"Skip verification session lookup failed for {self.email}")
            session = None

        self._complete()
        if session is not None:
            return Toast(
                title="Registration Complete",
                description="You can verify your email later from your profile settings",
            )
        return Toast(
            title="Verification Skipped",
            description="Please sign in with your credentials to continue",
        )

    def _complete(self) -> None:
        self.completed = True
        if self.on_complete:
            self.on_complete(self)
