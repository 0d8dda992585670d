"""
services/otp/router.py
Email verification pages: show the form, verify, resend, skip, go back.
One form is mounted per browser session; opening the page again replaces it.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, Request, status
from fastapi.responses import RedirectResponse

from config.settings import settings
from services.otp.form import OTP_VIEW, OTPVerificationForm
from shared.middleware.auth import SessionContext, get_session_context
from shared.utils.notifications import queue_toast
from shared.utils.templating import render_page
from shared.utils.views import ViewRegistry, get_sid, get_views

router = APIRouter(prefix="/auth/verify", tags=["Email Verification"])


def _mount_form(request: Request, views: ViewRegistry, email: str) -> OTPVerificationForm:
    sid = get_sid(request)
    form = OTPVerificationForm(email, on_complete=lambda _: views.unmount(sid, OTP_VIEW))
    views.mount(sid, OTP_VIEW, form)
    return form


def _current_form(request: Request, views: ViewRegistry, email: str) -> OTPVerificationForm:
    """The mounted form for this session, or a fresh one if none matches `email`."""
    form = views.get(get_sid(request), OTP_VIEW)
    if isinstance(form, OTPVerificationForm) and form.email == email:
        return form
    return _mount_form(request, views, email)


def _finish(form: OTPVerificationForm, context: SessionContext) -> RedirectResponse:
    if form.auth_session:
        context.sign_in(form.auth_session)
    return RedirectResponse(settings.OTP_COMPLETE_REDIRECT, status_code=status.HTTP_303_SEE_OTHER)


async def _render(request: Request, context: SessionContext, form: OTPVerificationForm):
    return await render_page(
        request,
        context,
        "otp/verify.html",
        form=form,
        otp_length=settings.OTP_LENGTH,
    )


@router.get("", include_in_schema=False)
async def show_form(
    request: Request,
    email: str = Query(..., min_length=3),
    context: SessionContext = Depends(get_session_context),
    views: ViewRegistry = Depends(get_views),
):
    form = _mount_form(request, views, email)
    return await _render(request, context, form)


@router.post("")
async def verify(
    request: Request,
    email: str = Form(...),
    otp: Optional[str] = Form(None),
    context: SessionContext = Depends(get_session_context),
    views: ViewRegistry = Depends(get_views),
):
    form = _current_form(request, views, email)
    form.set_code(otp)
    queue_toast(request, await form.submit(context.backend))
    if form.completed:
        return _finish(form, context)
    return await _render(request, context, form)


@router.post("/resend")
async def resend(
    request: Request,
    email: str = Form(...),
    context: SessionContext = Depends(get_session_context),
    views: ViewRegistry = Depends(get_views),
):
    form = _current_form(request, views, email)
    queue_toast(request, await form.resend(context.backend))
    return await _render(request, context, form)


@router.post("/skip")
async def skip(
    request: Request,
    email: str = Form(...),
    context: SessionContext = Depends(get_session_context),
    views: ViewRegistry = Depends(get_views),
):
    form = _current_form(request, views, email)

    async def lookup_session():
        return context.user

    queue_toast(request, await form.skip(lookup_session))
    return _finish(form, context)


@router.post("/back")
async def back(request: Request, views: ViewRegistry = Depends(get_views)):
    views.unmount(get_sid(request), OTP_VIEW)
    return RedirectResponse("/auth", status_code=status.HTTP_303_SEE_OTHER)
