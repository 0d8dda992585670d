"""
services/dashboard/router.py
Customer dashboard pages: overview, payment flow for one booking,
and the edit-profile modal.
"""

import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import ValidationError

from config.backend_client import BackendError
from services.dashboard.dashboard import (
    DASHBOARD_VIEW,
    CustomerDashboard,
    payment_status_color,
    status_color,
    tier_color,
)
from shared.middleware.auth import SessionContext, require_session
from shared.models.models import ToastVariant
from shared.schemas.schemas import ProfileUpdateRequest
from shared.utils.notifications import push_toast, queue_toast
from shared.utils.templating import render_page
from shared.utils.views import ViewRegistry, get_sid, get_views

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dashboard-customer", tags=["Customer Dashboard"])

DASHBOARD_URL = "/dashboard-customer"


async def _render_dashboard(request: Request, context: SessionContext, dashboard: CustomerDashboard):
    return await render_page(
        request,
        context,
        "dashboard/customer.html",
        profile=await context.profile(),
        dashboard=dashboard,
        status_color=status_color,
        payment_status_color=payment_status_color,
        tier_color=tier_color,
    )


async def _loaded_dashboard(
    request: Request,
    context: SessionContext,
    views: ViewRegistry,
) -> Tuple[CustomerDashboard, bool]:
    """
    The mounted dashboard for this session, mounting and loading it if needed.
    The flag is True when bookings were fetched by this call.
    """
    sid = get_sid(request)
    dashboard = views.get(sid, DASHBOARD_VIEW)
    if isinstance(dashboard, CustomerDashboard) and dashboard.user_id == context.user.id and dashboard.loaded:
        return dashboard, False
    dashboard = CustomerDashboard(context.user.id)
    views.mount(sid, DASHBOARD_VIEW, dashboard)
    for toast in await dashboard.load(context.backend, context.access_token):
        queue_toast(request, toast)
    return dashboard, True


@router.get("", include_in_schema=False)
async def dashboard_page(
    request: Request,
    context: SessionContext = Depends(require_session),
    views: ViewRegistry = Depends(get_views),
):
    """Every visit is a fresh mount: bookings and loyalty are fetched again."""
    views.unmount(get_sid(request), DASHBOARD_VIEW)
    dashboard, _ = await _loaded_dashboard(request, context, views)
    return await _render_dashboard(request, context, dashboard)


# ── Payment ───────────────────────────────────────────────────

@router.get("/bookings/{booking_id}/pay", include_in_schema=False)
async def payment_page(
    booking_id: str,
    request: Request,
    context: SessionContext = Depends(require_session),
    views: ViewRegistry = Depends(get_views),
):
    """Open the payment flow for a single booking from the cached list."""
    dashboard, _ = await _loaded_dashboard(request, context, views)
    booking = dashboard.select_for_payment(booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="No payable booking with that id")

    order = None
    try:
        order = await context.backend.create_payment_order(context.access_token, booking)
    except BackendError as e:
        logger.error(f"Payment order for booking {booking_id} failed: {e.message}")
        push_toast(request, "Payment Unavailable", e.message, ToastVariant.DESTRUCTIVE)

    return await render_page(request, context, "dashboard/payment.html", booking=booking, order=order)


@router.post("/bookings/{booking_id}/pay/close")
async def close_payment(
    booking_id: str,
    request: Request,
    context: SessionContext = Depends(require_session),
    views: ViewRegistry = Depends(get_views),
):
    """Payment flow closed (paid or dismissed): re-fetch bookings and show the dashboard."""
    dashboard, fresh = await _loaded_dashboard(request, context, views)
    if not fresh:
        for toast in await dashboard.close_payment(context.backend, context.access_token):
            queue_toast(request, toast)
    return await _render_dashboard(request, context, dashboard)


# ── Profile ───────────────────────────────────────────────────

@router.get("/profile/edit", include_in_schema=False)
async def edit_profile_page(
    request: Request,
    context: SessionContext = Depends(require_session),
):
    return await render_page(request, context, "dashboard/edit_profile.html", profile=await context.profile())


@router.post("/profile/edit")
async def edit_profile(
    request: Request,
    name: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    context: SessionContext = Depends(require_session),
):
    """Forward the modal's result to the shared profile update; the modal closes either way."""
    try:
        data = ProfileUpdateRequest(
            name=name or None,
            phone=phone or None,
            address=address or None,
        )
    except ValidationError:
        push_toast(request, "Invalid Profile", "Please check your details and try again", ToastVariant.DESTRUCTIVE)
        return RedirectResponse(DASHBOARD_URL, status_code=status.HTTP_303_SEE_OTHER)

    profile = await context.update_profile(data)
    if profile is not None:
        logger.info(f"Profile updated successfully for {context.user.id}")
    return RedirectResponse(DASHBOARD_URL, status_code=status.HTTP_303_SEE_OTHER)
