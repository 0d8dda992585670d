"""
services/navigation/router.py
Home page, sign-out and theme toggle: the actions reachable from the navigation bar.
"""

import logging
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from config.backend_client import BackendError
from services.navigation.navbar import THEME_COOKIE
from shared.middleware.auth import SessionContext, get_session_context
from shared.utils.templating import render_page
from shared.utils.views import SID_KEY, ViewRegistry, get_views

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Navigation"])


def local_path(url: str) -> str:
    """Path part of `url` when it is a same-site path, otherwise '/'."""
    path = urlparse(url).path
    if not path.startswith("/") or path[1:2] in ("/", "\\"):
        return "/"
    return path


@router.get("/", include_in_schema=False)
async def home(request: Request, context: SessionContext = Depends(get_session_context)):
    return await render_page(request, context, "home.html")


@router.post("/auth/logout")
async def logout(
    request: Request,
    context: SessionContext = Depends(get_session_context),
    views: ViewRegistry = Depends(get_views),
):
    """
    Sign out with the backend, then drop the local session and its mounted
    views and go to the site root. A backend failure is logged; the local
    session is cleared regardless.
    """
    if context.access_token:
        try:
            await context.backend.sign_out(context.access_token)
        except BackendError as e:
            logger.error(f"Sign-out failed for {context.user.id}: {e.message}")
    sid = request.session.get(SID_KEY)
    if sid:
        views.unmount_session(sid)
    context.clear()
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/theme")
async def toggle_theme(request: Request):
    current = request.cookies.get(THEME_COOKIE, "light")
    back = local_path(request.headers.get("referer", ""))
    response = RedirectResponse(back, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(
        THEME_COOKIE,
        "light" if current == "dark" else "dark",
        max_age=60 * 60 * 24 * 365,
        samesite="lax",
    )
    return response
