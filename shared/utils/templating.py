"""
shared/utils/templating.py
Jinja2 environment and the page renderer used by every router.
Each page gets the navigation bar and any queued toasts.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from config.settings import settings
from services.navigation.navbar import build_navbar
from shared.middleware.auth import SessionContext
from shared.utils.notifications import pop_toasts

templates = Jinja2Templates(directory=settings.TEMPLATES_DIR)


def format_price(minor_units: Optional[float]) -> str:
    """Minor currency units to a display string, e.g. 250050 -> '₹2,500.5'."""
    amount = Decimal(str(minor_units or 0)) / 100
    return f"{settings.CURRENCY_SYMBOL}{amount.normalize():,f}"


def format_date(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        try:
            parsed = date.fromisoformat(value[:10])
        except ValueError:
            return value
    return parsed.strftime("%d/%m/%Y")


templates.env.filters["price"] = format_price
templates.env.filters["date"] = format_date
templates.env.globals["app_name"] = settings.APP_NAME


async def render_page(
    request: Request,
    context: SessionContext,
    template: str,
    status_code: int = 200,
    **values: Any,
):
    navbar = await build_navbar(request, context)
    return templates.TemplateResponse(
        request,
        template,
        {"navbar": navbar, "toasts": pop_toasts(request), **values},
        status_code=status_code,
    )
