"""
services/navigation/navbar.py
Navigation bar view: site links, viewport-dependent layout and
identity-aware account actions.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from fastapi import Request

from config.settings import settings
from shared.middleware.auth import SessionContext
from shared.models.models import UserRole
from shared.schemas.schemas import SessionUser


@dataclass(frozen=True)
class NavItem:
    name: str
    href: str


NAV_ITEMS = (
    NavItem("Home", "/"),
    NavItem("Services", "/services"),
    NavItem("Live Streams", "/live-streams"),
    NavItem("Astrology", "/astrology"),
    NavItem("Loyalty", "/loyalty"),
    NavItem("About Us", "/about"),
    NavItem("Contact", "/contact"),
)

LOGIN_URL = "/auth"
ADMIN_LOGIN_URL = "/admin-auth"

DASHBOARD_ROUTES: Dict[UserRole, str] = {
    UserRole.ADMIN: "/dashboard-admin",
    UserRole.PANDIT: "/dashboard-pandit",
    UserRole.CUSTOMER: "/dashboard-customer",
}

_unrouted = set(UserRole) - set(DASHBOARD_ROUTES)
if _unrouted:
    raise RuntimeError(f"No dashboard route for roles: {sorted(r.value for r in _unrouted)}")

VIEWPORT_HINT_HEADERS = ("sec-ch-viewport-width", "viewport-width")
VIEWPORT_COOKIE = "viewport_width"
THEME_COOKIE = "theme"


def dashboard_url(role: Optional[str]) -> str:
    """Dashboard path for a profile's user_type; customer when absent or unknown."""
    return DASHBOARD_ROUTES[UserRole.parse(role)]


def viewport_width(request: Request) -> Optional[int]:
    """Viewport width from client hints or the cookie set by the page script."""
    candidates = [request.headers.get(h) for h in VIEWPORT_HINT_HEADERS]
    candidates.append(request.cookies.get(VIEWPORT_COOKIE))
    for value in candidates:
        if value:
            try:
                return int(float(value))
            except ValueError:
                continue
    return None


def is_mobile(width: Optional[int], breakpoint: int = settings.MOBILE_BREAKPOINT_PX) -> Optional[bool]:
    """None means unknown: render both layouts and let CSS pick."""
    if width is None:
        return None
    return width < breakpoint


@dataclass
class NavLink:
    name: str
    href: str
    active: bool


@dataclass
class NavbarView:
    current_path: str
    user: Optional[SessionUser] = None
    role: Optional[UserRole] = None
    mobile: Optional[bool] = None
    theme: str = "light"
    links: List[NavLink] = field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def dashboard_url(self) -> str:
        return DASHBOARD_ROUTES[self.role or UserRole.CUSTOMER]

    @property
    def show_desktop(self) -> bool:
        return self.mobile is not True

    @property
    def show_drawer(self) -> bool:
        return self.mobile is not False

    @property
    def login_url(self) -> str:
        return LOGIN_URL

    @property
    def admin_login_url(self) -> str:
        return ADMIN_LOGIN_URL


async def build_navbar(request: Request, context: SessionContext) -> NavbarView:
    path = request.url.path
    return NavbarView(
        current_path=path,
        user=context.user,
        role=await context.role(),
        mobile=is_mobile(viewport_width(request)),
        theme=request.cookies.get(THEME_COOKIE, "light"),
        links=[NavLink(item.name, item.href, item.href == path) for item in NAV_ITEMS],
    )
