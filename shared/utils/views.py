"""
shared/utils/views.py
Registry of mounted view instances, keyed by browser session and view name.
A view is mounted when its page is first rendered and unmounted when it is
replaced, completed, idle for too long, its session signs out, or the
application shuts down.
"""

import logging
import time
import uuid
from typing import Callable, Dict, Optional, Protocol, Tuple

from fastapi import Request

from config.settings import settings

logger = logging.getLogger(__name__)

SID_KEY = "sid"

ViewKey = Tuple[str, str]


class View(Protocol):
    def mount(self) -> None: ...

    def unmount(self) -> None: ...


class ViewRegistry:
    """
    Mounted views for every browser session served by this process.
    Idle views are swept on each mount; past `max_views` the least recently
    used are unmounted first.
    """

    def __init__(
        self,
        max_idle: float = settings.VIEW_IDLE_SECONDS,
        max_views: int = settings.MAX_MOUNTED_VIEWS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_idle = max_idle
        self.max_views = max_views
        self._clock = clock
        self._views: Dict[ViewKey, View] = {}
        self._touched: Dict[ViewKey, float] = {}

    def mount(self, sid: str, name: str, view: View) -> View:
        """Mount a view, unmounting any view it replaces."""
        self.unmount(sid, name)
        self.sweep()
        while len(self._views) >= self.max_views:
            oldest = min(self._touched, key=self._touched.get)
            logger.warning(f"View limit reached, evicting {oldest[1]} for session {oldest[0]}")
            self.unmount(*oldest)
        self._views[(sid, name)] = view
        self._touched[(sid, name)] = self._clock()
        view.mount()
        return view

    def get(self, sid: str, name: str) -> Optional[View]:
        view = self._views.get((sid, name))
        if view is not None:
            self._touched[(sid, name)] = self._clock()
        return view

    def unmount(self, sid: str, name: str) -> None:
        view = self._views.pop((sid, name), None)
        self._touched.pop((sid, name), None)
        if view is not None:
            view.unmount()

    def unmount_session(self, sid: str) -> None:
        for key in [k for k in self._views if k[0] == sid]:
            self.unmount(*key)

    def sweep(self) -> int:
        """Unmount views not touched within `max_idle` seconds."""
        cutoff = self._clock() - self.max_idle
        stale = [key for key, touched in self._touched.items() if touched < cutoff]
        for key in stale:
            self.unmount(*key)
        if stale:
            logger.info(f"Swept {len(stale)} idle views")
        return len(stale)

    def unmount_all(self) -> None:
        for key in list(self._views):
            self.unmount(*key)
        logger.info("All views unmounted")

    def __len__(self) -> int:
        return len(self._views)


def get_views(request: Request) -> ViewRegistry:
    """FastAPI dependency to get the process-wide view registry."""
    return request.app.state.views


def get_sid(request: Request) -> str:
    """Stable id for the browser session, created on first use."""
    sid = request.session.get(SID_KEY)
    if not sid:
        sid = uuid.uuid4().hex
        request.session[SID_KEY] = sid
    return sid
