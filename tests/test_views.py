"""
tests/test_views.py
Tests for the view registry: replacement, idle sweeps, the size cap,
and per-session teardown on sign-out.
"""

import pytest
from httpx import AsyncClient

from main import app
from shared.utils.views import ViewRegistry
from tests.conftest import TestUser, auth_headers


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class RecordingView:
    def __init__(self):
        self.mounted = False
        self.unmounts = 0

    def mount(self) -> None:
        self.mounted = True

    def unmount(self) -> None:
        self.mounted = False
        self.unmounts += 1


def test_idle_views_are_swept_on_mount():
    clock = Clock()
    views = ViewRegistry(max_idle=60, clock=clock)
    abandoned = [views.mount(f"sid-{i}", "otp", RecordingView()) for i in range(50)]

    clock.now = 61
    views.mount("sid-new", "otp", RecordingView())

    assert len(views) == 1
    assert all(v.unmounts == 1 for v in abandoned)


def test_recently_used_views_survive_sweep():
    clock = Clock()
    views = ViewRegistry(max_idle=60, clock=clock)
    kept = views.mount("active", "otp", RecordingView())
    views.mount("idle", "otp", RecordingView())

    clock.now = 50
    assert views.get("active", "otp") is kept
    clock.now = 100
    assert views.sweep() == 1
    assert views.get("active", "otp") is kept
    assert views.get("idle", "otp") is None


def test_size_cap_evicts_least_recently_used():
    clock = Clock()
    views = ViewRegistry(max_views=3, clock=clock)
    first = views.mount("a", "otp", RecordingView())
    clock.now = 1
    views.mount("b", "otp", RecordingView())
    clock.now = 2
    views.mount("c", "otp", RecordingView())
    clock.now = 3
    views.get("a", "otp")

    clock.now = 4
    views.mount("d", "otp", RecordingView())

    assert len(views) == 3
    assert views.get("a", "otp") is first
    assert views.get("b", "otp") is None


def test_unmount_session_leaves_other_sessions():
    views = ViewRegistry()
    mine = [views.mount("mine", name, RecordingView()) for name in ("otp", "dashboard")]
    theirs = views.mount("theirs", "otp", RecordingView())

    views.unmount_session("mine")

    assert len(views) == 1
    assert all(v.unmounts == 1 for v in mine)
    assert theirs.mounted


@pytest.mark.asyncio
async def test_logout_unmounts_the_sessions_views(client: AsyncClient, customer: TestUser):
    headers = auth_headers(customer)
    await client.get("/auth/verify", params={"email": customer.email})
    await client.get("/dashboard-customer", headers=headers)
    assert len(app.state.views) == 2

    response = await client.post("/auth/logout", headers=headers)
    assert response.status_code == 303
    assert len(app.state.views) == 0
