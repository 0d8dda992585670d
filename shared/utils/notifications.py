"""
shared/utils/notifications.py
Transient toast notifications. Queued in the browser session and shown once
on the next rendered page.
"""

from typing import List

from fastapi import Request

from shared.models.models import ToastVariant
from shared.schemas.schemas import Toast

TOASTS_KEY = "toasts"


def push_toast(
    request: Request,
    title: str,
    description: str = "",
    variant: ToastVariant = ToastVariant.DEFAULT,
) -> Toast:
    return queue_toast(request, Toast(title=title, description=description, variant=variant))


def queue_toast(request: Request, toast: Toast) -> Toast:
    queued = request.session.get(TOASTS_KEY, [])
    queued.append(toast.model_dump(mode="json"))
    request.session[TOASTS_KEY] = queued
    return toast


def pop_toasts(request: Request) -> List[Toast]:
    """Drain the queue. Each toast is shown exactly once."""
    queued = request.session.pop(TOASTS_KEY, [])
    return [Toast.model_validate(t) for t in queued]
