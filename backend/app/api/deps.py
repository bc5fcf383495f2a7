"""
Request dependencies — hand the app-scoped store and notifier to routes.

Both objects are built in ``main.create_app`` and live on ``app.state``.
"""

from __future__ import annotations

from fastapi import Request

from backend.app.alerts.notifier import NotificationDelivery
from backend.app.safety.storage import MemStorage


def get_storage(request: Request) -> MemStorage:
    return request.app.state.storage


def get_notifier(request: Request) -> NotificationDelivery:
    return request.app.state.notifier
