"""
voice_call.py — Call the primary contact.

A browser cannot dial directly; it navigates to a ``tel:`` link and lets
the phone's dialer take over. On desktop or development hosts there is no
dialer, so the call is announced through a notification callback instead.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from backend.app.alerts.models import (
    DeliveryAttempt,
    DeliveryChannel,
    DeliveryStatus,
)

logger = logging.getLogger(__name__)

# Hosts treated as non-mobile: a notification replaces the real dial
SIMULATED_CALL_HOSTS = ("localhost", "127.0.0.1", "replit.app")


def tel_link(phone: str) -> str:
    return f"tel:{phone}"


def is_simulated_host(origin: str) -> bool:
    return any(host in origin for host in SIMULATED_CALL_HOSTS)


def place_call(
    phone: str,
    *,
    origin: str = "",
    open_link: Optional[Callable[[str], None]] = None,
    notify: Optional[Callable[[str], None]] = None,
) -> DeliveryAttempt:
    """
    Initiate a call to *phone*.

    Parameters
    ----------
    phone : str
    origin : str
        Page origin; development hosts get a notification, not a dial.
    open_link : callable
        Opens a URL (the platform dialer hook).
    notify : callable
        Shows a user-visible message.
    """
    attempt = DeliveryAttempt(
        channel=DeliveryChannel.VOICE_CALL,
        recipient=phone,
        status=DeliveryStatus.SENDING,
    )
    link = tel_link(phone)

    try:
        if is_simulated_host(origin) or open_link is None:
            logger.info("[CALL] Would call %s in mobile environment", phone)
            if notify is not None:
                notify(f"Calling {phone}...")
            attempt.provider_response = {"mode": "simulated", "link": link}
        else:
            logger.info("[CALL] Initiating call to %s", phone)
            open_link(link)
            attempt.provider_response = {"mode": "dialer", "link": link}
    except Exception as exc:
        logger.error("[CALL] Failed to initiate call to %s: %s", phone, exc)
        return attempt.finish(DeliveryStatus.FAILED, str(exc))

    return attempt.finish(DeliveryStatus.DELIVERED)
