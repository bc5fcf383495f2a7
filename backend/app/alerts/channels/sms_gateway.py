"""
sms_gateway.py — SMS delivery channel.

Delivery mechanism:
    • simulation: sleep for a fixed delay, log the text, report delivered
    • gateway:    HTTP POST to a configured SMS gateway

═══════════════════════════════════════════════════════════════════════════
GATEWAY CONTRACT
═══════════════════════════════════════════════════════════════════════════

    App  →  HTTP POST {SMS_GATEWAY_URL}  →  provider  →  handset

    Request body:
        {"to": "+923001234567", "body": "🚨 EMERGENCY ALERT: ..."}
    Headers:
        Authorization: Bearer {SMS_GATEWAY_API_KEY}   (when configured)

    Any 2xx counts as delivered. Transport errors and non-2xx responses
    produce a FAILED attempt; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from backend.app.alerts.models import (
    DeliveryAttempt,
    DeliveryChannel,
    DeliveryStatus,
)

logger = logging.getLogger(__name__)

SMS_MAX_GSM7 = 160  # characters per segment


def segment_count(body: str) -> int:
    """Number of 160-char segments a message occupies."""
    return max(1, 1 + (len(body) - 1) // SMS_MAX_GSM7)


async def send(
    phone: str,
    message: str,
    *,
    provider: str = "simulation",
    delay_seconds: float = 1.0,
    gateway_url: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout_seconds: float = 15.0,
    client: Optional[httpx.AsyncClient] = None,
) -> DeliveryAttempt:
    """
    Send an SMS to one phone number.

    Parameters
    ----------
    phone : str
        Destination in E.164 format.
    message : str
        Full message text.
    provider : str
        "simulation" or "gateway".
    delay_seconds : float
        Artificial latency for the simulation provider.
    gateway_url, api_key, timeout_seconds
        Gateway provider settings.
    client : httpx.AsyncClient | None
        Shared client; a short-lived one is created when omitted.

    Returns
    -------
    DeliveryAttempt
    """
    attempt = DeliveryAttempt(
        channel=DeliveryChannel.SMS,
        recipient=phone,
        status=DeliveryStatus.SENDING,
    )

    if not phone:
        return attempt.finish(DeliveryStatus.SKIPPED, "No phone number on file")

    if provider == "simulation":
        if delay_seconds > 0:
            await asyncio.sleep(delay_seconds)
        logger.info(
            "[SMS] → %s: %s",
            phone, message,
            extra={"phone": phone, "channel": DeliveryChannel.SMS.value},
        )
        attempt.provider_response = {
            "mode": "simulated",
            "message_length": len(message),
            "segments": segment_count(message),
        }
        return attempt.finish(DeliveryStatus.DELIVERED)

    if provider == "gateway":
        if not gateway_url:
            return attempt.finish(DeliveryStatus.FAILED, "SMS_GATEWAY_URL is not configured")
        return await _send_via_gateway(
            attempt, phone, message,
            gateway_url=gateway_url,
            api_key=api_key,
            timeout_seconds=timeout_seconds,
            client=client,
        )

    return attempt.finish(DeliveryStatus.FAILED, f"Unknown SMS provider: {provider}")


async def _send_via_gateway(
    attempt: DeliveryAttempt,
    phone: str,
    message: str,
    *,
    gateway_url: str,
    api_key: Optional[str],
    timeout_seconds: float,
    client: Optional[httpx.AsyncClient],
) -> DeliveryAttempt:
    headers: Dict[str, str] = {}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout_seconds)
    try:
        response = await http.post(
            gateway_url,
            json={"to": phone, "body": message},
            headers=headers,
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error("[SMS] Gateway rejected message to %s: %s", phone, exc)
        attempt.provider_response = {"status_code": exc.response.status_code}
        return attempt.finish(DeliveryStatus.FAILED, str(exc))
    except httpx.HTTPError as exc:
        logger.error("[SMS] Gateway unreachable for %s: %s", phone, exc)
        return attempt.finish(DeliveryStatus.FAILED, str(exc))
    finally:
        if owns_client:
            await http.aclose()

    body: Any
    try:
        body = response.json()
    except ValueError:
        body = response.text
    attempt.provider_response = {
        "mode": "gateway",
        "status_code": response.status_code,
        "body": body,
    }
    logger.info("[SMS/gateway] Delivered to %s", phone, extra={"phone": phone})
    return attempt.finish(DeliveryStatus.DELIVERED)
