"""
notifier.py — Notification delivery capability.

The trigger workflow, the send-sms endpoint and the on-device alert
session only know about ``NotificationDelivery``: a text goes out through
``send_sms``, a call through ``place_call``. Which backend sits behind it
is decided once at startup from ``settings.SMS_PROVIDER``:

    simulation   SimulatedNotifier   sleeps, logs, always delivers
    gateway      GatewayNotifier     POSTs to SMS_GATEWAY_URL via httpx

Tests swap in their own subclass through ``app.state.notifier``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import httpx

from backend.app.alerts.channels import sms_gateway, voice_call
from backend.app.alerts.models import DeliveryAttempt
from backend.app.core.config import Settings

logger = logging.getLogger(__name__)

LinkOpener = Callable[[str], None]
Notify = Callable[[str], None]


class NotificationDelivery(ABC):
    """Texts and calls a phone number."""

    mode: str = "abstract"

    @abstractmethod
    async def send_sms(
        self, phone: str, message: str, *, delay_seconds: Optional[float] = None,
    ) -> DeliveryAttempt:
        """Deliver *message* to *phone*; never raises for delivery failures."""

    @abstractmethod
    async def place_call(
        self,
        phone: str,
        *,
        origin: str = "",
        open_link: Optional[LinkOpener] = None,
        notify: Optional[Notify] = None,
    ) -> DeliveryAttempt:
        """
        Ring *phone*; never raises for delivery failures.

        ``origin``, ``open_link`` and ``notify`` are the device hooks of the
        caller: where the page is served from, how to hand a ``tel:`` link
        to the dialer, and how to show a message instead.
        """

    async def aclose(self) -> None:
        """Release any held connections."""


class SimulatedNotifier(NotificationDelivery):
    """Fabricated delivery with an artificial delay."""

    mode = "simulation"

    def __init__(self, delay_seconds: float = 1.0):
        self.delay_seconds = delay_seconds

    async def send_sms(
        self, phone: str, message: str, *, delay_seconds: Optional[float] = None,
    ) -> DeliveryAttempt:
        return await sms_gateway.send(
            phone, message,
            provider="simulation",
            delay_seconds=self.delay_seconds if delay_seconds is None else delay_seconds,
        )

    async def place_call(
        self,
        phone: str,
        *,
        origin: str = "",
        open_link: Optional[LinkOpener] = None,
        notify: Optional[Notify] = None,
    ) -> DeliveryAttempt:
        return voice_call.place_call(
            phone, origin=origin, open_link=open_link, notify=notify,
        )


class GatewayNotifier(NotificationDelivery):
    """Real delivery through an HTTP SMS gateway."""

    mode = "gateway"

    def __init__(
        self,
        gateway_url: str,
        *,
        api_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.gateway_url = gateway_url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    async def send_sms(
        self, phone: str, message: str, *, delay_seconds: Optional[float] = None,
    ) -> DeliveryAttempt:
        # Real gateways have their own latency; delay_seconds is ignored
        return await sms_gateway.send(
            phone, message,
            provider="gateway",
            gateway_url=self.gateway_url,
            api_key=self.api_key,
            timeout_seconds=self.timeout_seconds,
            client=self._client,
        )

    async def place_call(
        self,
        phone: str,
        *,
        origin: str = "",
        open_link: Optional[LinkOpener] = None,
        notify: Optional[Notify] = None,
    ) -> DeliveryAttempt:
        # The gateway only carries text; calls go through the device dialer
        return voice_call.place_call(
            phone, origin=origin, open_link=open_link, notify=notify,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def build_notifier(config: Settings) -> NotificationDelivery:
    """Pick the delivery backend named by ``SMS_PROVIDER``."""
    provider = config.SMS_PROVIDER.lower()

    if provider == "gateway":
        if not config.SMS_GATEWAY_URL:
            raise ValueError("SMS_PROVIDER=gateway requires SMS_GATEWAY_URL")
        logger.info("SMS delivery via gateway %s", config.SMS_GATEWAY_URL)
        return GatewayNotifier(
            config.SMS_GATEWAY_URL,
            api_key=config.SMS_GATEWAY_API_KEY,
            timeout_seconds=config.SMS_GATEWAY_TIMEOUT,
        )

    if provider != "simulation":
        raise ValueError(f"Unknown SMS_PROVIDER: {config.SMS_PROVIDER}")

    logger.info("SMS delivery simulated (%.1fs delay)", config.SMS_SIMULATED_DELAY_SECONDS)
    return SimulatedNotifier(config.SMS_SIMULATED_DELAY_SECONDS)
