"""
alert_session.py — What happens on the device once SOS fires.

═══════════════════════════════════════════════════════════════════════════
STATE MACHINE
═══════════════════════════════════════════════════════════════════════════

                open()
                  │   siren + flashlight on
                  │   recording on (auto-stop after 10 s)
                  │   POST /api/emergency-trigger
                  ▼
              ┌────────┐
              │SENDING │
              └───┬────┘
           ok     │     request failed
        ┌─────────┴──────────┐
        ▼                    ▼
    ┌────────┐          ┌────────┐
    │  SENT  │          │ ERROR  │   terminal; the user retries by hand
    └───┬────┘          └────────┘
        │ 2 s
        ▼
    call primary contact

cancel() may happen in any state: recording stops, siren and flashlight
go off, pending timers are dropped and the session closes. A trigger
request still in flight when cancel() runs is left to finish, but its
answer no longer moves the state and no call follows. An alert the
server already recorded stays recorded.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

import httpx

from backend.app.alerts.models import DeliveryAttempt
from backend.app.alerts.notifier import NotificationDelivery, SimulatedNotifier
from backend.app.client.api_client import ApiError, SafetyApiClient
from backend.app.client.effects import EmergencyEffects
from backend.app.sensors.audio_recorder import AudioRecorder
from backend.app.sensors.location_observer import Position

logger = logging.getLogger(__name__)

RECORDING_LIMIT_SECONDS = 10.0
CALL_DELAY_SECONDS = 2.0


class AlertState(str, Enum):
    SENDING = "sending"
    SENT    = "sent"
    ERROR   = "error"


class EmergencyAlertSession:
    """
    One emergency, from the SOS press until the user closes the view.

    ``app_settings`` is the settings payload from GET /api/settings; when
    given, its siren / flashlight / audio toggles are honoured. The call to
    the primary contact goes out through ``notifier``.
    """

    def __init__(
        self,
        api: SafetyApiClient,
        recorder: AudioRecorder,
        effects: EmergencyEffects,
        *,
        app_settings: Optional[Mapping[str, Any]] = None,
        notifier: Optional[NotificationDelivery] = None,
        origin: str = "",
        open_link: Optional[Callable[[str], None]] = None,
        notify: Optional[Callable[[str], None]] = None,
        recording_limit_seconds: float = RECORDING_LIMIT_SECONDS,
        call_delay_seconds: float = CALL_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._api = api
        self._recorder = recorder
        self._effects = effects
        self._app_settings = dict(app_settings or {})
        self._notifier = notifier or SimulatedNotifier(delay_seconds=0)
        self._origin = origin
        self._open_link = open_link
        self._notify = notify
        self.recording_limit_seconds = recording_limit_seconds
        self.call_delay_seconds = call_delay_seconds
        self._sleep = sleep
        self._pending: List[asyncio.Task] = []
        self._reset()

    def _reset(self) -> None:
        self.state = AlertState.SENDING
        self.is_open = False
        self.contacts_notified: List[str] = []
        self.primary_contact_name = ""
        self.is_call_initiated = False
        self.call_attempt: Optional[DeliveryAttempt] = None
        self.response: Optional[Dict[str, Any]] = None
        self.error: Optional[str] = None

    def _enabled(self, key: str) -> bool:
        return bool(self._app_settings.get(key, True))

    @property
    def is_recording(self) -> bool:
        return self._recorder.is_recording

    async def open(self, position: Optional[Position] = None) -> AlertState:
        """Run the sequence up to SENT or ERROR; the call follows later."""
        self._cancel_pending()
        self._reset()
        self.is_open = True

        await self._effects.trigger(
            use_siren=self._enabled("sirenEnabled"),
            use_flashlight=self._enabled("flashlightEnabled"),
        )

        if self._enabled("audioRecordingEnabled"):
            if await self._recorder.start():
                self._schedule(self._stop_recording_later())

        try:
            self.response = await self._api.trigger_emergency(
                position.latitude if position else None,
                position.longitude if position else None,
            )
        except (ApiError, httpx.HTTPError) as exc:
            if not self.is_open:
                return self.state
            self.state = AlertState.ERROR
            self.error = getattr(exc, "message", None) or str(exc)
            logger.error("Emergency alert failed: %s", self.error)
            return self.state

        if not self.is_open:
            logger.info("Emergency alert answered after cancel; no call placed")
            return self.state

        primary = self.response["primaryContact"]
        self.state = AlertState.SENT
        self.contacts_notified = [primary["phone"]]
        self.primary_contact_name = primary["name"]
        logger.warning("Emergency alert sent to %s", self.primary_contact_name)

        self._schedule(self._call_later(primary["phone"]))
        return self.state

    async def cancel(self) -> None:
        """Tear everything down and close; no server-side rollback."""
        self.is_open = False
        self._cancel_pending()
        await self._recorder.stop()
        await self._effects.cancel()

    async def wait_pending(self) -> None:
        """Wait for the auto-stop and call timers (tests, shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _stop_recording_later(self) -> None:
        await self._sleep(self.recording_limit_seconds)
        await self._recorder.stop()

    async def _call_later(self, phone: str) -> None:
        await self._sleep(self.call_delay_seconds)
        self.is_call_initiated = True
        self.call_attempt = await self._notifier.place_call(
            phone,
            origin=self._origin,
            open_link=self._open_link,
            notify=self._notify,
        )

    def _schedule(self, coro: Awaitable[None]) -> None:
        self._pending.append(asyncio.ensure_future(coro))

    def _cancel_pending(self) -> None:
        for task in self._pending:
            if not task.done():
                task.cancel()
        self._pending = []
