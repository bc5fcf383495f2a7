"""
test_trigger_service.py — Tests for the emergency trigger sequence and the
notification delivery backends behind it.

Covers:
    • Location reference and message composition
    • trigger_emergency: primary lookup, alert record, SMS hand-off
    • Delivery failure after the alert is stored
    • SMS channel (simulation, gateway via httpx.MockTransport)
    • Voice call, siren and flashlight channels
    • Calls through the notifier capability
    • build_notifier provider selection

Run with:
    pytest tests/test_trigger_service.py -v
"""

from __future__ import annotations

import asyncio
import json
from typing import List, Optional

import httpx
import pytest

from backend.app.alerts.channels import flashlight, siren, sms_gateway, voice_call
from backend.app.alerts.channels.flashlight import NullTorch, TorchDevice
from backend.app.alerts.channels.siren import WAIL, NullSiren, SirenDevice
from backend.app.alerts.models import DeliveryAttempt, DeliveryChannel, DeliveryStatus
from backend.app.alerts.notifier import (
    GatewayNotifier,
    NotificationDelivery,
    SimulatedNotifier,
    build_notifier,
)
from backend.app.alerts.trigger_service import (
    LOCATION_UNAVAILABLE,
    build_location_reference,
    compose_emergency_message,
    coordinate_text,
    trigger_emergency,
)
from backend.app.core.config import Settings
from backend.app.core.errors import PrimaryContactMissingError
from backend.app.safety.storage import MemStorage


# ═══════════════════════════════════════════════════════════════════════════
# Test Fixtures
# ═══════════════════════════════════════════════════════════════════════════

PRIMARY_PHONE = "+923001234567"


class RecordingNotifier(NotificationDelivery):
    """Captures every send; delivers unless told to fail."""

    mode = "recording"

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[tuple] = []
        self.calls: List[str] = []

    async def send_sms(self, phone, message, *, delay_seconds: Optional[float] = None):
        self.sent.append((phone, message))
        attempt = DeliveryAttempt(channel=DeliveryChannel.SMS, recipient=phone)
        if self.fail:
            return attempt.finish(DeliveryStatus.FAILED, "gateway down")
        return attempt.finish(DeliveryStatus.DELIVERED)

    async def place_call(self, phone, **hooks):
        self.calls.append(phone)
        attempt = DeliveryAttempt(channel=DeliveryChannel.VOICE_CALL, recipient=phone)
        return attempt.finish(DeliveryStatus.DELIVERED)


def _storage_with_primary(phone: str = PRIMARY_PHONE) -> MemStorage:
    storage = MemStorage()
    storage.create_emergency_contact({"name": "Ayesha", "phone": phone, "is_primary": True})
    return storage


def _trigger(storage, notifier, lat=None, lon=None):
    return asyncio.run(trigger_emergency(storage, notifier, lat, lon))


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Message composition
# ═══════════════════════════════════════════════════════════════════════════

class TestLocationReference:

    def test_map_link(self):
        ref = build_location_reference("12.34", "56.78")
        assert ref == "https://maps.google.com/maps?q=12.34,56.78"

    def test_custom_base_url(self):
        ref = build_location_reference("1", "2", base_url="https://maps.example/x")
        assert ref == "https://maps.example/x?q=1,2"

    @pytest.mark.parametrize("lat,lon", [(None, None), ("12.34", None), (None, "56.78")])
    def test_missing_coordinate(self, lat, lon):
        assert build_location_reference(lat, lon) == LOCATION_UNAVAILABLE

    def test_zero_is_a_coordinate(self):
        assert build_location_reference(coordinate_text(0), coordinate_text(0.0)) \
            == "https://maps.google.com/maps?q=0,0.0"


class TestCoordinateText:

    @pytest.mark.parametrize("value,expected", [
        (None, None),
        ("", None),
        ("   ", None),
        (12.34, "12.34"),
        (0, "0"),
        (" 56.78 ", "56.78"),
    ])
    def test_rendering(self, value, expected):
        assert coordinate_text(value) == expected


class TestComposeMessage:

    def test_embeds_reference(self):
        text = compose_emergency_message("https://maps.google.com/maps?q=1,2")
        assert text.startswith("🚨 EMERGENCY ALERT: I need help!")
        assert "My current location: https://maps.google.com/maps?q=1,2." in text
        assert text.endswith("call emergency services.")


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: trigger_emergency
# ═══════════════════════════════════════════════════════════════════════════

class TestTriggerEmergency:

    def test_no_primary_raises_and_writes_nothing(self):
        storage = MemStorage()
        storage.create_emergency_contact({"name": "B", "phone": "+15550001111"})
        notifier = RecordingNotifier()

        with pytest.raises(PrimaryContactMissingError) as exc_info:
            _trigger(storage, notifier, 12.34, 56.78)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "No primary contact configured"
        assert storage.get_emergency_alerts() == []
        assert notifier.sent == []

    def test_alert_and_sms_with_location(self):
        storage = _storage_with_primary()
        notifier = RecordingNotifier()

        result = _trigger(storage, notifier, 12.34, 56.78)

        assert result.success is True
        assert result.sms_sent is True
        assert result.alert.status == "active"
        assert result.alert.latitude == "12.34"
        assert result.alert.longitude == "56.78"
        assert result.alert.contacts_notified == [PRIMARY_PHONE]
        assert storage.get_emergency_alerts() == [result.alert]

        phone, message = notifier.sent[0]
        assert phone == PRIMARY_PHONE
        assert "12.34,56.78" in message

    def test_location_unavailable(self):
        notifier = RecordingNotifier()
        result = _trigger(_storage_with_primary(), notifier)

        assert result.alert.latitude is None
        assert result.location_reference == LOCATION_UNAVAILABLE
        assert "Location unavailable" in notifier.sent[0][1]

    def test_string_coordinates_kept_verbatim(self):
        result = _trigger(_storage_with_primary(), RecordingNotifier(), "24.8607", "67.0011")
        assert result.alert.latitude == "24.8607"
        assert "24.8607,67.0011" in result.message_text

    def test_delivery_failure_still_records_alert(self):
        storage = _storage_with_primary()
        result = _trigger(storage, RecordingNotifier(fail=True), 1.0, 2.0)

        assert result.success is True
        assert result.sms_sent is False
        assert len(storage.get_emergency_alerts()) == 1
        assert result.to_dict()["smsSent"] is False

    def test_uses_first_primary(self):
        storage = MemStorage()
        storage.create_emergency_contact({"name": "A", "phone": "+15550000001"})
        storage.create_emergency_contact({"name": "B", "phone": "+15550000002", "is_primary": True})
        storage.create_emergency_contact({"name": "C", "phone": "+15550000003", "is_primary": True})

        notifier = RecordingNotifier()
        result = _trigger(storage, notifier)
        assert result.primary_contact.name == "B"
        assert notifier.sent[0][0] == "+15550000002"

    def test_to_dict_shape(self):
        data = _trigger(_storage_with_primary(), RecordingNotifier(), 1, 2).to_dict()
        assert data["success"] is True
        assert data["primaryContact"]["phone"] == PRIMARY_PHONE
        assert data["alert"]["contactsNotified"] == [PRIMARY_PHONE]


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: SMS channel & notifiers
# ═══════════════════════════════════════════════════════════════════════════

class TestSmsSimulation:

    def test_delivered(self):
        attempt = asyncio.run(sms_gateway.send(PRIMARY_PHONE, "help", delay_seconds=0))
        assert attempt.status == DeliveryStatus.DELIVERED
        assert attempt.provider_response["mode"] == "simulated"
        assert attempt.completed_at is not None

    def test_empty_phone_skipped(self):
        attempt = asyncio.run(sms_gateway.send("", "help", delay_seconds=0))
        assert attempt.status == DeliveryStatus.SKIPPED

    def test_unknown_provider(self):
        attempt = asyncio.run(sms_gateway.send(PRIMARY_PHONE, "x", provider="pigeon"))
        assert attempt.status == DeliveryStatus.FAILED
        assert "pigeon" in attempt.error_message

    def test_gateway_without_url(self):
        attempt = asyncio.run(sms_gateway.send(PRIMARY_PHONE, "x", provider="gateway"))
        assert attempt.status == DeliveryStatus.FAILED

    @pytest.mark.parametrize("length,segments", [(0, 1), (160, 1), (161, 2), (320, 2), (321, 3)])
    def test_segment_count(self, length, segments):
        assert sms_gateway.segment_count("x" * length) == segments

    def test_simulated_notifier_override_delay(self):
        attempt = asyncio.run(
            SimulatedNotifier(delay_seconds=30).send_sms(PRIMARY_PHONE, "x", delay_seconds=0)
        )
        assert attempt.delivered


class TestNotifierCalls:

    def test_simulated_call_on_development_host(self):
        notes = []
        attempt = asyncio.run(SimulatedNotifier(0).place_call(
            PRIMARY_PHONE, origin="http://localhost:5000", notify=notes.append,
        ))
        assert attempt.channel == DeliveryChannel.VOICE_CALL
        assert attempt.delivered
        assert notes == [f"Calling {PRIMARY_PHONE}..."]

    def test_simulated_call_opens_dialer_on_device(self):
        opened = []
        attempt = asyncio.run(SimulatedNotifier(0).place_call(
            PRIMARY_PHONE, origin="https://safeguard.example", open_link=opened.append,
        ))
        assert opened == [f"tel:{PRIMARY_PHONE}"]
        assert attempt.provider_response["mode"] == "dialer"

    def test_gateway_call_uses_dialer(self):
        async def go():
            opened = []
            client = httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(500)),
            )
            notifier = GatewayNotifier("https://sms.example/send", client=client)
            try:
                attempt = await notifier.place_call(
                    PRIMARY_PHONE, origin="https://safeguard.example", open_link=opened.append,
                )
            finally:
                await notifier.aclose()
            return attempt, opened

        attempt, opened = asyncio.run(go())
        assert attempt.delivered
        assert opened == [f"tel:{PRIMARY_PHONE}"]

    def test_call_is_part_of_the_capability(self):
        assert "place_call" in NotificationDelivery.__abstractmethods__


class TestGatewayNotifier:

    def _run(self, handler):
        async def go():
            client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
            notifier = GatewayNotifier(
                "https://sms.example/send", api_key="secret", client=client,
            )
            try:
                return await notifier.send_sms(PRIMARY_PHONE, "help")
            finally:
                await notifier.aclose()
        return asyncio.run(go())

    def test_posts_body_and_auth(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "msg-1"})

        attempt = self._run(handler)
        assert attempt.delivered
        assert seen["auth"] == "Bearer secret"
        assert seen["body"] == {"to": PRIMARY_PHONE, "body": "help"}
        assert attempt.provider_response["body"] == {"id": "msg-1"}

    def test_rejected(self):
        attempt = self._run(lambda request: httpx.Response(503))
        assert attempt.status == DeliveryStatus.FAILED
        assert attempt.provider_response == {"status_code": 503}

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        attempt = self._run(handler)
        assert attempt.status == DeliveryStatus.FAILED
        assert "refused" in attempt.error_message


class TestBuildNotifier:

    def test_simulation_default(self):
        notifier = build_notifier(Settings(SMS_PROVIDER="simulation", SMS_SIMULATED_DELAY_SECONDS=0.2))
        assert isinstance(notifier, SimulatedNotifier)
        assert notifier.delay_seconds == 0.2

    def test_gateway(self):
        notifier = build_notifier(Settings(SMS_PROVIDER="gateway", SMS_GATEWAY_URL="https://sms.example"))
        assert isinstance(notifier, GatewayNotifier)
        asyncio.run(notifier.aclose())

    def test_gateway_requires_url(self):
        with pytest.raises(ValueError, match="SMS_GATEWAY_URL"):
            build_notifier(Settings(SMS_PROVIDER="gateway", SMS_GATEWAY_URL=None))

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown"):
            build_notifier(Settings(SMS_PROVIDER="carrier-pigeon"))


# ═══════════════════════════════════════════════════════════════════════════
# Section 4: Device channels
# ═══════════════════════════════════════════════════════════════════════════

class TestVoiceCall:

    def test_tel_link(self):
        assert voice_call.tel_link(PRIMARY_PHONE) == f"tel:{PRIMARY_PHONE}"

    @pytest.mark.parametrize("origin", [
        "http://localhost:5000", "http://127.0.0.1:5000", "https://safeguard.replit.app",
    ])
    def test_development_host_notifies(self, origin):
        opened, notes = [], []
        attempt = voice_call.place_call(
            PRIMARY_PHONE, origin=origin, open_link=opened.append, notify=notes.append,
        )
        assert attempt.delivered
        assert opened == []
        assert notes == [f"Calling {PRIMARY_PHONE}..."]
        assert attempt.provider_response["mode"] == "simulated"

    def test_mobile_host_opens_dialer(self):
        opened = []
        attempt = voice_call.place_call(
            PRIMARY_PHONE, origin="https://safeguard.example", open_link=opened.append,
        )
        assert opened == [f"tel:{PRIMARY_PHONE}"]
        assert attempt.provider_response["mode"] == "dialer"

    def test_dialer_failure(self):
        def broken(link):
            raise RuntimeError("no dialer")

        attempt = voice_call.place_call(PRIMARY_PHONE, origin="https://x", open_link=broken)
        assert attempt.status == DeliveryStatus.FAILED


class TestSiren:

    def test_activate_and_deactivate(self):
        device = NullSiren()
        attempt = siren.activate(device)
        assert attempt.delivered
        assert device.playing is WAIL
        siren.deactivate(device)
        assert device.playing is None

    def test_device_error(self):
        class Broken(SirenDevice):
            def start(self, pattern):
                raise RuntimeError("audio context blocked")

            def stop(self):
                raise RuntimeError("audio context blocked")

        attempt = siren.activate(Broken())
        assert attempt.status == DeliveryStatus.FAILED
        siren.deactivate(Broken())  # logged, not raised


class TestFlashlight:

    def test_unsupported_skipped(self):
        attempt = asyncio.run(flashlight.activate(NullTorch()))
        assert attempt.status == DeliveryStatus.SKIPPED

    def test_supported(self):
        class Torch(TorchDevice):
            def __init__(self):
                self.on = False
                self.released = False

            async def supports_torch(self):
                return True

            async def set_torch(self, on):
                self.on = on

            async def release(self):
                self.released = True

        torch = Torch()
        attempt = asyncio.run(flashlight.activate(torch))
        assert attempt.delivered
        assert torch.on is True

        asyncio.run(flashlight.deactivate(torch))
        assert torch.on is False
        assert torch.released is True
