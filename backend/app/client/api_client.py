"""
api_client.py — Async HTTP client for the safety API.

Thin wrapper over ``httpx.AsyncClient``: one method per endpoint, JSON
in, JSON out. Non-2xx responses raise ``ApiError`` carrying the server's
``message`` so callers can show it as-is.

Usage:
    async with SafetyApiClient("http://localhost:5000") as api:
        result = await api.trigger_emergency(24.86, 67.00)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

import httpx

logger = logging.getLogger(__name__)

Coordinate = Union[float, str, None]


class ApiError(Exception):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str, body: Any = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.body = body


class SafetyApiClient:
    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: Optional[float] = None,
    ):
        # No timeout by default: the trigger call waits as long as it takes
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds,
        )

    async def __aenter__(self) -> "SafetyApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        response = await self._client.request(method, path, json=json)
        if response.is_error:
            try:
                body = response.json()
                message = body.get("message", response.reason_phrase)
            except ValueError:
                body, message = response.text, response.reason_phrase
            logger.warning("%s %s → %d: %s", method, path, response.status_code, message)
            raise ApiError(response.status_code, message, body)
        if not response.content:
            return None
        return response.json()

    # ── Contacts ──

    async def list_contacts(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/emergency-contacts")

    async def primary_contact(self) -> Optional[Dict[str, Any]]:
        return await self._request("GET", "/api/primary-contact")

    async def create_contact(self, **fields: Any) -> Dict[str, Any]:
        return await self._request("POST", "/api/emergency-contacts", fields)

    async def update_contact(self, contact_id: int, **fields: Any) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/emergency-contacts/{contact_id}", fields)

    async def delete_contact(self, contact_id: int) -> Dict[str, Any]:
        return await self._request("DELETE", f"/api/emergency-contacts/{contact_id}")

    # ── Alerts ──

    async def list_alerts(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/api/emergency-alerts")

    async def create_alert(self, **fields: Any) -> Dict[str, Any]:
        return await self._request("POST", "/api/emergency-alerts", fields)

    async def update_alert(self, alert_id: int, **fields: Any) -> Dict[str, Any]:
        return await self._request("PUT", f"/api/emergency-alerts/{alert_id}", fields)

    # ── Settings ──

    async def get_settings(self) -> Dict[str, Any]:
        return await self._request("GET", "/api/settings")

    async def update_settings(self, **fields: Any) -> Dict[str, Any]:
        return await self._request("PUT", "/api/settings", fields)

    # ── Emergency ──

    async def send_sms(self, phone: str, message: str) -> Dict[str, Any]:
        return await self._request("POST", "/api/send-sms", {"phone": phone, "message": message})

    async def trigger_emergency(
        self, latitude: Coordinate = None, longitude: Coordinate = None,
    ) -> Dict[str, Any]:
        return await self._request(
            "POST", "/api/emergency-trigger",
            {"latitude": latitude, "longitude": longitude},
        )
