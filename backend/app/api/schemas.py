"""
Pydantic request schemas for the safety API.

Separated from the route handlers so they are reusable across the
codebase (client runtime, tests). Wire names are camelCase; attributes
are snake_case so ``model_dump(exclude_unset=True)`` feeds straight into
the store's partial-update methods.
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from backend.app.safety.validation import validate_e164


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _reject_null(value: Any) -> Any:
    if value is None:
        raise ValueError("must not be null")
    return value


def _coordinate_to_text(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


# ---------------------------------------------------------------------------
# Emergency contacts
# ---------------------------------------------------------------------------

class ContactCreate(_WireModel):
    """Body for POST /api/emergency-contacts."""
    name: str = Field(..., min_length=1, examples=["Ayesha"])
    phone: str = Field(..., examples=["+923001234567"])
    relationship: Optional[str] = Field(None, examples=["Sister"])
    is_primary: bool = Field(False)
    is_active: bool = Field(True)

    @field_validator("phone")
    @classmethod
    def _phone_format(cls, v: str) -> str:
        return validate_e164(v)


class ContactUpdate(_WireModel):
    """Body for PUT /api/emergency-contacts/{id}; every field optional."""
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    relationship: Optional[str] = None
    is_primary: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("name", "is_primary", "is_active")
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        return _reject_null(v)

    @field_validator("phone")
    @classmethod
    def _phone_format(cls, v: Optional[str]) -> str:
        return validate_e164(_reject_null(v))


# ---------------------------------------------------------------------------
# Emergency alerts
# ---------------------------------------------------------------------------

class AlertCreate(_WireModel):
    """Body for POST /api/emergency-alerts."""
    latitude: Optional[str] = Field(None, examples=["24.8607"])
    longitude: Optional[str] = Field(None, examples=["67.0011"])
    audio_recording_path: Optional[str] = None
    status: Optional[str] = Field(None, examples=["active"])
    contacts_notified: Optional[List[str]] = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coordinate(cls, v: Any) -> Any:
        return _coordinate_to_text(v)


class AlertUpdate(AlertCreate):
    """Body for PUT /api/emergency-alerts/{id}."""


# ---------------------------------------------------------------------------
# App settings
# ---------------------------------------------------------------------------

class SettingsUpdate(_WireModel):
    """Body for PUT /api/settings."""
    shake_detection_enabled: Optional[bool] = None
    audio_recording_enabled: Optional[bool] = None
    flashlight_enabled: Optional[bool] = None
    siren_enabled: Optional[bool] = None
    emergency_message: Optional[str] = None

    @field_validator("*")
    @classmethod
    def _not_null(cls, v: Any) -> Any:
        return _reject_null(v)


# ---------------------------------------------------------------------------
# Emergency actions
# ---------------------------------------------------------------------------

class SmsRequest(_WireModel):
    """Body for POST /api/send-sms."""
    phone: str = Field(..., min_length=1, examples=["+923001234567"])
    message: str = Field(..., examples=["Emergency! I need help."])


class TriggerRequest(_WireModel):
    """Body for POST /api/emergency-trigger."""
    latitude: Optional[Union[float, str]] = Field(None, examples=[24.8607])
    longitude: Optional[Union[float, str]] = Field(None, examples=[67.0011])
