"""
audio_recorder.py — Microphone capture.

start() opens the microphone and collects chunks in the background;
stop() joins them into an AudioClip and releases the device. How long to
record is the caller's decision (the alert session stops after 10 s).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

PERMISSION_ERROR = "Failed to start recording. Please check microphone permissions."


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AudioClip:
    data: bytes
    mime_type: str = "audio/wav"
    started_at: datetime = field(default_factory=_now)
    stopped_at: datetime = field(default_factory=_now)

    @property
    def duration_seconds(self) -> float:
        return (self.stopped_at - self.started_at).total_seconds()

    @property
    def size(self) -> int:
        return len(self.data)


class MicrophoneStream(ABC):
    @abstractmethod
    async def read(self) -> Optional[bytes]:
        """Next chunk; None once the stream has ended."""

    @abstractmethod
    async def close(self) -> None:
        """Stop all tracks and release the device."""


class Microphone(ABC):
    @abstractmethod
    async def open(self) -> MicrophoneStream:
        """Acquire the device; raises when access is denied."""


class AudioRecorder:
    def __init__(
        self,
        microphone: Microphone,
        *,
        on_stopped: Optional[Callable[[AudioClip], None]] = None,
    ):
        self._microphone = microphone
        self._on_stopped = on_stopped
        self._stream: Optional[MicrophoneStream] = None
        self._chunks: List[bytes] = []
        self._task: Optional[asyncio.Task] = None
        self._started_at: Optional[datetime] = None

        self.is_recording = False
        self.error: Optional[str] = None
        self.clip: Optional[AudioClip] = None

    async def start(self) -> bool:
        if self.is_recording:
            return True
        try:
            self._stream = await self._microphone.open()
        except Exception as exc:
            self.error = PERMISSION_ERROR
            logger.error("Recording error: %s", exc)
            return False

        self._chunks = []
        self._started_at = _now()
        self._task = asyncio.create_task(self._capture(self._stream))
        self.is_recording = True
        self.error = None
        logger.info("🎤 Audio recording started")
        return True

    async def stop(self) -> Optional[AudioClip]:
        """Finalise the clip; no-op when not recording."""
        if not self.is_recording:
            return None
        self.is_recording = False

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception as exc:
                logger.error("Recording stream failed: %s", exc)
            self._task = None

        clip = AudioClip(
            data=b"".join(self._chunks),
            started_at=self._started_at or _now(),
            stopped_at=_now(),
        )
        self.clip = clip

        if self._stream is not None:
            try:
                await self._stream.close()
            except Exception as exc:
                logger.warning("Could not release microphone: %s", exc)
            self._stream = None

        logger.info("🎤 Audio recording stopped (%d bytes)", clip.size)
        if self._on_stopped is not None:
            self._on_stopped(clip)
        return clip

    async def _capture(self, stream: MicrophoneStream) -> None:
        while True:
            chunk = await stream.read()
            if chunk is None:
                return
            if chunk:
                self._chunks.append(chunk)
