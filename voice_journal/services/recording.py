"""
Recording capture session.

A session buffers encoded audio fragments between start and stop and hands
back a single AudioBlob. It moves idle -> recording -> idle; there is no
pause/resume and no multi-segment recording. While recording, a tick task
counts elapsed seconds for display.
"""
import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from voice_journal.utils.logger import get_logger

logger = get_logger("services.recording")

DEFAULT_CONTENT_TYPE = "audio/webm"

TickCallback = Callable[[int], Awaitable[None]]


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


class MicrophoneAccessError(Exception):
    """The microphone could not be acquired (permission denied or device error)."""


class RecordingStateError(Exception):
    """Operation not allowed in the session's current state."""


class RecordingTooLargeError(Exception):
    """A fragment would push the buffer past the session's size limit."""

    def __init__(self, max_bytes: int):
        self.max_bytes = max_bytes
        super().__init__(f"Recording exceeds {max_bytes} bytes")


@dataclass(frozen=True)
class AudioBlob:
    """One finished recording. May be empty when stopped before any data arrived."""
    data: bytes = b""
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


class AudioDevice(ABC):
    """An audio input that must be acquired before and released after recording."""

    @abstractmethod
    async def open(self) -> None:
        """Acquire the device. Raise to signal denial or failure."""

    @abstractmethod
    async def close(self) -> None:
        """Release the device."""


def format_elapsed(seconds: int) -> str:
    """Format elapsed seconds as m:ss, e.g. 75 -> '1:15'."""
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{secs:02d}"


class RecordingSession:
    """Buffers encoded audio fragments for a single capture gesture."""

    def __init__(
        self,
        on_tick: Optional[TickCallback] = None,
        tick_interval: float = 1.0,
        content_type: str = DEFAULT_CONTENT_TYPE,
        max_bytes: Optional[int] = None
    ):
        self._on_tick = on_tick
        self._tick_interval = tick_interval
        self._content_type = content_type
        self._max_bytes = max_bytes
        self._state = RecordingState.IDLE
        self._chunks: list[bytes] = []
        self._buffered_bytes = 0
        self._elapsed_seconds = 0
        self._device: Optional[AudioDevice] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecordingState.RECORDING

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed_seconds

    @property
    def buffered_bytes(self) -> int:
        return self._buffered_bytes

    async def start(self, device: AudioDevice) -> None:
        """
        Acquire the device and begin buffering.

        Args:
            device: Audio input to acquire

        Raises:
            RecordingStateError: If already recording
            MicrophoneAccessError: If the device cannot be acquired; the
                session stays idle and may be started again
        """
        if self.is_recording:
            raise RecordingStateError("Recording already in progress")

        try:
            await device.open()
        except Exception as e:
            logger.warning("Microphone access failed", error=str(e))
            raise MicrophoneAccessError(str(e) or "Microphone access denied") from e

        self._device = device
        self._chunks = []
        self._buffered_bytes = 0
        self._elapsed_seconds = 0
        self._state = RecordingState.RECORDING
        self._timer = asyncio.create_task(self._run_timer())

        logger.info("Recording started")

    def add_chunk(self, data: bytes) -> None:
        """
        Append one encoded fragment.

        Raises:
            RecordingStateError: If not recording
            RecordingTooLargeError: If the fragment would exceed max_bytes;
                the fragment is not buffered
        """
        if not self.is_recording:
            raise RecordingStateError("Not recording")
        if not data:
            return
        if self._max_bytes is not None and self._buffered_bytes + len(data) > self._max_bytes:
            logger.warning(
                "Recording size limit exceeded",
                buffered_bytes=self._buffered_bytes,
                fragment_bytes=len(data),
                max_bytes=self._max_bytes
            )
            raise RecordingTooLargeError(self._max_bytes)
        self._chunks.append(data)
        self._buffered_bytes += len(data)

    async def stop(self) -> AudioBlob:
        """
        Finish recording: stop the timer, assemble the blob, release the device.

        Returns:
            AudioBlob with all buffered fragments, possibly empty

        Raises:
            RecordingStateError: If not recording
        """
        if not self.is_recording:
            raise RecordingStateError("Not recording")

        blob = AudioBlob(data=b"".join(self._chunks), content_type=self._content_type)
        await self._reset()

        logger.info("Recording stopped", size_bytes=blob.size)
        return blob

    async def abort(self) -> None:
        """Discard any in-progress recording and release the device."""
        if self.is_recording:
            logger.info("Recording aborted", buffered_bytes=self.buffered_bytes)
            await self._reset()

    async def _reset(self) -> None:
        await self._cancel_timer()

        device, self._device = self._device, None
        self._chunks = []
        self._buffered_bytes = 0
        self._state = RecordingState.IDLE

        if device is not None:
            try:
                await device.close()
            except Exception as e:
                logger.error("Failed to release audio device", error=str(e), exc_info=True)

    async def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass

    async def _run_timer(self) -> None:
        while True:
            await asyncio.sleep(self._tick_interval)
            self._elapsed_seconds += 1
            if self._on_tick is not None:
                try:
                    await self._on_tick(self._elapsed_seconds)
                except Exception as e:
                    logger.warning("Tick callback failed", error=str(e))
