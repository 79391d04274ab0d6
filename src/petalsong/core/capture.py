"""
Capture sources feeding raw sample windows to the SignalAnalyzer.

A source is opened once (asynchronously, since hardware negotiation and
file decoding can block), then polled with read(). read() always returns
the current window without consuming it and never raises: an empty array
stands for "nothing captured yet".
"""

import abc
import asyncio
import logging
import threading
from pathlib import Path
from typing import Optional, Union

import librosa
import numpy as np

from petalsong.core.errors import DeviceNotFound, PermissionDenied, UnsupportedPlatform

logger = logging.getLogger(__name__)

# Samples per analysis window
DEFAULT_WINDOW = 2048
DEFAULT_SAMPLE_RATE = 44100

_PERMISSION_HINTS = ("permission", "not permitted", "access denied", "not authorized")


class CaptureSource(abc.ABC):
    """Abstract capture backend."""

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, window: int = DEFAULT_WINDOW):
        self.sample_rate = sample_rate
        self.window = window
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @abc.abstractmethod
    async def open(self) -> None:
        """Acquire the underlying resource."""

    @abc.abstractmethod
    def read(self) -> np.ndarray:
        """Return the most recent sample window."""

    def advance(self) -> None:
        """Move on to the next tick. Live sources keep advancing on their own."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the underlying resource. Must be idempotent."""


class BufferSource(CaptureSource):
    """
    Source fed directly by the caller.

    Used when the renderer owns the capture device and hands
    buffers over each frame, and in tests.
    """

    def __init__(self, sample_rate: int = DEFAULT_SAMPLE_RATE, window: int = DEFAULT_WINDOW):
        super().__init__(sample_rate, window)
        self._latest = np.zeros(0, dtype=np.float32)

    async def open(self) -> None:
        self._open = True

    def push(self, samples) -> None:
        """Replace the current window with a new buffer."""
        self._latest = np.asarray(samples)

    def read(self) -> np.ndarray:
        if not self._open:
            return np.zeros(0, dtype=np.float32)
        return self._latest

    def close(self) -> None:
        self._open = False
        self._latest = np.zeros(0, dtype=np.float32)


class FileSource(CaptureSource):
    """
    Replays an audio file as if it were a live input.

    read() returns the window at the cursor; advance() moves the cursor by
    one tick worth of samples (sample_rate / fps). Past the end of the file
    reads come back short, then empty, which the analyzer treats as silence.
    """

    def __init__(
        self,
        audio_path: Union[str, Path],
        fps: int = 60,
        sample_rate: Optional[int] = None,
        window: int = DEFAULT_WINDOW,
    ):
        super().__init__(sample_rate or DEFAULT_SAMPLE_RATE, window)
        self.audio_path = Path(audio_path)
        self.fps = fps
        self._target_sr = sample_rate
        self._samples = np.zeros(0, dtype=np.float32)
        self._cursor = 0

    @property
    def hop_length(self) -> int:
        return max(1, int(self.sample_rate / self.fps))

    @property
    def duration(self) -> float:
        if len(self._samples) == 0:
            return 0.0
        return float(librosa.get_duration(y=self._samples, sr=self.sample_rate))

    @property
    def position(self) -> int:
        """Sample offset of the current window."""
        return self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._samples)

    def _load(self) -> tuple[np.ndarray, int]:
        return librosa.load(self.audio_path, sr=self._target_sr, mono=True)

    async def open(self) -> None:
        if not self.audio_path.exists():
            raise DeviceNotFound(f"Audio file not found: {self.audio_path}")

        try:
            y, sr = await asyncio.to_thread(self._load)
        except Exception as e:
            raise DeviceNotFound(f"Could not decode {self.audio_path}: {e}") from e

        self._samples = y.astype(np.float32)
        self.sample_rate = int(sr)
        self._cursor = 0
        self._open = True
        logger.info(
            "Opened %s (%.1fs at %d Hz)", self.audio_path.name, self.duration, self.sample_rate
        )

    def read(self) -> np.ndarray:
        if not self._open:
            return np.zeros(0, dtype=np.float32)
        return self._samples[self._cursor:self._cursor + self.window]

    def advance(self) -> None:
        if self._open:
            self._cursor += self.hop_length

    def close(self) -> None:
        self._open = False
        self._cursor = 0


class MicrophoneSource(CaptureSource):
    """
    Live microphone input through sounddevice/PortAudio.

    The PortAudio callback thread writes into a ring buffer holding the
    last `window` samples; read() copies it out under a lock.
    """

    def __init__(
        self,
        device: Optional[Union[int, str]] = None,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
        window: int = DEFAULT_WINDOW,
        blocksize: int = 512,
    ):
        super().__init__(sample_rate, window)
        self.device = device
        self.blocksize = blocksize
        self._stream = None
        self._ring = np.zeros(window, dtype=np.float32)
        self._lock = threading.Lock()

    @staticmethod
    def _backend():
        # PortAudio is loaded when sounddevice is imported, so a host without
        # it fails here rather than at package import time.
        try:
            import sounddevice
        except (ImportError, OSError) as e:
            raise UnsupportedPlatform(f"Audio backend not available: {e}") from e
        return sounddevice

    def _callback(self, indata, frames, time_info, status):
        if status:
            logger.warning("Input stream status: %s", status)
        block = indata[:, 0]
        with self._lock:
            if len(block) >= self.window:
                self._ring[:] = block[-self.window:]
            else:
                self._ring = np.roll(self._ring, -len(block))
                self._ring[-len(block):] = block

    def _start_stream(self):
        sd = self._backend()

        try:
            info = sd.query_devices(self.device, kind="input")
        except (ValueError, sd.PortAudioError) as e:
            raise DeviceNotFound(f"No input device available: {e}") from e

        logger.info("Using input device: %s", info.get("name", self.device))

        stream = None
        try:
            stream = sd.InputStream(
                device=self.device,
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
                blocksize=self.blocksize,
                callback=self._callback,
            )
            stream.start()
        except (PermissionError, sd.PortAudioError) as e:
            if stream is not None:
                self._release(stream, abort=False)
            raise self._translate(e) from e
        return stream

    @staticmethod
    def _translate(error: Exception) -> Exception:
        if isinstance(error, PermissionError):
            return PermissionDenied(str(error))
        message = str(error).lower()
        if any(hint in message for hint in _PERMISSION_HINTS):
            return PermissionDenied(str(error))
        return DeviceNotFound(str(error))

    @staticmethod
    def _release(stream, abort: bool = True) -> None:
        try:
            if abort:
                stream.abort()
            stream.close()
        except Exception as e:
            logger.warning("Error while closing input stream: %s", e)

    async def open(self) -> None:
        self._stream = await asyncio.to_thread(self._start_stream)
        with self._lock:
            self._ring[:] = 0.0
        self._open = True

    def read(self) -> np.ndarray:
        if not self._open:
            return np.zeros(0, dtype=np.float32)
        with self._lock:
            return self._ring.copy()

    def close(self) -> None:
        self._open = False
        stream, self._stream = self._stream, None
        if stream is not None:
            self._release(stream)
