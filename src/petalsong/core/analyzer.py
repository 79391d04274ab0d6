"""
Signal analysis module.

Turns raw waveform windows into the two drivers of the simulation:
volume (log-scaled RMS on a 0-100 scale) and pitch (autocorrelation
fundamental frequency in Hz, 0 for silence).
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np
from scipy import signal as scipy_signal

from petalsong.core.capture import CaptureSource, MicrophoneSource
from petalsong.core.errors import CaptureError

logger = logging.getLogger(__name__)


@dataclass
class AnalyzerConfig:
    """Volume and pitch detection constants."""

    min_frequency: float = 80.0     # Hz, lowest voice fundamental considered
    max_frequency: float = 1000.0   # Hz
    silence_threshold: float = 0.01  # mean |sample| below this is silence

    # Volume scale: 25*log10(rms + eps), -60..0 mapped onto 0..100
    db_scale: float = 25.0
    db_floor: float = -60.0
    epsilon: float = 1e-4

    # Sensitivity boost applied after the 0-100 mapping
    volume_gain: float = 1.2


@dataclass(frozen=True)
class AudioFrame:
    """Volume/pitch pair sampled from a single window."""

    volume: float = 0.0  # [0, 100]
    pitch: float = 0.0   # Hz, 0 = silence / undetected


SILENCE = AudioFrame(0.0, 0.0)


def normalize_samples(samples) -> np.ndarray:
    """
    Convert a raw buffer to float64 samples in [-1, 1].

    Unsigned 8-bit buffers are treated as byte time-domain data centred
    at 128, signed integer buffers as PCM, float buffers are clipped.
    Multi-channel (frames, channels) buffers are averaged to mono.
    """
    buf = np.asarray(samples)
    if buf.size == 0:
        return np.zeros(0, dtype=np.float64)

    if buf.ndim > 1:
        buf = buf.mean(axis=1) if np.issubdtype(buf.dtype, np.floating) else buf[:, 0]

    if buf.dtype == np.uint8:
        return (buf.astype(np.float64) - 128.0) / 128.0
    if np.issubdtype(buf.dtype, np.integer):
        full_scale = float(-np.iinfo(buf.dtype).min)
        return np.clip(buf.astype(np.float64) / full_scale, -1.0, 1.0)
    return np.clip(buf.astype(np.float64), -1.0, 1.0)


def lag_bounds(sample_rate: float, config: Optional[AnalyzerConfig] = None) -> tuple[int, int]:
    """
    Autocorrelation lag range whose implied frequency lies in
    [min_frequency, max_frequency].
    """
    cfg = config or AnalyzerConfig()
    min_lag = max(1, math.ceil(sample_rate / cfg.max_frequency))
    max_lag = math.floor(sample_rate / cfg.min_frequency)
    return min_lag, max_lag


def compute_volume(samples, config: Optional[AnalyzerConfig] = None) -> float:
    """
    RMS loudness of a window mapped onto [0, 100].

    Args:
        samples: Raw buffer (any dtype accepted by normalize_samples).
        config: Scale and gain constants.

    Returns:
        Volume in [0, 100]. Empty buffers read as 0.
    """
    cfg = config or AnalyzerConfig()
    x = normalize_samples(samples)
    if len(x) == 0:
        return 0.0

    rms = math.sqrt(float(np.mean(x * x)))
    db = cfg.db_scale * math.log10(rms + cfg.epsilon)

    span = -cfg.db_floor
    volume = (db - cfg.db_floor) * (100.0 / span)
    volume = min(100.0, max(0.0, volume))

    return min(100.0, max(0.0, volume * cfg.volume_gain))


def detect_pitch(samples, sample_rate: float, config: Optional[AnalyzerConfig] = None) -> float:
    """
    Estimate the fundamental frequency by autocorrelation.

    The lag with the largest correlation inside the voice range wins;
    frequency = sample_rate / lag.

    Returns:
        Frequency in Hz, or 0 for silence, buffers too short to cover the
        minimum lag, sample rates with no lag in the voice range, or when
        no lag in range correlates positively.
    """
    cfg = config or AnalyzerConfig()
    x = normalize_samples(samples)
    if sample_rate <= 0:
        return 0.0
    min_lag, max_lag = lag_bounds(sample_rate, cfg)

    if len(x) <= min_lag:
        return 0.0
    if float(np.mean(np.abs(x))) < cfg.silence_threshold:
        return 0.0

    max_lag = min(max_lag, len(x) - 1)
    if max_lag < min_lag:
        return 0.0

    # Full autocorrelation, keep non-negative lags: corr[lag] = sum x[i] * x[i + lag]
    corr = scipy_signal.correlate(x, x, mode="full")[len(x) - 1:]
    candidates = corr[min_lag:max_lag + 1]

    best = int(np.argmax(candidates))
    if candidates[best] <= 0:
        return 0.0

    return float(sample_rate) / (min_lag + best)


class SignalAnalyzer:
    """
    Continuously derives (volume, pitch) from a capture source.

    The source is acquired by the async initialize(); all queries are
    synchronous and return neutral values (0) while inactive.
    """

    def __init__(
        self,
        source_factory: Optional[Callable[[], CaptureSource]] = None,
        config: Optional[AnalyzerConfig] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            source_factory: Builds a fresh CaptureSource on every initialize().
                Defaults to the system microphone.
            config: Detection constants.
        """
        self.source_factory = source_factory or MicrophoneSource
        self.cfg = config or AnalyzerConfig()
        self._source: Optional[CaptureSource] = None
        self._active = False

    @property
    def sample_rate(self) -> float:
        return self._source.sample_rate if self._source else 0.0

    def is_active(self) -> bool:
        return self._active

    async def initialize(self) -> None:
        """
        Acquire the capture source.

        Raises:
            PermissionDenied, DeviceNotFound, UnsupportedPlatform
        """
        if self._active or self._source is not None:
            logger.info("Re-initializing; releasing previous source")
            self.dispose()

        source = self.source_factory()
        try:
            await source.open()
        except CaptureError as e:
            logger.error("Capture initialization failed: %s", e)
            source.close()
            raise

        self._source = source
        self._active = True
        logger.info("Signal analyzer active (%d Hz)", source.sample_rate)

    def _read(self) -> np.ndarray:
        if not self._active or self._source is None:
            return np.zeros(0)
        return self._source.read()

    def _is_usable(self, buffer: np.ndarray) -> bool:
        min_lag, _ = lag_bounds(self.sample_rate, self.cfg)
        return len(buffer) > min_lag

    def _analyze(self, buffer: np.ndarray) -> AudioFrame:
        if not self._is_usable(buffer):
            return SILENCE
        return AudioFrame(
            volume=compute_volume(buffer, self.cfg),
            pitch=detect_pitch(buffer, self.sample_rate, self.cfg),
        )

    def volume(self) -> float:
        """Current volume in [0, 100]; 0 when inactive."""
        if not self._active:
            return 0.0
        buffer = self._read()
        if not self._is_usable(buffer):
            return 0.0
        return compute_volume(buffer, self.cfg)

    def pitch(self) -> float:
        """Current pitch in Hz; 0 when inactive or silent."""
        if not self._active:
            return 0.0
        return detect_pitch(self._read(), self.sample_rate, self.cfg)

    def advance(self) -> None:
        """Step the source to the next tick. volume() and pitch() never do."""
        if self._active and self._source is not None:
            self._source.advance()

    def frame(self) -> AudioFrame:
        """
        Sample one tick: read the source once, derive both values from
        that window, then advance the source.
        """
        if not self._active:
            return SILENCE
        result = self._analyze(self._read())
        self.advance()
        return result

    def dispose(self) -> None:
        """Release the capture source. Safe to call at any time."""
        self._active = False
        source, self._source = self._source, None
        if source is not None:
            source.close()
            logger.info("Signal analyzer disposed")
