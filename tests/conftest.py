"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from petalsong.core.capture import BufferSource, CaptureSource

# Default capture settings for test buffers
TEST_SR = 44100
TEST_WINDOW = 2048


def sine(frequency: float, amplitude: float = 0.5, n: int = TEST_WINDOW, sr: int = TEST_SR) -> np.ndarray:
    """A window of a pure tone."""
    t = np.arange(n) / sr
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float32)


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def pure_sine() -> np.ndarray:
    """A 2048-sample window of a 440Hz sine (A4)."""
    return sine(440.0)


@pytest.fixture
def low_voice() -> np.ndarray:
    """A 2048-sample window of a 220Hz sine."""
    return sine(220.0)


@pytest.fixture
def silence() -> np.ndarray:
    return np.zeros(TEST_WINDOW, dtype=np.float32)


@pytest.fixture
def white_noise() -> np.ndarray:
    """Reproducible white noise window."""
    rng = np.random.default_rng(42)
    return (rng.standard_normal(TEST_WINDOW) * 0.3).astype(np.float32)


@pytest.fixture
def buffer_source() -> BufferSource:
    return BufferSource(sample_rate=TEST_SR, window=TEST_WINDOW)


class FailingSource(CaptureSource):
    """Source whose open() raises the given error."""

    def __init__(self, error: Exception):
        super().__init__(TEST_SR, TEST_WINDOW)
        self.error = error
        self.closed = False

    async def open(self) -> None:
        raise self.error

    def read(self) -> np.ndarray:
        return np.zeros(0)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def failing_source():
    """Factory for sources that fail to open."""
    return FailingSource


@pytest.fixture
def temp_audio_file(tmp_path):
    """
    Write a 2 second wav: one second of quiet hum, one second of a loud
    330Hz tone.
    """
    import soundfile as sf

    sr = 22050
    t = np.arange(sr) / sr
    quiet = 0.005 * np.sin(2 * np.pi * 110.0 * t)
    loud = 0.8 * np.sin(2 * np.pi * 330.0 * t)
    y = np.concatenate([quiet, loud]).astype(np.float32)

    audio_path = tmp_path / "voice.wav"
    sf.write(audio_path, y, sr)
    return audio_path
