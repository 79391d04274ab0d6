"""Signal capture and analysis."""

from petalsong.core.analyzer import AnalyzerConfig, AudioFrame, SignalAnalyzer
from petalsong.core.capture import BufferSource, CaptureSource, FileSource, MicrophoneSource
from petalsong.core.demo import DemoSignal
from petalsong.core.errors import (
    CaptureError,
    DeviceNotFound,
    PermissionDenied,
    UnsupportedPlatform,
)
from petalsong.core.polisher import SignalPolisher, SignalState

__all__ = [
    "AnalyzerConfig",
    "AudioFrame",
    "SignalAnalyzer",
    "BufferSource",
    "CaptureSource",
    "FileSource",
    "MicrophoneSource",
    "DemoSignal",
    "CaptureError",
    "DeviceNotFound",
    "PermissionDenied",
    "UnsupportedPlatform",
    "SignalPolisher",
    "SignalState",
]
