"""
Capture lifecycle errors.

Only the initialisation of a capture source can fail; every query made
after that degrades to silence instead of raising.
"""


class CaptureError(Exception):
    """Base class for failures while acquiring a capture source."""


class PermissionDenied(CaptureError):
    """The host refused access to the input device."""


class DeviceNotFound(CaptureError):
    """No usable input device (or audio file) was found."""


class UnsupportedPlatform(CaptureError):
    """The audio backend is not available on this platform."""
