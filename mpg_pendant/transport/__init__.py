"""Transport layer for pendant HID communication.

The hidapi-backed implementation lives in ``mpg_pendant.transport.hidapi``
and is imported on demand so the native library is only loaded when real
hardware is used.
"""

from .base import HidBackend, HidDeviceHandle

__all__ = ["HidBackend", "HidDeviceHandle", "default_backend"]


def default_backend() -> HidBackend:
    """Create the production hidapi backend."""
    from .hidapi import HidapiBackend
    return HidapiBackend()
