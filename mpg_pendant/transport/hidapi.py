"""HidBackend implementation using the hidapi Python bindings.

Requires: ``pip install hidapi`` (imported as ``hid``). On Linux the
hidraw nodes usually need a udev rule granting the user access.
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

import hid

from ..errors import HidTransportError
from ..models import HidDeviceInfo
from .base import HidBackend, HidDeviceHandle

logger = logging.getLogger(__name__)


def _decode_path(path) -> str:
    if isinstance(path, bytes):
        return path.decode("utf-8", "surrogateescape")
    return str(path)


def _encode_path(path: str) -> bytes:
    return path.encode("utf-8", "surrogateescape")


def _entry_to_info(entry: dict) -> HidDeviceInfo:
    """Convert one hid.enumerate() dict to HidDeviceInfo."""
    return HidDeviceInfo(
        vendor_id=entry.get("vendor_id", 0),
        product_id=entry.get("product_id", 0),
        path=_decode_path(entry.get("path", b"")),
        manufacturer=entry.get("manufacturer_string") or "",
        product=entry.get("product_string") or "",
        serial_number=entry.get("serial_number") or "",
        usage_page=entry.get("usage_page", 0),
        usage=entry.get("usage", 0),
        interface_number=entry.get("interface_number", -1),
    )


class HidapiBackend(HidBackend):
    """Cross-platform HID access through hidapi.

    Keeps track of the hid.device objects it opened so dispose() can close
    anything callers forgot about.
    """

    def __init__(self):
        self._open_devices: Dict[str, "hid.device"] = {}
        self._lock = threading.Lock()

    def enumerate(self, vendor_id: int, product_id: int) -> List[HidDeviceInfo]:
        try:
            entries = hid.enumerate(vendor_id, product_id)
        except (OSError, ValueError) as e:
            raise HidTransportError(f"Enumeration failed: {e}") from e
        return [_entry_to_info(entry) for entry in entries]

    def open(self, path: str) -> HidDeviceHandle:
        device = hid.device()
        try:
            device.open_path(_encode_path(path))
        except (OSError, ValueError) as e:
            raise HidTransportError(f"Failed to open {path}: {e}", path=path) from e

        with self._lock:
            self._open_devices[path] = device
        logger.debug(f"Opened HID device {path}")
        return HidDeviceHandle(path)

    def read(self, handle: HidDeviceHandle, length: int,
             timeout: Optional[float] = None) -> bytes:
        device = self._device(handle)
        # hidapi treats 0 as "block forever"
        timeout_ms = 0 if timeout is None else max(1, int(timeout * 1000))
        try:
            data = device.read(length, timeout_ms)
        except (OSError, ValueError) as e:
            raise HidTransportError(f"Read error: {e}", path=handle.path) from e
        return bytes(data) if data else b""

    def send_feature_report(self, handle: HidDeviceHandle, data: bytes) -> None:
        device = self._device(handle)
        try:
            result = device.send_feature_report(bytes(data))
        except (OSError, ValueError) as e:
            raise HidTransportError(f"Feature report failed: {e}", path=handle.path) from e
        if result is not None and result < 0:
            raise HidTransportError(
                f"Feature report failed: {device.error()}", path=handle.path
            )

    def close(self, handle: HidDeviceHandle) -> None:
        with self._lock:
            device = self._open_devices.pop(handle.path, None)
        if device is None:
            return
        try:
            device.close()
            logger.debug(f"Closed HID device {handle.path}")
        except Exception as e:
            logger.error(f"Error closing {handle.path}: {e}")

    def dispose(self) -> None:
        with self._lock:
            devices = list(self._open_devices.items())
            self._open_devices.clear()
        for path, device in devices:
            try:
                device.close()
            except Exception as e:
                logger.error(f"Error closing {path}: {e}")

    def _device(self, handle: HidDeviceHandle):
        with self._lock:
            device = self._open_devices.get(handle.path)
        if device is None:
            raise HidTransportError("Device not open", path=handle.path)
        return device
