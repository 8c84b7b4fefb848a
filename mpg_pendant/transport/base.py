"""Abstract base class for the HID transport layer.

The HidBackend interface is the only way the rest of the package touches
hardware. The production implementation wraps hidapi; tests inject an
in-memory backend.

Key principles:
- Handles are opaque; callers never reach into the native device object
- Every failure crosses this boundary as HidTransportError
- close() is best effort and never raises
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from ..models import HidDeviceInfo


@dataclass(frozen=True)
class HidDeviceHandle:
    """Opaque handle to an open HID device.

    Attributes:
        path: Path the handle was opened from
    """
    path: str


class HidBackend(ABC):
    """Abstract HID transport.

    One backend instance corresponds to one native transport context.
    Disposing it invalidates every handle it handed out, so handles opened
    from it must be closed first.
    """

    @abstractmethod
    def enumerate(self, vendor_id: int, product_id: int) -> List[HidDeviceInfo]:
        """List connected HID nodes matching VID/PID.

        Args:
            vendor_id: USB Vendor ID, 0 matches any
            product_id: USB Product ID, 0 matches any

        Returns:
            One HidDeviceInfo per OS-level device node
        """
        pass

    @abstractmethod
    def open(self, path: str) -> HidDeviceHandle:
        """Open a device node.

        Raises:
            HidTransportError: If the node cannot be opened
        """
        pass

    @abstractmethod
    def read(self, handle: HidDeviceHandle, length: int,
             timeout: Optional[float] = None) -> bytes:
        """Read one input report.

        Args:
            handle: Open device handle
            length: Maximum number of bytes to read
            timeout: Seconds to block, None to block until data arrives

        Returns:
            Report bytes, empty if the timeout expired without data

        Raises:
            HidTransportError: On disconnect or any read error
        """
        pass

    @abstractmethod
    def send_feature_report(self, handle: HidDeviceHandle, data: bytes) -> None:
        """Send a feature report; the first byte is the report ID.

        Raises:
            HidTransportError: If the device rejects the report
        """
        pass

    @abstractmethod
    def close(self, handle: HidDeviceHandle) -> None:
        """Close a handle. Safe to call on an already closed handle."""
        pass

    def dispose(self) -> None:
        """Release every handle still open on this backend."""
        pass

    def __enter__(self) -> HidBackend:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()
