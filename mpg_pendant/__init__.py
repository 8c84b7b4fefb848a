"""MPG pendant driver - XHC WHB04B-family wireless jog pendants over USB HID."""

from .models import (
    PendantButton,
    PendantAxis,
    MotionMode,
    CoordinateSpace,
    FeedSelector,
    JogIncrement,
    PendantState,
    DisplayUpdate,
    HidDeviceInfo,
    PendantDeviceInfo,
)
from .errors import (
    PendantError,
    HidTransportError,
    InvalidStateError,
    PendantDisconnectedError,
)
from .device import (
    ConnectionState,
    PendantConnection,
    PendantEventStream,
    MultiplePendantsError,
    PendantNotFoundError,
    find_pendants,
    find_single_pendant,
    is_pendant_available,
)
from .transport import HidBackend

discover = find_pendants

__all__ = [
    "PendantButton",
    "PendantAxis",
    "MotionMode",
    "CoordinateSpace",
    "FeedSelector",
    "JogIncrement",
    "PendantState",
    "DisplayUpdate",
    "HidDeviceInfo",
    "PendantDeviceInfo",
    "PendantError",
    "HidTransportError",
    "InvalidStateError",
    "PendantDisconnectedError",
    "ConnectionState",
    "PendantConnection",
    "PendantEventStream",
    "MultiplePendantsError",
    "PendantNotFoundError",
    "discover",
    "find_pendants",
    "find_single_pendant",
    "is_pendant_available",
    "HidBackend",
]
