"""Device layer for WHB04B-family USB HID pendants.

This module provides:
- Connection lifecycle and display writes (PendantConnection)
- The background reader that owns the HID handle (HidWorker)
- Event delivery to callers (PendantEventStream)
- Device discovery utilities (find_pendants, find_single_pendant)
"""

from .connection import ConnectionState, PendantConnection
from .messages import (
    InputPacketEvent,
    ShutdownCommand,
    WorkerCommand,
    WorkerError,
    WorkerEvent,
    WorkerReady,
    WorkerStopped,
    WriteDisplayCommand,
)
from .stream import PendantEventStream
from .worker import HidWorker
from .pendant_finder import (
    MultiplePendantsError,
    PendantNotFoundError,
    find_pendants,
    find_single_pendant,
    is_matching_device,
    is_pendant_available,
    resolve_pendants,
)

__all__ = [
    # Connection
    'ConnectionState',
    'PendantConnection',
    'PendantEventStream',

    # Worker
    'HidWorker',
    'WorkerCommand',
    'WorkerEvent',
    'WriteDisplayCommand',
    'ShutdownCommand',
    'WorkerReady',
    'InputPacketEvent',
    'WorkerError',
    'WorkerStopped',

    # Finder
    'MultiplePendantsError',
    'PendantNotFoundError',
    'find_pendants',
    'find_single_pendant',
    'is_matching_device',
    'is_pendant_available',
    'resolve_pendants',
]
