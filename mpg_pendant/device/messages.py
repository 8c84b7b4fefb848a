"""Messages exchanged between a connection and its HID worker thread.

Two one-way channels:
- commands flow from the connection into the worker (queue)
- events flow from the worker back to the connection (callback on the
  worker thread)

Both are closed unions of frozen dataclasses.
"""
from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Optional, Union

from ..models import DisplayUpdate


# Commands (connection -> worker)

@dataclass(frozen=True)
class WriteDisplayCommand:
    """Display update to send on the worker's shared handle.

    The update is encoded when the worker runs the command, so the motion
    mode on the wire is the one tracked at that moment.

    Attributes:
        update: Update to send, None to re-send the last update
        done: Resolved with None once sent, or with the error
    """
    update: Optional[DisplayUpdate] = None
    done: Future = field(default_factory=Future, compare=False)


@dataclass(frozen=True)
class ShutdownCommand:
    """Request a clean shutdown of the worker."""
    pass


WorkerCommand = Union[WriteDisplayCommand, ShutdownCommand]


# Events (worker -> connection)

@dataclass(frozen=True)
class WorkerReady:
    """Worker has opened its handles and entered the read loop."""
    read_path: str


@dataclass(frozen=True)
class InputPacketEvent:
    """A raw input report read from the device."""
    data: bytes


@dataclass(frozen=True)
class WorkerError:
    """The worker failed to open its handles or lost the device.

    Attributes:
        message: Human readable description
        error: Underlying exception, if any
    """
    message: str
    error: Optional[BaseException] = field(default=None, compare=False)


@dataclass(frozen=True)
class WorkerStopped:
    """Worker has left its loop and released all resources."""
    pass


WorkerEvent = Union[WorkerReady, InputPacketEvent, WorkerError, WorkerStopped]
