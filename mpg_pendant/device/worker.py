"""HID worker thread that owns the pendant's read handle.

The worker creates its own transport instance, opens the read handle and
runs a tight read loop with a bounded timeout. When reads and writes share
one device node it also performs display writes, between reads, so a write
never interleaves with a read on the same handle.

Events are delivered by calling ``on_event`` on the worker thread, so
everything the connection does in response to a packet happens before the
next read.
"""
from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional, Sequence

from ..errors import HidTransportError
from ..models import DisplayUpdate
from ..protocol.constants import INPUT_PACKET_LENGTH
from ..transport import HidBackend, HidDeviceHandle
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

logger = logging.getLogger(__name__)


class HidWorker:
    """Background reader for one pendant.

    Args:
        backend_factory: Creates the worker's private transport instance
        read_path: Device node to read input reports from
        on_event: Called on the worker thread for every WorkerEvent
        read_timeout: Seconds each blocking read may take
        prepare_display: Encodes a display update (None re-sends the last
            one) into feature reports. Given only when display writes share
            the read handle; called on the worker thread right before writing.
    """

    def __init__(self,
                 backend_factory: Callable[[], HidBackend],
                 read_path: str,
                 on_event: Callable[[WorkerEvent], None],
                 read_timeout: float,
                 prepare_display: Optional[
                     Callable[[Optional[DisplayUpdate]], Sequence[bytes]]] = None):
        self._backend_factory = backend_factory
        self._read_path = read_path
        self._on_event = on_event
        self._read_timeout = read_timeout
        self._prepare_display = prepare_display

        self._commands: queue.Queue[WorkerCommand] = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._abandoned = False

        # Owned by the worker thread
        self._backend: Optional[HidBackend] = None
        self._read_handle: Optional[HidDeviceHandle] = None

    @property
    def serves_writes(self) -> bool:
        return self._prepare_display is not None

    def start(self) -> None:
        self._running = True
        self._thread = threading.Thread(
            target=self._run,
            daemon=True,
            name="PendantReader"
        )
        self._thread.start()

    def send(self, command: WorkerCommand) -> None:
        """Queue a command; it runs before the next read."""
        self._commands.put(command)

    def submit_display(self, update: Optional[DisplayUpdate]) -> WriteDisplayCommand:
        """Queue a display write; None re-sends the last update."""
        if not self.serves_writes:
            raise RuntimeError("Worker does not own a write handle")
        command = WriteDisplayCommand(update)
        self.send(command)
        return command

    def write_display_now(self, update: Optional[DisplayUpdate]) -> None:
        """Encode and write a display update. Only valid on the worker thread."""
        if not self.serves_writes:
            raise RuntimeError("Worker does not own a write handle")
        self.write_now(self._prepare_display(update))

    def write_now(self, reports: Sequence[bytes]) -> None:
        """Write on the shared handle. Only valid on the worker thread."""
        if not self.is_current_thread():
            raise RuntimeError("write_now called off the worker thread")
        if self._backend is None or self._read_handle is None:
            raise HidTransportError("Device not open", path=self._read_path)
        for report in reports:
            self._backend.send_feature_report(self._read_handle, report)

    def is_current_thread(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the thread to exit. Returns True if it did."""
        if self._thread is None:
            return True
        if not self.is_current_thread():
            self._thread.join(timeout=timeout)
        return not self._thread.is_alive()

    def abandon(self) -> None:
        """Stop delivering events and let the daemon thread die on its own.

        Used when the worker did not acknowledge shutdown in time. Threads
        cannot be killed, so the loop is told to stop and any further events
        from it are discarded.
        """
        self._abandoned = True
        self._running = False
        self._commands.put(ShutdownCommand())

    # Internal methods

    def _emit(self, event: WorkerEvent) -> None:
        if self._abandoned:
            return
        try:
            self._on_event(event)
        except Exception:
            logger.exception(f"Error handling {type(event).__name__}")

    def _run(self) -> None:
        logger.debug(f"Worker thread started for {self._read_path}")
        try:
            self._backend = self._backend_factory()
            self._read_handle = self._backend.open(self._read_path)
        except Exception as e:
            self._cleanup()
            self._emit(WorkerError(f"Failed to open devices: {e}", e))
            self._emit(WorkerStopped())
            return

        self._emit(WorkerReady(self._read_path))

        while self._running:
            if not self._drain_commands():
                break

            try:
                data = self._backend.read(
                    self._read_handle,
                    INPUT_PACKET_LENGTH,
                    timeout=self._read_timeout,
                )
            except Exception as e:
                if self._running:
                    logger.error(f"Read error on {self._read_path}: {e}")
                    self._emit(WorkerError(f"Read error: {e}", e))
                break

            if data:
                self._emit(InputPacketEvent(bytes(data)))

        self._running = False
        self._fail_pending_writes()
        self._cleanup()
        logger.debug(f"Worker thread exiting for {self._read_path}")
        self._emit(WorkerStopped())

    def _drain_commands(self) -> bool:
        """Run queued commands. Returns False once shutdown was requested."""
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return True

            if isinstance(command, ShutdownCommand):
                self._running = False
                return False

            if isinstance(command, WriteDisplayCommand):
                self._execute_write(command)

    def _execute_write(self, command: WriteDisplayCommand) -> None:
        if not command.done.set_running_or_notify_cancel():
            return
        try:
            self.write_display_now(command.update)
        except Exception as e:
            command.done.set_exception(e)
        else:
            command.done.set_result(None)

    def _fail_pending_writes(self) -> None:
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                return
            if isinstance(command, WriteDisplayCommand):
                if command.done.set_running_or_notify_cancel():
                    command.done.set_exception(
                        HidTransportError("Worker stopped before write", path=self._read_path)
                    )

    def _cleanup(self) -> None:
        """Close the read handle, then tear down the private transport."""
        backend = self._backend
        handle = self._read_handle
        self._backend = None
        self._read_handle = None
        if backend is None:
            return
        if handle is not None:
            try:
                backend.close(handle)
            except Exception as e:
                logger.error(f"Error closing {handle.path}: {e}")
        try:
            backend.dispose()
        except Exception as e:
            logger.error(f"Error disposing HID backend: {e}")
