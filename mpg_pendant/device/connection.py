"""Connection to a single WHB04B-family pendant.

The pendant is a USB HID device that:
- Streams 8-byte input reports (buttons, jog wheel, selectors)
- Accepts display updates as feature reports
- Shows up as one HID node on Linux/macOS, or as separate read and
  write collections on Windows

This module handles:
- Connection lifecycle (CLOSED -> OPENING -> OPEN -> CLOSING -> CLOSED)
- A worker thread running the blocking read loop
- Decoding, Fn interpretation and motion-mode tracking of input reports
- Encoding and writing display updates
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from enum import Enum
from typing import Callable, List, Optional

from ..errors import HidTransportError, InvalidStateError, PendantDisconnectedError
from ..models import DisplayUpdate, MotionMode, PendantDeviceInfo, PendantState
from ..protocol import DisplaySerializer, InputInterpreter, decode_input_packet
from ..transport import HidBackend, HidDeviceHandle, default_backend
from .messages import (
    InputPacketEvent,
    ShutdownCommand,
    WorkerError,
    WorkerEvent,
    WorkerReady,
    WorkerStopped,
    WriteDisplayCommand,
)
from .stream import DEFAULT_MAX_EVENTS, PendantEventStream
from .worker import HidWorker

logger = logging.getLogger(__name__)

READ_TIMEOUT = 0.1  # seconds
FAST_READ_TIMEOUT = 0.002  # seconds, close to the USB interrupt rate
OPEN_TIMEOUT = 2.0  # seconds
SHUTDOWN_TIMEOUT = 0.5  # seconds
WRITE_TIMEOUT = 1.0  # seconds


class ConnectionState(Enum):
    """Lifecycle state of a PendantConnection."""
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"


class PendantConnection:
    """Connection to one pendant.

    Provides a stream of decoded PendantState events and methods to send
    display updates.

    Responsibilities:
    - Run the blocking read loop on a dedicated worker thread
    - Turn raw reports into interpreted events (Fn handling, motion mode)
    - Encode display updates and write them without racing the read loop
    - Tear everything down on close() or when the device goes away

    Example:
        >>> pendant = find_single_pendant()
        >>> conn = PendantConnection(pendant)
        >>> stream = conn.open()
        >>> conn.send_reset_sequence()
        >>> conn.update_display(DisplayUpdate(axis1=12.5, feed_rate=1000))
        >>> for state in stream:
        ...     print(state)
        >>> conn.close()
    """

    def __init__(self,
                 pendant: PendantDeviceInfo,
                 backend_factory: Optional[Callable[[], HidBackend]] = None,
                 fn_inverted: bool = True,
                 read_timeout: float = READ_TIMEOUT,
                 open_timeout: float = OPEN_TIMEOUT,
                 shutdown_timeout: float = SHUTDOWN_TIMEOUT,
                 write_timeout: float = WRITE_TIMEOUT,
                 max_events: int = DEFAULT_MAX_EVENTS):
        """Initialize pendant connection.

        Args:
            pendant: Device pair returned by find_pendants()
            backend_factory: Creates transport instances (default: hidapi).
                The worker thread and the split write path each get their own.
            fn_inverted: When True (default), dual-label buttons report their
                function name alone and their macro name with Fn held
            read_timeout: Seconds each blocking read may take. On a shared
                handle, display writes wait for the current read to finish;
                use FAST_READ_TIMEOUT for high display refresh rates.
            open_timeout: Seconds to wait for the worker to open the device
            shutdown_timeout: Seconds to wait for the worker to stop on close
            write_timeout: Seconds to wait for a display write on a shared handle
            max_events: Capacity of the event stream returned by open()
        """
        self._pendant = pendant
        self._backend_factory = backend_factory or default_backend
        self._read_timeout = read_timeout
        self._open_timeout = open_timeout
        self._shutdown_timeout = shutdown_timeout
        self._write_timeout = write_timeout
        self._max_events = max_events

        self._interpreter = InputInterpreter(fn_inverted=fn_inverted)
        self._mode_lock = threading.RLock()

        self._state = ConnectionState.CLOSED
        self._state_lock = threading.RLock()

        # Worker
        self._worker: Optional[HidWorker] = None
        self._ready = threading.Event()
        self._stopped = threading.Event()
        self._open_error: Optional[WorkerError] = None

        # Split write path, owned by the caller side
        self._write_backend: Optional[HidBackend] = None
        self._write_handle: Optional[HidDeviceHandle] = None
        self._write_lock = threading.Lock()

        # Events
        self._stream: Optional[PendantEventStream] = None
        self._subscribers: List[Callable[[PendantState], None]] = []
        self._subscriber_lock = threading.Lock()

    # Properties

    @property
    def pendant(self) -> PendantDeviceInfo:
        return self._pendant

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def fn_inverted(self) -> bool:
        return self._interpreter.fn_inverted

    @property
    def events(self) -> Optional[PendantEventStream]:
        """Stream of the current (or last) connection, None before open()."""
        return self._stream

    @property
    def motion_mode(self) -> MotionMode:
        """Motion mode shown on the display.

        Updated by the continuous/step buttons. Setting a different mode
        re-sends the last display update so the display follows at once.
        """
        return self._interpreter.motion_mode

    @motion_mode.setter
    def motion_mode(self, mode: MotionMode) -> None:
        mode = MotionMode(mode)
        with self._mode_lock:
            changed = mode is not self._interpreter.motion_mode
            self._interpreter.motion_mode = mode
            has_update = self._interpreter.last_update is not None
        if changed and has_update and self.is_open:
            self._write_display(None)

    # Lifecycle

    def open(self) -> PendantEventStream:
        """Open the device and start reading input reports.

        Returns:
            Stream of interpreted PendantState events. It holds at most
            ``max_events`` unread events; when a slow consumer lets it fill
            up, the oldest events (button presses included) are dropped and
            a warning is logged.

        Raises:
            InvalidStateError: If the connection is not closed
            HidTransportError: If the device could not be opened
        """
        with self._state_lock:
            if self._state is not ConnectionState.CLOSED:
                raise InvalidStateError("Connection already open")
            self._state = ConnectionState.OPENING

        self._stream = PendantEventStream(max_events=self._max_events)

        try:
            if self._pendant.is_split:
                self._open_write_handle()
            self._start_worker()
        except Exception:
            self._release_write_handle()
            self._stream.finish()
            with self._state_lock:
                self._state = ConnectionState.CLOSED
            raise

        logger.info(f"Connected to pendant on {self._pendant.path}")
        return self._stream

    def close(self) -> None:
        """Stop the worker, close both handles and finish the event stream.

        Safe to call multiple times.
        """
        with self._state_lock:
            if self._state in (ConnectionState.CLOSED, ConnectionState.CLOSING):
                return
            self._state = ConnectionState.CLOSING
            worker = self._worker
            self._worker = None

        # The worker's transport teardown invalidates every handle, so the
        # split write handle has to go first.
        self._release_write_handle()

        if worker is not None:
            self._stop_worker(worker)

        if self._stream is not None:
            self._stream.finish()

        with self._state_lock:
            self._state = ConnectionState.CLOSED

        logger.info(f"Disconnected from pendant on {self._pendant.path}")

    def __enter__(self) -> PendantConnection:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # Display

    def update_display(self, update: DisplayUpdate) -> None:
        """Send a display update to the pendant.

        The mode in ``update`` is ignored; the motion_mode tracked at the
        moment the reports are written is used instead.

        Raises:
            InvalidStateError: If the connection is not open
            HidTransportError: If the device rejected the write
        """
        if not self.is_open:
            raise InvalidStateError("Connection not open")

        self._write_display(update)

    def send_reset_sequence(self, defaults: Optional[DisplayUpdate] = None) -> None:
        """Send the display initialization sequence: reset set, then cleared."""
        base = defaults or DisplayUpdate()
        self.update_display(base.with_reset(True))
        self.update_display(base.with_reset(False))

    # Subscriptions

    def subscribe_state(self,
                        callback: Callable[[PendantState], None]
                        ) -> Callable[[], None]:
        """Subscribe to interpreted events.

        Callbacks run on the worker thread and should not block.

        Returns:
            Unsubscribe function
        """
        with self._subscriber_lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._subscriber_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    # Internal methods

    def _open_write_handle(self) -> None:
        path = self._pendant.write_device.path
        backend = self._backend_factory()
        try:
            handle = backend.open(path)
        except Exception:
            backend.dispose()
            raise
        with self._write_lock:
            self._write_backend = backend
            self._write_handle = handle
        logger.debug(f"Opened write handle {path}")

    def _release_write_handle(self) -> None:
        with self._write_lock:
            backend = self._write_backend
            handle = self._write_handle
            self._write_backend = None
            self._write_handle = None
        if backend is None:
            return
        if handle is not None:
            try:
                backend.close(handle)
            except Exception as e:
                logger.error(f"Error closing write handle {handle.path}: {e}")
        try:
            backend.dispose()
        except Exception as e:
            logger.error(f"Error disposing write backend: {e}")

    def _start_worker(self) -> None:
        self._ready.clear()
        self._stopped.clear()
        self._open_error = None

        worker = HidWorker(
            backend_factory=self._backend_factory,
            read_path=self._pendant.read_device.path,
            prepare_display=None if self._pendant.is_split else self._prepare_display,
            on_event=self._on_worker_event,
            read_timeout=self._read_timeout,
        )
        with self._state_lock:
            self._worker = worker
        worker.start()

        if not self._ready.wait(self._open_timeout):
            worker.abandon()
            self._worker = None
            raise HidTransportError(
                "Timed out waiting for the HID worker to start",
                path=self._pendant.read_device.path,
            )

        if self._open_error is not None:
            self._worker = None
            error = self._open_error
            raise HidTransportError(
                error.message, path=self._pendant.read_device.path
            ) from error.error

    def _stop_worker(self, worker: HidWorker) -> None:
        worker.send(ShutdownCommand())

        # Called from a subscriber callback: the worker exits once we return
        if worker.is_current_thread():
            return

        if self._stopped.wait(self._shutdown_timeout):
            worker.join(self._shutdown_timeout)
        else:
            logger.warning(
                f"HID worker did not stop within {self._shutdown_timeout}s; abandoning it"
            )
            worker.abandon()

    def _on_worker_event(self, event: WorkerEvent) -> None:
        """Dispatch worker events. Runs on the worker thread."""
        if isinstance(event, InputPacketEvent):
            self._handle_input_packet(event.data)
        elif isinstance(event, WorkerReady):
            with self._state_lock:
                if self._state is ConnectionState.OPENING:
                    self._state = ConnectionState.OPEN
            self._ready.set()
        elif isinstance(event, WorkerError):
            if not self._ready.is_set():
                self._open_error = event
                self._ready.set()
            else:
                self._handle_disconnect(event)
        elif isinstance(event, WorkerStopped):
            self._stopped.set()

    def _handle_input_packet(self, data: bytes) -> None:
        raw = decode_input_packet(data)
        if raw is None:
            return

        with self._mode_lock:
            state = self._interpreter.interpret(raw)
            mode_changed = self._interpreter.track_motion_mode(state) is not None

        if mode_changed and self.is_open:
            try:
                self._write_display(None)
            except Exception as e:
                logger.error(f"Failed to re-send display for mode {state.button1.name}: {e}")

        if self._stream is not None:
            self._stream.publish(state)
        self._notify_subscribers(state)

    def _handle_disconnect(self, event: WorkerError) -> None:
        """Tear down after a fatal read error. Runs on the worker thread."""
        with self._state_lock:
            if self._state is not ConnectionState.OPEN:
                return
            self._state = ConnectionState.CLOSING
            self._worker = None

        logger.warning(f"Pendant on {self._pendant.path} disconnected: {event.message}")

        # Still ahead of the worker's own transport teardown
        self._release_write_handle()

        stream = self._stream
        with self._state_lock:
            self._state = ConnectionState.CLOSED

        if stream is not None:
            error = PendantDisconnectedError(event.message)
            error.__cause__ = event.error
            stream.fail(error)

    def _prepare_display(self, update: Optional[DisplayUpdate]) -> List[bytes]:
        """Apply the tracked mode to an update and encode it.

        Must run inside the write turn (the write lock, or the worker thread
        for a shared handle) so the mode cannot change before the reports
        reach the wire. None re-encodes the last update.
        """
        with self._mode_lock:
            if update is None:
                update = self._interpreter.last_update
                if update is None:
                    return []
            effective = update.with_mode(self._interpreter.motion_mode)
            reports = DisplaySerializer.encode_display_update(effective)
            self._interpreter.remember(update)
        return reports

    def _write_display(self, update: Optional[DisplayUpdate]) -> None:
        """Write a display update on whichever handle owns display writes."""
        if self._pendant.is_split:
            with self._write_lock:
                if self._write_backend is None or self._write_handle is None:
                    raise InvalidStateError("Connection not open")
                try:
                    for report in self._prepare_display(update):
                        self._write_backend.send_feature_report(self._write_handle, report)
                except HidTransportError as e:
                    logger.error(f"Display write failed: {e}")
                    raise
            return

        worker = self._worker
        if worker is None:
            raise InvalidStateError("Connection not open")

        # Already between two reads on the worker thread
        if worker.is_current_thread():
            worker.write_display_now(update)
            return

        command = worker.submit_display(update)
        try:
            self._await_write(command)
        except HidTransportError as e:
            logger.error(f"Display write failed: {e}")
            raise

    def _await_write(self, command: WriteDisplayCommand) -> None:
        try:
            command.done.result(timeout=self._write_timeout)
            return
        except FutureTimeoutError as e:
            # Not started yet: drop it so a write reported as failed never goes out
            if command.done.cancel():
                raise HidTransportError(
                    "Timed out waiting for display write",
                    path=self._pendant.write_device.path,
                ) from e

        # Already being written; wait for the outcome
        try:
            command.done.result(timeout=self._write_timeout)
        except FutureTimeoutError as e:
            raise HidTransportError(
                "Display write did not complete",
                path=self._pendant.write_device.path,
            ) from e

    def _notify_subscribers(self, state: PendantState) -> None:
        with self._subscriber_lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(state)
            except Exception as e:
                logger.error(f"Subscriber error: {e}")
