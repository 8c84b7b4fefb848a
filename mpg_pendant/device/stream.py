"""Event stream handed to callers of PendantConnection.open().

Provides a thread-safe FIFO of PendantState events with drop-oldest
behavior on overflow, terminated by at most one error.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, Iterator, Optional

from ..models import PendantState

logger = logging.getLogger(__name__)

DEFAULT_MAX_EVENTS = 4096


class PendantEventStream:
    """Thread-safe stream of decoded pendant states.

    The worker thread publishes, any caller thread consumes. Iterating blocks
    until the next event and stops when the connection closes. If the
    connection was lost, iteration raises PendantDisconnectedError once
    before stopping.

    Example:
        >>> stream = connection.open()
        >>> for state in stream:
        ...     print(state.button1, state.jog_delta)
    """

    def __init__(self, max_events: int = DEFAULT_MAX_EVENTS):
        """Initialize stream.

        Args:
            max_events: Maximum queued events. If exceeded, oldest events are dropped.
        """
        self._events: Deque[PendantState] = deque()
        self._max_events = max_events
        self._cond = threading.Condition()
        self._finished = False
        self._error: Optional[BaseException] = None
        self._error_delivered = False
        self._overflow_count = 0

    def publish(self, state: PendantState) -> None:
        """Append an event. Ignored once the stream is finished."""
        with self._cond:
            if self._finished:
                return
            if len(self._events) >= self._max_events:
                self._events.popleft()
                self._overflow_count += 1
                if self._overflow_count % 100 == 1:  # Log periodically
                    logger.warning(
                        f"Event stream overflow: dropped {self._overflow_count} old event(s)"
                    )
            self._events.append(state)
            self._cond.notify_all()

    def fail(self, error: BaseException) -> None:
        """Finish the stream with a terminal error."""
        with self._cond:
            if self._finished:
                return
            self._error = error
            self._finished = True
            self._cond.notify_all()

    def finish(self) -> None:
        """Finish the stream normally. Queued events stay readable."""
        with self._cond:
            self._finished = True
            self._cond.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[PendantState]:
        """Take the next event.

        Args:
            timeout: Seconds to wait, None waits indefinitely

        Returns:
            Next PendantState, or None if the timeout expired or the stream
            is exhausted

        Raises:
            PendantDisconnectedError: Once, after the last queued event of a
                stream that ended because the device went away
        """
        with self._cond:
            self._cond.wait_for(lambda: self._events or self._finished, timeout=timeout)
            if self._events:
                return self._events.popleft()
            if self._finished and self._error is not None and not self._error_delivered:
                self._error_delivered = True
                raise self._error
            return None

    def __iter__(self) -> Iterator[PendantState]:
        while True:
            state = self.get()
            if state is None:
                return
            yield state

    @property
    def finished(self) -> bool:
        """True once the connection stopped publishing."""
        with self._cond:
            return self._finished

    @property
    def exhausted(self) -> bool:
        """True when finished and every event and error has been consumed."""
        with self._cond:
            return (
                self._finished
                and not self._events
                and (self._error is None or self._error_delivered)
            )

    @property
    def error(self) -> Optional[BaseException]:
        with self._cond:
            return self._error

    @property
    def size(self) -> int:
        """Current number of queued events."""
        with self._cond:
            return len(self._events)

    @property
    def max_events(self) -> int:
        """Capacity before the oldest events are dropped."""
        return self._max_events
