"""Unit tests for PendantEventStream."""
import threading
import time
import unittest

from mpg_pendant.device.stream import PendantEventStream
from mpg_pendant.errors import PendantDisconnectedError
from mpg_pendant.models import PendantAxis, PendantState


def state(jog):
    return PendantState(axis=PendantAxis.X, jog_delta=jog)


class TestPendantEventStream(unittest.TestCase):
    """Tests for ordering, overflow and termination."""

    def test_fifo(self):
        """Test events come out in publish order."""
        stream = PendantEventStream()
        for jog in (1, 2, 3):
            stream.publish(state(jog))

        self.assertEqual([stream.get(timeout=0).jog_delta for _ in range(3)], [1, 2, 3])
        self.assertIsNone(stream.get(timeout=0))

    def test_get_timeout(self):
        """Test get returns None after the timeout."""
        stream = PendantEventStream()
        start = time.monotonic()
        self.assertIsNone(stream.get(timeout=0.05))
        self.assertGreaterEqual(time.monotonic() - start, 0.04)

    def test_overflow_drops_oldest(self):
        """Test the oldest event is dropped when full."""
        stream = PendantEventStream(max_events=2)
        for jog in (1, 2, 3):
            stream.publish(state(jog))

        self.assertEqual(stream.size, 2)
        self.assertEqual(stream.get(timeout=0).jog_delta, 2)

    def test_finish_keeps_queued_events(self):
        """Test queued events stay readable after finish."""
        stream = PendantEventStream()
        stream.publish(state(1))
        stream.finish()

        self.assertEqual(list(stream), [state(1)])
        self.assertTrue(stream.exhausted)

    def test_publish_after_finish_ignored(self):
        """Test publishing to a finished stream does nothing."""
        stream = PendantEventStream()
        stream.finish()
        stream.publish(state(1))
        self.assertEqual(stream.size, 0)

    def test_error_raised_once_after_events(self):
        """Test the terminal error is raised once, after queued events."""
        stream = PendantEventStream()
        stream.publish(state(4))
        stream.fail(PendantDisconnectedError("gone"))

        self.assertFalse(stream.exhausted)
        self.assertEqual(stream.get(timeout=0).jog_delta, 4)
        with self.assertRaises(PendantDisconnectedError):
            stream.get(timeout=0)
        self.assertIsNone(stream.get(timeout=0))
        self.assertTrue(stream.exhausted)

    def test_finish_after_fail_keeps_error(self):
        """Test only the first terminal error is kept."""
        stream = PendantEventStream()
        stream.fail(PendantDisconnectedError("gone"))
        stream.finish()
        stream.fail(PendantDisconnectedError("again"))

        self.assertEqual(str(stream.error), "gone")

    def test_blocking_get_wakes_on_publish(self):
        """Test a blocked get returns as soon as an event arrives."""
        stream = PendantEventStream()
        timer = threading.Timer(0.05, stream.publish, args=(state(9),))
        timer.start()
        try:
            self.assertEqual(stream.get(timeout=2.0).jog_delta, 9)
        finally:
            timer.cancel()

    def test_iteration_ends_on_finish(self):
        """Test iteration stops when the stream finishes."""
        stream = PendantEventStream()
        threading.Timer(0.05, stream.finish).start()
        self.assertEqual(list(stream), [])


if __name__ == '__main__':
    unittest.main()
