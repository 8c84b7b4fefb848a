"""Unit tests for immutable data models.

Tests verify:
- Immutability (frozen dataclasses)
- Code lookups and unknown-code fallbacks
- Button label pairs
- Feed selector increments per motion mode
"""
import unittest
from dataclasses import FrozenInstanceError

from mpg_pendant.models import (
    CoordinateSpace,
    DisplayUpdate,
    FeedSelector,
    HidDeviceInfo,
    JogIncrement,
    MotionMode,
    PendantAxis,
    PendantButton,
    PendantDeviceInfo,
    PendantState,
)


class TestPendantButton(unittest.TestCase):
    """Tests for PendantButton code mapping."""

    def test_from_code_known(self):
        """Test known wire codes map to their buttons."""
        self.assertIs(PendantButton.from_code(0x0C), PendantButton.FN)
        self.assertIs(PendantButton.from_code(0x10), PendantButton.MACRO_10)
        self.assertIs(PendantButton.from_code(0x85), PendantButton.MACRO_5)

    def test_from_code_unknown_is_none(self):
        """Test unknown codes map to NONE."""
        self.assertIs(PendantButton.from_code(0x42), PendantButton.NONE)
        self.assertIs(PendantButton.from_code(0xFF), PendantButton.NONE)

    def test_dual_label_pairs(self):
        """Test dual-label buttons map to a macro and back."""
        self.assertIs(PendantButton.FEED_PLUS.macro_equivalent, PendantButton.MACRO_1)
        self.assertIs(PendantButton.PROBE_Z.macro_equivalent, PendantButton.MACRO_9)
        self.assertIs(PendantButton.MACRO_8.function_equivalent, PendantButton.SPINDLE_ON_OFF)
        self.assertTrue(PendantButton.W_HOME.is_dual_label)

    def test_single_label_buttons(self):
        """Test single-label buttons have no macro meaning."""
        for button in (PendantButton.RESET, PendantButton.STOP, PendantButton.FN,
                       PendantButton.CONTINUOUS, PendantButton.STEP, PendantButton.MACRO_10):
            self.assertFalse(button.is_dual_label)
            self.assertIsNone(button.macro_equivalent)


class TestPendantAxis(unittest.TestCase):

    def test_from_code(self):
        """Test axis codes map to their axes."""
        self.assertIs(PendantAxis.from_code(0x11), PendantAxis.X)
        self.assertIs(PendantAxis.from_code(0x16), PendantAxis.C)

    def test_unknown_is_off(self):
        """Test unknown axis codes map to OFF."""
        self.assertIs(PendantAxis.from_code(0x00), PendantAxis.OFF)


class TestFeedSelector(unittest.TestCase):
    """Tests for FeedSelector positions."""

    def test_from_code(self):
        """Test selector codes map to their positions."""
        self.assertIs(FeedSelector.from_code(0x0D), FeedSelector.STEP_0_001)
        self.assertIs(FeedSelector.from_code(0x1B), FeedSelector.STEP_10)
        self.assertIs(FeedSelector.from_code(0x1C), FeedSelector.LEAD)

    def test_alternate_lead_code(self):
        """Test the alternate lead code maps to LEAD."""
        self.assertIs(FeedSelector.from_code(0x9B), FeedSelector.LEAD)

    def test_unknown_code_falls_back(self):
        """Test unknown selector codes map to the finest step."""
        self.assertIs(FeedSelector.from_code(0x55), FeedSelector.STEP_0_001)

    def test_increment_step_mode(self):
        """Test step mode resolves to a step size only."""
        increment = FeedSelector.STEP_0_1.increment(MotionMode.STEP)
        self.assertEqual(increment, JogIncrement(step_size=0.1))
        self.assertIsNone(increment.percent)

    def test_increment_continuous_mode(self):
        """Test continuous mode resolves to a percentage only."""
        increment = FeedSelector.STEP_1.increment(MotionMode.CONTINUOUS)
        self.assertEqual(increment, JogIncrement(percent=30))
        self.assertIsNone(increment.step_size)

    def test_lead_has_neither(self):
        """Test LEAD has no increment in any mode."""
        for mode in MotionMode:
            self.assertEqual(FeedSelector.LEAD.increment(mode), JogIncrement())


class TestPendantState(unittest.TestCase):
    """Tests for PendantState immutable model."""

    def test_defaults(self):
        """Test default state has no buttons and the axis off."""
        state = PendantState()
        self.assertIs(state.button1, PendantButton.NONE)
        self.assertIs(state.button2, PendantButton.NONE)
        self.assertIs(state.axis, PendantAxis.OFF)
        self.assertEqual(state.jog_delta, 0)

    def test_immutability(self):
        """Test state is frozen."""
        state = PendantState(axis=PendantAxis.X, jog_delta=3)
        with self.assertRaises(FrozenInstanceError):
            state.jog_delta = 5

    def test_jog_zeroed_when_axis_off(self):
        """Test the jog delta is forced to 0 with the axis off."""
        state = PendantState(axis=PendantAxis.OFF, jog_delta=7)
        self.assertEqual(state.jog_delta, 0)

    def test_with_buttons(self):
        """Test with_buttons copies the state with new buttons."""
        state = PendantState(button1=PendantButton.FN, button2=PendantButton.STOP,
                             axis=PendantAxis.Y, jog_delta=-2)
        updated = state.with_buttons(PendantButton.STOP)
        self.assertIs(updated.button1, PendantButton.STOP)
        self.assertIs(updated.button2, PendantButton.NONE)
        self.assertEqual(updated.jog_delta, -2)
        self.assertIs(state.button1, PendantButton.FN)


class TestDisplayUpdate(unittest.TestCase):

    def test_defaults(self):
        """Test default display update values."""
        update = DisplayUpdate()
        self.assertEqual(update.axis1, 0.0)
        self.assertIs(update.mode, MotionMode.CONTINUOUS)
        self.assertFalse(update.reset_flag)
        self.assertIs(update.coordinate_space, CoordinateSpace.MACHINE)

    def test_with_helpers_return_copies(self):
        """Test with_mode and with_reset leave the original untouched."""
        update = DisplayUpdate(axis1=1.5)
        stepped = update.with_mode(MotionMode.STEP).with_reset(True)
        self.assertIs(stepped.mode, MotionMode.STEP)
        self.assertTrue(stepped.reset_flag)
        self.assertEqual(stepped.axis1, 1.5)
        self.assertIs(update.mode, MotionMode.CONTINUOUS)


class TestPendantDeviceInfo(unittest.TestCase):

    def test_single_is_not_split(self):
        """Test a single node is used for reads and writes."""
        device = HidDeviceInfo(vendor_id=0x10CE, product_id=0xEB93, path="/dev/hidraw3")
        pendant = PendantDeviceInfo.single(device)
        self.assertFalse(pendant.is_split)
        self.assertEqual(pendant.path, "/dev/hidraw3")

    def test_split(self):
        """Test distinct read and write nodes are reported as split."""
        read = HidDeviceInfo(0x10CE, 0xEB93, r"\\?\hid#vid_10ce&pid_eb93&col01")
        write = HidDeviceInfo(0x10CE, 0xEB93, r"\\?\hid#vid_10ce&pid_eb93&col02")
        pendant = PendantDeviceInfo(read_device=read, write_device=write)
        self.assertTrue(pendant.is_split)
        self.assertEqual(pendant.path, read.path)


if __name__ == '__main__':
    unittest.main()
