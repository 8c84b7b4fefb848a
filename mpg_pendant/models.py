"""Immutable data models for pendant input state and display output.

All models are frozen dataclasses or enums so they can be handed between the
worker thread and caller threads without copying. These models are the
contract between the protocol, device and application layers.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class PendantButton(Enum):
    """Button codes reported by the pendant."""
    NONE = 0x00
    RESET = 0x01
    STOP = 0x02
    START_PAUSE = 0x03
    FEED_PLUS = 0x04
    FEED_MINUS = 0x05
    SPINDLE_PLUS = 0x06
    SPINDLE_MINUS = 0x07
    M_HOME = 0x08
    SAFE_Z = 0x09
    W_HOME = 0x0A
    SPINDLE_ON_OFF = 0x0B
    FN = 0x0C
    PROBE_Z = 0x0D
    CONTINUOUS = 0x0E
    STEP = 0x0F
    MACRO_10 = 0x10
    MACRO_1 = 0x81
    MACRO_2 = 0x82
    MACRO_3 = 0x83
    MACRO_4 = 0x84
    MACRO_5 = 0x85
    MACRO_6 = 0x86
    MACRO_7 = 0x87
    MACRO_8 = 0x88
    MACRO_9 = 0x89

    @property
    def code(self) -> int:
        return self.value

    @classmethod
    def from_code(cls, code: int) -> PendantButton:
        """Map a wire code to a button, NONE for unknown codes."""
        try:
            return cls(code)
        except ValueError:
            return cls.NONE

    @property
    def is_dual_label(self) -> bool:
        """Whether this button has both a function and a macro label."""
        return self in _FN_PAIRS

    @property
    def macro_equivalent(self) -> Optional[PendantButton]:
        """Macro label of a dual-label button, or None."""
        return _FN_PAIRS.get(self)

    @property
    def function_equivalent(self) -> Optional[PendantButton]:
        """Function label of a macro button, or None."""
        return _MACRO_PAIRS.get(self)


# Function button -> macro printed on the same key
_FN_PAIRS = {
    PendantButton.FEED_PLUS: PendantButton.MACRO_1,
    PendantButton.FEED_MINUS: PendantButton.MACRO_2,
    PendantButton.SPINDLE_PLUS: PendantButton.MACRO_3,
    PendantButton.SPINDLE_MINUS: PendantButton.MACRO_4,
    PendantButton.M_HOME: PendantButton.MACRO_5,
    PendantButton.SAFE_Z: PendantButton.MACRO_6,
    PendantButton.W_HOME: PendantButton.MACRO_7,
    PendantButton.SPINDLE_ON_OFF: PendantButton.MACRO_8,
    PendantButton.PROBE_Z: PendantButton.MACRO_9,
}
_MACRO_PAIRS = {macro: function for function, macro in _FN_PAIRS.items()}


class PendantAxis(Enum):
    """Axis selector positions. B and C only exist on 6-axis pendants."""
    OFF = 0x06
    X = 0x11
    Y = 0x12
    Z = 0x13
    A = 0x14
    B = 0x15
    C = 0x16

    @property
    def code(self) -> int:
        return self.value

    @classmethod
    def from_code(cls, code: int) -> PendantAxis:
        """Map a wire code to an axis, OFF for unknown codes."""
        try:
            return cls(code)
        except ValueError:
            return cls.OFF


class MotionMode(Enum):
    """Motion mode shown by the display, encoded in flag bits 0-1."""
    CONTINUOUS = 0
    STEP = 1
    MPG = 2
    PERCENT = 3


class CoordinateSpace(Enum):
    """Coordinate space shown by the display, encoded in flag bit 7."""
    MACHINE = 0
    WORKPIECE = 1


@dataclass(frozen=True)
class JogIncrement:
    """What one jog wheel detent means for a selector position.

    Attributes:
        step_size: Distance per detent in step-like modes, else None
        percent: Percentage of max velocity in continuous-like modes, else None
    """
    step_size: Optional[float] = None
    percent: Optional[int] = None


class FeedSelector(Enum):
    """Feed/step rotary selector positions.

    Every position except LEAD has a step size (step and MPG modes) and a
    continuous-mode percentage. LEAD (spindle-synchronised jogging) has
    neither.
    """
    STEP_0_001 = (0x0D, 0.001, 2)
    STEP_0_01 = (0x0E, 0.01, 5)
    STEP_0_1 = (0x0F, 0.1, 10)
    STEP_1 = (0x10, 1.0, 30)
    STEP_5 = (0x1A, 5.0, 60)
    STEP_10 = (0x1B, 10.0, 100)
    LEAD = (0x1C, None, None)

    def __init__(self, code: int, step_size: Optional[float],
                 continuous_percent: Optional[int]):
        self.code = code
        self.step_size = step_size
        self.continuous_percent = continuous_percent

    @classmethod
    def from_code(cls, code: int) -> FeedSelector:
        """Map a wire code to a selector position, STEP_0_001 for unknown codes."""
        # Some firmware revisions report the lead position as 0x9B
        if code == LEAD_ALTERNATE_CODE:
            return cls.LEAD
        for selector in cls:
            if selector.code == code:
                return selector
        return cls.STEP_0_001

    def increment(self, mode: MotionMode) -> JogIncrement:
        """Resolve this position for a motion mode.

        Exactly one of the returned fields is populated, except for LEAD
        where both are None.
        """
        if self is FeedSelector.LEAD:
            return JogIncrement()
        if mode in (MotionMode.CONTINUOUS, MotionMode.PERCENT):
            return JogIncrement(percent=self.continuous_percent)
        return JogIncrement(step_size=self.step_size)


LEAD_ALTERNATE_CODE = 0x9B


@dataclass(frozen=True)
class PendantState:
    """Decoded state from a single pendant input packet.

    Attributes:
        button1: Primary pressed button, NONE if no button is held
        button2: Secondary pressed button, NONE unless two are held
        axis: Axis selector position
        feed: Feed/step selector position
        jog_delta: Signed jog wheel delta (-128..127), always 0 when axis is OFF
    """
    button1: PendantButton = PendantButton.NONE
    button2: PendantButton = PendantButton.NONE
    axis: PendantAxis = PendantAxis.OFF
    feed: FeedSelector = FeedSelector.STEP_0_001
    jog_delta: int = 0

    def __post_init__(self):
        if self.axis is PendantAxis.OFF and self.jog_delta != 0:
            object.__setattr__(self, "jog_delta", 0)

    def with_buttons(self, button1: PendantButton,
                     button2: PendantButton = PendantButton.NONE) -> PendantState:
        """Copy of this state with the button pair replaced."""
        return replace(self, button1=button1, button2=button2)


@dataclass(frozen=True)
class DisplayUpdate:
    """Data to show on the pendant display.

    Attributes:
        axis1: X (or A) coordinate
        axis2: Y (or B) coordinate
        axis3: Z (or C) coordinate
        feed_rate: Feed rate, unsigned 16-bit
        spindle_speed: Spindle speed, unsigned 16-bit
        mode: Motion mode (overridden by the connection's tracked mode)
        reset_flag: Display reset request bit
        coordinate_space: Machine or workpiece coordinates
    """
    axis1: float = 0.0
    axis2: float = 0.0
    axis3: float = 0.0
    feed_rate: int = 0
    spindle_speed: int = 0
    mode: MotionMode = MotionMode.CONTINUOUS
    reset_flag: bool = False
    coordinate_space: CoordinateSpace = CoordinateSpace.MACHINE

    def with_mode(self, mode: MotionMode) -> DisplayUpdate:
        return replace(self, mode=mode)

    def with_reset(self, reset_flag: bool) -> DisplayUpdate:
        return replace(self, reset_flag=reset_flag)


@dataclass(frozen=True)
class HidDeviceInfo:
    """One HID device node as reported by the transport's enumerate call.

    Attributes:
        vendor_id: USB Vendor ID
        product_id: USB Product ID
        path: Platform path used to open the node (e.g. '/dev/hidraw0')
        manufacturer: USB manufacturer string, if available
        product: USB product string, if available
        serial_number: USB serial string, if available
        usage_page: HID usage page of the top-level collection
        usage: HID usage of the top-level collection
        interface_number: USB interface number, -1 if the platform doesn't say
    """
    vendor_id: int
    product_id: int
    path: str
    manufacturer: str = ""
    product: str = ""
    serial_number: str = ""
    usage_page: int = 0
    usage: int = 0
    interface_number: int = -1


@dataclass(frozen=True)
class PendantDeviceInfo:
    """A discovered pendant with its read and write device nodes.

    On Linux/macOS one HID interface carries both input reports and feature
    reports, so both fields hold the same node. On Windows each top-level
    collection is its own node and the two may differ.

    Attributes:
        read_device: Node delivering input reports (buttons, jog, selectors)
        write_device: Node accepting display feature reports
    """
    read_device: HidDeviceInfo
    write_device: HidDeviceInfo

    @classmethod
    def single(cls, device: HidDeviceInfo) -> PendantDeviceInfo:
        return cls(read_device=device, write_device=device)

    @property
    def is_split(self) -> bool:
        """True when reads and writes go through different nodes."""
        return self.read_device.path != self.write_device.path

    @property
    def path(self) -> str:
        return self.read_device.path
