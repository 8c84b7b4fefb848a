"""Input interpreter that turns raw decoded packets into pendant events.

Applies the Fn-modifier convention to the raw button pair and tracks the
motion mode selected with the continuous/step buttons. Holds mutable
per-connection state; the owning connection serializes access.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..models import DisplayUpdate, MotionMode, PendantButton, PendantState

logger = logging.getLogger(__name__)

_MODE_BUTTONS = {
    PendantButton.CONTINUOUS: MotionMode.CONTINUOUS,
    PendantButton.STEP: MotionMode.STEP,
}


class InputInterpreter:
    """Interprets decoded pendant packets for one connection.

    The interpreter keeps two pieces of state:
    - the tracked motion mode (initially continuous)
    - the most recent display update submitted by the caller (initially None)

    Args:
        fn_inverted: When True (default), dual-label buttons report their
            function name alone and their macro name with Fn held.
            When False the mapping is reversed.
    """

    def __init__(self, fn_inverted: bool = True):
        self.fn_inverted = fn_inverted
        self._motion_mode = MotionMode.CONTINUOUS
        self._last_update: Optional[DisplayUpdate] = None

    @property
    def motion_mode(self) -> MotionMode:
        return self._motion_mode

    @motion_mode.setter
    def motion_mode(self, mode: MotionMode) -> None:
        self._motion_mode = MotionMode(mode)

    @property
    def last_update(self) -> Optional[DisplayUpdate]:
        return self._last_update

    def interpret(self, raw: PendantState, fn_inverted: Optional[bool] = None) -> PendantState:
        """Reduce the raw button pair to a single reported button.

        Args:
            raw: State straight from the decoder
            fn_inverted: Override for this call, defaults to the instance setting

        Returns:
            State whose button2 is always NONE
        """
        if fn_inverted is None:
            fn_inverted = self.fn_inverted

        first, second = raw.button1, raw.button2

        if PendantButton.FN not in (first, second):
            pressed = first if first is not PendantButton.NONE else second
            return raw.with_buttons(_resolve_label(pressed, use_macro=not fn_inverted))

        partner = second if first is PendantButton.FN else first

        if partner is PendantButton.NONE:
            return raw.with_buttons(PendantButton.FN)

        # Fn flips whatever the button means without it; Fn itself is consumed
        return raw.with_buttons(_resolve_label(partner, use_macro=fn_inverted))

    def track_motion_mode(self, state: PendantState) -> Optional[DisplayUpdate]:
        """Update the tracked mode from an interpreted state.

        Returns:
            The last display update with the new mode applied when the mode
            changed and an update was previously submitted, else None
        """
        new_mode = _MODE_BUTTONS.get(state.button1)
        if new_mode is None or new_mode is self._motion_mode:
            return None

        logger.debug(f"Motion mode {self._motion_mode.name} -> {new_mode.name}")
        self._motion_mode = new_mode

        if self._last_update is None:
            return None
        return self._last_update.with_mode(new_mode)

    def remember(self, update: DisplayUpdate) -> DisplayUpdate:
        """Record a caller update and return it with the tracked mode applied."""
        self._last_update = update
        return update.with_mode(self._motion_mode)


def _resolve_label(button: PendantButton, use_macro: bool) -> PendantButton:
    if use_macro and button.is_dual_label:
        return button.macro_equivalent
    return button
