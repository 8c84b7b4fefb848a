"""Input report parser for pendant HID packets.

Decodes the 8-byte input report into a PendantState.
Pure functions with no side effects.

Frame layout:
    0: header (0x04)
    1: rotating seed (ignored)
    2: button 1 code
    3: button 2 code
    4: feed/step selector code
    5: axis selector code
    6: jog delta, signed 8-bit
    7: checksum (not validated)
"""
from __future__ import annotations

import logging
from typing import Optional

from ..models import FeedSelector, PendantAxis, PendantButton, PendantState
from .constants import INPUT_PACKET_LENGTH, INPUT_REPORT_HEADER

logger = logging.getLogger(__name__)


def decode_input_packet(data: bytes) -> Optional[PendantState]:
    """Decode an input report.

    Args:
        data: Raw bytes read from the HID device

    Returns:
        PendantState, or None if the packet is malformed (short or wrong header)

    Examples:
        >>> state = decode_input_packet(bytes([0x04, 0, 0x04, 0, 0x0D, 0x11, 0xFF, 0]))
        >>> state.button1, state.axis, state.jog_delta
        (<PendantButton.FEED_PLUS: 4>, <PendantAxis.X: 17>, -1)
    """
    if len(data) < INPUT_PACKET_LENGTH:
        logger.debug(f"Dropping short packet ({len(data)} bytes)")
        return None
    if data[0] != INPUT_REPORT_HEADER:
        logger.debug(f"Dropping packet with header 0x{data[0]:02X}")
        return None

    axis = PendantAxis.from_code(data[5])
    jog_delta = _to_signed8(data[6])

    # Jog wheel is inert when the axis selector is off
    if axis is PendantAxis.OFF:
        jog_delta = 0

    return PendantState(
        button1=PendantButton.from_code(data[2]),
        button2=PendantButton.from_code(data[3]),
        axis=axis,
        feed=FeedSelector.from_code(data[4]),
        jog_delta=jog_delta,
    )


def _to_signed8(value: int) -> int:
    """Interpret a byte as two's-complement signed 8-bit."""
    value &= 0xFF
    return value - 0x100 if value > 0x7F else value
