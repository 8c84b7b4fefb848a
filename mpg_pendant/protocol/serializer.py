"""Display payload serializer for pendant feature reports.

Converts DisplayUpdate objects to the logical display payload and splits
the payload into feature reports.
Pure functions with no side effects.
"""
from __future__ import annotations

import math
from typing import List

from ..models import CoordinateSpace, DisplayUpdate
from .constants import (
    COORDINATE_FRACTION_SCALE,
    DISPLAY_CHUNK_SIZE,
    DISPLAY_HEADER,
    DISPLAY_PAYLOAD_LENGTH,
    DISPLAY_REPORT_COUNT,
    DISPLAY_REPORT_ID,
    FLAG_MODE_MASK,
    FLAG_RESET,
    FLAG_WORKPIECE,
)

UINT16_MAX = 0xFFFF
SIGN_BIT = 0x80


class DisplaySerializer:
    """Serializer for the pendant display protocol.

    Payload layout (21 bytes):
        0-2:   header FE FD FE
        3:     flags (mode bits 0-1, reset bit 6, workpiece bit 7)
        4-7:   axis1 coordinate
        8-11:  axis2 coordinate
        12-15: axis3 coordinate
        16-17: feed rate, little-endian
        18-19: spindle speed, little-endian
        20:    padding
    """

    @staticmethod
    def encode_coordinate(value: float) -> bytes:
        """Encode a coordinate as 4 bytes.

        Bytes 0-1 hold the integer part and bytes 2-3 the fraction in
        ten-thousandths, both little-endian. The sign lives in bit 7 of byte 3.

        Examples:
            >>> DisplaySerializer.encode_coordinate(-1234.5678).hex()
            'd2042e96'
        """
        if not math.isfinite(value):
            raise ValueError(f"Cannot encode coordinate {value!r}")

        sign = SIGN_BIT if value < 0 else 0
        magnitude = abs(value)
        integer = int(magnitude)
        fraction = math.floor((magnitude - integer) * COORDINATE_FRACTION_SCALE + 0.5)

        # 0.99996 rounds up to a whole unit
        if fraction >= COORDINATE_FRACTION_SCALE:
            integer += 1
            fraction -= COORDINATE_FRACTION_SCALE

        integer = min(integer, UINT16_MAX)

        return bytes([
            integer & 0xFF,
            (integer >> 8) & 0xFF,
            fraction & 0xFF,
            ((fraction >> 8) & 0x7F) | sign,
        ])

    @staticmethod
    def encode_flags(update: DisplayUpdate) -> int:
        """Build the flags byte for a display update."""
        flags = update.mode.value & FLAG_MODE_MASK
        if update.reset_flag:
            flags |= FLAG_RESET
        if update.coordinate_space is CoordinateSpace.WORKPIECE:
            flags |= FLAG_WORKPIECE
        return flags

    @staticmethod
    def encode_display_payload(update: DisplayUpdate) -> bytes:
        """Encode a display update into the logical payload."""
        payload = bytearray(DISPLAY_PAYLOAD_LENGTH)
        payload[0:3] = DISPLAY_HEADER
        payload[3] = DisplaySerializer.encode_flags(update)
        payload[4:8] = DisplaySerializer.encode_coordinate(update.axis1)
        payload[8:12] = DisplaySerializer.encode_coordinate(update.axis2)
        payload[12:16] = DisplaySerializer.encode_coordinate(update.axis3)
        payload[16:18] = _uint16_le(update.feed_rate)
        payload[18:20] = _uint16_le(update.spindle_speed)
        return bytes(payload)

    @staticmethod
    def chunk_display_reports(payload: bytes) -> List[bytes]:
        """Split a payload into fixed-size feature reports.

        Each report is the report ID followed by 7 payload bytes; the last
        report is zero-padded.
        """
        reports = []
        for index in range(DISPLAY_REPORT_COUNT):
            offset = index * DISPLAY_CHUNK_SIZE
            chunk = payload[offset:offset + DISPLAY_CHUNK_SIZE]
            reports.append(
                bytes([DISPLAY_REPORT_ID]) + chunk.ljust(DISPLAY_CHUNK_SIZE, b"\x00")
            )
        return reports

    @staticmethod
    def encode_display_update(update: DisplayUpdate) -> List[bytes]:
        """Encode a display update into feature reports ready to send."""
        return DisplaySerializer.chunk_display_reports(
            DisplaySerializer.encode_display_payload(update)
        )


def _uint16_le(value: int) -> bytes:
    value = max(0, min(UINT16_MAX, int(value)))
    return bytes([value & 0xFF, (value >> 8) & 0xFF])
