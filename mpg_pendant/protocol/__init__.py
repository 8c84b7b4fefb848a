"""Protocol layer for the pendant HID wire format."""

from .parser import decode_input_packet
from .serializer import DisplaySerializer
from .interpreter import InputInterpreter

__all__ = [
    "decode_input_packet",
    "DisplaySerializer",
    "InputInterpreter",
]
