from .core import (
    find_pendants,
    find_single_pendant,
    is_matching_device,
    is_pendant_available,
    resolve_pendants,
)
from .errors import MultiplePendantsError, PendantNotFoundError

__all__ = [
    "find_pendants",
    "find_single_pendant",
    "is_matching_device",
    "is_pendant_available",
    "resolve_pendants",
    "MultiplePendantsError",
    "PendantNotFoundError",
]
