from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ...errors import HidTransportError
from ...models import DisplayUpdate, HidDeviceInfo, PendantDeviceInfo
from ...protocol.constants import (
    PENDANT_INTERFACE_NUMBER,
    PENDANT_PRODUCT_ID,
    PENDANT_VENDOR_ID,
)
from ...protocol.serializer import DisplaySerializer
from ...transport import HidBackend, default_backend
from .errors import MultiplePendantsError, PendantNotFoundError

logger = logging.getLogger(__name__)


def is_matching_device(
    info: HidDeviceInfo,
    *,
    expected_vid: Optional[int] = PENDANT_VENDOR_ID,
    expected_pid: Optional[int] = PENDANT_PRODUCT_ID,
) -> bool:
    """
    Decide whether a HID node belongs to a pendant dongle.

    All checks are AND-combined; if a criterion is None, it is ignored.
    """
    if expected_vid is not None and info.vendor_id != expected_vid:
        return False

    if expected_pid is not None and info.product_id != expected_pid:
        return False

    return True


def resolve_pendants(
    candidates: Sequence[HidDeviceInfo],
    backend: HidBackend,
    *,
    interface_number: int = PENDANT_INTERFACE_NUMBER,
) -> List[PendantDeviceInfo]:
    """
    Turn HID nodes of one VID/PID into logical pendants.

    Behaviour:
        - no candidates              -> []
        - distinct interface numbers -> keep nodes on `interface_number`,
                                        each read and written directly
                                        (Linux/macOS)
        - a single candidate         -> read and written directly
        - several nodes on one interface number -> try writing a
          display feature report to tell the write collection from the
          read collection (Windows)

    Only this function looks at interface numbers or collection counts.
    """
    if not candidates:
        return []

    interfaces = {device.interface_number for device in candidates}
    if len(interfaces) > 1:
        return [
            PendantDeviceInfo.single(device)
            for device in candidates
            if device.interface_number == interface_number
        ]

    if len(candidates) == 1:
        return [PendantDeviceInfo.single(candidates[0])]

    return [_pair_by_feature_report(candidates, backend)]


def _pair_by_feature_report(
    candidates: Sequence[HidDeviceInfo],
    backend: HidBackend,
) -> PendantDeviceInfo:
    """Pair the first read-only collection with the first writable one."""
    test_report = DisplaySerializer.encode_display_update(DisplayUpdate())[0]
    write_device: Optional[HidDeviceInfo] = None
    read_candidates: List[HidDeviceInfo] = []

    for device in candidates:
        handle = None
        try:
            handle = backend.open(device.path)
            backend.send_feature_report(handle, test_report)
        except HidTransportError as e:
            logger.debug(f"Feature report rejected by {device.path}: {e}")
            read_candidates.append(device)
        else:
            logger.debug(f"Feature report accepted by {device.path}")
            if write_device is None:
                write_device = device
        finally:
            if handle is not None:
                try:
                    backend.close(handle)
                except Exception as e:
                    logger.error(f"Error closing handle {device.path}: {e}")

    if write_device is None or not read_candidates:
        logger.warning(
            "Could not tell read and write collections apart; "
            f"using {candidates[0].path} for both"
        )
        return PendantDeviceInfo.single(candidates[0])

    return PendantDeviceInfo(read_device=read_candidates[0], write_device=write_device)


def find_pendants(
    backend: Optional[HidBackend] = None,
    *,
    expected_vid: int = PENDANT_VENDOR_ID,
    expected_pid: int = PENDANT_PRODUCT_ID,
) -> List[PendantDeviceInfo]:
    """
    Find all pendants connected to this machine.

    Args:
        backend: Transport to enumerate and pair with. When None a
            hidapi backend is created and disposed again before returning.

    Returns:
        List of PendantDeviceInfo objects.
    """
    if backend is None:
        with default_backend() as owned:
            return find_pendants(owned, expected_vid=expected_vid, expected_pid=expected_pid)

    candidates = [
        device
        for device in backend.enumerate(expected_vid, expected_pid)
        if is_matching_device(device, expected_vid=expected_vid, expected_pid=expected_pid)
    ]
    pendants = resolve_pendants(candidates, backend)
    logger.debug(f"Found {len(candidates)} HID node(s), {len(pendants)} pendant(s)")
    return pendants


def find_single_pendant(
    backend: Optional[HidBackend] = None,
    *,
    expected_vid: int = PENDANT_VENDOR_ID,
    expected_pid: int = PENDANT_PRODUCT_ID,
) -> PendantDeviceInfo:
    """
    Find exactly one pendant.

    Behaviour:
        - 0 matches  -> PendantNotFoundError
        - 1 match    -> return it
        - >1 matches -> log error and raise MultiplePendantsError
    """
    matches = find_pendants(backend, expected_vid=expected_vid, expected_pid=expected_pid)

    if not matches:
        raise PendantNotFoundError("No matching pendant found")

    if len(matches) > 1:
        logger.error(
            "Multiple matching pendants found; refusing to choose automatically. "
            "Devices: %s",
            matches,
        )
        raise MultiplePendantsError(
            f"Multiple matching pendants found ({len(matches)} devices)",
            pendants=matches,
        )

    return matches[0]


def is_pendant_available(backend: Optional[HidBackend] = None) -> bool:
    """Check whether at least one pendant is plugged in."""
    try:
        return bool(find_pendants(backend))
    except HidTransportError as e:
        logger.debug(f"Pendant availability check failed: {e}")
        return False
