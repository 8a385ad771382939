"""
PendingOverlay: per-device record of in-flight share/unshare requests.

This is a pure data module with no HA or network dependencies. Directory
refreshes never touch it; only the toggle controller writes to it.
"""
from __future__ import annotations

import logging
import types
from typing import Mapping

from .errors import OperationInProgress
from .models import PendingOp

_LOGGER = logging.getLogger(__name__)


class PendingOverlay:
    """At most one PendingOp per device id."""

    def __init__(self) -> None:
        # device_id → operation currently in flight
        self._pending: dict[str, PendingOp] = {}

    def __contains__(self, device_id: str) -> bool:
        return device_id in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def get(self, device_id: str) -> PendingOp:
        return self._pending.get(device_id, PendingOp.NONE)

    def is_pending(self, device_id: str) -> bool:
        return device_id in self._pending

    def begin(self, device_id: str, op: PendingOp) -> None:
        """Record op for device_id; reject if something is already in flight."""
        if op is PendingOp.NONE:
            raise ValueError("Cannot begin PendingOp.NONE")
        current = self._pending.get(device_id)
        if current is not None:
            raise OperationInProgress(device_id, current)
        self._pending[device_id] = op
        _LOGGER.debug("Device %s is now %s", device_id, op.value)

    def finish(self, device_id: str) -> PendingOp:
        """Remove the entry for device_id and return what was pending."""
        op = self._pending.pop(device_id, PendingOp.NONE)
        _LOGGER.debug("Device %s settled after %s", device_id, op.value)
        return op

    def snapshot(self) -> Mapping[str, PendingOp]:
        """Read-only view of a copy of the current entries."""
        return types.MappingProxyType(dict(self._pending))
