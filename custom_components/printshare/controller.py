"""
ShareToggleController: optimistic share/unshare state machine.

Per device:
    Idle   → PendingShare   → Shared  (success) | Idle   (failure)
    Shared → PendingUnshare → Idle    (success) | Shared (failure)

The controller is the only writer of the PendingOverlay and the only caller
of DeviceDirectory.set_shared(). After every transition it calls
`on_change` so the owner can re-project the view model.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .directory import DeviceDirectory
from .errors import DeviceOffline, OperationInProgress, TransportError, UnknownDevice
from .log_buffer import LogBuffer
from .models import LogLevel, PendingOp
from .pending_overlay import PendingOverlay

_LOGGER = logging.getLogger(__name__)


class ShareToggleController:
    """Drives toggles against DeviceDirectory + PendingOverlay."""

    def __init__(
        self,
        api,
        directory: DeviceDirectory,
        overlay: PendingOverlay,
        log: LogBuffer,
        translate: Callable[..., str],
        on_change: Callable[[], None],
    ) -> None:
        self._api = api
        self._directory = directory
        self._overlay = overlay
        self._log = log
        self._t = translate
        self._on_change = on_change
        self._tasks: set[asyncio.Future] = set()

    async def toggle(self, device_id: str) -> bool:
        """
        Share device_id if it is idle, stop sharing it if it is shared.

        Returns the new shared state. Raises UnknownDevice,
        OperationInProgress or DeviceOffline without touching any store, or
        TransportError after the optimistic state has been rolled back.
        Cancelling the caller does not cancel the backend request; its
        outcome is still applied.
        """
        data = self._directory.data
        device = data.get(device_id) if data is not None else None
        if device is None:
            _LOGGER.error("Toggle requested for unknown device %s", device_id)
            self._log.append(self._t("errors.printer_not_found", id=device_id), LogLevel.ERROR)
            raise UnknownDevice(device_id)

        if self._overlay.is_pending(device_id):
            pending = self._overlay.get(device_id)
            _LOGGER.warning("Toggle for %s rejected, %s in progress", device_id, pending.value)
            self._log.append(
                self._t("errors.operation_in_progress", id=device_id), LogLevel.WARNING
            )
            raise OperationInProgress(device_id, pending)

        shared = data.is_shared(device_id)
        if not shared and not device.is_online:
            _LOGGER.warning("Cannot share offline device %s (%s)", device_id, device.raw_status)
            self._log.append(self._t("errors.printer_offline", id=device_id), LogLevel.WARNING)
            raise DeviceOffline(device_id, device.raw_status)

        op = PendingOp.UNSHARING if shared else PendingOp.SHARING
        self._overlay.begin(device_id, op)
        self._on_change()

        # A cancelled caller stops waiting, the request itself runs on and
        # settles the overlay.
        task = asyncio.ensure_future(self._run(device_id, op, shared))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return await asyncio.shield(task)

    async def _run(self, device_id: str, op: PendingOp, shared: bool) -> bool:
        try:
            if op is PendingOp.SHARING:
                self._log.append(self._t("logs.sharing_printer", id=device_id), LogLevel.INFO)
                confirmation = await self._api.request_share(device_id)
            else:
                self._log.append(self._t("logs.stopping_printer", id=device_id), LogLevel.INFO)
                await self._api.request_unshare(device_id)
        except asyncio.CancelledError:
            # The request itself was cancelled, not just its caller.
            _LOGGER.warning("%s of device %s was cancelled", op.value, device_id)
            self._overlay.finish(device_id)
            self._on_change()
            raise
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or exc.__class__.__name__
            self._overlay.finish(device_id)
            failed_key = "errors.share_failed" if op is PendingOp.SHARING else "errors.unshare_failed"
            _LOGGER.error("Failed to %s device %s: %s", op.value, device_id, message)
            self._log.append(self._t(failed_key, error=message), LogLevel.ERROR)
            self._on_change()
            if isinstance(exc, TransportError):
                raise
            raise TransportError(message) from exc

        self._directory.set_shared(device_id, not shared)
        self._overlay.finish(device_id)
        if op is PendingOp.SHARING:
            self._log.append(
                confirmation or self._t("logs.shared_printer", id=device_id), LogLevel.SUCCESS
            )
        else:
            self._log.append(self._t("logs.stopped_sharing", id=device_id), LogLevel.SUCCESS)
        self._on_change()
        return not shared

    def _task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        # Outcome is already in the log.
        if not task.cancelled():
            task.exception()
