"""
DeviceDirectory: canonical snapshot of printers and their share membership.

Responsibilities:
- Fetch device inventory and shared-device membership concurrently.
- Install a new DirectoryData snapshot only when both queries succeeded.
- Discard results of refreshes that were overtaken by a newer commit.
- Report start/outcome of every refresh to the LogBuffer.

No HA imports; this module only depends on asyncio and the API client.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Callable

from .errors import FetchFailed
from .log_buffer import LogBuffer
from .models import Device, LogLevel

_LOGGER = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class DirectoryData:
    """
    Immutable snapshot of the backend's view of the world.

    Replaced wholesale on every commit.
    """

    # Inventory in backend order
    devices: tuple[Device, ...] = ()

    # Ids of devices currently shared
    shared_ids: frozenset[str] = frozenset()

    def get(self, device_id: str) -> Device | None:
        for device in self.devices:
            if device.id == device_id:
                return device
        return None

    def is_shared(self, device_id: str) -> bool:
        return device_id in self.shared_ids


DirectoryListener = Callable[[DirectoryData], None]


class DeviceDirectory:
    """
    Owner of the current DirectoryData.

    `data` is None until the first successful refresh ("unavailable").
    Refresh commits are ordered by generation: each refresh takes a new
    generation number when it starts, and a result is installed only if no
    newer refresh has been committed in the meantime.

    Membership confirmed locally by set_shared() is remembered together with
    the newest generation started at that moment. A refresh that started
    before the confirmation may have read membership too early, so those ids
    keep their confirmed state when it commits.
    """

    def __init__(self, api, log: LogBuffer, translate: Callable[..., str]) -> None:
        self._api = api
        self._log = log
        self._t = translate
        self._data: DirectoryData | None = None
        self._last_error: str | None = None
        self._listeners: list[DirectoryListener] = []
        self._generation = 0
        self._committed_generation = 0
        # device id -> (shared, newest refresh generation at confirmation)
        self._confirmed: dict[str, tuple[bool, int]] = {}

    @property
    def data(self) -> DirectoryData | None:
        return self._data

    @property
    def available(self) -> bool:
        return self._data is not None

    @property
    def last_error(self) -> str | None:
        """Detail of the latest refresh failure, cleared by the next commit."""
        return self._last_error

    # ------------------------------------------------------------------
    # Refresh protocol
    # ------------------------------------------------------------------

    async def refresh(self) -> DirectoryData:
        """
        Fetch inventory and membership and install them as one snapshot.

        Raises FetchFailed if either query fails; the previous snapshot stays.
        Returns the snapshot that is current once this refresh settles, which
        is a newer one if this refresh was overtaken.
        """
        self._generation += 1
        generation = self._generation
        self._log.append(self._t("logs.fetching_printers"), LogLevel.INFO)

        try:
            devices, shared_ids = await asyncio.gather(
                self._api.fetch_device_inventory(),
                self._api.fetch_shared_device_ids(),
            )
        except Exception as exc:  # noqa: BLE001
            detail = str(exc) or exc.__class__.__name__
            if generation > self._committed_generation:
                self._last_error = detail
            _LOGGER.warning("Failed to refresh device directory: %s", detail)
            self._log.append(self._t("errors.fetch_failed", error=detail), LogLevel.ERROR)
            raise FetchFailed(detail) from exc

        if generation <= self._committed_generation:
            _LOGGER.debug(
                "Discarding stale refresh %s (generation %s already committed)",
                generation, self._committed_generation,
            )
            return self._data

        data = DirectoryData(
            devices=tuple(devices),
            shared_ids=self._merge_confirmed(frozenset(shared_ids), generation),
        )
        self._last_error = None
        self._committed_generation = generation
        self._commit(data)
        self._log.append(
            self._t("logs.found_printers", count=len(data.devices), shared=len(data.shared_ids)),
            LogLevel.SUCCESS,
        )
        return data

    # ------------------------------------------------------------------
    # Local mutation (toggle confirmation)
    # ------------------------------------------------------------------

    def set_shared(self, device_id: str, shared: bool) -> DirectoryData:
        """
        Add or remove device_id from the shared set after backend confirmation.

        Refreshes already in flight still commit their inventory, but keep
        this confirmed state for device_id.
        """
        self._confirmed[device_id] = (shared, self._generation)
        current = self._data or DirectoryData()
        if shared:
            shared_ids = current.shared_ids | {device_id}
        else:
            shared_ids = current.shared_ids - {device_id}
        data = dataclasses.replace(current, shared_ids=shared_ids)
        self._commit(data)
        return data

    def _merge_confirmed(self, shared_ids: frozenset[str], generation: int) -> frozenset[str]:
        """Apply confirmations the refresh of this generation could not have seen."""
        merged = set(shared_ids)
        for device_id, (shared, confirmed_at) in list(self._confirmed.items()):
            if confirmed_at < generation:
                # This refresh started after the confirmation and saw it.
                del self._confirmed[device_id]
            elif shared:
                merged.add(device_id)
            else:
                merged.discard(device_id)
        return frozenset(merged)

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, listener: DirectoryListener) -> Callable[[], None]:
        """Call listener with every committed snapshot; returns a remover."""
        if listener not in self._listeners:
            self._listeners.append(listener)

        def remove_listener() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove_listener

    def _commit(self, data: DirectoryData) -> None:
        self._data = data
        for listener in list(self._listeners):
            listener(data)
