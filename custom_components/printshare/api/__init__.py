"""
PrintShareApi: the backend collaborator consumed by the engine.

Every call raises TransportError on failure, whatever went wrong underneath
(timeout, HTTP error, error envelope, malformed reply).
"""
from __future__ import annotations

import asyncio
import logging

import aiohttp

from custom_components.printshare.errors import TransportError
from custom_components.printshare.models import Device
from custom_components.printshare.requests import ApiResponseError

from . import printers, system

_LOGGER = logging.getLogger(__name__)

_TRANSPORT_FAILURES = (
    ApiResponseError,
    aiohttp.ClientError,
    asyncio.TimeoutError,
    TimeoutError,
    ValueError,
)


class PrintShareApi:
    """Async client for the sharing backend at base_url."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")

    async def _call(self, command: str, coro):
        try:
            return await coro
        except _TRANSPORT_FAILURES as exc:
            message = str(exc) or exc.__class__.__name__
            _LOGGER.debug("Backend command %s failed: %s", command, message)
            raise TransportError(message, command=command) from exc

    async def fetch_device_inventory(self) -> list[Device]:
        return await self._call("get_printers", printers.fetch_printers(self.base_url))

    async def fetch_shared_device_ids(self) -> set[str]:
        return await self._call(
            "get_shared_printers", printers.fetch_shared_printer_ids(self.base_url)
        )

    async def request_share(self, device_id: str) -> str:
        return await self._call(
            "share_printer", printers.share_printer(self.base_url, device_id)
        )

    async def request_unshare(self, device_id: str) -> None:
        await self._call(
            "unshare_printer", printers.unshare_printer(self.base_url, device_id)
        )

    async def notify_locale_change(self, code: str) -> None:
        await self._call("set_language", system.set_language(self.base_url, code))
