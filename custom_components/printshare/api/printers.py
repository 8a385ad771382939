"""
Printer inventory and sharing calls against the backend.

Responsible for:
- Fetching the raw printer list and the shared printer list
- Mapping the JSON printer records onto Device instances
- Requesting share / unshare of a single printer
"""
import logging

from custom_components.printshare.const import (
    CMD_GET_PRINTERS,
    CMD_GET_SHARED_PRINTERS,
    CMD_SHARE_PRINTER,
    CMD_UNSHARE_PRINTER,
)
from custom_components.printshare.models import Device
from custom_components.printshare.requests import call_command

_LOGGER = logging.getLogger(__name__)


def _parse_status(status) -> str:
    """
    Flatten the backend's status field into a plain string.

    Unit variants arrive as strings ("Online"), the error variant as a
    single-key object ({"Error": "paper jam"}).
    """
    if isinstance(status, dict):
        if not status:
            return "unknown"
        return str(next(iter(status))).lower()
    if status is None:
        return "unknown"
    return str(status).lower()


def _parse_printer(printer: dict) -> Device | None:
    """Map a single raw printer record onto a Device instance."""
    if not isinstance(printer, dict) or not printer.get("id"):
        _LOGGER.warning("Printer record without id, skipping: %s", printer)
        return None
    return Device(
        id=str(printer["id"]),
        name=str(printer.get("name") or printer["id"]),
        raw_status=_parse_status(printer.get("status")),
    )


def _parse_printers(result) -> list[Device]:
    if not isinstance(result, list):
        raise ValueError(f"Expected a printer list, got {type(result).__name__}")
    parsed = [_parse_printer(printer) for printer in result]
    return [d for d in parsed if d is not None]


async def fetch_printers(base_url: str) -> list[Device]:
    """Fetch every printer the backend can see, in backend order."""
    result = await call_command(base_url, CMD_GET_PRINTERS)
    devices = _parse_printers(result)
    _LOGGER.debug("Received %s printer(s)", len(devices))
    return devices


async def fetch_shared_printer_ids(base_url: str) -> set[str]:
    """Fetch the ids of printers currently shared over AirPrint."""
    result = await call_command(base_url, CMD_GET_SHARED_PRINTERS)
    return {device.id for device in _parse_printers(result)}


async def share_printer(base_url: str, printer_id: str) -> str:
    """Start sharing a printer; returns the backend's confirmation message."""
    result = await call_command(base_url, CMD_SHARE_PRINTER, {"printerId": printer_id})
    return "" if result is None else str(result)


async def unshare_printer(base_url: str, printer_id: str) -> None:
    """Stop sharing a printer."""
    await call_command(base_url, CMD_UNSHARE_PRINTER, {"printerId": printer_id})
