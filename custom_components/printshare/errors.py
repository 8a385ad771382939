"""
Error taxonomy for the PrintShare engine.

None of these are fatal: the engine always settles back into a stable state
(Idle or Shared, last known directory) before raising one to the caller.
"""
from __future__ import annotations


class PrintShareError(Exception):
    """Base class for every error raised by the engine."""


class TransportError(PrintShareError):
    """Opaque failure from a backend call, surfaced with its message text."""

    def __init__(self, message: str, command: str | None = None):
        self.message = message
        self.command = command
        super().__init__(message)


class FetchFailed(PrintShareError):
    """Inventory or membership query failed; the directory was left unchanged."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Directory refresh failed: {detail}")


class UnknownDevice(PrintShareError):
    """The device id is not part of the current directory."""

    def __init__(self, device_id: str):
        self.device_id = device_id
        super().__init__(f"Unknown device: {device_id}")


class OperationInProgress(PrintShareError):
    """A share/unshare request is already pending for this device."""

    def __init__(self, device_id: str, pending):
        self.device_id = device_id
        self.pending = pending
        super().__init__(f"Operation already in progress for {device_id}: {pending.value}")


class DeviceOffline(PrintShareError):
    """Sharing was requested for a device that is not online."""

    def __init__(self, device_id: str, raw_status: str):
        self.device_id = device_id
        self.raw_status = raw_status
        super().__init__(f"Device {device_id} is not online (status: {raw_status})")


class InvalidLocale(PrintShareError, ValueError):
    """Empty or blank locale code."""

    def __init__(self, code):
        self.code = code
        super().__init__(f"Invalid locale code: {code!r}")
