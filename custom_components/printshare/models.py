"""
Domain models for the PrintShare integration.

Pure data classes with no dependencies on HTTP, API logic, or Home Assistant
internals.
"""
from __future__ import annotations

import dataclasses
import enum


def normalize_status(raw_status: str | None) -> str:
    """Lower-case, whitespace-stripped form of a backend status string."""
    return (raw_status or "").strip().lower()


class LogLevel(str, enum.Enum):
    """Severity of a LogEntry."""

    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"


class PendingOp(enum.Enum):
    """In-flight operation recorded for a device in the PendingOverlay."""

    NONE = "none"
    SHARING = "sharing"
    UNSHARING = "unsharing"


@dataclasses.dataclass(frozen=True)
class Device:
    """A shareable printer as reported by the backend inventory."""

    id: str
    name: str
    raw_status: str

    @property
    def is_online(self) -> bool:
        return normalize_status(self.raw_status) == "online"


@dataclasses.dataclass(frozen=True)
class LogEntry:
    """Single line of the activity log."""

    timestamp: str
    message: str
    level: LogLevel = LogLevel.INFO


@dataclasses.dataclass(frozen=True)
class DeviceView:
    """
    One renderable row of the view model.

    Always produced by projector.project(); never mutated directly.
    """

    id: str
    name: str
    display_status: str
    share_button_label: str
    share_button_enabled: bool
    share_button_variant: str
    is_online: bool
    is_shared: bool
    pending: PendingOp = PendingOp.NONE
