"""
ViewProjector: pure derivation of the renderable view model.

project() reads the directory snapshot, the pending overlay and the locale
and returns fresh DeviceView rows. It has no side effects, so it is called on
every refresh, every toggle transition and every locale change.
"""
from __future__ import annotations

from typing import Mapping

from .const import VARIANT_PENDING, VARIANT_PRIMARY, VARIANT_SUCCESS
from .directory import DirectoryData
from .models import Device, DeviceView, PendingOp
from .translations import Translator

_PENDING_LABELS = {
    PendingOp.SHARING: "button.sharing",
    PendingOp.UNSHARING: "button.stopping",
}


def project_device(
    device: Device,
    shared: bool,
    pending: PendingOp,
    locale: str,
    translator: Translator,
) -> DeviceView:
    """Build the view row for a single device."""
    online = device.is_online
    if pending is PendingOp.NONE:
        label_key = "button.stop_sharing" if shared else "button.share"
        enabled = online or shared
        variant = VARIANT_SUCCESS if shared else VARIANT_PRIMARY
    else:
        label_key = _PENDING_LABELS[pending]
        enabled = False
        variant = VARIANT_PENDING

    return DeviceView(
        id=device.id,
        name=device.name,
        display_status=translator.translate(
            "status.online" if online else "status.offline", locale=locale
        ),
        share_button_label=translator.translate(label_key, locale=locale),
        share_button_enabled=enabled,
        share_button_variant=variant,
        is_online=online,
        is_shared=shared,
        pending=pending,
    )


def project(
    directory: DirectoryData | None,
    overlay: Mapping[str, PendingOp],
    locale: str,
    translator: Translator,
) -> list[DeviceView]:
    """Merge directory ⊕ overlay ⊕ locale into view rows, in inventory order."""
    if directory is None:
        return []
    return [
        project_device(
            device,
            directory.is_shared(device.id),
            overlay.get(device.id, PendingOp.NONE),
            locale,
            translator,
        )
        for device in directory.devices
    ]
