"""Device filtering and user-mediated selection."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from midictl.core.errors import DeviceSelectionError, UserCancelled
from midictl.core.model import DetectedDevice, DeviceProfile, UsbId
from midictl.transports.base import UsbHost

Chooser = Callable[[Sequence[DetectedDevice]], DetectedDevice | None]


def matches_filters(device: DetectedDevice, usb_ids: Sequence[UsbId]) -> bool:
    if not usb_ids:
        return True
    return device.usb_id in usb_ids


def _matches_hint(device: DetectedDevice, hint: str) -> bool:
    lowered = hint.lower()
    if lowered == str(device.usb_id):
        return True
    return (
        lowered in device.device_id.lower()
        or lowered in (device.product or "").lower()
        or lowered in (device.manufacturer or "").lower()
    )


def filter_devices(
    devices: Sequence[DetectedDevice],
    usb_ids: Sequence[UsbId],
    device_hint: str | None = None,
) -> list[DetectedDevice]:
    candidates = [d for d in devices if matches_filters(d, usb_ids)]
    if device_hint:
        candidates = [d for d in candidates if _matches_hint(d, device_hint)]
    return candidates


def request_device(
    host: UsbHost,
    usb_ids: Sequence[UsbId],
    *,
    device_hint: str | None = None,
    chooser: Chooser | None = None,
) -> DetectedDevice:
    candidates = filter_devices(host.list_devices(), usb_ids, device_hint)

    if not candidates:
        if device_hint:
            raise DeviceSelectionError(f"No device found matching '{device_hint}'")
        wanted = ", ".join(str(usb_id) for usb_id in usb_ids) or "any"
        raise DeviceSelectionError(f"No USB device found matching {wanted}. Ensure the controller is plugged in.")

    if len(candidates) == 1:
        return candidates[0]

    if chooser is None:
        candidate_desc = ", ".join(f"{d.device_id} ({d.label})" for d in candidates)
        raise DeviceSelectionError(
            f"Multiple candidate devices found: {candidate_desc}. Use --device to choose one."
        )

    picked = chooser(candidates)
    if picked is None:
        raise UserCancelled("Device selection cancelled")
    return picked


def match_score(device: DetectedDevice, profile: DeviceProfile) -> int:
    if not profile.usb_ids:
        return 1
    if device.usb_id in profile.usb_ids:
        return 2
    return 0


def best_profile_for_device(device: DetectedDevice, profiles: dict[str, DeviceProfile]) -> DeviceProfile | None:
    best: DeviceProfile | None = None
    best_score = 0
    for profile in sorted(profiles.values(), key=lambda p: p.id):
        score = match_score(device, profile)
        if score > best_score:
            best = profile
            best_score = score
    return best


def selection_filters(profiles: Sequence[DeviceProfile]) -> tuple[UsbId, ...]:
    """Union of profile filters; any unfiltered profile makes the result unfiltered."""
    usb_ids: list[UsbId] = []
    for profile in profiles:
        if not profile.usb_ids:
            return ()
        usb_ids.extend(u for u in profile.usb_ids if u not in usb_ids)
    return tuple(usb_ids)
