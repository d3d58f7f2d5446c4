"""Stable public API for building tooling on top of midictl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from midictl.core.errors import (
    CommandEncodingError,
    DeviceConnectionError,
    DeviceSelectionError,
    MidictlError,
    NoUsableInterfaceError,
    ProfileLoadError,
    ProfileValidationError,
    SettingsValidationError,
    StaleBindingError,
    TransferError,
    UserCancelled,
)
from midictl.core.model import (
    DetectedDevice,
    DeviceProfile,
    ProbeReport,
    ResolvedBinding,
    SaveResult,
    SessionState,
    Settings,
    SettingRange,
    UsbId,
)
from midictl.core.protocol import Opcode
from midictl.core.selection import Chooser
from midictl.core.service import ConfigService
from midictl.core.session import Session
from midictl.transports.base import UsbHost

__all__ = [
    "MidictlError",
    "CommandEncodingError",
    "DeviceConnectionError",
    "DeviceSelectionError",
    "NoUsableInterfaceError",
    "ProfileLoadError",
    "ProfileValidationError",
    "SettingsValidationError",
    "StaleBindingError",
    "TransferError",
    "UserCancelled",
    "DetectedDevice",
    "DeviceProfile",
    "Opcode",
    "ProbeReport",
    "ResolvedBinding",
    "SaveResult",
    "Session",
    "SessionState",
    "Settings",
    "SettingRange",
    "UsbId",
    "Client",
]


class Client:
    """Public client for configuring a controller.

    A `Client` wraps profile loading, device selection, interface discovery
    and the command channel. Callers own the returned `Session` and pass it
    back into every operation; after `disconnect` or a removal notification
    the session is dead and `connect` must be called again.
    """

    def __init__(self, *, host: UsbHost | None = None) -> None:
        self._service = ConfigService(host=host)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    def list_profiles(self) -> list[DeviceProfile]:
        return self._service.list_profiles()

    def list_devices(self, *, profile_id: str | None = None) -> list[DetectedDevice]:
        return self._service.list_devices(profile_id=profile_id)

    def connect(
        self,
        *,
        profile_id: str | None = None,
        device_hint: str | None = None,
        chooser: Chooser | None = None,
    ) -> Session:
        return self._service.connect(profile_id=profile_id, device_hint=device_hint, chooser=chooser)

    def probe(
        self,
        *,
        profile_id: str | None = None,
        device_hint: str | None = None,
        chooser: Chooser | None = None,
    ) -> ProbeReport:
        return self._service.probe(profile_id=profile_id, device_hint=device_hint, chooser=chooser)

    def save_settings(self, session: Session, settings: Settings) -> SaveResult:
        return self._service.save_settings(session, settings)

    def commit(self, session: Session) -> SaveResult:
        return self._service.commit(session)

    def device_removed(self, session: Session, device_id: str) -> bool:
        """Deliver a device-removal notification from a hotplug source."""
        return session.notify_removed(device_id)

    def check_removed(self, session: Session) -> bool:
        return self._service.check_removed(session)

    def disconnect(self, session: Session) -> None:
        self._service.disconnect(session)
