"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import logging

from midictl.core import channel
from midictl.core.errors import (
    DeviceSelectionError,
    MidictlError,
    NoUsableInterfaceError,
    SettingsValidationError,
    TransferError,
)
from midictl.core.model import (
    SETTING_NAMES,
    DetectedDevice,
    DeviceProfile,
    ProbeReport,
    SaveResult,
    Settings,
)
from midictl.core.profile_loader import load_profiles
from midictl.core.resolver import ensure_configuration, resolve
from midictl.core.selection import (
    Chooser,
    best_profile_for_device,
    filter_devices,
    request_device,
    selection_filters,
)
from midictl.core.session import Session
from midictl.transports.base import UsbHost
from midictl.transports.pyusb import PyUSBHost

LOGGER = logging.getLogger(__name__)


def validate_settings(profile: DeviceProfile, settings: Settings) -> None:
    problems: list[str] = []
    for name in SETTING_NAMES:
        value = getattr(settings, name)
        allowed = profile.settings[name]
        if not allowed.contains(value):
            problems.append(f"{name}={value} (allowed {allowed.minimum}-{allowed.maximum})")
    if problems:
        raise SettingsValidationError(f"Invalid settings for '{profile.id}': {', '.join(problems)}")


class ConfigService:
    def __init__(self, *, host: UsbHost | None = None) -> None:
        loaded = load_profiles()
        self.profiles = loaded.profiles
        self.load_warnings = loaded.warnings
        self.host = host or PyUSBHost()

    def list_profiles(self) -> list[DeviceProfile]:
        return sorted(self.profiles.values(), key=lambda p: p.id)

    def get_profile(self, profile_id: str) -> DeviceProfile:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise DeviceSelectionError(
                f"Unknown profile '{profile_id}'. Use 'midictl profiles' to inspect available profiles."
            )
        return profile

    def _profile_choices(self, profile_id: str | None) -> list[DeviceProfile]:
        if profile_id:
            return [self.get_profile(profile_id)]
        if not self.profiles:
            raise DeviceSelectionError("No device profiles loaded")
        return self.list_profiles()

    def list_devices(self, profile_id: str | None = None) -> list[DetectedDevice]:
        usb_ids = selection_filters(self._profile_choices(profile_id))
        return filter_devices(self.host.list_devices(), usb_ids)

    def profile_for_device(self, device: DetectedDevice) -> DeviceProfile | None:
        return best_profile_for_device(device, self.profiles)

    def _open(
        self,
        profile_id: str | None,
        device_hint: str | None,
        chooser: Chooser | None,
    ) -> Session:
        choices = self._profile_choices(profile_id)
        device = request_device(
            self.host,
            selection_filters(choices),
            device_hint=device_hint,
            chooser=chooser,
        )
        profile = best_profile_for_device(device, {p.id: p for p in choices})
        if profile is None:
            raise DeviceSelectionError(f"No profile matches device {device.device_id} ({device.usb_id})")

        LOGGER.info("Connecting to %s (%s) with profile '%s'", device.device_id, device.label, profile.id)
        handle = self.host.open(device)
        return Session(self.host, handle, device, profile=profile)

    def connect(
        self,
        profile_id: str | None = None,
        device_hint: str | None = None,
        chooser: Chooser | None = None,
    ) -> Session:
        session = self._open(profile_id, device_hint, chooser)
        profile = session.profile
        try:
            resolve(
                session,
                configuration=profile.configuration,
                preferred_interface=profile.preferred_interface,
            )
        except MidictlError:
            session.close()
            raise
        return session

    def probe(
        self,
        profile_id: str | None = None,
        device_hint: str | None = None,
        chooser: Chooser | None = None,
    ) -> ProbeReport:
        session = self._open(profile_id, device_hint, chooser)
        profile = session.profile
        try:
            configuration = ensure_configuration(session, profile.configuration)
            interfaces = tuple(sorted(self.host.interfaces(session.handle), key=lambda i: i.number))
            try:
                binding = resolve(
                    session,
                    configuration=profile.configuration,
                    preferred_interface=profile.preferred_interface,
                )
            except NoUsableInterfaceError as exc:
                LOGGER.info("%s", exc)
                binding = None
        finally:
            session.close()
        return ProbeReport(
            device=session.device,
            configuration=configuration,
            interfaces=interfaces,
            binding=binding,
        )

    def save_settings(self, session: Session, settings: Settings) -> SaveResult:
        if session.profile is not None:
            validate_settings(session.profile, settings)
        try:
            return channel.save_settings(session, settings)
        except TransferError:
            self._note_removal(session)
            raise

    def commit(self, session: Session) -> SaveResult:
        try:
            return channel.commit(session)
        except TransferError:
            self._note_removal(session)
            raise

    def _note_removal(self, session: Session) -> None:
        try:
            self.check_removed(session)
        except MidictlError as exc:
            LOGGER.warning("Could not check whether %s is still attached: %s", session.device_id, exc)

    def check_removed(self, session: Session) -> bool:
        if self.host.is_present(session.device_id):
            return False
        return session.notify_removed(session.device_id)

    def disconnect(self, session: Session) -> None:
        session.close()
