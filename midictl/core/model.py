"""Core data models used across resolver, channel, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

SETTING_NAMES = ("esb_channel", "cc_layer", "midi_channel", "button_mode")


class ClaimOutcome(Enum):
    CLAIMED = "claimed"
    ALREADY_OWNED = "already_owned"


class SessionState(Enum):
    OPEN = "open"
    REMOVED = "removed"
    CLOSED = "closed"


@dataclass(frozen=True)
class UsbId:
    vendor_id: int
    product_id: int

    def __str__(self) -> str:
        return f"{self.vendor_id:04x}:{self.product_id:04x}"


@dataclass(frozen=True)
class DetectedDevice:
    device_id: str
    vendor_id: int
    product_id: int
    bus: int | None = None
    address: int | None = None
    manufacturer: str | None = None
    product: str | None = None
    serial_number: str | None = None

    @property
    def usb_id(self) -> UsbId:
        return UsbId(self.vendor_id, self.product_id)

    @property
    def label(self) -> str:
        name = " ".join(part for part in (self.manufacturer, self.product) if part)
        return name or "<unknown-device>"


@dataclass(frozen=True)
class EndpointInfo:
    address: int
    max_packet_size: int = 64

    @property
    def direction(self) -> str:
        return "in" if self.address & 0x80 else "out"

    @property
    def number(self) -> int:
        return self.address & 0x0F


@dataclass(frozen=True)
class InterfaceInfo:
    number: int
    endpoints: tuple[EndpointInfo, ...]
    alternate_setting: int = 0
    interface_class: int | None = None

    def out_endpoints(self) -> tuple[EndpointInfo, ...]:
        return tuple(ep for ep in self.endpoints if ep.direction == "out")


@dataclass(frozen=True)
class ResolvedBinding:
    device_id: str
    interface_number: int
    endpoint_address: int


@dataclass(frozen=True)
class Settings:
    esb_channel: int
    cc_layer: int
    midi_channel: int
    button_mode: int


@dataclass(frozen=True)
class SettingRange:
    minimum: int
    maximum: int
    default: int

    def contains(self, value: int) -> bool:
        return self.minimum <= value <= self.maximum


@dataclass(frozen=True)
class DeviceProfile:
    id: str
    name: str
    usb_ids: tuple[UsbId, ...]
    settings: dict[str, SettingRange]
    configuration: int = 1
    preferred_interface: int | None = None
    timeout_ms: int = 1000

    def default_settings(self) -> Settings:
        return Settings(**{name: self.settings[name].default for name in SETTING_NAMES})


@dataclass(frozen=True)
class SaveResult:
    device_id: str
    binding: ResolvedBinding
    packets: tuple[str, ...]


@dataclass(frozen=True)
class ProbeReport:
    device: DetectedDevice
    configuration: int
    interfaces: tuple[InterfaceInfo, ...]
    binding: ResolvedBinding | None
