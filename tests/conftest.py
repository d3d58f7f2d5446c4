from __future__ import annotations

import pytest

from midictl.core.errors import TransferError
from midictl.core.model import ClaimOutcome, DetectedDevice, EndpointInfo, InterfaceInfo

DEVICE = DetectedDevice(
    device_id="MC-0001",
    vendor_id=0x1209,
    product_id=0xC0DE,
    bus=1,
    address=7,
    manufacturer="Acme",
    product="ESB MIDI Controller",
    serial_number="MC-0001",
)

# MIDI streaming interface held by the class driver, then the vendor interface.
MIDI_INTERFACES = [
    InterfaceInfo(number=0, endpoints=(), interface_class=0x01),
    InterfaceInfo(number=1, endpoints=(EndpointInfo(0x01), EndpointInfo(0x81)), interface_class=0x01),
    InterfaceInfo(number=2, endpoints=(EndpointInfo(0x82), EndpointInfo(0x02)), interface_class=0xFF),
]


class FakeHost:
    def __init__(
        self,
        interfaces: list[InterfaceInfo] | None = None,
        *,
        owned: tuple[int, ...] = (0, 1),
        devices: list[DetectedDevice] | None = None,
        configuration: int | None = 1,
    ) -> None:
        self._interfaces = list(MIDI_INTERFACES if interfaces is None else interfaces)
        self.owned = set(owned)
        self.devices = [DEVICE] if devices is None else devices
        self.configuration = configuration
        self.claimed: set[int] = set()
        self.events: list[tuple] = []
        self.writes: list[bytes] = []
        self.fail_on_write: int | None = None
        self.remove_on_failure = False
        self.closed = 0

    def unplug(self) -> None:
        self.devices = []
        self.claimed.clear()

    def list_devices(self) -> list[DetectedDevice]:
        return list(self.devices)

    def open(self, device: DetectedDevice) -> object:
        self.events.append(("open", device.device_id))
        return {"device": device.device_id}

    def active_configuration(self, handle: object) -> int | None:
        return self.configuration

    def select_configuration(self, handle: object, value: int) -> None:
        self.events.append(("select", value))
        self.configuration = value

    def interfaces(self, handle: object) -> list[InterfaceInfo]:
        return list(self._interfaces)

    def claim_interface(self, handle: object, number: int) -> ClaimOutcome:
        self.events.append(("claim", number))
        if number in self.owned or number in self.claimed:
            return ClaimOutcome.ALREADY_OWNED
        self.claimed.add(number)
        return ClaimOutcome.CLAIMED

    def release_interface(self, handle: object, number: int) -> None:
        self.events.append(("release", number))
        self.claimed.discard(number)

    def transfer_out(self, handle: object, endpoint: int, data: bytes, *, timeout_ms: int) -> None:
        self.events.append(("write", endpoint, data.hex()))
        if self.fail_on_write is not None and len(self.writes) + 1 == self.fail_on_write:
            if self.remove_on_failure:
                self.unplug()
            raise TransferError("LIBUSB_ERROR_PIPE")
        self.writes.append(bytes(data))

    def is_present(self, device_id: str) -> bool:
        return any(d.device_id == device_id for d in self.devices)

    def close(self, handle: object) -> None:
        self.closed += 1


@pytest.fixture
def make_host():
    return FakeHost


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def device() -> DetectedDevice:
    return DEVICE


@pytest.fixture(autouse=True)
def isolated_profiles(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
