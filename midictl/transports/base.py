"""Host USB subsystem interface."""

from __future__ import annotations

from typing import Any, Protocol

from midictl.core.model import ClaimOutcome, DetectedDevice, InterfaceInfo


class UsbHost(Protocol):
    def list_devices(self) -> list[DetectedDevice]:
        """Enumerate attached USB devices."""

    def open(self, device: DetectedDevice) -> Any:
        """Open a device and return an opaque handle."""

    def active_configuration(self, handle: Any) -> int | None:
        """Return the active configuration value, or None if unconfigured."""

    def select_configuration(self, handle: Any, value: int) -> None:
        """Activate a configuration by value."""

    def interfaces(self, handle: Any) -> list[InterfaceInfo]:
        """Return interface descriptors of the active configuration."""

    def claim_interface(self, handle: Any, number: int) -> ClaimOutcome:
        """Try to claim an interface. Already-owned is a result, not an error."""

    def release_interface(self, handle: Any, number: int) -> None:
        """Release a previously claimed interface."""

    def transfer_out(self, handle: Any, endpoint: int, data: bytes, *, timeout_ms: int) -> None:
        """Blocking outbound transfer. Raises TransferError on failure."""

    def is_present(self, device_id: str) -> bool:
        """Return whether a device with this id is still attached."""

    def close(self, handle: Any) -> None:
        """Dispose of the handle."""
