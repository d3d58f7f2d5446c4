"""Per-connection session state."""

from __future__ import annotations

import logging
from typing import Any

from midictl.core.errors import StaleBindingError
from midictl.core.model import DetectedDevice, DeviceProfile, ResolvedBinding, SessionState
from midictl.transports.base import UsbHost

LOGGER = logging.getLogger(__name__)


class Session:
    """One controlling session over one opened device.

    The session owns the device handle and every interface claim made on it.
    A binding is only handed out while the session is open; after a removal
    notification or close it is gone for good and the resolver has to run
    again on a new session.
    """

    def __init__(
        self,
        host: UsbHost,
        handle: Any,
        device: DetectedDevice,
        *,
        profile: DeviceProfile | None = None,
    ) -> None:
        self.host = host
        self.handle = handle
        self.device = device
        self.profile = profile
        self.timeout_ms = profile.timeout_ms if profile else 1000
        self.state = SessionState.OPEN
        self.claimed: set[int] = set()
        self._binding: ResolvedBinding | None = None

    @property
    def device_id(self) -> str:
        return self.device.device_id

    @property
    def binding(self) -> ResolvedBinding | None:
        return self._binding if self.state is SessionState.OPEN else None

    def bind(self, binding: ResolvedBinding) -> None:
        if self.state is not SessionState.OPEN:
            raise StaleBindingError(f"Session for {self.device_id} is {self.state.value}")
        if binding.interface_number not in self.claimed:
            raise StaleBindingError(f"Interface {binding.interface_number} is not claimed by this session")
        self._binding = binding

    def require_binding(self) -> ResolvedBinding:
        if self.state is SessionState.REMOVED:
            raise StaleBindingError(f"Device {self.device_id} was removed; reconnect before saving")
        if self.state is SessionState.CLOSED:
            raise StaleBindingError(f"Session for {self.device_id} is closed; reconnect before saving")
        if self._binding is None:
            raise StaleBindingError(f"Session for {self.device_id} has no resolved interface")
        return self._binding

    def notify_removed(self, device_id: str) -> bool:
        """Handle a device-removal notification. Returns True if it applied."""
        if device_id != self.device_id or self.state is not SessionState.OPEN:
            return False
        LOGGER.info("Device %s removed; binding invalidated", device_id)
        self.state = SessionState.REMOVED
        self._binding = None
        self.claimed.clear()
        return True

    def close(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        if self.state is SessionState.OPEN:
            for number in sorted(self.claimed):
                self.host.release_interface(self.handle, number)
                LOGGER.debug("Released interface %d on %s", number, self.device_id)
        self.claimed.clear()
        self._binding = None
        self.host.close(self.handle)
        self.state = SessionState.CLOSED
