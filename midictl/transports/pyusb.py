"""USB host implementation using pyusb."""

from __future__ import annotations

import errno
import logging
from typing import Any

import usb.core
import usb.util

from midictl.core.errors import DeviceConnectionError, TransferError
from midictl.core.model import ClaimOutcome, DetectedDevice, EndpointInfo, InterfaceInfo

LOGGER = logging.getLogger(__name__)


def _read_string(dev: Any, attr: str) -> str | None:
    # String descriptors need device access; permission problems only cost us metadata.
    try:
        value = getattr(dev, attr)
    except (ValueError, NotImplementedError, usb.core.USBError) as exc:
        LOGGER.debug("Could not read %s for %s:%s: %s", attr, dev.bus, dev.address, exc)
        return None
    return value or None


def _to_detected(dev: Any) -> DetectedDevice:
    serial = _read_string(dev, "serial_number")
    return DetectedDevice(
        device_id=serial or f"{dev.bus}:{dev.address}",
        vendor_id=dev.idVendor,
        product_id=dev.idProduct,
        bus=dev.bus,
        address=dev.address,
        manufacturer=_read_string(dev, "manufacturer"),
        product=_read_string(dev, "product"),
        serial_number=serial,
    )


class PyUSBHost:
    """Host USB subsystem backed by libusb through pyusb.

    Kernel drivers are never detached. An interface bound to a class driver
    (MIDI on most hosts) fails to claim, and that failure is what tells the
    resolver to move on.
    """

    def __init__(self, backend: Any = None) -> None:
        self._backend = backend

    def _find_all(self) -> list[Any]:
        try:
            return list(usb.core.find(find_all=True, backend=self._backend))
        except usb.core.NoBackendError as exc:
            raise DeviceConnectionError(
                "No libusb backend available. Install libusb-1.0 and retry."
            ) from exc

    def list_devices(self) -> list[DetectedDevice]:
        return [_to_detected(dev) for dev in self._find_all()]

    def open(self, device: DetectedDevice) -> Any:
        for dev in self._find_all():
            if dev.bus == device.bus and dev.address == device.address:
                LOGGER.debug("Opened %s (%s) at %s:%s", device.device_id, device.usb_id, dev.bus, dev.address)
                return dev
        raise DeviceConnectionError(f"Device {device.device_id} ({device.usb_id}) is no longer attached")

    def active_configuration(self, handle: Any) -> int | None:
        try:
            cfg = handle.get_active_configuration()
        except usb.core.USBError as exc:
            # pyusb reports an unconfigured device without an errno.
            if exc.errno is not None:
                raise DeviceConnectionError(f"Could not read active configuration: {exc}") from exc
            LOGGER.debug("No active configuration: %s", exc)
            return None
        return cfg.bConfigurationValue

    def select_configuration(self, handle: Any, value: int) -> None:
        try:
            handle.set_configuration(value)
        except usb.core.USBError as exc:
            raise DeviceConnectionError(f"Could not select configuration {value}: {exc}") from exc

    def interfaces(self, handle: Any) -> list[InterfaceInfo]:
        try:
            cfg = handle.get_active_configuration()
        except usb.core.USBError as exc:
            raise DeviceConnectionError(f"Could not read configuration descriptor: {exc}") from exc

        result: list[InterfaceInfo] = []
        for intf in cfg:
            if intf.bAlternateSetting != 0:
                continue
            endpoints = tuple(
                EndpointInfo(address=ep.bEndpointAddress, max_packet_size=ep.wMaxPacketSize)
                for ep in intf
            )
            result.append(
                InterfaceInfo(
                    number=intf.bInterfaceNumber,
                    endpoints=endpoints,
                    alternate_setting=intf.bAlternateSetting,
                    interface_class=intf.bInterfaceClass,
                )
            )
        return result

    def claim_interface(self, handle: Any, number: int) -> ClaimOutcome:
        try:
            usb.util.claim_interface(handle, number)
        except usb.core.USBError as exc:
            if exc.errno == errno.ENODEV:
                raise DeviceConnectionError(f"Device disappeared while claiming interface {number}: {exc}") from exc
            LOGGER.debug("Interface %d not claimable: %s", number, exc)
            return ClaimOutcome.ALREADY_OWNED
        return ClaimOutcome.CLAIMED

    def release_interface(self, handle: Any, number: int) -> None:
        try:
            usb.util.release_interface(handle, number)
        except usb.core.USBError as exc:
            LOGGER.warning("Release of interface %d failed: %s", number, exc)

    def transfer_out(self, handle: Any, endpoint: int, data: bytes, *, timeout_ms: int) -> None:
        try:
            written = handle.write(endpoint, data, timeout=timeout_ms)
        except usb.core.USBError as exc:
            raise TransferError(f"USB write to endpoint 0x{endpoint:02x} failed: {exc}") from exc
        if written != len(data):
            raise TransferError(
                f"USB write to endpoint 0x{endpoint:02x} was short: {written} of {len(data)} bytes"
            )

    def is_present(self, device_id: str) -> bool:
        return any(device.device_id == device_id for device in self.list_devices())

    def close(self, handle: Any) -> None:
        try:
            usb.util.dispose_resources(handle)
        except usb.core.USBError as exc:
            LOGGER.warning("Disposing device resources failed: %s", exc)
