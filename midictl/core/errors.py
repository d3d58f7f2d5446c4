"""Domain-specific errors for midictl."""

from __future__ import annotations


class MidictlError(Exception):
    """Base error for midictl."""


class ProfileValidationError(MidictlError):
    """Raised when a profile file does not conform to schema or semantics."""


class ProfileLoadError(MidictlError):
    """Raised when loading profile sources fails."""


class UserCancelled(MidictlError):
    """Raised when the user dismisses device selection. Not a failure."""


class DeviceSelectionError(MidictlError):
    """Raised when device matching cannot resolve a single target."""


class DeviceConnectionError(MidictlError):
    """Raised when a device cannot be opened or configured."""


class NoUsableInterfaceError(MidictlError):
    """Raised when no interface is both claimable and has an OUT endpoint."""


class SettingsValidationError(MidictlError):
    """Raised when a setting value falls outside its allowed range."""


class CommandEncodingError(MidictlError):
    """Raised when an opcode or operand does not fit the 2-byte wire format."""


class StaleBindingError(MidictlError):
    """Raised when a binding is used after removal or disconnect."""


class TransferError(MidictlError):
    """Raised when an outbound command transfer fails."""

    def __init__(self, message: str, *, opcode: int | None = None, sent: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.opcode = opcode
        self.sent = sent
