"""Vendor control interface wire format.

Every command is two bytes: opcode, operand. Nothing is read back.
"""

from __future__ import annotations

from enum import IntEnum

from midictl.core.errors import CommandEncodingError
from midictl.core.model import Settings


class Opcode(IntEnum):
    SET_ESB_CHANNEL = 0x01
    SET_CC_LAYER = 0x02
    SET_MIDI_CHANNEL = 0x03
    SET_BUTTON_MODE = 0x04
    SAVE_TO_FLASH = 0xAA


COMMIT_OPERAND = 0x00
MIDI_CHANNEL_MAX = 15


def encode_command(opcode: int, operand: int) -> bytes:
    if not 0 <= int(opcode) <= 0xFF:
        raise CommandEncodingError(f"Opcode {opcode} does not fit in one byte")
    if not 0 <= operand <= 0xFF:
        raise CommandEncodingError(
            f"Operand {operand} for opcode 0x{int(opcode):02x} does not fit in one byte"
        )
    return bytes((int(opcode), operand))


def settings_commands(settings: Settings) -> list[tuple[Opcode, int]]:
    """Ordered command sequence for a save. The commit is always last."""
    if not 0 <= settings.midi_channel <= MIDI_CHANNEL_MAX:
        raise CommandEncodingError(
            f"MIDI channel must be 0-{MIDI_CHANNEL_MAX}, got {settings.midi_channel}"
        )
    commands = [
        (Opcode.SET_ESB_CHANNEL, settings.esb_channel),
        (Opcode.SET_CC_LAYER, settings.cc_layer),
        (Opcode.SET_MIDI_CHANNEL, settings.midi_channel),
        (Opcode.SET_BUTTON_MODE, settings.button_mode),
        (Opcode.SAVE_TO_FLASH, COMMIT_OPERAND),
    ]
    for opcode, operand in commands:
        encode_command(opcode, operand)
    return commands
