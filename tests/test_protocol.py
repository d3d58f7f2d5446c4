from __future__ import annotations

import pytest

from midictl.core.errors import CommandEncodingError
from midictl.core.model import Settings
from midictl.core.protocol import Opcode, encode_command, settings_commands


def test_encode_command_is_opcode_then_operand() -> None:
    assert encode_command(Opcode.SET_MIDI_CHANNEL, 9) == b"\x03\x09"
    assert encode_command(Opcode.SAVE_TO_FLASH, 0) == b"\xaa\x00"


@pytest.mark.parametrize("operand", [-1, 256])
def test_operand_must_fit_one_byte(operand: int) -> None:
    with pytest.raises(CommandEncodingError):
        encode_command(Opcode.SET_ESB_CHANNEL, operand)


def test_settings_commands_end_with_commit() -> None:
    commands = settings_commands(Settings(esb_channel=3, cc_layer=1, midi_channel=9, button_mode=2))
    assert [(int(op), operand) for op, operand in commands] == [
        (0x01, 3),
        (0x02, 1),
        (0x03, 9),
        (0x04, 2),
        (0xAA, 0),
    ]


def test_midi_channel_above_15_is_rejected() -> None:
    with pytest.raises(CommandEncodingError):
        settings_commands(Settings(esb_channel=3, cc_layer=1, midi_channel=16, button_mode=2))
