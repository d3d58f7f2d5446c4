from __future__ import annotations

import pytest

from midictl.core import channel
from midictl.core.errors import CommandEncodingError, StaleBindingError, TransferError
from midictl.core.model import Settings
from midictl.core.protocol import Opcode
from midictl.core.resolver import resolve
from midictl.core.session import Session

SETTINGS = Settings(esb_channel=3, cc_layer=1, midi_channel=9, button_mode=2)


@pytest.fixture
def session(host, device) -> Session:
    session = Session(host, host.open(device), device)
    resolve(session)
    return session


def test_save_settings_sends_five_packets_in_order(host, session) -> None:
    result = channel.save_settings(session, SETTINGS)

    assert host.writes == [b"\x01\x03", b"\x02\x01", b"\x03\x09", b"\x04\x02", b"\xaa\x00"]
    assert result.packets == ("0103", "0201", "0309", "0402", "aa00")
    assert result.binding.interface_number == 2
    assert all(e[1] == 0x02 for e in host.events if e[0] == "write")


@pytest.mark.parametrize("failing", [1, 2, 3, 4])
def test_failed_setting_transfer_withholds_commit(host, session, failing: int) -> None:
    host.fail_on_write = failing

    with pytest.raises(TransferError) as exc:
        channel.save_settings(session, SETTINGS)

    writes = [e for e in host.events if e[0] == "write"]
    assert len(writes) == failing
    assert len(host.writes) == failing - 1
    assert b"\xaa\x00" not in host.writes
    assert exc.value.opcode == failing
    assert len(exc.value.sent) == failing - 1


def test_failed_third_transfer_withholds_commit(host, session) -> None:
    host.fail_on_write = 3

    with pytest.raises(TransferError) as exc:
        channel.save_settings(session, SETTINGS)

    writes = [e for e in host.events if e[0] == "write"]
    assert writes[-1] == ("write", 0x02, "0309")
    assert len(writes) == 3
    assert host.writes == [b"\x01\x03", b"\x02\x01"]
    assert exc.value.opcode == Opcode.SET_MIDI_CHANNEL
    assert exc.value.sent == ("0103", "0201")
    assert "nothing was committed" in str(exc.value)


def test_invalid_operand_sends_nothing(host, session) -> None:
    with pytest.raises(CommandEncodingError):
        channel.save_settings(session, Settings(esb_channel=300, cc_layer=1, midi_channel=9, button_mode=2))
    assert host.writes == []


def test_binding_after_removal_fails_without_transfer(host, session, device) -> None:
    session.notify_removed(device.device_id)

    with pytest.raises(StaleBindingError):
        channel.save_settings(session, SETTINGS)
    with pytest.raises(StaleBindingError):
        channel.send_command(session, Opcode.SAVE_TO_FLASH, 0)

    assert not any(e[0] == "write" for e in host.events)


def test_closed_session_fails_fast(host, session) -> None:
    session.close()
    with pytest.raises(StaleBindingError):
        channel.commit(session)
    assert host.writes == []


def test_commit_sends_only_commit_packet(host, session) -> None:
    result = channel.commit(session)
    assert host.writes == [b"\xaa\x00"]
    assert result.packets == ("aa00",)
