"""Command channel: frames and sends commands on a resolved binding."""

from __future__ import annotations

import logging

from midictl.core.errors import TransferError
from midictl.core.model import SaveResult, Settings
from midictl.core.protocol import COMMIT_OPERAND, Opcode, encode_command, settings_commands
from midictl.core.session import Session

LOGGER = logging.getLogger(__name__)


def send_command(session: Session, opcode: int, operand: int) -> bytes:
    binding = session.require_binding()
    packet = encode_command(opcode, operand)
    LOGGER.debug("-> ep 0x%02x %s", binding.endpoint_address, packet.hex())
    session.host.transfer_out(
        session.handle,
        binding.endpoint_address,
        packet,
        timeout_ms=session.timeout_ms,
    )
    return packet


def _send_sequence(session: Session, commands: list[tuple[Opcode, int]]) -> SaveResult:
    binding = session.require_binding()
    sent: list[str] = []
    for opcode, operand in commands:
        try:
            packet = send_command(session, opcode, operand)
        except TransferError as exc:
            raise TransferError(
                f"{opcode.name} failed after {len(sent)} command(s); nothing was committed: {exc}",
                opcode=int(opcode),
                sent=tuple(sent),
            ) from exc
        sent.append(packet.hex())
    return SaveResult(device_id=session.device_id, binding=binding, packets=tuple(sent))


def save_settings(session: Session, settings: Settings) -> SaveResult:
    return _send_sequence(session, settings_commands(settings))


def commit(session: Session) -> SaveResult:
    return _send_sequence(session, [(Opcode.SAVE_TO_FLASH, COMMIT_OPERAND)])
