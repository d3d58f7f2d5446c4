"""Vendor control interface discovery.

The control interface number and its OUT endpoint move between firmware
builds, and nothing in the descriptors marks which interface is ours. The
only reliable signal is whether a claim succeeds (the class driver already
holds the MIDI interface) and whether the claimed interface has an OUT
endpoint, so discovery is a linear claim-and-inspect probe.
"""

from __future__ import annotations

import logging

from midictl.core.errors import NoUsableInterfaceError
from midictl.core.model import ClaimOutcome, InterfaceInfo, ResolvedBinding
from midictl.core.session import Session

LOGGER = logging.getLogger(__name__)


def ensure_configuration(session: Session, configuration: int = 1) -> int:
    active = session.host.active_configuration(session.handle)
    if active is None:
        LOGGER.debug("Selecting configuration %d on %s", configuration, session.device_id)
        session.host.select_configuration(session.handle, configuration)
        return configuration
    return active


def probe_order(interfaces: list[InterfaceInfo], preferred: int | None = None) -> list[InterfaceInfo]:
    ordered = sorted(interfaces, key=lambda intf: intf.number)
    if preferred is None:
        return ordered
    first = [intf for intf in ordered if intf.number == preferred]
    return first + [intf for intf in ordered if intf.number != preferred]


def resolve(
    session: Session,
    *,
    configuration: int = 1,
    preferred_interface: int | None = None,
) -> ResolvedBinding:
    ensure_configuration(session, configuration)
    interfaces = session.host.interfaces(session.handle)

    for intf in probe_order(interfaces, preferred_interface):
        outcome = session.host.claim_interface(session.handle, intf.number)
        if outcome is ClaimOutcome.ALREADY_OWNED:
            LOGGER.debug("Interface %d is owned by another driver; skipping", intf.number)
            continue
        session.claimed.add(intf.number)

        out_endpoints = intf.out_endpoints()
        if not out_endpoints:
            LOGGER.debug("Interface %d has no OUT endpoint; releasing", intf.number)
            session.host.release_interface(session.handle, intf.number)
            session.claimed.discard(intf.number)
            continue

        binding = ResolvedBinding(
            device_id=session.device_id,
            interface_number=intf.number,
            endpoint_address=out_endpoints[0].address,
        )
        session.bind(binding)
        LOGGER.info(
            "Resolved control interface %d, OUT endpoint 0x%02x",
            binding.interface_number,
            binding.endpoint_address,
        )
        return binding

    numbers = ", ".join(str(intf.number) for intf in interfaces) or "none"
    raise NoUsableInterfaceError(
        f"No claimable interface with an OUT endpoint on {session.device_id} (probed: {numbers})"
    )
