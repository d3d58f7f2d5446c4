from __future__ import annotations

import pytest

from midictl.core.errors import StaleBindingError
from midictl.core.model import ResolvedBinding, SessionState
from midictl.core.resolver import resolve
from midictl.core.session import Session


def test_removal_for_other_device_is_ignored(host, device) -> None:
    session = Session(host, host.open(device), device)
    resolve(session)

    assert session.notify_removed("someone-else") is False
    assert session.state is SessionState.OPEN
    assert session.require_binding().interface_number == 2


def test_removal_invalidates_binding(host, device) -> None:
    session = Session(host, host.open(device), device)
    resolve(session)

    assert session.notify_removed(device.device_id) is True
    assert session.state is SessionState.REMOVED
    assert session.binding is None
    with pytest.raises(StaleBindingError, match="removed"):
        session.require_binding()


def test_unbound_session_has_no_binding(host, device) -> None:
    session = Session(host, host.open(device), device)
    with pytest.raises(StaleBindingError, match="no resolved interface"):
        session.require_binding()


def test_bind_requires_claimed_interface(host, device) -> None:
    session = Session(host, host.open(device), device)
    with pytest.raises(StaleBindingError):
        session.bind(ResolvedBinding(device_id=device.device_id, interface_number=2, endpoint_address=0x02))


def test_close_releases_claims_once(host, device) -> None:
    session = Session(host, host.open(device), device)
    resolve(session)

    session.close()
    session.close()

    assert host.claimed == set()
    assert host.events.count(("release", 2)) == 1
    assert host.closed == 1
    assert session.state is SessionState.CLOSED


def test_close_after_removal_does_not_release(host, device) -> None:
    session = Session(host, host.open(device), device)
    resolve(session)
    session.notify_removed(device.device_id)

    session.close()

    assert ("release", 2) not in host.events
    assert host.closed == 1
