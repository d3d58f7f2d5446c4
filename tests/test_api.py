from __future__ import annotations

import pytest

from midictl.api import Client, SessionState, Settings, StaleBindingError


def test_public_client_list_profiles(host) -> None:
    client = Client(host=host)
    profiles = client.list_profiles()
    assert any(p.id == "esb_midi_controller" for p in profiles)


def test_public_client_list_devices(host, device) -> None:
    client = Client(host=host)
    assert client.list_devices() == [device]


def test_public_client_save_and_removal(host, device) -> None:
    client = Client(host=host)
    session = client.connect(device_hint="controller")

    result = client.save_settings(session, Settings(esb_channel=3, cc_layer=1, midi_channel=9, button_mode=2))
    assert result.packets[-1] == "aa00"

    assert client.device_removed(session, device.device_id) is True
    assert session.state is SessionState.REMOVED
    with pytest.raises(StaleBindingError):
        client.commit(session)
    client.disconnect(session)
