"""Typer CLI entrypoint."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence

import typer

from midictl.core.errors import MidictlError, UserCancelled
from midictl.core.model import DetectedDevice, SaveResult
from midictl.core.service import ConfigService

app = typer.Typer(help="Configure composite USB MIDI controllers over their vendor control interface")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log USB probing and transfers"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_service() -> ConfigService:
    service = ConfigService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


def _prompt_for_device(candidates: Sequence[DetectedDevice]) -> DetectedDevice | None:
    typer.echo("Multiple devices found:")
    for index, device in enumerate(candidates, start=1):
        typer.echo(f"  [{index}] {device.usb_id} {device.label} ({device.device_id})")
    answer = typer.prompt("Select device (empty to cancel)", default="", show_default=False)
    if not answer.strip():
        return None
    try:
        index = int(answer)
    except ValueError:
        return None
    if not 1 <= index <= len(candidates):
        return None
    return candidates[index - 1]


def _echo_result(verb: str, result: SaveResult) -> None:
    typer.echo(
        f"{verb} {result.device_id} via interface {result.binding.interface_number}, "
        f"endpoint 0x{result.binding.endpoint_address:02x}: {' '.join(result.packets)}"
    )


@app.command("profiles")
def list_profiles() -> None:
    """List available device profiles and their setting ranges."""
    try:
        service = _build_service()
        profiles = service.list_profiles()
        if not profiles:
            typer.echo("No profiles loaded")
            raise typer.Exit(code=1)

        for profile in profiles:
            ids = ", ".join(str(u) for u in profile.usb_ids) or "any device"
            typer.echo(f"{profile.id}: {profile.name} [{ids}]")
            for name, allowed in profile.settings.items():
                typer.echo(f"  {name}: {allowed.minimum}-{allowed.maximum} (default {allowed.default})")
    except MidictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("devices")
def list_devices(
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
) -> None:
    """List attached USB devices and matched profile."""
    try:
        service = _build_service()
        devices = service.list_devices(profile_id=profile)
        if not devices:
            typer.echo("No matching USB devices found")
            return

        for device in devices:
            matched = service.profile_for_device(device)
            matched_id = matched.id if matched else "<no-match>"
            typer.echo(f"{device.usb_id} {device.device_id} {device.label} -> {matched_id}")
    except MidictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("interfaces")
def probe_interfaces(
    device: str | None = typer.Option(None, "--device", help="Serial, product name or vid:pid"),
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
) -> None:
    """Show the interfaces of a device and which one accepts commands."""
    try:
        service = _build_service()
        report = service.probe(profile_id=profile, device_hint=device, chooser=_prompt_for_device)
        typer.echo(f"Device: {report.device.device_id} ({report.device.label}) configuration {report.configuration}")
        for intf in report.interfaces:
            class_desc = f"0x{intf.interface_class:02x}" if intf.interface_class is not None else "?"
            typer.echo(f"  Interface {intf.number} class={class_desc}")
            for ep in intf.endpoints:
                typer.echo(
                    f"    Endpoint 0x{ep.address:02x} {ep.direction.upper()} "
                    f"number={ep.number} max_packet={ep.max_packet_size}"
                )
        if report.binding is None:
            typer.echo("Control interface: none usable")
            raise typer.Exit(code=1)
        typer.echo(
            f"Control interface: {report.binding.interface_number}, "
            f"OUT endpoint 0x{report.binding.endpoint_address:02x}"
        )
    except UserCancelled:
        typer.echo("No device selected")
    except MidictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("save")
def save_settings(
    esb_channel: int | None = typer.Option(None, "--esb-channel", help="Wireless (ESB) channel"),
    cc_layer: int | None = typer.Option(None, "--cc-layer", help="CC layer"),
    midi_channel: int | None = typer.Option(None, "--midi-channel", help="MIDI channel, 0-15"),
    button_mode: int | None = typer.Option(None, "--button-mode", help="Button mode"),
    device: str | None = typer.Option(None, "--device", help="Serial, product name or vid:pid"),
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
) -> None:
    """Send all settings to the device and commit them to flash.

    Settings that are not given use the profile default.
    """
    try:
        service = _build_service()
        session = service.connect(profile_id=profile, device_hint=device, chooser=_prompt_for_device)
        try:
            given = {
                "esb_channel": esb_channel,
                "cc_layer": cc_layer,
                "midi_channel": midi_channel,
                "button_mode": button_mode,
            }
            settings = dataclasses.replace(
                session.profile.default_settings(),
                **{name: value for name, value in given.items() if value is not None},
            )
            result = service.save_settings(session, settings)
        finally:
            service.disconnect(session)
        _echo_result("Saved to", result)
    except UserCancelled:
        typer.echo("No device selected")
    except MidictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("commit")
def commit(
    device: str | None = typer.Option(None, "--device", help="Serial, product name or vid:pid"),
    profile: str | None = typer.Option(None, "--profile", help="Profile ID"),
) -> None:
    """Send only the commit command. The device blinks its LED on receipt."""
    try:
        service = _build_service()
        session = service.connect(profile_id=profile, device_hint=device, chooser=_prompt_for_device)
        try:
            result = service.commit(session)
        finally:
            service.disconnect(session)
        _echo_result("Committed on", result)
    except UserCancelled:
        typer.echo("No device selected")
    except MidictlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
