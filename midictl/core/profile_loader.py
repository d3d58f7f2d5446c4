"""Profile loading and validation for YAML-based midictl device profiles."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from midictl.core.errors import ProfileLoadError, ProfileValidationError
from midictl.core.model import SETTING_NAMES, DeviceProfile, SettingRange, UsbId
from midictl.core.protocol import MIDI_CHANNEL_MAX

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, DeviceProfile]
    warnings: tuple[str, ...]


def _load_schema_validator() -> Any:
    schema_text = resources.files("midictl.schemas").joinpath("profile.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _profile_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "midictl/profiles", xdg_data / "midictl/profiles"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ProfileLoadError(f"Could not read profile file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProfileValidationError(f"Profile file {path} must contain a mapping at root")
    return loaded


def _parse_usb_id_value(value: int | str) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def _build_range(name: str, spec: dict[str, int], *, context: str) -> SettingRange:
    minimum, maximum = spec["min"], spec["max"]
    default = spec.get("default", minimum)
    if minimum > maximum:
        raise ProfileValidationError(f"{context}: min {minimum} is greater than max {maximum}")
    if not minimum <= default <= maximum:
        raise ProfileValidationError(f"{context}: default {default} is outside {minimum}-{maximum}")
    if name == "midi_channel" and maximum > MIDI_CHANNEL_MAX:
        raise ProfileValidationError(f"{context}: max must not exceed {MIDI_CHANNEL_MAX}")
    return SettingRange(minimum=minimum, maximum=maximum, default=default)


def _build_profile(doc: dict[str, Any], source: Path | Traversable) -> DeviceProfile:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ProfileValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    settings = {
        name: _build_range(name, doc["settings"][name], context=f"{doc['id']}.settings.{name}")
        for name in SETTING_NAMES
    }
    usb_ids = tuple(
        UsbId(
            vendor_id=_parse_usb_id_value(entry["vendor_id"]),
            product_id=_parse_usb_id_value(entry["product_id"]),
        )
        for entry in doc["match"].get("usb_ids", [])
    )
    usb = doc.get("usb", {})

    return DeviceProfile(
        id=doc["id"],
        name=doc["name"],
        usb_ids=usb_ids,
        settings=settings,
        configuration=int(usb.get("configuration", 1)),
        preferred_interface=usb.get("preferred_interface"),
        timeout_ms=int(usb.get("timeout_ms", 1000)),
    )


def _iter_packaged_profile_paths() -> list[Traversable]:
    profile_root = resources.files("midictl.profiles")
    return [item for item in profile_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_profile_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _profile_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_profiles() -> LoadedProfiles:
    profiles: dict[str, DeviceProfile] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_profile_paths(), key=lambda p: p.name):
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        profiles[profile.id] = profile

    for path in _iter_user_profile_paths():
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        if profile.id in profiles:
            warning = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
