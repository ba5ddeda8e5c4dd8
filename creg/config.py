"""Configuration for creg.

Settings are resolved in three layers, later layers winning:

1. built-in defaults
2. ``creg.yaml`` in the home directory (``~/.creg`` unless ``CREG_HOME`` is set)
3. ``CREG_*`` environment variables
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

import yaml

from creg.errors import ConfigError
from creg.registry.models import DEFAULT_MAX_CONTENTS, DEFAULT_REGISTRATION_FEE

CONFIG_FILE = "creg.yaml"
SNAPSHOT_FILE = "registry.json"

_ENV_SETTINGS = ("caller", "max_contents", "registration_fee", "strict_authority", "audit")
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class Settings:
    """Resolved runtime settings."""

    home: Path = field(default_factory=lambda: Path.home() / ".creg")
    caller: str = ""
    max_contents: int = DEFAULT_MAX_CONTENTS
    registration_fee: int = DEFAULT_REGISTRATION_FEE
    strict_authority: bool = False
    audit: bool = True

    @property
    def snapshot_path(self) -> Path:
        return self.home / SNAPSHOT_FILE

    @property
    def audit_dir(self) -> Path:
        return self.home / "audit_logs"


def load_settings(
    home: Optional[str | Path] = None, env: Optional[Mapping[str, str]] = None
) -> Settings:
    """Build :class:`Settings` from defaults, the YAML file and the environment.

    Raises:
        ConfigError: if a value cannot be parsed.
    """
    env = os.environ if env is None else env
    base = Path(home) if home else Path(env.get("CREG_HOME") or Path.home() / ".creg")
    settings = Settings(home=base.expanduser())

    config_path = settings.home / CONFIG_FILE
    if config_path.exists():
        try:
            data = yaml.safe_load(config_path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        _apply(settings, data, source=str(config_path))

    overrides = {
        name: env[f"CREG_{name.upper()}"]
        for name in _ENV_SETTINGS
        if f"CREG_{name.upper()}" in env
    }
    _apply(settings, overrides, source="environment")
    return settings


def _apply(settings: Settings, values: Mapping[str, object], source: str) -> None:
    for key, value in values.items():
        if key == "caller":
            settings.caller = str(value)
        elif key in ("max_contents", "registration_fee"):
            setattr(settings, key, _to_int(key, value, source))
        elif key in ("strict_authority", "audit"):
            setattr(settings, key, _to_bool(key, value, source))
        elif key == "home":
            continue
        else:
            raise ConfigError(f"Unknown setting '{key}' in {source}")


def _to_int(key: str, value: object, source: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} in {source} must be an integer")
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} in {source} must be an integer, got {value!r}") from exc


def _to_bool(key: str, value: object, source: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigError(f"{key} in {source} must be a boolean, got {value!r}")
