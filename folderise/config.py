"""Settings for a folderise site.

Priority for the root folder: CLI -> env -> settings file, the same order the
server resolves every other option in.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

FOLDER_ENV = "FOLDERISE_FOLDER"
HOST_ENV = "FOLDERISE_HOST"
PORT_ENV = "FOLDERISE_PORT"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080
DEFAULT_TIMEOUT = 30.0


class ConfigError(ValueError):
    """Raised when the site options are missing or malformed."""


@dataclass(frozen=True)
class PluginSpec:
    name: str
    options: dict[str, Any] = field(default_factory=dict)
    token: str | None = None

    @property
    def key(self) -> str:
        """Name used inside ``{{@...}}`` tokens."""
        return self.token or self.name.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class Settings:
    folder: Path
    title: str = ""
    watch: bool = True
    refresh: bool = True
    plugins: tuple[PluginSpec, ...] = ()
    template: Path | None = None
    timeout: float = DEFAULT_TIMEOUT
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("0", "false", "no", "off", "")
    return bool(value)


def _parse_plugins(raw: Any) -> tuple[PluginSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ConfigError("'plugins' must be a list of {name, options}")

    specs: list[PluginSpec] = []
    for entry in raw:
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, Mapping):
            raise ConfigError(f"Invalid plugin entry: {entry!r}")
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ConfigError("Every plugin needs a 'name'")
        options = entry.get("options") or {}
        if not isinstance(options, Mapping):
            raise ConfigError(f"Plugin '{name}' options must be an object")
        token = entry.get("token")
        specs.append(PluginSpec(name=name.strip(), options=dict(options), token=token or None))
    return tuple(specs)


def parse_options(options: Mapping[str, Any]) -> Settings:
    """Validate raw options and fill in defaults."""
    folder = options.get("folder")
    if not folder:
        raise ConfigError("Need to define folder in options")

    template = options.get("template")
    try:
        timeout = float(options.get("timeout", DEFAULT_TIMEOUT))
        port = int(options.get("port", DEFAULT_PORT))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid numeric option: {exc}") from exc
    if timeout <= 0:
        raise ConfigError("'timeout' must be positive")

    return Settings(
        folder=Path(folder).expanduser().resolve(),
        title=str(options.get("title") or ""),
        watch=_as_bool(options.get("watch"), True),
        refresh=_as_bool(options.get("refresh"), True),
        plugins=_parse_plugins(options.get("plugins")),
        template=Path(template).expanduser() if template else None,
        timeout=timeout,
        host=str(options.get("host") or DEFAULT_HOST),
        port=port,
    )


def load_settings_file(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Settings file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigError("Settings file must contain a JSON object")
    return payload


def resolve_options(
    file_options: Mapping[str, Any] | None = None,
    *,
    cli_options: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge settings file, environment and CLI values (CLI wins)."""
    merged: dict[str, Any] = dict(file_options or {})

    env_folder = os.getenv(FOLDER_ENV)
    if env_folder:
        merged["folder"] = env_folder
    env_host = os.getenv(HOST_ENV)
    if env_host:
        merged["host"] = env_host
    env_port = os.getenv(PORT_ENV)
    if env_port:
        merged["port"] = env_port

    for key, value in (cli_options or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
