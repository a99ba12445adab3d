"""Configuration helpers for the labwc IPC client."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

DEFAULT_SOCKET_PATH = "/tmp/labwc-nwjs.sock"
SOCKET_ENV_VAR = "LABWC_IPC_SOCKET"
SETTINGS_ENV_VAR = "LABWC_CLIENT_SETTINGS"


@dataclass
class ClientSettings:
    """Values that shape the connection before anything is sent."""

    socket_path: str = DEFAULT_SOCKET_PATH
    reconnect_delay: float = 1.0
    read_chunk_size: int = 4096
    log_retention: int = 5


def _coerce_float(value: Any, fallback: float, *, minimum: float) -> float:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, numeric)


def _coerce_int(value: Any, fallback: int, *, minimum: int) -> int:
    if value is None or isinstance(value, bool):
        return fallback
    try:
        numeric = int(value)
    except (TypeError, ValueError):
        return fallback
    return max(minimum, numeric)


def load_client_settings(settings_path: Optional[Path]) -> ClientSettings:
    """Read settings JSON if it exists; missing or malformed values keep their defaults."""
    defaults = ClientSettings()
    if settings_path is None:
        return defaults
    try:
        raw = settings_path.read_text(encoding="utf-8")
    except (FileNotFoundError, OSError):
        return defaults

    try:
        data: Dict[str, Any] = json.loads(raw)
    except json.JSONDecodeError:
        return defaults
    if not isinstance(data, dict):
        return defaults

    socket_path = data.get("socket_path")
    if not isinstance(socket_path, str) or not socket_path.strip():
        socket_path = defaults.socket_path

    return ClientSettings(
        socket_path=socket_path.strip(),
        reconnect_delay=_coerce_float(data.get("reconnect_delay"), defaults.reconnect_delay, minimum=0.0),
        read_chunk_size=_coerce_int(data.get("read_chunk_size"), defaults.read_chunk_size, minimum=64),
        log_retention=_coerce_int(data.get("log_retention"), defaults.log_retention, minimum=1),
    )


def resolve_socket_path(
    settings: ClientSettings,
    cli_value: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> str:
    """Pick the socket path: CLI argument, then environment, then settings."""
    if cli_value:
        return str(Path(cli_value).expanduser())
    environ = os.environ if env is None else env
    env_override = environ.get(SOCKET_ENV_VAR)
    if env_override:
        return str(Path(env_override).expanduser())
    return settings.socket_path


def resolve_settings_file(cli_value: Optional[str], env: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    if cli_value:
        return Path(cli_value).expanduser().resolve()
    environ = os.environ if env is None else env
    env_override = environ.get(SETTINGS_ENV_VAR)
    if env_override:
        return Path(env_override).expanduser().resolve()
    config_home = Path(environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return config_home / "labwc-client" / "settings.json"
