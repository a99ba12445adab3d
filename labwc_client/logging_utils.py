from __future__ import annotations

import logging
import os
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional

LOG_DIR_ENV_VAR = "LABWC_CLIENT_LOG_DIR"
ROOT_LOGGER_NAME = "LabwcClient"


def resolve_logs_dir(log_dir_name: str = "labwc-client", env: Optional[Mapping[str, str]] = None) -> Path:
    """
    Resolve the directory to store client logs.

    Strategy:
    - Use LABWC_CLIENT_LOG_DIR if set.
    - Fall back to XDG state/cache locations, then `cwd/logs/<log_dir_name>`.
    - Final fallback: tempdir/<log_dir_name>.
    """
    environ = os.environ if env is None else env
    candidates = []

    env_override = environ.get(LOG_DIR_ENV_VAR)
    if env_override:
        candidates.append(Path(env_override).expanduser())
    else:
        state_home = Path(environ.get("XDG_STATE_HOME", Path.home() / ".local" / "state"))
        cache_home = Path(environ.get("XDG_CACHE_HOME", Path.home() / ".cache"))
        candidates.append(state_home / log_dir_name)
        candidates.append(cache_home / log_dir_name)
        candidates.append(Path.cwd() / "logs" / log_dir_name)

    for target in candidates:
        try:
            target.mkdir(parents=True, exist_ok=True)
            return target
        except OSError:
            continue

    temp_fallback = Path(tempfile.gettempdir()) / log_dir_name
    temp_fallback.mkdir(parents=True, exist_ok=True)
    return temp_fallback


def build_rotating_file_handler(
    log_dir: Path,
    filename: str,
    *,
    retention: int = 5,
    max_bytes: int = 512 * 1024,
    formatter: Optional[logging.Formatter] = None,
) -> logging.Handler:
    """Construct a rotating file handler with sane defaults."""
    retention = max(1, retention)
    backup_count = max(0, retention - 1)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / filename,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    if formatter is not None:
        handler.setFormatter(formatter)
    return handler


def resolve_log_level(debug_enabled: bool) -> int:
    return logging.DEBUG if debug_enabled else logging.INFO
