from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QCoreApplication, QTimer

from labwc_client.client_config import load_client_settings, resolve_settings_file, resolve_socket_path
from labwc_client.compositor_client import CompositorClient
from labwc_client.debug_config import DEBUG_CONFIG_ENABLED, DEV_MODE_ENV_VAR
from labwc_client.logging_utils import (
    ROOT_LOGGER_NAME,
    build_rotating_file_handler,
    resolve_log_level,
    resolve_logs_dir,
)

_MONITOR_LOGGER = logging.getLogger(f"{ROOT_LOGGER_NAME}.Monitor")
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(log_dir: Optional[Path], retention: int) -> Path:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(resolve_log_level(DEBUG_CONFIG_ENABLED))
    formatter = logging.Formatter(_LOG_FORMAT)
    target_dir = log_dir if log_dir is not None else resolve_logs_dir()
    root.addHandler(build_rotating_file_handler(target_dir, "labwc-client.log", retention=retention, formatter=formatter))
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)
    return target_dir


def attach_monitor(client: CompositorClient, logger: logging.Logger = _MONITOR_LOGGER) -> None:
    """Log every notification the client emits."""
    client.connected.connect(lambda: logger.info("connected"))
    client.disconnected.connect(lambda: logger.info("disconnected"))
    client.error.connect(lambda exc: logger.warning("error: %s", exc))
    client.cursor.connect(lambda pos: logger.debug("cursor x=%s y=%s", pos["x"], pos["y"]))
    client.window_list.connect(lambda windows: logger.info("window_list: %d window(s)", len(windows)))
    client.window_created.connect(lambda event: logger.info("window_created: %s", event.record.to_dict()))
    client.window_closed.connect(lambda event: logger.info("window_closed: %s (%s)", event.window_id, event.kind))
    client.window_moved.connect(
        lambda event: logger.info(
            "window_moved: %s -> %d,%d %dx%d", event.window_id, event.x, event.y, event.width, event.height
        )
    )
    client.window_focused.connect(lambda event: logger.info("window_focused: %s", event.window_id))
    client.window_title_changed.connect(
        lambda event: logger.info("window_title_changed: %s -> %r", event.window_id, event.title)
    )
    client.window_state_changed.connect(lambda event: logger.info("window_state_changed: %s %s", event.window_id, event.kind))
    client.decorations_disabled.connect(lambda: logger.info("decorations_disabled"))
    client.unrecognized.connect(lambda event: logger.info("unrecognized event: %s", event.event))


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Monitor the labwc IPC socket and log compositor events")
    parser.add_argument("--socket", help="Path to the labwc IPC socket")
    parser.add_argument("--settings", help="Path to a settings JSON file")
    parser.add_argument("--log-dir", help="Directory for the rotating log file")
    args = parser.parse_args(argv)

    settings_path = resolve_settings_file(args.settings)
    settings = load_client_settings(settings_path)
    settings.socket_path = resolve_socket_path(settings, args.socket)
    log_dir = configure_logging(Path(args.log_dir).expanduser() if args.log_dir else None, settings.log_retention)
    if not DEBUG_CONFIG_ENABLED:
        _MONITOR_LOGGER.debug("Debug logging disabled. Export %s=1 to enable it.", DEV_MODE_ENV_VAR)

    _MONITOR_LOGGER.info("Starting labwc client monitor (pid=%s)", os.getpid())
    _MONITOR_LOGGER.debug(
        "Settings from %s: socket=%s reconnect_delay=%.2fs logs=%s",
        settings_path,
        settings.socket_path,
        settings.reconnect_delay,
        log_dir,
    )

    app = QCoreApplication(sys.argv if argv is None else [sys.argv[0], *argv])
    client = CompositorClient(settings)
    attach_monitor(client)
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    # Let the Python interpreter run periodically so SIGINT is noticed.
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(250)

    client.connect()
    exit_code = app.exec()
    client.shutdown()
    _MONITOR_LOGGER.info("Monitor exiting with code %s", exit_code)
    return int(exit_code)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
