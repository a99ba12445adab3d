import json
from pathlib import Path

from labwc_client.client_config import (
    DEFAULT_SOCKET_PATH,
    SETTINGS_ENV_VAR,
    SOCKET_ENV_VAR,
    ClientSettings,
    load_client_settings,
    resolve_settings_file,
    resolve_socket_path,
)


def test_missing_file_returns_defaults(tmp_path):
    settings = load_client_settings(tmp_path / "absent.json")
    assert settings == ClientSettings()
    assert settings.socket_path == DEFAULT_SOCKET_PATH
    assert settings.reconnect_delay == 1.0
    assert load_client_settings(None) == ClientSettings()


def test_values_are_loaded_and_clamped(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"socket_path": " /run/labwc.sock ", "reconnect_delay": "2.5", "read_chunk_size": 1, "log_retention": 0}),
        encoding="utf-8",
    )
    settings = load_client_settings(path)
    assert settings.socket_path == "/run/labwc.sock"
    assert settings.reconnect_delay == 2.5
    assert settings.read_chunk_size == 64
    assert settings.log_retention == 1


def test_bad_values_fall_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"socket_path": "", "reconnect_delay": "soon", "read_chunk_size": True}), encoding="utf-8")
    settings = load_client_settings(path)
    assert settings.socket_path == DEFAULT_SOCKET_PATH
    assert settings.reconnect_delay == 1.0
    assert settings.read_chunk_size == 4096


def test_invalid_json_returns_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{oops", encoding="utf-8")
    assert load_client_settings(path) == ClientSettings()


def test_socket_path_precedence():
    settings = ClientSettings(socket_path="/from/settings.sock")
    assert resolve_socket_path(settings, env={}) == "/from/settings.sock"
    assert resolve_socket_path(settings, env={SOCKET_ENV_VAR: "/from/env.sock"}) == "/from/env.sock"
    assert resolve_socket_path(settings, "/from/cli.sock", env={SOCKET_ENV_VAR: "/from/env.sock"}) == "/from/cli.sock"


def test_settings_file_resolution(tmp_path):
    assert resolve_settings_file(str(tmp_path / "a.json"), env={}) == (tmp_path / "a.json").resolve()
    assert resolve_settings_file(None, env={SETTINGS_ENV_VAR: str(tmp_path / "b.json")}) == (tmp_path / "b.json").resolve()
    assert resolve_settings_file(None, env={"XDG_CONFIG_HOME": str(tmp_path)}) == tmp_path / "labwc-client" / "settings.json"
