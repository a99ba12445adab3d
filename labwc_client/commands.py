"""Outbound command records for the compositor control socket."""
from __future__ import annotations

import json
import math
from typing import Any, Dict, Mapping

from labwc_client.window_mirror import WindowId

CMD_LIST = "list"
CMD_ENABLE_DECORATIONS = "enable_decorations"


def encode_command(command: Mapping[str, Any]) -> bytes:
    """Serialise ``command`` as one compact JSON line with ``cmd`` as the first key.

    labwc matches the raw prefix ``{"cmd":"`` so separators must stay compact.
    """
    if "cmd" not in command:
        raise ValueError("command record has no 'cmd' field")
    ordered: Dict[str, Any] = {"cmd": command["cmd"]}
    for key, value in command.items():
        if key != "cmd":
            ordered[key] = value
    serialised = json.dumps(ordered, ensure_ascii=False, separators=(",", ":"))
    return serialised.encode("utf-8") + b"\n"


def round_half_up(value: float) -> int:
    return int(math.floor(float(value) + 0.5))


def list_windows() -> Dict[str, Any]:
    return {"cmd": CMD_LIST}


def disable_decorations() -> Dict[str, Any]:
    # labwc names the request after its toggle; it answers decorations_disabled.
    return {"cmd": CMD_ENABLE_DECORATIONS}


def close_window(window_id: WindowId) -> Dict[str, Any]:
    return {"cmd": "close", "id": window_id}


def minimize_window(window_id: WindowId) -> Dict[str, Any]:
    return {"cmd": "minimize", "id": window_id}


def maximize_window(window_id: WindowId) -> Dict[str, Any]:
    return {"cmd": "maximize", "id": window_id}


def move_window(window_id: WindowId, x: float, y: float, width: float, height: float) -> Dict[str, Any]:
    return {
        "cmd": "move",
        "id": window_id,
        "x": round_half_up(x),
        "y": round_half_up(y),
        "width": round_half_up(width),
        "height": round_half_up(height),
    }


def focus_window(window_id: WindowId) -> Dict[str, Any]:
    return {"cmd": "focus", "id": window_id}


def always_on_top(window_id: WindowId) -> Dict[str, Any]:
    return {"cmd": "always_on_top", "id": window_id}


def always_on_bottom(window_id: WindowId) -> Dict[str, Any]:
    return {"cmd": "always_on_bottom", "id": window_id}
