"""Local mirror of the compositor's window state."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

WindowId = Union[int, str]

_GEOMETRY_FIELDS = ("x", "y", "width", "height")
_TEXT_FIELDS = ("title", "app_id")
_FLAG_FIELDS = ("minimized", "maximized", "fullscreen", "focused")
_RESERVED_KEYS = {"event", "id"}


def coerce_coordinate(value: Any) -> int:
    """Return ``value`` as an int, raising ValueError/TypeError for non-numeric input."""
    if isinstance(value, bool):
        raise TypeError("boolean is not a coordinate")
    try:
        if isinstance(value, float):
            return int(round(value))
        return int(value)
    except OverflowError as exc:
        raise ValueError(f"coordinate out of range: {value!r}") from exc


def require_window_id(payload: Mapping[str, Any]) -> WindowId:
    """Return ``payload["id"]``; ids are JSON strings or integers."""
    value = payload["id"]
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise TypeError(f"window id must be a string or integer, not {type(value).__name__}")
    return value


@dataclass(slots=True)
class WindowRecord:
    """Cumulative view of one compositor window; fields never reported stay None."""

    id: WindowId
    x: Optional[int] = None
    y: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    title: Optional[str] = None
    app_id: Optional[str] = None
    minimized: Optional[bool] = None
    maximized: Optional[bool] = None
    fullscreen: Optional[bool] = None
    focused: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "WindowRecord":
        record = cls(id=require_window_id(payload))
        record.merge(payload)
        return record

    def merge(self, payload: Mapping[str, Any]) -> None:
        """Overlay every window attribute present in ``payload`` onto this record."""
        for key, value in payload.items():
            if key in _RESERVED_KEYS:
                continue
            if key in _GEOMETRY_FIELDS:
                setattr(self, key, coerce_coordinate(value))
            elif key in _TEXT_FIELDS:
                setattr(self, key, None if value is None else str(value))
            elif key in _FLAG_FIELDS:
                setattr(self, key, None if value is None else bool(value))
            else:
                self.extra[key] = value

    def copy(self) -> "WindowRecord":
        return replace(self, extra=dict(self.extra))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for item in fields(self):
            if item.name == "extra":
                continue
            value = getattr(self, item.name)
            if value is not None:
                data[item.name] = value
        data.update(self.extra)
        return data


class WindowMirror:
    """Keyed store of window records plus the last reported cursor position.

    Mutations arrive from the connection's event loop; queries may come from
    any thread and always receive copies.
    """

    def __init__(self) -> None:
        self._windows: Dict[WindowId, WindowRecord] = {}
        self._cursor: Tuple[int, int] = (0, 0)
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def __contains__(self, window_id: object) -> bool:
        with self._lock:
            return window_id in self._windows

    @property
    def cursor(self) -> Tuple[int, int]:
        return self._cursor

    def set_cursor(self, x: int, y: int) -> None:
        self._cursor = (x, y)

    def replace_all(self, records: Iterable[WindowRecord]) -> List[WindowRecord]:
        """Swap in a full snapshot and return copies of the new contents."""
        fresh = {record.id: record.copy() for record in records}
        with self._lock:
            self._windows = fresh
            return [record.copy() for record in fresh.values()]

    def upsert(self, record: WindowRecord) -> None:
        with self._lock:
            self._windows[record.id] = record.copy()

    def remove(self, window_id: WindowId) -> Optional[WindowRecord]:
        with self._lock:
            return self._windows.pop(window_id, None)

    def merge(self, window_id: WindowId, payload: Mapping[str, Any]) -> bool:
        """Merge payload fields into an existing record; unknown ids are left alone."""
        with self._lock:
            record = self._windows.get(window_id)
            if record is None:
                return False
            record.merge(payload)
            return True

    def set_title(self, window_id: WindowId, title: Optional[str]) -> bool:
        with self._lock:
            record = self._windows.get(window_id)
            if record is None:
                return False
            record.title = title
            return True

    def get(self, window_id: WindowId) -> Optional[WindowRecord]:
        with self._lock:
            record = self._windows.get(window_id)
            return record.copy() if record is not None else None

    def snapshot(self) -> List[WindowRecord]:
        with self._lock:
            return [record.copy() for record in self._windows.values()]
