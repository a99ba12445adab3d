"""Decode compositor frames into typed events.

Each known ``event`` discriminator maps to one frozen dataclass. An event
knows how to apply itself to a :class:`WindowMirror` and which client signal
announces it, so the connection only has to decode, apply, and emit.
Unknown discriminators decode to :class:`UnrecognizedEvent` so new protocol
events never break older clients.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Optional, Tuple, Union

from labwc_client.window_mirror import WindowId, WindowMirror, WindowRecord, coerce_coordinate, require_window_id


class FrameDecodeError(ValueError):
    """A single frame could not be decoded; the stream itself is unaffected."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"{reason}: {text!r}")
        self.text = text
        self.reason = reason


@dataclass(frozen=True)
class CompositorEvent:
    """Base class for decoded compositor events."""

    notification: ClassVar[Optional[str]] = None

    def apply(self, mirror: WindowMirror) -> bool:
        """Update ``mirror``; return True when the notification should fire."""
        return True

    def notification_args(self) -> Tuple[Any, ...]:
        return (self,)


@dataclass(frozen=True)
class CursorEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "cursor"

    x: int
    y: int

    def apply(self, mirror: WindowMirror) -> bool:
        mirror.set_cursor(self.x, self.y)
        return True

    def notification_args(self) -> Tuple[Any, ...]:
        return ({"x": self.x, "y": self.y},)


@dataclass(frozen=True)
class WindowListEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "window_list"

    windows: Tuple[WindowRecord, ...]

    def apply(self, mirror: WindowMirror) -> bool:
        mirror.replace_all(self.windows)
        return True

    def notification_args(self) -> Tuple[Any, ...]:
        return ([record.copy() for record in self.windows],)


@dataclass(frozen=True)
class WindowMappedEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "window_created"

    record: WindowRecord
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def window_id(self) -> WindowId:
        return self.record.id

    def apply(self, mirror: WindowMirror) -> bool:
        mirror.upsert(self.record)
        return True


@dataclass(frozen=True)
class WindowClosedEvent(CompositorEvent):
    """``unmapped`` or ``closed``; ``kind`` keeps which one the compositor sent."""

    notification: ClassVar[Optional[str]] = "window_closed"

    kind: str
    window_id: WindowId
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def apply(self, mirror: WindowMirror) -> bool:
        mirror.remove(self.window_id)
        return True


@dataclass(frozen=True)
class WindowMovedEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "window_moved"

    window_id: WindowId
    x: int
    y: int
    width: int
    height: int
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def apply(self, mirror: WindowMirror) -> bool:
        return mirror.merge(self.window_id, self.raw)


@dataclass(frozen=True)
class WindowFocusedEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "window_focused"

    window_id: WindowId
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class TitleChangedEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "window_title_changed"

    window_id: WindowId
    title: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def apply(self, mirror: WindowMirror) -> bool:
        return mirror.set_title(self.window_id, self.title)


@dataclass(frozen=True)
class WindowStateEvent(CompositorEvent):
    """``minimized``, ``maximized`` or ``fullscreen``; flags are merged from ``raw``."""

    notification: ClassVar[Optional[str]] = "window_state_changed"

    kind: str
    window_id: WindowId
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def apply(self, mirror: WindowMirror) -> bool:
        return mirror.merge(self.window_id, self.raw)


@dataclass(frozen=True)
class DecorationsDisabledEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "decorations_disabled"

    def notification_args(self) -> Tuple[Any, ...]:
        return ()


@dataclass(frozen=True)
class UnrecognizedEvent(CompositorEvent):
    notification: ClassVar[Optional[str]] = "unrecognized"

    event: Optional[str]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _decode_cursor(payload: Dict[str, Any]) -> CompositorEvent:
    return CursorEvent(x=coerce_coordinate(payload["x"]), y=coerce_coordinate(payload["y"]))


def _decode_window_list(payload: Dict[str, Any]) -> CompositorEvent:
    entries = payload["windows"]
    if not isinstance(entries, list):
        raise TypeError("windows must be a list")
    # A repeated id keeps its first position and its last payload, as in the mirror.
    records: Dict[WindowId, WindowRecord] = {}
    for entry in entries:
        if not isinstance(entry, dict):
            raise TypeError("window entries must be objects")
        record = WindowRecord.from_payload(entry)
        records[record.id] = record
    return WindowListEvent(windows=tuple(records.values()))


def _decode_mapped(payload: Dict[str, Any]) -> CompositorEvent:
    return WindowMappedEvent(record=WindowRecord.from_payload(payload), raw=payload)


def _decode_closed(payload: Dict[str, Any]) -> CompositorEvent:
    return WindowClosedEvent(kind=payload["event"], window_id=require_window_id(payload), raw=payload)


def _decode_moved(payload: Dict[str, Any]) -> CompositorEvent:
    # Validate the whole payload up front so a bad field never half-applies.
    WindowRecord.from_payload(payload)
    return WindowMovedEvent(
        window_id=require_window_id(payload),
        x=coerce_coordinate(payload["x"]),
        y=coerce_coordinate(payload["y"]),
        width=coerce_coordinate(payload["width"]),
        height=coerce_coordinate(payload["height"]),
        raw=payload,
    )


def _decode_focused(payload: Dict[str, Any]) -> CompositorEvent:
    return WindowFocusedEvent(window_id=require_window_id(payload), raw=payload)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _decode_title_changed(payload: Dict[str, Any]) -> CompositorEvent:
    return TitleChangedEvent(window_id=require_window_id(payload), title=_optional_text(payload["title"]), raw=payload)


def _decode_state(payload: Dict[str, Any]) -> CompositorEvent:
    WindowRecord.from_payload(payload)
    return WindowStateEvent(kind=payload["event"], window_id=require_window_id(payload), raw=payload)


def _decode_decorations_disabled(payload: Dict[str, Any]) -> CompositorEvent:
    return DecorationsDisabledEvent()


_DECODERS: Dict[str, Callable[[Dict[str, Any]], CompositorEvent]] = {
    "cursor": _decode_cursor,
    "window_list": _decode_window_list,
    "mapped": _decode_mapped,
    "unmapped": _decode_closed,
    "closed": _decode_closed,
    "moved": _decode_moved,
    "focused": _decode_focused,
    "title_changed": _decode_title_changed,
    "minimized": _decode_state,
    "maximized": _decode_state,
    "fullscreen": _decode_state,
    "decorations_disabled": _decode_decorations_disabled,
}

KNOWN_EVENTS = frozenset(_DECODERS)


def decode_frame(frame: Union[bytes, str]) -> CompositorEvent:
    """Decode one frame, raising :class:`FrameDecodeError` if it is malformed."""
    if isinstance(frame, bytes):
        try:
            text = frame.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FrameDecodeError(frame.decode("utf-8", errors="replace"), f"invalid UTF-8 ({exc})") from exc
    else:
        text = frame
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FrameDecodeError(text, f"invalid JSON ({exc})") from exc
    if not isinstance(payload, dict):
        raise FrameDecodeError(text, "expected a JSON object")

    kind = payload.get("event")
    decoder = _DECODERS.get(kind) if isinstance(kind, str) else None
    if decoder is None:
        return UnrecognizedEvent(event=kind if isinstance(kind, str) else None, raw=payload)
    try:
        return decoder(payload)
    except KeyError as exc:
        raise FrameDecodeError(text, f"{kind} event missing field {exc}") from exc
    except (TypeError, ValueError, OverflowError) as exc:
        raise FrameDecodeError(text, f"{kind} event has a bad field ({exc})") from exc
