"""Async Unix-socket client for labwc that re-emits compositor events as Qt signals."""
from __future__ import annotations

import asyncio
import enum
import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from labwc_client import commands
from labwc_client.client_config import ClientSettings
from labwc_client.debug_config import DEBUG_CONFIG_ENABLED
from labwc_client.framer import LineFramer
from labwc_client.protocol import CompositorEvent, FrameDecodeError, UnrecognizedEvent, decode_frame
from labwc_client.window_mirror import WindowId, WindowMirror, WindowRecord

_LOGGER_NAME = "LabwcClient.Connection"
_LOGGER = logging.getLogger(_LOGGER_NAME)
_LOGGER.setLevel(logging.DEBUG if DEBUG_CONFIG_ENABLED else logging.INFO)
_LOGGER.propagate = True


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class CompositorClient(QObject):
    """Keeps a local window mirror in sync with labwc and forwards commands to it.

    All socket I/O, event dispatch and the reconnect timer run on a single
    asyncio loop: a daemon thread owned by the client, or ``loop`` when one is
    supplied. ``connect``, ``disconnect`` and ``send`` may be called from any
    thread and never block. Signals are emitted from the loop's thread.
    """

    connected = pyqtSignal()
    disconnected = pyqtSignal()
    error = pyqtSignal(object)
    cursor = pyqtSignal(dict)
    window_list = pyqtSignal(object)
    window_created = pyqtSignal(object)
    window_closed = pyqtSignal(object)
    window_moved = pyqtSignal(object)
    window_focused = pyqtSignal(object)
    window_title_changed = pyqtSignal(object)
    window_state_changed = pyqtSignal(object)
    decorations_disabled = pyqtSignal()
    unrecognized = pyqtSignal(object)

    def __init__(
        self,
        settings: Optional[ClientSettings] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__()
        self._settings = settings if settings is not None else ClientSettings()
        self._framer = LineFramer()
        self._mirror = WindowMirror()
        self._state = ConnectionState.DISCONNECTED
        self._loop = loop
        self._owns_loop = loop is None
        self._thread: Optional[threading.Thread] = None
        self._thread_lock = threading.Lock()
        self._connection_task: Optional[asyncio.Task[None]] = None
        self._outgoing: Optional[asyncio.Queue[Optional[bytes]]] = None
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None

    @property
    def socket_path(self) -> str:
        return self._settings.socket_path

    # Lifecycle ------------------------------------------------------------

    def connect(self) -> None:
        loop = self._ensure_loop()
        loop.call_soon_threadsafe(self._begin_connect)

    def disconnect(self) -> None:  # type: ignore[override]
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._teardown)

    def shutdown(self) -> None:
        """Disconnect and stop the event-loop thread this client started, if any."""
        if not self._owns_loop:
            self.disconnect()
            return
        with self._thread_lock:
            loop = self._loop
            thread = self._thread
            self._loop = None
            self._thread = None
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._teardown)
            loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=5.0)

    # Commands -------------------------------------------------------------

    def send(self, command: Mapping[str, Any]) -> bool:
        loop = self._loop
        outgoing = self._outgoing
        if self._state is not ConnectionState.CONNECTED or loop is None or outgoing is None:
            _LOGGER.warning("Not connected to compositor; dropping '%s' command", command.get("cmd"))
            return False
        try:
            payload = commands.encode_command(command)
        except (TypeError, ValueError) as exc:
            _LOGGER.warning("Failed to serialise command %s: %s", command, exc)
            return False
        try:
            loop.call_soon_threadsafe(outgoing.put_nowait, payload)
        except RuntimeError as exc:
            _LOGGER.warning("Failed to enqueue command on the IPC loop: %s", exc)
            return False
        return True

    def request_window_list(self) -> bool:
        return self.send(commands.list_windows())

    def disable_decorations(self) -> bool:
        return self.send(commands.disable_decorations())

    def close_window(self, window_id: WindowId) -> bool:
        return self.send(commands.close_window(window_id))

    def minimize_window(self, window_id: WindowId) -> bool:
        return self.send(commands.minimize_window(window_id))

    def maximize_window(self, window_id: WindowId) -> bool:
        return self.send(commands.maximize_window(window_id))

    def move_window(self, window_id: WindowId, x: float, y: float, width: float, height: float) -> bool:
        return self.send(commands.move_window(window_id, x, y, width, height))

    def focus_window(self, window_id: WindowId) -> bool:
        return self.send(commands.focus_window(window_id))

    def set_always_on_top(self, window_id: WindowId) -> bool:
        return self.send(commands.always_on_top(window_id))

    def set_always_on_bottom(self, window_id: WindowId) -> bool:
        return self.send(commands.always_on_bottom(window_id))

    # Queries --------------------------------------------------------------

    def get_windows(self) -> List[WindowRecord]:
        return self._mirror.snapshot()

    def get_window(self, window_id: WindowId) -> Optional[WindowRecord]:
        return self._mirror.get(window_id)

    def get_cursor_position(self) -> Dict[str, int]:
        x, y = self._mirror.cursor
        return {"x": x, "y": y}

    # Event loop side ------------------------------------------------------

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._thread_lock:
            loop = self._loop
            if loop is not None and not loop.is_closed():
                return loop
            loop = asyncio.new_event_loop()
            self._loop = loop
            self._owns_loop = True
            self._thread = threading.Thread(
                target=self._thread_main, args=(loop,), name="LabwcClient-IPC", daemon=True
            )
            self._thread.start()
            return loop

    def _thread_main(self, loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        try:
            loop.run_forever()
        finally:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.close()

    def _begin_connect(self) -> None:
        if self._state is not ConnectionState.DISCONNECTED:
            _LOGGER.debug("connect() ignored; connection is already %s", self._state.value)
            return
        loop = self._loop
        if loop is None:
            return
        self._cancel_reconnect()
        self._state = ConnectionState.CONNECTING
        _LOGGER.debug("Connecting to labwc IPC socket at %s", self.socket_path)
        self._connection_task = loop.create_task(self._run_connection())

    def _teardown(self) -> None:
        self._cancel_reconnect()
        task = self._connection_task
        if task is None:
            return
        self._connection_task = None
        self._mark_disconnected()
        task.cancel()

    async def _run_connection(self) -> None:
        task = asyncio.current_task()
        try:
            reader, writer = await asyncio.open_unix_connection(self.socket_path)
        except OSError as exc:
            _LOGGER.warning("Connect failed to %s: %s", self.socket_path, exc)
            self.error.emit(exc)
            self._on_transport_closed(task)
            return

        outgoing: asyncio.Queue[Optional[bytes]] = asyncio.Queue()
        self._outgoing = outgoing
        # Shared with the sender so one broken transport is reported once.
        failures: List[BaseException] = []
        sender_task = asyncio.create_task(self._flush_outgoing(writer, outgoing, failures))
        self._framer.reset()
        self._state = ConnectionState.CONNECTED
        _LOGGER.info("Connected to labwc compositor at %s", self.socket_path)
        self.connected.emit()
        self.request_window_list()
        self.disable_decorations()
        try:
            while True:
                chunk = await reader.read(self._settings.read_chunk_size)
                if not chunk:
                    break
                self._handle_chunk(chunk)
        except (ConnectionError, OSError) as exc:
            self._report_transport_error(failures, "Compositor connection error", exc)
        finally:
            self._on_transport_closed(task)
            outgoing.put_nowait(None)
            await asyncio.gather(sender_task, return_exceptions=True)
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError) as exc:
                _LOGGER.debug("Error closing writer: %s", exc)

    async def _flush_outgoing(
        self,
        writer: asyncio.StreamWriter,
        queue_ref: "asyncio.Queue[Optional[bytes]]",
        failures: List[BaseException],
    ) -> None:
        while True:
            payload = await queue_ref.get()
            if payload is None:
                break
            try:
                writer.write(payload)
                await writer.drain()
            except (ConnectionError, OSError) as exc:
                self._report_transport_error(failures, "Failed to write command to compositor", exc)
                writer.close()
                break

    def _report_transport_error(self, failures: List[BaseException], message: str, exc: BaseException) -> None:
        if failures:
            _LOGGER.debug("%s after earlier failure (%s): %s", message, failures[0], exc)
            return
        failures.append(exc)
        _LOGGER.warning("%s: %s", message, exc)
        self.error.emit(exc)

    def _on_transport_closed(self, task: Optional["asyncio.Task[Any]"]) -> None:
        # A task that was already torn down must not report its closure twice.
        if task is None or task is not self._connection_task:
            return
        self._connection_task = None
        self._mark_disconnected()
        self._schedule_reconnect()

    def _mark_disconnected(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self._outgoing = None
        self._framer.reset()
        _LOGGER.info("Disconnected from labwc compositor")
        self.disconnected.emit()

    def _schedule_reconnect(self) -> None:
        loop = self._loop
        if self._reconnect_handle is not None or loop is None or loop.is_closed():
            return
        delay = self._settings.reconnect_delay
        _LOGGER.debug("Reconnecting in %.2fs", delay)
        self._reconnect_handle = loop.call_later(delay, self._reconnect_fired)

    def _reconnect_fired(self) -> None:
        self._reconnect_handle = None
        self._begin_connect()

    def _cancel_reconnect(self) -> None:
        handle = self._reconnect_handle
        if handle is not None:
            handle.cancel()
            self._reconnect_handle = None

    # Inbound stream -------------------------------------------------------

    def _handle_chunk(self, chunk: bytes) -> None:
        for frame in self._framer.feed(chunk):
            if not frame.strip():
                continue
            try:
                event = decode_frame(frame)
            except FrameDecodeError as exc:
                _LOGGER.warning("Failed to parse message from compositor: %s", exc)
                continue
            self._dispatch(event)

    def _dispatch(self, event: CompositorEvent) -> None:
        if isinstance(event, UnrecognizedEvent):
            _LOGGER.warning("Unknown event from compositor: %s", event.event)
        if not event.apply(self._mirror):
            _LOGGER.debug("Ignoring %s for unknown window", type(event).__name__)
            return
        if event.notification is None:
            return
        getattr(self, event.notification).emit(*event.notification_args())
