"""Client library for the labwc compositor IPC socket."""

from labwc_client.client_config import ClientSettings
from labwc_client.compositor_client import CompositorClient, ConnectionState
from labwc_client.framer import LineFramer
from labwc_client.protocol import FrameDecodeError, decode_frame
from labwc_client.version import __version__
from labwc_client.window_mirror import WindowMirror, WindowRecord

__all__ = [
    "ClientSettings",
    "CompositorClient",
    "ConnectionState",
    "FrameDecodeError",
    "LineFramer",
    "WindowMirror",
    "WindowRecord",
    "__version__",
    "decode_frame",
]
