"""Dev-mode switch shared by the client modules."""

from __future__ import annotations

from labwc_client.version import DEV_MODE_ENV_VAR, __version__, is_dev_build

DEBUG_CONFIG_ENABLED = is_dev_build(__version__)

__all__ = ["DEBUG_CONFIG_ENABLED", "DEV_MODE_ENV_VAR"]
