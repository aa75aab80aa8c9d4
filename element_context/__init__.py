"""Element context relay: a bounded TTL store between a browser capture
extension and MCP clients."""

from __future__ import annotations

from .config import AppConfig, load_config, resolve_config
from .logging_utils import configure_logging
from .version import __version__

__all__ = [
    "AppConfig",
    "load_config",
    "resolve_config",
    "configure_logging",
    "__version__",
]
