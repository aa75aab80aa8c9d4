"""Producer session tracking and the WebSocket message protocol."""

from .registry import Channel, SessionRegistry

__all__ = ["Channel", "SessionRegistry"]
