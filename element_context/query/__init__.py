"""Query facade shared by the consumer surfaces."""

from .facade import QueryFacade
from .media import MediaBlob, decode_screenshot

__all__ = ["QueryFacade", "MediaBlob", "decode_screenshot"]
