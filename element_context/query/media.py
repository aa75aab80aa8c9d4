"""Decoding of screenshot payloads into binary blobs."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

DEFAULT_MEDIA_TYPE = "image/png"

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(?:;[^,;]*)*?);base64,", re.I)


@dataclass(frozen=True)
class MediaBlob:
    mime_type: str
    data: bytes

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


def decode_screenshot(value: str) -> MediaBlob | None:
    """Decode a ``data:`` URL or bare base64 string; ``None`` if undecodable."""

    if not value:
        return None
    mime_type = DEFAULT_MEDIA_TYPE
    payload = value
    match = _DATA_URL.match(value)
    if match:
        mime_type = (match.group("mime") or DEFAULT_MEDIA_TYPE).lower()
        payload = value[match.end():]
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    if not data:
        return None
    return MediaBlob(mime_type=mime_type, data=data)
