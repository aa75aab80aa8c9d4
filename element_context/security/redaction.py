"""Secret redaction and markup scrubbing helpers."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

REDACTED = "[REDACTED]"

SENSITIVE_ATTRIBUTE_MARKERS: tuple[str, ...] = ("password", "token", "secret", "key", "auth")

_SECRET_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(?i)bearer\s+[A-Za-z0-9._+/=-]{8,}"), "Bearer [REDACTED]"),
    (re.compile(r"(?i)api[_-]?key\s*[:=]\s*[A-Za-z0-9._+/=-]{6,}"), "api_key=[REDACTED]"),
    (re.compile(r"(?i)token\s*[:=]\s*[A-Za-z0-9._+/=-]{6,}"), "token=[REDACTED]"),
    (re.compile(r"(?i)secret\s*[:=]\s*[A-Za-z0-9._+/=-]{6,}"), "secret=[REDACTED]"),
    (re.compile(r"(?i)sk-[A-Za-z0-9-]{8,}"), "sk-[REDACTED]"),
]

# Best-effort pattern removal, not an HTML parser.
_SCRIPT_TAG = re.compile(r"<script\b|</script\s*>", re.IGNORECASE)
_EVENT_HANDLER = re.compile(
    r"""\son[a-z0-9_-]+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""",
    re.IGNORECASE,
)


def redact_text(text: str) -> str:
    redacted = text
    for pattern, replacement in _SECRET_PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


def is_sensitive_key(key: str, markers: Iterable[str] = SENSITIVE_ATTRIBUTE_MARKERS) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in markers)


def redact_attributes(
    attributes: Mapping[str, Any],
    *,
    markers: Iterable[str] = SENSITIVE_ATTRIBUTE_MARKERS,
    token: str = REDACTED,
) -> dict[str, str]:
    """Return a new attribute map with sensitive values replaced wholesale."""

    markers = tuple(markers)
    redacted: dict[str, str] = {}
    for key, value in attributes.items():
        name = str(key)
        if is_sensitive_key(name, markers):
            redacted[name] = token
        else:
            redacted[name] = "" if value is None else str(value)
    return redacted


def scrub_markup(html: str) -> str:
    """Strip script blocks and inline event handlers from an HTML fragment."""

    return _EVENT_HANDLER.sub("", _strip_scripts(html))


def _strip_scripts(html: str) -> str:
    # Single pass over script tags; an opener without a closer drops the rest.
    kept: list[str] = []
    cursor = 0
    opened = False
    for match in _SCRIPT_TAG.finditer(html):
        closing = match.group(0)[1] == "/"
        if not opened and not closing:
            kept.append(html[cursor : match.start()])
            opened = True
        elif opened and closing:
            cursor = match.end()
            opened = False
    if not opened:
        kept.append(html[cursor:])
    return "".join(kept)
