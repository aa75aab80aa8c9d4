"""Validation and normalization of raw captured element payloads."""

from __future__ import annotations

import copy
import math
import numbers
from collections.abc import Mapping
from typing import Any

from ..config import LimitsConfig
from ..security.redaction import redact_attributes, scrub_markup
from .models import Record, Rejected

TRUNCATION_MARKER = "... [TRUNCATED]"
REQUIRED_FIELDS: tuple[str, ...] = ("id", "timestamp", "url", "selector", "html", "text")
_MAPPING_FIELDS: tuple[str, ...] = ("attributes", "computed", "bounds", "context")


def sanitize(raw: Any, limits: LimitsConfig | None = None) -> Record | Rejected:
    """Validate ``raw`` and return a deep-copied, normalized ``Record``.

    Pure function: the caller's structures are never mutated or aliased.
    """

    limits = limits or LimitsConfig()
    reasons = _validate(raw, limits)
    if reasons:
        return Rejected(reasons=tuple(reasons))

    html = _truncate(scrub_markup(raw["html"]), limits.max_html_chars)
    text = _truncate(raw["text"], limits.max_text_chars)

    screenshot = raw.get("screenshot") or ""
    screenshot_truncated = False
    if len(screenshot) > limits.max_screenshot_chars:
        screenshot = ""
        screenshot_truncated = True

    attributes = raw.get("attributes") or {}
    return Record(
        id=raw["id"],
        timestamp=int(raw["timestamp"]),
        url=raw["url"],
        selector=raw["selector"],
        html=html,
        text=text,
        attributes=redact_attributes(attributes),
        computed=_copy_mapping(raw.get("computed")),
        bounds=_copy_mapping(raw.get("bounds")),
        context=_copy_mapping(raw.get("context")),
        screenshot=screenshot,
        screenshot_truncated=screenshot_truncated,
    )


def _validate(raw: Any, limits: LimitsConfig) -> list[str]:
    if not isinstance(raw, Mapping):
        return ["not_an_object"]

    missing = [f"missing_field:{name}" for name in REQUIRED_FIELDS if name not in raw]
    if missing:
        return missing

    reasons: list[str] = []
    if not isinstance(raw["id"], str) or not raw["id"]:
        reasons.append("invalid_id")
    timestamp = raw["timestamp"]
    if (
        isinstance(timestamp, bool)
        or not isinstance(timestamp, numbers.Real)
        or not math.isfinite(timestamp)
        or not timestamp > 0
    ):
        reasons.append("invalid_timestamp")
    url = raw["url"]
    if not isinstance(url, str):
        reasons.append("invalid_url")
    elif not url.startswith(tuple(limits.allowed_url_schemes)):
        reasons.append("invalid_url_scheme")
    if not isinstance(raw["selector"], str) or not raw["selector"]:
        reasons.append("invalid_selector")
    if not isinstance(raw["html"], str):
        reasons.append("invalid_html")
    if not isinstance(raw["text"], str):
        reasons.append("invalid_text")
    for name in _MAPPING_FIELDS:
        value = raw.get(name)
        if value is not None and not isinstance(value, Mapping):
            reasons.append(f"invalid_{name}")
    screenshot = raw.get("screenshot")
    if screenshot is not None and not isinstance(screenshot, str):
        reasons.append("invalid_screenshot")
    return reasons


def _truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return value[:limit] + TRUNCATION_MARKER


def _copy_mapping(value: Mapping[str, Any] | None) -> dict[str, Any] | None:
    if value is None:
        return None
    return copy.deepcopy(dict(value))
