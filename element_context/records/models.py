"""Captured element record types shared by the store and the query surfaces."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any

SUMMARY_TEXT_CHARS = 100


@dataclass(frozen=True)
class Record:
    """One sanitized captured element.

    The store keeps its own instance and hands out ``detached`` copies;
    payload helpers likewise return fresh containers.
    """

    id: str
    timestamp: int
    url: str
    selector: str
    html: str
    text: str
    attributes: dict[str, str] = field(default_factory=dict)
    computed: dict[str, Any] | None = None
    bounds: dict[str, Any] | None = None
    context: dict[str, Any] | None = None
    screenshot: str = ""
    screenshot_truncated: bool = False

    @property
    def has_screenshot(self) -> bool:
        return bool(self.screenshot)

    def detached(self) -> "Record":
        """Return an equal record whose mappings share nothing with this one."""

        return replace(
            self,
            attributes=dict(self.attributes),
            computed=copy.deepcopy(self.computed),
            bounds=copy.deepcopy(self.bounds),
            context=copy.deepcopy(self.context),
        )

    def to_payload(self, *, include_screenshot: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "url": self.url,
            "selector": self.selector,
            "html": self.html,
            "text": self.text,
            "attributes": dict(self.attributes),
            "computed": copy.deepcopy(self.computed),
            "bounds": copy.deepcopy(self.bounds),
            "context": copy.deepcopy(self.context),
        }
        if include_screenshot:
            payload["screenshot"] = self.screenshot
        if self.screenshot_truncated:
            payload["screenshotTruncated"] = True
        return payload

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "url": self.url,
            "selector": self.selector,
            "text": self.text[:SUMMARY_TEXT_CHARS],
            "bounds": copy.deepcopy(self.bounds),
            "hasScreenshot": self.has_screenshot,
        }

    def matches(self, lowered_query: str) -> bool:
        return (
            lowered_query in self.selector.lower()
            or lowered_query in self.text.lower()
            or lowered_query in self.html.lower()
            or lowered_query in self.url.lower()
        )


@dataclass(frozen=True)
class Rejected:
    """Sanitizer verdict for a record that must not be admitted."""

    reasons: tuple[str, ...]

    @property
    def message(self) -> str:
        return "Invalid element data: " + ", ".join(self.reasons)
