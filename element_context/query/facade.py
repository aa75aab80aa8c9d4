"""Read/search/stat API shared by every consumer-facing surface."""

from __future__ import annotations

from typing import Any, Callable

from ..store.ttl_store import TTLStore
from .media import MediaBlob, decode_screenshot

SCREENSHOT_URI = "element://{id}/screenshot"


class QueryFacade:
    """Single query API over the store.

    Surfaces hold no state of their own; every call reads the store at call
    time so tool calls and resource reads always agree.
    """

    def __init__(
        self,
        store: TTLStore,
        status_provider: Callable[[], dict[str, Any]] | None = None,
    ) -> None:
        self._store = store
        self._status_provider = status_provider

    def list_summaries(self) -> list[dict[str, Any]]:
        return [record.summary() for record in self._store.list()]

    def list_records(self) -> list[dict[str, Any]]:
        return [record.to_payload() for record in self._store.list()]

    def get_detail(
        self, record_id: str, *, include_screenshot: bool = True
    ) -> dict[str, Any] | None:
        record = self._store.get(record_id)
        if record is None:
            return None
        if include_screenshot:
            return record.to_payload()
        detail = record.to_payload(include_screenshot=False)
        detail["_hasScreenshot"] = record.has_screenshot
        detail["_screenshotAvailable"] = (
            SCREENSHOT_URI.format(id=record.id) if record.has_screenshot else None
        )
        return detail

    def get_screenshot(self, record_id: str) -> MediaBlob | None:
        record = self._store.get(record_id)
        if record is None or not record.has_screenshot:
            return None
        return decode_screenshot(record.screenshot)

    def has_record(self, record_id: str) -> bool:
        return self._store.get(record_id) is not None

    def search(self, query: str) -> list[dict[str, Any]]:
        return [record.summary() for record in self._store.search(query)]

    def remove(self, record_id: str) -> bool:
        return self._store.remove(record_id)

    def clear(self) -> int:
        return self._store.clear()

    def stats(self) -> dict[str, Any]:
        return self._store.stats().to_payload()

    def server_status(self) -> dict[str, Any]:
        if self._status_provider is None:
            return {"running": False, "port": None, "clients": 0}
        return self._status_provider()
