"""Tool-call surface over the query facade."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

from ..query.facade import QueryFacade


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, Any]


@dataclass(frozen=True)
class ToolResult:
    text: str
    is_error: bool = False


def _schema(properties: dict[str, Any] | None = None, required: list[str] | None = None):
    return {
        "type": "object",
        "properties": properties or {},
        "required": required or [],
    }


_ID_PROPERTY = {"id": {"type": "string", "description": "Element ID"}}

TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        "list_captured_elements",
        "List all captured elements with summary information",
        _schema(),
    ),
    ToolSpec(
        "get_element_details",
        "Get full details for a specific captured element",
        _schema(_ID_PROPERTY, ["id"]),
    ),
    ToolSpec(
        "search_elements",
        "Search captured elements by selector, text, or URL",
        _schema(
            {
                "query": {
                    "type": "string",
                    "description": "Search query (searches selector, text, HTML, and URL)",
                }
            },
            ["query"],
        ),
    ),
    ToolSpec(
        "remove_element",
        "Remove a captured element by ID",
        _schema({"id": {"type": "string", "description": "Element ID to remove"}}, ["id"]),
    ),
    ToolSpec(
        "clear_all_elements",
        "Clear all captured elements from storage",
        _schema(),
    ),
    ToolSpec(
        "get_storage_stats",
        "Get storage statistics (count, TTL, timestamps)",
        _schema(),
    ),
    ToolSpec(
        "get_server_status",
        "Get WebSocket server status and connection info",
        _schema(),
    ),
)


def _dump(payload: Any) -> str:
    return json.dumps(payload, indent=2)


class ToolSurface:
    def __init__(self, facade: QueryFacade) -> None:
        self._facade = facade
        self._handlers: dict[str, Callable[[dict[str, Any]], ToolResult]] = {
            "list_captured_elements": self._list,
            "get_element_details": self._details,
            "search_elements": self._search,
            "remove_element": self._remove,
            "clear_all_elements": self._clear,
            "get_storage_stats": self._stats,
            "get_server_status": self._status,
        }

    @property
    def specs(self) -> tuple[ToolSpec, ...]:
        return TOOL_SPECS

    def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            return ToolResult(f"Unknown tool: {name}", is_error=True)
        return handler(arguments or {})

    def _list(self, _: dict[str, Any]) -> ToolResult:
        return ToolResult(_dump(self._facade.list_summaries()))

    def _details(self, arguments: dict[str, Any]) -> ToolResult:
        record_id = arguments.get("id")
        if not isinstance(record_id, str) or not record_id:
            return ToolResult("Error: 'id' must be a non-empty string", is_error=True)
        detail = self._facade.get_detail(record_id, include_screenshot=False)
        if detail is None:
            return ToolResult(f"Error: Element not found: {record_id}", is_error=True)
        return ToolResult(_dump(detail))

    def _search(self, arguments: dict[str, Any]) -> ToolResult:
        query = arguments.get("query")
        if not isinstance(query, str):
            return ToolResult("Error: 'query' must be a string", is_error=True)
        return ToolResult(_dump(self._facade.search(query)))

    def _remove(self, arguments: dict[str, Any]) -> ToolResult:
        record_id = arguments.get("id")
        if not isinstance(record_id, str) or not record_id:
            return ToolResult("Error: 'id' must be a non-empty string", is_error=True)
        if self._facade.remove(record_id):
            return ToolResult(f"Successfully removed element: {record_id}")
        return ToolResult(f"Element not found: {record_id}")

    def _clear(self, _: dict[str, Any]) -> ToolResult:
        count = self._facade.clear()
        return ToolResult(f"All elements cleared from storage ({count} removed)")

    def _stats(self, _: dict[str, Any]) -> ToolResult:
        return ToolResult(_dump(self._facade.stats()))

    def _status(self, _: dict[str, Any]) -> ToolResult:
        return ToolResult(_dump(self._facade.server_status()))
