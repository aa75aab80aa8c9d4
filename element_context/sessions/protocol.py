"""Wire protocol between producer sessions and the relay.

Messages are JSON objects discriminated by ``type``. Inbound kinds map to
exactly one reply kind; ``ELEMENT_ADDED`` is the only unsolicited message.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import ProtocolError
from ..records.models import Record


class Inbound(str, Enum):
    ELEMENT_CAPTURED = "ELEMENT_CAPTURED"
    PING = "PING"
    GET_STATS = "GET_STATS"
    GET_ELEMENTS = "GET_ELEMENTS"
    REMOVE_ELEMENT = "REMOVE_ELEMENT"
    CLEAR_ALL = "CLEAR_ALL"


class Outbound(str, Enum):
    WELCOME = "WELCOME"
    ELEMENT_STORED = "ELEMENT_STORED"
    ELEMENT_ADDED = "ELEMENT_ADDED"
    PONG = "PONG"
    STATS = "STATS"
    ELEMENTS_LIST = "ELEMENTS_LIST"
    ELEMENT_REMOVED = "ELEMENT_REMOVED"
    ALL_CLEARED = "ALL_CLEARED"
    ERROR = "ERROR"


class Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    element: Any = None
    id: Any = None


def parse_envelope(raw: str | bytes) -> Envelope:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError, UnicodeDecodeError) as exc:
        raise ProtocolError(f"Malformed JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ProtocolError("Message must be a JSON object")
    if not isinstance(data.get("type"), str) or not data["type"]:
        raise ProtocolError("Message is missing a string 'type'")
    try:
        return Envelope.model_validate(data)
    except ValidationError as exc:
        raise ProtocolError(f"Malformed envelope: {exc.errors()[0]['msg']}") from exc


def inbound_kind(envelope: Envelope) -> Inbound:
    try:
        return Inbound(envelope.type)
    except ValueError:
        raise ProtocolError(
            f"Unknown message type: {envelope.type}", kind=envelope.type
        ) from None


def welcome(*, server_version: str, max_elements: int, ttl: int) -> dict[str, Any]:
    return {
        "type": Outbound.WELCOME.value,
        "data": {
            "serverVersion": server_version,
            "maxElements": max_elements,
            "ttl": ttl,
        },
    }


def element_stored(record: Record, *, evicted_id: str | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": record.id,
        "selector": record.selector,
        "timestamp": record.timestamp,
    }
    if evicted_id is not None:
        data["evictedId"] = evicted_id
    return {"type": Outbound.ELEMENT_STORED.value, "data": data}


def element_added(record: Record, *, evicted_id: str | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": record.id,
        "selector": record.selector,
        "url": record.url,
    }
    if evicted_id is not None:
        data["evictedId"] = evicted_id
    return {"type": Outbound.ELEMENT_ADDED.value, "data": data}


def pong(timestamp: int) -> dict[str, Any]:
    return {"type": Outbound.PONG.value, "timestamp": timestamp}


def stats(payload: dict[str, Any]) -> dict[str, Any]:
    return {"type": Outbound.STATS.value, "data": payload}


def elements_list(records: list[Record]) -> dict[str, Any]:
    return {
        "type": Outbound.ELEMENTS_LIST.value,
        "elements": [record.to_payload() for record in records],
    }


def element_removed(record_id: str, removed: bool) -> dict[str, Any]:
    return {"type": Outbound.ELEMENT_REMOVED.value, "id": record_id, "removed": removed}


def all_cleared(count: int) -> dict[str, Any]:
    return {"type": Outbound.ALL_CLEARED.value, "count": count}


def error(
    message: str,
    *,
    code: str = "protocol_error",
    reasons: tuple[str, ...] | list[str] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": Outbound.ERROR.value, "error": message, "code": code}
    if reasons:
        payload["reasons"] = list(reasons)
    return payload
