from __future__ import annotations

import json

import pytest

from conftest import BrokenChannel, RecordingChannel, make_element
from element_context.sessions.registry import SessionRegistry


@pytest.fixture
def registry(store_factory, clock):
    store = store_factory(max_elements=2)
    return SessionRegistry(store, server_version="1.0.0", clock=clock)


def _frame(kind: str, **fields) -> str:
    return json.dumps({"type": kind, **fields})


@pytest.mark.anyio
async def test_open_sends_welcome(registry) -> None:
    channel = RecordingChannel()
    handle = await registry.open(channel, peer="127.0.0.1:5000")
    assert handle in registry.handles()
    assert channel.sent == [
        {
            "type": "WELCOME",
            "data": {"serverVersion": "1.0.0", "maxElements": 2, "ttl": 3_600_000},
        }
    ]


@pytest.mark.anyio
async def test_capture_acks_originator_and_broadcasts_to_others(registry) -> None:
    a, b = RecordingChannel(), RecordingChannel()
    handle_a = await registry.open(a)
    await registry.open(b)

    await registry.handle(handle_a, _frame("ELEMENT_CAPTURED", element=make_element(1)))

    assert len(a.of_type("ELEMENT_STORED")) == 1
    assert a.of_type("ELEMENT_ADDED") == []
    added = b.of_type("ELEMENT_ADDED")
    assert len(added) == 1
    assert added[0]["data"]["id"] == "el-1"
    assert b.of_type("ELEMENT_STORED") == []


@pytest.mark.anyio
async def test_capture_reports_evicted_id(registry) -> None:
    a, b = RecordingChannel(), RecordingChannel()
    handle_a = await registry.open(a)
    await registry.open(b)
    for index in (1, 2, 3):
        await registry.handle(handle_a, _frame("ELEMENT_CAPTURED", element=make_element(index)))
    assert a.of_type("ELEMENT_STORED")[-1]["data"]["evictedId"] == "el-1"
    assert b.of_type("ELEMENT_ADDED")[-1]["data"]["evictedId"] == "el-1"
    assert "evictedId" not in a.of_type("ELEMENT_STORED")[0]["data"]


@pytest.mark.anyio
async def test_invalid_capture_replies_validation_error(registry) -> None:
    a, b = RecordingChannel(), RecordingChannel()
    handle_a = await registry.open(a)
    await registry.open(b)
    await registry.handle(handle_a, _frame("ELEMENT_CAPTURED", element=make_element(1, id="")))
    errors = a.of_type("ERROR")
    assert len(errors) == 1
    assert errors[0]["code"] == "validation_error"
    assert "invalid_id" in errors[0]["reasons"]
    assert b.of_type("ELEMENT_ADDED") == []


@pytest.mark.anyio
async def test_failing_peer_does_not_block_broadcast(registry) -> None:
    a, c = RecordingChannel(), RecordingChannel()
    handle_a = await registry.open(a)
    broken = await registry.open(RecordingChannel())
    registry._sessions[broken].channel = BrokenChannel()
    await registry.open(c)

    await registry.handle(handle_a, _frame("ELEMENT_CAPTURED", element=make_element(1)))

    assert len(a.of_type("ELEMENT_STORED")) == 1
    assert len(c.of_type("ELEMENT_ADDED")) == 1
    assert broken not in registry.handles()
    assert registry.session_count == 2


@pytest.mark.anyio
async def test_every_request_gets_one_reply(registry, clock) -> None:
    channel = RecordingChannel()
    handle = await registry.open(channel)
    channel.sent.clear()

    await registry.handle(handle, _frame("ELEMENT_CAPTURED", element=make_element(1)))
    await registry.handle(handle, _frame("PING"))
    await registry.handle(handle, _frame("GET_STATS"))
    await registry.handle(handle, _frame("GET_ELEMENTS"))
    await registry.handle(handle, _frame("REMOVE_ELEMENT", id="el-1"))
    await registry.handle(handle, _frame("REMOVE_ELEMENT", id="el-1"))
    await registry.handle(handle, _frame("CLEAR_ALL"))

    assert [message["type"] for message in channel.sent] == [
        "ELEMENT_STORED",
        "PONG",
        "STATS",
        "ELEMENTS_LIST",
        "ELEMENT_REMOVED",
        "ELEMENT_REMOVED",
        "ALL_CLEARED",
    ]
    assert channel.sent[1]["timestamp"] == clock.now
    assert channel.sent[2]["data"]["count"] == 1
    assert channel.sent[3]["elements"][0]["id"] == "el-1"
    assert channel.sent[4]["removed"] is True
    assert channel.sent[5]["removed"] is False
    assert channel.sent[6]["count"] == 0


@pytest.mark.anyio
@pytest.mark.parametrize(
    ("frame", "fragment"),
    [
        ("{broken", "Malformed JSON"),
        ('{"type": "TELEPORT"}', "Unknown message type: TELEPORT"),
        ('{"type": "REMOVE_ELEMENT"}', "REMOVE_ELEMENT requires"),
        ("[]", "JSON object"),
    ],
)
async def test_bad_frames_get_error_reply(registry, frame: str, fragment: str) -> None:
    channel = RecordingChannel()
    handle = await registry.open(channel)
    channel.sent.clear()
    await registry.handle(handle, frame)
    assert len(channel.sent) == 1
    assert channel.sent[0]["type"] == "ERROR"
    assert fragment in channel.sent[0]["error"]
    assert handle in registry.handles()


@pytest.mark.anyio
async def test_closed_handle_drops_messages(registry) -> None:
    channel = RecordingChannel()
    handle = await registry.open(channel)
    registry.close(handle)
    registry.close(handle)
    channel.sent.clear()
    assert await registry.send(handle, {"type": "PONG"}) is False
    await registry.handle(handle, _frame("PING"))
    assert channel.sent == []


@pytest.mark.anyio
async def test_send_failure_closes_session(registry) -> None:
    handle = await registry.open(RecordingChannel())
    registry._sessions[handle].channel = BrokenChannel()
    assert await registry.send(handle, {"type": "PONG"}) is False
    assert registry.session_count == 0


@pytest.mark.anyio
async def test_close_all(registry) -> None:
    await registry.open(RecordingChannel())
    await registry.open(RecordingChannel())
    assert registry.close_all() == 2
    assert registry.session_count == 0


@pytest.mark.anyio
async def test_open_reports_undeliverable_welcome(registry) -> None:
    assert await registry.open(BrokenChannel(), peer="127.0.0.1:5001") is None
    assert registry.session_count == 0
    assert registry.handles() == []
