from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from conftest import make_element
from element_context.api.app import create_app
from element_context.config import AppConfig
from element_context.container import build_container


@pytest.fixture
def container(clock):
    config = AppConfig(storage={"max_elements": 3}, websocket={"max_message_bytes": 4096})
    container = build_container(config, clock=clock, start_sweeper=False)
    yield container
    container.shutdown()


def test_producers_receive_welcome_ack_and_broadcast(container) -> None:
    with TestClient(create_app(container)) as client, client.websocket_connect(
        "/"
    ) as producer, client.websocket_connect("/ws") as observer:
        assert producer.receive_json()["type"] == "WELCOME"
        welcome = observer.receive_json()
        assert welcome["data"]["maxElements"] == 3

        producer.send_text(json.dumps({"type": "ELEMENT_CAPTURED", "element": make_element(1)}))
        stored = producer.receive_json()
        assert stored["type"] == "ELEMENT_STORED"
        assert stored["data"]["id"] == "el-1"
        added = observer.receive_json()
        assert added == {
            "type": "ELEMENT_ADDED",
            "data": {"id": "el-1", "selector": "#item-1", "url": "https://example.com/page/1"},
        }

        producer.send_text(json.dumps({"type": "PING"}))
        assert producer.receive_json()["type"] == "PONG"
    assert container.registry.session_count == 0
    assert container.facade.get_detail("el-1") is not None


def test_oversized_frame_gets_error_and_session_survives(container) -> None:
    with TestClient(create_app(container)) as client, client.websocket_connect("/") as producer:
        producer.receive_json()
        big = make_element(1, html="x" * 5000)
        producer.send_text(json.dumps({"type": "ELEMENT_CAPTURED", "element": big}))
        error = producer.receive_json()
        assert error["type"] == "ERROR"
        assert "4096" in error["error"]
        producer.send_text(json.dumps({"type": "GET_STATS"}))
        assert producer.receive_json()["data"]["count"] == 0


def test_binary_frames_are_decoded(container) -> None:
    with TestClient(create_app(container)) as client, client.websocket_connect("/") as producer:
        producer.receive_json()
        producer.send_bytes(json.dumps({"type": "GET_ELEMENTS"}).encode("utf-8"))
        assert producer.receive_json() == {"type": "ELEMENTS_LIST", "elements": []}


@pytest.mark.anyio
async def test_health_and_metrics(container, async_client_factory) -> None:
    container.store.admit(make_element(1))
    app = create_app(container)
    async with async_client_factory(app) as client:
        health = await client.get("/health")
        metrics = await client.get("/metrics")
    assert health.status_code == 200
    assert health.json() == {"status": "ok", "records": 1, "capacity": 3, "sessions": 0}
    assert metrics.status_code == 200
    assert "records_admitted_total" in metrics.text
