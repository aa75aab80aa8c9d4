from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import httpx
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from element_context.config import StorageConfig  # noqa: E402
from element_context.store.ttl_store import TTLStore  # noqa: E402


class FakeClock:
    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingChannel:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []

    async def send_json(self, data: Any) -> None:
        self.sent.append(data)

    def of_type(self, kind: str) -> list[dict[str, Any]]:
        return [message for message in self.sent if message.get("type") == kind]


class BrokenChannel:
    async def send_json(self, data: Any) -> None:
        raise ConnectionError("socket closed")


def make_element(index: int = 1, **overrides: Any) -> dict[str, Any]:
    element: dict[str, Any] = {
        "id": f"el-{index}",
        "timestamp": 1_700_000_000_000 + index,
        "url": f"https://example.com/page/{index}",
        "selector": f"#item-{index}",
        "html": f"<div id=\"item-{index}\">Item {index}</div>",
        "text": f"Item {index}",
        "attributes": {"id": f"item-{index}", "class": "card"},
        "computed": {"display": "block", "color": "rgb(0, 0, 0)"},
        "bounds": {"x": 10, "y": 20, "width": 100, "height": 40},
        "context": {"parent": "body", "siblings": 2, "children": 0},
        "screenshot": "",
    }
    element.update(overrides)
    return element


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store_factory(clock: FakeClock):
    stores: list[TTLStore] = []

    def _factory(**storage: Any) -> TTLStore:
        store = TTLStore(StorageConfig(**storage), clock=clock, start_sweeper=False)
        stores.append(store)
        return store

    yield _factory
    for store in stores:
        store.teardown()


@pytest.fixture
def async_client_factory():
    def _factory(app):
        transport = httpx.ASGITransport(app=app)
        return httpx.AsyncClient(transport=transport, base_url="http://testserver")

    return _factory
