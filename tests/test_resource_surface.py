from __future__ import annotations

import json

import pytest

from conftest import make_element
from element_context.query.facade import QueryFacade
from element_context.surfaces.resources import (
    LIST_URI,
    InvalidResourceURIError,
    ResourceNotFoundError,
    ResourceSurface,
)


@pytest.fixture
def surface(store_factory):
    store = store_factory()
    store.admit(make_element(1, screenshot="data:image/png;base64,iVBORw0KGgo="))
    store.admit(make_element(2, url="https://docs.example.org/a"))
    store.admit(make_element(3, screenshot="data:image/png;base64,!!!"))
    return ResourceSurface(QueryFacade(store))


def test_list_resources(surface) -> None:
    uris = [resource.uri for resource in surface.list_resources()]
    assert uris[0] == LIST_URI
    assert "element://el-1" in uris
    assert "element://el-1/screenshot" in uris
    assert "element://el-2/screenshot" not in uris
    element = next(r for r in surface.list_resources() if r.uri == "element://el-2")
    assert element.name == "Element: #item-2"
    assert element.description == "Captured from docs.example.org"
    assert element.mime_type == "application/json"


def test_read_list_and_element(surface) -> None:
    listed = json.loads(surface.read(LIST_URI).text)
    assert len(listed) == 3
    content = surface.read("element://el-2")
    assert content.mime_type == "application/json"
    assert json.loads(content.text)["id"] == "el-2"


def test_read_screenshot_returns_binary(surface) -> None:
    content = surface.read("element://el-1/screenshot")
    assert content.mime_type == "image/png"
    assert content.blob.startswith(b"\x89PNG")
    assert content.text is None


@pytest.mark.parametrize(
    ("uri", "error", "message"),
    [
        ("http://el-1", InvalidResourceURIError, "Invalid resource URI: http://el-1"),
        ("element://el-1/thumbnail", InvalidResourceURIError, "Invalid resource URI"),
        ("element://missing", ResourceNotFoundError, "Element not found: missing"),
        ("element://missing/screenshot", ResourceNotFoundError, "Element not found: missing"),
        ("element://el-2/screenshot", ResourceNotFoundError, "No screenshot available for element: el-2"),
        ("element://el-3/screenshot", ResourceNotFoundError, "No screenshot available for element: el-3"),
    ],
)
def test_read_errors(surface, uri: str, error: type, message: str) -> None:
    with pytest.raises(error) as excinfo:
        surface.read(uri)
    assert message in str(excinfo.value)
