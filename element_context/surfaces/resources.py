"""Named-resource surface over the query facade."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from ..errors import ElementContextError
from ..query.facade import QueryFacade

LIST_URI = "element://list"
JSON_MIME = "application/json"

_ELEMENT_URI = re.compile(r"^element://(?P<id>[^/]+)(?:/(?P<sub>.+))?$")


class ResourceNotFoundError(ElementContextError):
    pass


class InvalidResourceURIError(ElementContextError):
    pass


@dataclass(frozen=True)
class ResourceDescriptor:
    uri: str
    name: str
    description: str
    mime_type: str


@dataclass(frozen=True)
class ResourceContent:
    uri: str
    mime_type: str
    text: str | None = None
    blob: bytes | None = None


class ResourceSurface:
    def __init__(self, facade: QueryFacade) -> None:
        self._facade = facade

    def list_resources(self) -> list[ResourceDescriptor]:
        summaries = self._facade.list_summaries()
        resources = [
            ResourceDescriptor(
                uri=LIST_URI,
                name="Captured Elements List",
                description=f"List of {len(summaries)} captured elements",
                mime_type=JSON_MIME,
            )
        ]
        for summary in summaries:
            record_id = summary["id"]
            selector = summary["selector"]
            resources.append(
                ResourceDescriptor(
                    uri=f"element://{record_id}",
                    name=f"Element: {selector}",
                    description=f"Captured from {_hostname(summary['url'])}",
                    mime_type=JSON_MIME,
                )
            )
            if summary["hasScreenshot"]:
                resources.append(
                    ResourceDescriptor(
                        uri=f"element://{record_id}/screenshot",
                        name=f"Screenshot: {selector}",
                        description=f"Visual capture of {selector}",
                        mime_type="image/png",
                    )
                )
        return resources

    def read(self, uri: str) -> ResourceContent:
        if uri == LIST_URI:
            return ResourceContent(
                uri=uri,
                mime_type=JSON_MIME,
                text=json.dumps(self._facade.list_summaries(), indent=2),
            )

        match = _ELEMENT_URI.match(uri)
        if not match:
            raise InvalidResourceURIError(f"Invalid resource URI: {uri}")
        record_id, sub_resource = match.group("id"), match.group("sub")

        if sub_resource is None:
            detail = self._facade.get_detail(record_id)
            if detail is None:
                raise ResourceNotFoundError(f"Element not found: {record_id}")
            return ResourceContent(uri=uri, mime_type=JSON_MIME, text=json.dumps(detail, indent=2))

        if sub_resource != "screenshot":
            raise InvalidResourceURIError(f"Invalid resource URI: {uri}")
        if not self._facade.has_record(record_id):
            raise ResourceNotFoundError(f"Element not found: {record_id}")
        blob = self._facade.get_screenshot(record_id)
        if blob is None:
            raise ResourceNotFoundError(f"No screenshot available for element: {record_id}")
        return ResourceContent(uri=uri, mime_type=blob.mime_type, blob=blob.data)


def _hostname(url: str) -> str:
    return urlsplit(url).hostname or url
