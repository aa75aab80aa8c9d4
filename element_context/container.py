"""Composition root wiring the store, sessions and query surfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .api.listener import ListenerState
from .config import AppConfig
from .logging_utils import get_logger
from .query.facade import QueryFacade
from .sessions.registry import SessionRegistry
from .store.ttl_store import TTLStore
from .surfaces.resources import ResourceSurface
from .surfaces.tools import ToolSurface
from .time_utils import now_ms
from .version import __version__


@dataclass(frozen=True)
class AppContainer:
    config: AppConfig
    version: str
    store: TTLStore
    registry: SessionRegistry
    facade: QueryFacade
    tools: ToolSurface
    resources: ResourceSurface
    listener_state: ListenerState

    def shutdown(self) -> None:
        closed = self.registry.close_all()
        self.store.teardown()
        get_logger("container").info("Shutdown complete ({} sessions dropped)", closed)


def build_container(
    config: AppConfig,
    *,
    clock: Callable[[], int] = now_ms,
    start_sweeper: bool = True,
) -> AppContainer:
    store = TTLStore(config.storage, config.limits, clock=clock, start_sweeper=start_sweeper)
    registry = SessionRegistry(store, server_version=__version__, clock=clock)
    listener_state = ListenerState(host=config.websocket.host)

    def _status() -> dict[str, Any]:
        return {
            "running": listener_state.running,
            "port": listener_state.port,
            "clients": registry.session_count,
        }

    facade = QueryFacade(store, status_provider=_status)
    return AppContainer(
        config=config,
        version=__version__,
        store=store,
        registry=registry,
        facade=facade,
        tools=ToolSurface(facade),
        resources=ResourceSurface(facade),
        listener_state=listener_state,
    )
