"""FastAPI assembly for the producer-facing WebSocket endpoint."""

from __future__ import annotations

from fastapi import APIRouter, FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from ..container import AppContainer
from ..logging_utils import get_logger
from ..sessions import protocol


def _frame_size(raw: str | bytes) -> int:
    if isinstance(raw, bytes):
        return len(raw)
    return len(raw.encode("utf-8"))


def build_router(container: AppContainer) -> APIRouter:
    router = APIRouter()
    registry = container.registry
    store = container.store
    max_message_bytes = container.config.websocket.max_message_bytes
    log = get_logger("api")

    async def producer_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        client = websocket.client
        peer = f"{client.host}:{client.port}" if client else "unknown"
        handle = await registry.open(websocket, peer=peer)
        if handle is None:
            # Returning from the handler closes the connection.
            log.warning("Dropping {}: welcome could not be delivered", peer)
            return
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                if raw is None:
                    continue
                if _frame_size(raw) > max_message_bytes:
                    log.warning("Rejected oversized frame from {}", peer)
                    await registry.send(
                        handle,
                        protocol.error(f"Message exceeds {max_message_bytes} bytes"),
                    )
                    continue
                await registry.handle(handle, raw)
        except WebSocketDisconnect:
            pass
        finally:
            registry.close(handle)

    router.add_api_websocket_route("/", producer_socket)
    router.add_api_websocket_route("/ws", producer_socket)

    @router.get("/health")
    def health() -> dict[str, object]:
        return {
            "status": "ok",
            "records": len(store),
            "capacity": store.capacity,
            "sessions": registry.session_count,
        }

    @router.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return router


def create_app(container: AppContainer) -> FastAPI:
    app = FastAPI(
        title="Element Context Relay",
        version=container.version,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.container = container
    app.include_router(build_router(container))
    return app
