"""Producer-facing WebSocket listener: port binding and the uvicorn thread."""

from __future__ import annotations

import errno
import os
import socket
import threading
from dataclasses import dataclass

import uvicorn
from fastapi import FastAPI

from ..config import WebSocketConfig
from ..errors import ListenerBindError
from ..logging_utils import get_logger

_RETRYABLE_BIND_ERRORS = {errno.EADDRINUSE, errno.EACCES}


@dataclass
class ListenerState:
    host: str
    port: int | None = None
    running: bool = False


def bind_listener(config: WebSocketConfig) -> tuple[socket.socket, int]:
    """Bind the first free candidate port; raise ``ListenerBindError`` if none is."""

    log = get_logger("listener")
    family = socket.AF_INET6 if ":" in config.host else socket.AF_INET
    ports = config.candidate_ports()
    for port in ports:
        sock = socket.socket(family, socket.SOCK_STREAM)
        if os.name != "nt":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((config.host, port))
            sock.listen(128)
        except OSError as exc:
            sock.close()
            if exc.errno in _RETRYABLE_BIND_ERRORS:
                log.warning("Port {} in use, trying next...", port)
                continue
            raise ListenerBindError(config.host, [port]) from exc
        return sock, port
    raise ListenerBindError(config.host, ports)


class ProducerListener(threading.Thread):
    """Serve the producer app on a pre-bound socket from a daemon thread."""

    def __init__(
        self,
        app: FastAPI,
        sock: socket.socket,
        port: int,
        state: ListenerState,
        *,
        ws_max_size: int,
    ) -> None:
        super().__init__(name="element-context-listener", daemon=True)
        self._sock = sock
        self._port = port
        self._state = state
        self._log = get_logger("listener")
        self._server = uvicorn.Server(
            uvicorn.Config(
                app,
                log_level="warning",
                lifespan="off",
                ws_max_size=ws_max_size,
            )
        )

    @property
    def port(self) -> int:
        return self._port

    def run(self) -> None:
        self._state.port = self._port
        self._state.running = True
        self._log.info("WebSocket server listening on port {}", self._port)
        try:
            self._server.run(sockets=[self._sock])
        finally:
            self._state.running = False
            self._sock.close()

    def stop(self, timeout: float = 5.0) -> None:
        self._log.info("Stopping WebSocket server...")
        self._server.should_exit = True
        if self.is_alive():
            self.join(timeout=timeout)
        self._state.running = False
