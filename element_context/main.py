"""Application bootstrap / CLI.

``run`` binds the producer WebSocket listener, then serves the MCP tool and
resource surfaces on stdio until the client goes away or a signal arrives.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import signal
import sys

from .api.app import create_app
from .api.listener import ProducerListener, bind_listener
from .config import AppConfig, resolve_config
from .container import AppContainer, build_container
from .errors import InstanceLockError, ListenerBindError
from .instance import InstanceLock
from .logging_utils import configure_logging, get_logger
from .surfaces.server import build_mcp_server, serve_stdio

logger = get_logger("cli")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="element-context")
    p.add_argument(
        "--config",
        default=None,
        help="Path to config YAML (default: ELEMENT_CONTEXT_CONFIG or built-in defaults).",
    )
    p.add_argument("--log-level", default=None, help="Override logging.level.")
    sub = p.add_subparsers(dest="cmd", required=False)
    sub.add_parser("run", help="Run the WebSocket listener and MCP server (default).")
    sub.add_parser("print-config", help="Load config and print resolved values.")
    return p.parse_args(argv)


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


async def _serve(container: AppContainer) -> None:
    config = container.config
    if not config.mcp.enabled:
        logger.info("MCP surface disabled; serving producers only")
        await asyncio.Event().wait()
        return
    server = build_mcp_server(
        container.tools,
        container.resources,
        name=config.mcp.server_name,
        version=container.version,
    )
    logger.info("MCP server started (stdio transport)")
    await serve_stdio(server)
    logger.info("MCP client disconnected")


def run(config: AppConfig) -> int:
    lock = InstanceLock(config.instance.lock_path) if config.instance.lock_path else None
    if lock is not None:
        try:
            lock.acquire()
        except InstanceLockError as exc:
            logger.error("{}", exc)
            return 1

    container = build_container(config)
    logger.info("Initializing element storage...")
    logger.info("  Max elements: {}", config.storage.max_elements)
    logger.info("  TTL: {}s", config.storage.ttl_ms / 1000)

    try:
        sock, port = bind_listener(config.websocket)
    except ListenerBindError as exc:
        logger.error("Failed to start server: {}", exc)
        container.shutdown()
        if lock is not None:
            lock.release()
        return 1

    listener = ProducerListener(
        create_app(container),
        sock,
        port,
        container.listener_state,
        ws_max_size=config.websocket.max_message_bytes * 2,
    )
    listener.start()
    logger.info("Extension should connect to: ws://{}:{}", config.websocket.host, port)

    signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        asyncio.run(_serve(container))
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully...")
    finally:
        listener.stop()
        container.shutdown()
        if lock is not None:
            lock.release()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        config = resolve_config(args.config)
    except (OSError, ValueError) as exc:
        configure_logging(level=args.log_level or "INFO")
        logger.error("Config load failed: {}", exc)
        return 2

    if args.cmd == "print-config":
        print(json.dumps(config.model_dump(mode="json"), indent=2))
        return 0

    configure_logging(config.logging.log_dir, args.log_level or config.logging.level)
    return run(config)


if __name__ == "__main__":
    raise SystemExit(main())
