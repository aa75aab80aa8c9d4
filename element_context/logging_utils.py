"""Structured logging configuration built on top of loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .security.redaction import redact_text


def _redact_record(record) -> None:
    record["message"] = redact_text(record["message"])


def configure_logging(log_dir: Path | str | None = None, level: str = "INFO") -> None:
    """Configure Loguru sinks for stderr and optional file output.

    stdout carries the MCP stdio transport, so console output goes to stderr.
    """

    logger.remove()
    logger.configure(extra={"component": "app"}, patcher=_redact_record)

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "pid={process} | "
        "<cyan>{extra[component]}</cyan> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=log_format,
        colorize=False,
        level=level,
    )

    if log_dir is None:
        return

    path = Path(log_dir)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.warning("File logging disabled; cannot create {}: {}", path, exc)
        return
    logger.add(
        path / "element-context.log",
        rotation="1 day",
        retention="14 days",
        compression="gz",
        level=level,
        backtrace=False,
        diagnose=False,
        format=log_format,
    )


def get_logger(name: Optional[str] = None):
    """Return a child logger with contextualized name."""

    if name:
        return logger.bind(component=name)
    return logger
