"""Exception types raised at process and presentation boundaries.

Store and sanitizer code never raise for missing or expired records; absence
is a normal return value. These exceptions cover the remaining cases.
"""

from __future__ import annotations


class ElementContextError(Exception):
    """Base class for element context relay errors."""


class ProtocolError(ElementContextError):
    """Malformed envelope or unknown message kind from a session."""

    def __init__(self, message: str, *, kind: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind


class ListenerBindError(ElementContextError):
    """No configured port could be bound for the producer listener."""

    def __init__(self, host: str, ports: list[int]) -> None:
        joined = ", ".join(str(port) for port in ports)
        super().__init__(f"All ports in use on {host}: {joined}")
        self.host = host
        self.ports = list(ports)


class InstanceLockError(ElementContextError):
    """Another live server instance owns the lockfile."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Server already running (pid {pid})")
        self.pid = pid
