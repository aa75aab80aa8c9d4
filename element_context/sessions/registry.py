"""Session table, request/reply correlation and broadcast fan-out."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from ..errors import ProtocolError
from ..logging_utils import get_logger
from ..observability import metrics
from ..store.ttl_store import CapacityEvicted, Invalid, TTLStore
from ..time_utils import now_ms
from . import protocol
from .protocol import Inbound


class Channel(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass
class Session:
    handle: str
    channel: Channel
    peer: str


class SessionRegistry:
    """Tracks open producer/consumer channels keyed by opaque handles.

    Handles live only as long as the connection; nothing about a session
    outlives ``close``.
    """

    def __init__(
        self,
        store: TTLStore,
        *,
        server_version: str,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._server_version = server_version
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._log = get_logger("sessions")

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    def handles(self) -> list[str]:
        return list(self._sessions)

    async def open(self, channel: Channel, *, peer: str = "unknown") -> str | None:
        """Register ``channel`` and greet it; ``None`` if the greeting fails."""

        handle = secrets.token_hex(8)
        self._sessions[handle] = Session(handle=handle, channel=channel, peer=peer)
        metrics.sessions_open.set(len(self._sessions))
        self._log.info("Extension client connected: {} ({})", peer, handle)
        welcomed = await self.send(
            handle,
            protocol.welcome(
                server_version=self._server_version,
                max_elements=self._store.capacity,
                ttl=self._store.ttl_ms,
            ),
        )
        return handle if welcomed else None

    def close(self, handle: str) -> None:
        session = self._sessions.pop(handle, None)
        metrics.sessions_open.set(len(self._sessions))
        if session is not None:
            self._log.info("Extension client disconnected: {} ({})", session.peer, handle)

    def close_all(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        metrics.sessions_open.set(0)
        return count

    async def send(self, handle: str, message: dict[str, Any]) -> bool:
        """Send to one session; unknown or closed handles drop the message."""

        session = self._sessions.get(handle)
        if session is None:
            self._log.debug("Dropping {} for closed session {}", message.get("type"), handle)
            return False
        try:
            await session.channel.send_json(message)
        except Exception as exc:
            self._log.warning("Send to {} failed: {}", handle, exc)
            self.close(handle)
            return False
        return True

    async def broadcast(self, message: dict[str, Any], *, exclude: str | None = None) -> int:
        """Deliver ``message`` to every session but ``exclude``.

        Failures are isolated per session; the failing session is dropped and
        delivery continues with the rest.
        """

        delivered = 0
        for handle, session in list(self._sessions.items()):
            if handle == exclude:
                continue
            try:
                await session.channel.send_json(message)
            except Exception as exc:
                metrics.broadcast_failures_total.inc()
                self._log.warning("Broadcast to {} failed: {}", handle, exc)
                self.close(handle)
                continue
            delivered += 1
        return delivered

    async def handle(self, handle: str, raw: str | bytes) -> None:
        """Process one inbound frame and send exactly one reply."""

        try:
            envelope = protocol.parse_envelope(raw)
            kind = protocol.inbound_kind(envelope)
        except ProtocolError as exc:
            metrics.messages_total.labels("invalid").inc()
            self._log.warning("Protocol error from {}: {}", handle, exc)
            await self.send(handle, protocol.error(str(exc)))
            return

        metrics.messages_total.labels(kind.value).inc()
        self._log.debug("Message from {}: {}", handle, kind.value)
        try:
            await self._dispatch(handle, kind, envelope)
        except ProtocolError as exc:
            self._log.warning("Protocol error from {}: {}", handle, exc)
            await self.send(handle, protocol.error(str(exc)))
        except Exception as exc:
            self._log.exception("Error handling {} from {}", kind.value, handle)
            await self.send(handle, protocol.error(str(exc), code="internal_error"))

    async def _dispatch(
        self, handle: str, kind: Inbound, envelope: protocol.Envelope
    ) -> None:
        if kind is Inbound.ELEMENT_CAPTURED:
            await self._element_captured(handle, envelope.element)
        elif kind is Inbound.PING:
            await self.send(handle, protocol.pong(self._clock()))
        elif kind is Inbound.GET_STATS:
            await self.send(handle, protocol.stats(self._store.stats().to_payload()))
        elif kind is Inbound.GET_ELEMENTS:
            await self.send(handle, protocol.elements_list(self._store.list()))
        elif kind is Inbound.REMOVE_ELEMENT:
            record_id = envelope.id
            if not isinstance(record_id, str) or not record_id:
                raise ProtocolError("REMOVE_ELEMENT requires a string 'id'")
            removed = self._store.remove(record_id)
            await self.send(handle, protocol.element_removed(record_id, removed))
        elif kind is Inbound.CLEAR_ALL:
            count = self._store.clear()
            await self.send(handle, protocol.all_cleared(count))

    async def _element_captured(self, handle: str, element: Any) -> None:
        result = self._store.admit(element)
        if isinstance(result, Invalid):
            await self.send(
                handle,
                protocol.error(
                    result.rejection.message,
                    code="validation_error",
                    reasons=result.reasons,
                ),
            )
            return
        evicted_id = result.evicted_id if isinstance(result, CapacityEvicted) else None
        await self.send(handle, protocol.element_stored(result.record, evicted_id=evicted_id))
        await self.broadcast(
            protocol.element_added(result.record, evicted_id=evicted_id),
            exclude=handle,
        )
