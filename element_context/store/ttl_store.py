"""Bounded, time-expiring in-memory store for captured element records."""

from __future__ import annotations

import itertools
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Union

from ..config import LimitsConfig, StorageConfig
from ..logging_utils import get_logger
from ..observability import metrics
from ..records.models import Record, Rejected
from ..records.sanitizer import sanitize
from ..time_utils import now_ms
from .sweeper import ExpirySweeper


@dataclass(frozen=True)
class StoreEntry:
    record: Record
    expires_at: int
    sequence: int

    def expired(self, now: int) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class Admitted:
    record: Record


@dataclass(frozen=True)
class CapacityEvicted:
    record: Record
    evicted_id: str


@dataclass(frozen=True)
class Invalid:
    rejection: Rejected

    @property
    def reasons(self) -> tuple[str, ...]:
        return self.rejection.reasons


AdmitResult = Union[Admitted, CapacityEvicted, Invalid]


@dataclass(frozen=True)
class StoreStats:
    count: int
    capacity: int
    ttl: int
    oldest_timestamp: int | None
    newest_timestamp: int | None

    def to_payload(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "capacity": self.capacity,
            "ttl": self.ttl,
            "oldestTimestamp": self.oldest_timestamp,
            "newestTimestamp": self.newest_timestamp,
        }


class TTLStore:
    """Capacity- and TTL-bounded record store with FIFO eviction.

    Eviction order is the admission sequence, kept explicitly in a deque of
    ``(sequence, id)`` pairs next to the id lookup map. Display order uses the
    record timestamp instead. Every public operation holds ``_lock`` for its
    whole read-modify-write so the sweeper thread cannot interleave.
    """

    def __init__(
        self,
        config: StorageConfig | None = None,
        limits: LimitsConfig | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        start_sweeper: bool = True,
    ) -> None:
        self._config = config or StorageConfig()
        self._limits = limits or LimitsConfig()
        self._clock = clock
        self._log = get_logger("store")
        self._lock = threading.RLock()
        self._entries: dict[str, StoreEntry] = {}
        self._order: deque[tuple[int, str]] = deque()
        self._sequence = itertools.count(1)
        self._sweeper = ExpirySweeper(
            self.sweep, interval_s=self._config.sweep_interval_ms / 1000.0
        )
        self._closed = False
        if start_sweeper:
            self._sweeper.start()

    @property
    def capacity(self) -> int:
        return self._config.max_elements

    @property
    def ttl_ms(self) -> int:
        return self._config.ttl_ms

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper.running

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock(), path="lazy")
            return len(self._entries)

    def admit(self, raw: Any) -> AdmitResult:
        verdict = sanitize(raw, self._limits)
        if isinstance(verdict, Rejected):
            for reason in verdict.reasons:
                metrics.records_rejected_total.labels(reason.split(":", 1)[0]).inc()
            self._log.warning("Invalid element data: {}", ", ".join(verdict.reasons))
            return Invalid(verdict)

        record = verdict
        with self._lock:
            now = self._clock()
            self._purge_expired(now, path="lazy")
            if record.id in self._entries:
                # Re-submitting an id replaces the old entry; not an eviction.
                del self._entries[record.id]
            evicted_id: str | None = None
            if len(self._entries) >= self.capacity:
                evicted_id = self._evict_oldest()
            sequence = next(self._sequence)
            self._entries[record.id] = StoreEntry(
                record=record,
                expires_at=now + self.ttl_ms,
                sequence=sequence,
            )
            self._order.append((sequence, record.id))
            self._compact_order()
            live = len(self._entries)

        metrics.records_admitted_total.inc()
        metrics.records_live.set(live)
        self._log.info("Added element {} ({})", record.id, record.selector)
        if evicted_id is not None:
            metrics.records_evicted_total.inc()
            self._log.info("Removed oldest element {} to maintain size limit", evicted_id)
            return CapacityEvicted(record=record.detached(), evicted_id=evicted_id)
        return Admitted(record=record.detached())

    def get(self, record_id: str) -> Record | None:
        with self._lock:
            entry = self._entries.get(record_id)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[record_id]
                metrics.records_expired_total.labels("lazy").inc()
                metrics.records_live.set(len(self._entries))
                return None
            return entry.record.detached()

    def list(self) -> list[Record]:
        with self._lock:
            return [record.detached() for record in self._live_records()]

    def search(self, query: str) -> list[Record]:
        lowered = query.lower()
        with self._lock:
            return [
                record.detached()
                for record in self._live_records()
                if record.matches(lowered)
            ]

    def remove(self, record_id: str) -> bool:
        with self._lock:
            entry = self._entries.pop(record_id, None)
            live = len(self._entries)
        if entry is None:
            return False
        metrics.records_live.set(live)
        self._log.info("Removed element {}", record_id)
        return True

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._order.clear()
        metrics.records_live.set(0)
        self._log.info("Cleared {} elements from storage", count)
        return count

    def stats(self) -> StoreStats:
        with self._lock:
            records = self._live_records()
        timestamps = [record.timestamp for record in records]
        return StoreStats(
            count=len(records),
            capacity=self.capacity,
            ttl=self.ttl_ms,
            oldest_timestamp=min(timestamps) if timestamps else None,
            newest_timestamp=max(timestamps) if timestamps else None,
        )

    def sweep(self) -> int:
        with self._lock:
            return self._purge_expired(self._clock(), path="sweep")

    def teardown(self) -> None:
        self._sweeper.stop()
        with self._lock:
            already_closed = self._closed
            self._closed = True
        self.clear()
        if not already_closed:
            self._log.info("Element storage torn down")

    def _live_records(self) -> list[Record]:
        self._purge_expired(self._clock(), path="lazy")
        entries = sorted(
            self._entries.values(),
            key=lambda entry: (entry.record.timestamp, entry.sequence),
            reverse=True,
        )
        return [entry.record for entry in entries]

    def _purge_expired(self, now: int, *, path: str) -> int:
        expired = [
            record_id for record_id, entry in self._entries.items() if entry.expired(now)
        ]
        for record_id in expired:
            del self._entries[record_id]
        if expired:
            metrics.records_expired_total.labels(path).inc(len(expired))
            metrics.records_live.set(len(self._entries))
        return len(expired)

    def _evict_oldest(self) -> str | None:
        while self._order:
            sequence, record_id = self._order.popleft()
            entry = self._entries.get(record_id)
            if entry is not None and entry.sequence == sequence:
                del self._entries[record_id]
                return record_id
        return None

    def _compact_order(self) -> None:
        # Removed and replaced ids leave stale pairs behind in the deque.
        if len(self._order) <= 2 * len(self._entries) + 16:
            return
        live = sorted(self._entries.values(), key=lambda entry: entry.sequence)
        self._order = deque((entry.sequence, entry.record.id) for entry in live)
