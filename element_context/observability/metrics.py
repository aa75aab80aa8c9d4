"""Prometheus metrics for the record store and producer sessions."""

from __future__ import annotations

from prometheus_client import Counter, Gauge

records_admitted_total = Counter(
    "element_context_records_admitted_total", "Records admitted into the store"
)
records_rejected_total = Counter(
    "element_context_records_rejected_total",
    "Records rejected by the sanitizer",
    ["reason"],
)
records_evicted_total = Counter(
    "element_context_records_evicted_total", "Records evicted to respect capacity"
)
records_expired_total = Counter(
    "element_context_records_expired_total",
    "Records removed after their TTL elapsed",
    ["path"],
)
records_live = Gauge("element_context_records_live", "Records currently held in the store")
sessions_open = Gauge("element_context_sessions_open", "Open producer sessions")
messages_total = Counter(
    "element_context_messages_total",
    "Inbound producer messages by type",
    ["type"],
)
broadcast_failures_total = Counter(
    "element_context_broadcast_failures_total",
    "Broadcast deliveries that failed for a session",
)
