"""Bounded, expiring record storage."""

from .ttl_store import Admitted, AdmitResult, CapacityEvicted, Invalid, StoreStats, TTLStore

__all__ = [
    "TTLStore",
    "Admitted",
    "AdmitResult",
    "CapacityEvicted",
    "Invalid",
    "StoreStats",
]
