"""Captured element records and their sanitizer."""

from .models import Record, Rejected
from .sanitizer import TRUNCATION_MARKER, sanitize

__all__ = ["Record", "Rejected", "sanitize", "TRUNCATION_MARKER"]
