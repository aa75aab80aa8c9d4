"""Single-instance guard backed by a JSON lockfile."""

from __future__ import annotations

import json
import os
from pathlib import Path

import psutil

from .errors import InstanceLockError
from .logging_utils import get_logger
from .time_utils import now_ms


class InstanceLock:
    """Claim ``path`` for this process; a live owner blocks the claim.

    Stale lockfiles (dead pid, unreadable JSON) are removed and reclaimed.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._pid = os.getpid()
        self._held = False
        self._log = get_logger("instance")

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        owner = self._read_owner()
        if owner is not None and owner != self._pid and psutil.pid_exists(owner):
            raise InstanceLockError(owner)
        if owner is not None:
            self._log.info("Removing stale lockfile {} (pid {})", self._path, owner)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"pid": self._pid, "startedAt": now_ms()}
        self._path.write_text(json.dumps(payload), encoding="utf-8")
        self._held = True

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        if self._read_owner() == self._pid:
            self._path.unlink(missing_ok=True)

    def _read_owner(self) -> int | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return int(data["pid"])
        except (OSError, ValueError, TypeError, KeyError):
            self._log.warning("Ignoring unreadable lockfile {}", self._path)
            self._path.unlink(missing_ok=True)
            return None

    def __enter__(self) -> "InstanceLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
