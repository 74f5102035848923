"""Bounded in-memory record of generation attempts."""

from __future__ import annotations

import secrets
import string
import threading
import time
from collections import deque
from typing import Any

from .errors import ValidationError
from .models import InteractionLogEntry, LogPage, parse_model

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_log_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"log-{int(time.time() * 1000)}-{suffix}"


class InteractionLog:
    """Ring buffer of interaction log entries; oldest entries are evicted first."""

    def __init__(self, capacity: int = 1000):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._buffer: deque[InteractionLogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._evicted = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def append(self, entry: InteractionLogEntry | dict[str, Any]) -> InteractionLogEntry:
        entry = parse_model(InteractionLogEntry, entry)
        if not entry.id:
            entry = entry.model_copy(update={"id": new_log_id()})
        with self._lock:
            if any(existing.id == entry.id for existing in self._buffer):
                raise ValidationError(f"Log entry id already exists: {entry.id}", {"id": entry.id})
            if len(self._buffer) == self._capacity:
                self._evicted += 1
            self._buffer.append(entry)
        return entry

    def entries(self) -> list[InteractionLogEntry]:
        """All retained entries in insertion order."""
        with self._lock:
            return list(self._buffer)

    def query(self, registry_id: str | None = None, limit: int = 50, offset: int = 0) -> LogPage:
        limit = max(0, limit)
        offset = max(0, offset)
        items = self.entries()
        if registry_id:
            items = [item for item in items if item.registry_id == registry_id]
        # Newest first; insertion order breaks ties between equal timestamps.
        items.reverse()
        items.sort(key=lambda item: item.created_at, reverse=True)
        total = len(items)
        return LogPage(
            logs=items[offset:offset + limit],
            total=total,
            has_more=offset + limit < total,
        )

    def clear(self) -> int:
        with self._lock:
            count = len(self._buffer)
            self._buffer.clear()
        return count

    def stats(self) -> dict:
        with self._lock:
            return {
                "size": len(self._buffer),
                "capacity": self._capacity,
                "evicted": self._evicted,
            }
