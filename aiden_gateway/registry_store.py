"""In-memory registry of model backends with health re-probing."""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from typing import Any

from .errors import NotFoundError, ValidationError
from .health import HealthProber
from .models import RegistryEntry, RegistryEntryCreate, parse_model, utcnow

logger = logging.getLogger(__name__)


class RegistryStore:
    """Process-lifetime mapping of id -> RegistryEntry.

    Entries are treated as immutable values: every mutation stores a new
    model. The lock guards the map only and is never held across a probe.
    """

    def __init__(self, prober: HealthProber):
        self._prober = prober
        self._lock = threading.Lock()
        self._entries: dict[str, RegistryEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        with self._lock:
            return entry_id in self._entries

    def find(self, entry_id: str) -> RegistryEntry | None:
        with self._lock:
            entry = self._entries.get(entry_id)
        return entry.model_copy(deep=True) if entry is not None else None

    def get(self, entry_id: str) -> RegistryEntry:
        entry = self.find(entry_id)
        if entry is None:
            raise NotFoundError(f"Registry entry '{entry_id}' not found")
        return entry

    def _snapshot(self) -> list[RegistryEntry]:
        with self._lock:
            return list(self._entries.values())

    def _new_id(self, kind: str) -> str:
        with self._lock:
            while True:
                candidate = f"{kind}-{uuid.uuid4().hex[:12]}"
                if candidate not in self._entries:
                    return candidate

    async def list(self, *, refresh: bool = True) -> list[RegistryEntry]:
        """All entries in insertion order, re-probed first when ``refresh``."""
        if refresh:
            snapshot = self._snapshot()
            statuses = await asyncio.gather(*(self._prober.probe(entry) for entry in snapshot))
            checked_at = utcnow()
            with self._lock:
                for entry, status in zip(snapshot, statuses):
                    # Skip entries deleted or replaced while the probe was in flight.
                    if self._entries.get(entry.id) is not entry:
                        continue
                    self._entries[entry.id] = entry.model_copy(
                        update={"last_known_status": status, "last_checked_at": checked_at}
                    )
        return [entry.model_copy(deep=True) for entry in self._snapshot()]

    async def refresh_all(self) -> list[RegistryEntry]:
        return await self.list(refresh=True)

    async def create(self, data: dict[str, Any] | RegistryEntryCreate) -> RegistryEntry:
        payload = parse_model(RegistryEntryCreate, data)
        entry = RegistryEntry.model_validate({**payload.model_dump(), "id": self._new_id(payload.kind)})
        status = await self._prober.probe(entry)
        entry = entry.model_copy(update={"last_known_status": status, "last_checked_at": utcnow()})
        with self._lock:
            if entry.id in self._entries:
                entry = entry.model_copy(update={"id": f"{entry.kind}-{uuid.uuid4().hex}"})
            self._entries[entry.id] = entry
        logger.info(
            "Registered backend %s (%s, %s) status=%s",
            entry.id, entry.kind, entry.endpoint_url, entry.last_known_status.value,
        )
        return entry.model_copy(deep=True)

    async def update(self, data: dict[str, Any] | RegistryEntry) -> RegistryEntry:
        if isinstance(data, RegistryEntry):
            entry_id = data.id
        elif isinstance(data, dict):
            entry_id = data.get("id")
        else:
            raise ValidationError("JSON body must be an object")
        if not isinstance(entry_id, str) or not entry_id:
            raise ValidationError("id: field required")
        if entry_id not in self:
            raise NotFoundError(f"Registry entry '{entry_id}' not found")

        entry = parse_model(RegistryEntry, data)
        status = await self._prober.probe(entry)
        entry = entry.model_copy(update={"last_known_status": status, "last_checked_at": utcnow()})
        with self._lock:
            if entry.id not in self._entries:
                raise NotFoundError(f"Registry entry '{entry.id}' not found")
            self._entries[entry.id] = entry
        logger.info("Updated backend %s status=%s", entry.id, entry.last_known_status.value)
        return entry.model_copy(deep=True)

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(entry_id, None)
        if removed is not None:
            logger.info("Removed backend %s", entry_id)
        return removed is not None

    def seed(self, entries: list[dict[str, Any]]) -> int:
        """Insert configured entries without probing; they start offline."""
        seeded = 0
        for raw in entries:
            payload = parse_model(RegistryEntryCreate, raw)
            entry_id = raw.get("id") if isinstance(raw.get("id"), str) and raw.get("id") else None
            entry = RegistryEntry.model_validate(
                {**payload.model_dump(), "id": entry_id or self._new_id(payload.kind)}
            )
            with self._lock:
                if entry.id in self._entries:
                    raise ValidationError(f"Duplicate registry id in seed: '{entry.id}'")
                self._entries[entry.id] = entry
            seeded += 1
        return seeded
