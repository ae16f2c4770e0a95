"""In-memory storage backend for RewardForge."""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime, timezone
from typing import Deque, Iterable, Sequence

from ..domain.exceptions import (
    ConcurrentModification,
    ProfileAlreadyExists,
    ProfileInactive,
    ProfileNotFound,
)
from .base import (
    AuditStore,
    PlayerRecord,
    PlayerStore,
    ReconciliationEntry,
    ReconciliationStore,
    RecordMutator,
)
from .codec import decode_record, encode_record


class InMemoryPlayerStore(PlayerStore):
    """Keeps encoded payloads so every read goes through the versioned codec."""

    def __init__(self) -> None:
        self._payloads: dict[str, dict] = {}
        self._lock = asyncio.Lock()

    async def get(self, identity: str) -> PlayerRecord | None:
        payload = self._payloads.get(identity)
        return decode_record(payload) if payload is not None else None

    async def create(self, record: PlayerRecord) -> PlayerRecord:
        async with self._lock:
            if record.identity in self._payloads:
                raise ProfileAlreadyExists(f"Profile {record.identity} already exists")
            self._payloads[record.identity] = encode_record(record)
        return record.copy()

    async def commit(
        self,
        identity: str,
        mutator: RecordMutator,
        *,
        expected_revision: int,
        committed_at: int,
    ) -> PlayerRecord:
        async with self._lock:
            payload = self._payloads.get(identity)
            if payload is None:
                raise ProfileNotFound(f"Profile {identity} not found")
            current = decode_record(payload)
            if current.revision != expected_revision:
                raise ConcurrentModification(
                    f"Profile {identity} is at revision {current.revision}, expected {expected_revision}"
                )
            if not current.is_active:
                raise ProfileInactive(f"Profile {identity} is inactive")
            mutator(current)
            current.updated_at = committed_at
            current.revision = expected_revision + 1
            self._payloads[identity] = encode_record(current)
            return current

    async def iter_identities(self) -> Iterable[str]:
        return list(self._payloads)

    def raw_payload(self, identity: str) -> dict | None:
        """Expose the stored encoding for inspection in tests."""
        return self._payloads.get(identity)


class InMemoryReconciliationStore(ReconciliationStore):
    def __init__(self) -> None:
        self._entries: dict[str, ReconciliationEntry] = {}

    async def add(self, entry: ReconciliationEntry) -> None:
        self._entries[entry.entry_id] = entry

    async def get(self, entry_id: str) -> ReconciliationEntry | None:
        return self._entries.get(entry_id)

    async def pending(self, limit: int = 50) -> Sequence[ReconciliationEntry]:
        pending = [entry for entry in self._entries.values() if entry.status == "pending"]
        pending.sort(key=lambda entry: entry.created_at)
        return pending[:limit]

    async def mark(
        self, entry_id: str, status: str, *, resolved_at: int | None, note: str | None = None
    ) -> None:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise KeyError(f"Reconciliation entry {entry_id} not found")
        entry.status = status
        entry.resolved_at = resolved_at
        entry.note = note


class InMemoryAuditStore(AuditStore):
    def __init__(self, *, maxlen: int = 1000) -> None:
        self._entries: Deque[tuple[datetime, str, dict]] = deque(maxlen=maxlen)

    async def add_entry(self, action: str, payload: dict) -> None:
        self._entries.append((datetime.now(timezone.utc), action, payload))

    def dump(self) -> list[tuple[datetime, str, dict]]:
        return list(self._entries)
