"""Storage abstractions used by the RewardForge services."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Protocol, Sequence


@dataclass(slots=True)
class PlayerRecord:
    identity: str
    username: str
    level: int = 1
    score: int = 0
    total_score: int = 0
    primary_balance: int = 0
    premium_balance: int = 0
    levels_completed: int = 0
    bosses_defeated: int = 0
    achievements: set[str] = field(default_factory=set)
    achievement_count: int = 0
    last_daily_claim: int = 0
    last_weekly_claim: int = 0
    created_at: int = 0
    updated_at: int = 0
    last_login: int = 0
    is_active: bool = True
    streak_days: int = 0
    revision: int = 1

    def copy(self) -> "PlayerRecord":
        return replace(self, achievements=set(self.achievements))


RecordMutator = Callable[[PlayerRecord], None]


class PlayerStore(Protocol):
    async def get(self, identity: str) -> PlayerRecord | None:
        ...

    async def create(self, record: PlayerRecord) -> PlayerRecord:
        ...

    async def commit(
        self,
        identity: str,
        mutator: RecordMutator,
        *,
        expected_revision: int,
        committed_at: int,
    ) -> PlayerRecord:
        """Apply ``mutator`` to a copy of the stored record and write it back.

        Raises ``ProfileNotFound``/``ProfileInactive`` for missing or
        deactivated records and ``ConcurrentModification`` when the stored
        revision no longer equals ``expected_revision``.
        """
        ...

    async def iter_identities(self) -> Iterable[str]:
        ...


@dataclass(slots=True)
class ReconciliationEntry:
    """A payout whose ledger transfer succeeded but whose local debit did not."""

    entry_id: str
    identity: str
    token_type: str
    amount: int
    destination: str
    transfer_id: str | None
    reason: str
    created_at: int
    status: str = "pending"
    note: str | None = None
    resolved_at: int | None = None


class ReconciliationStore(Protocol):
    async def add(self, entry: ReconciliationEntry) -> None:
        ...

    async def get(self, entry_id: str) -> ReconciliationEntry | None:
        ...

    async def pending(self, limit: int = 50) -> Sequence[ReconciliationEntry]:
        ...

    async def mark(
        self, entry_id: str, status: str, *, resolved_at: int | None, note: str | None = None
    ) -> None:
        ...


class AuditStore(Protocol):
    async def add_entry(self, action: str, payload: dict) -> None:
        ...
