"""Operator tooling for payouts stuck between the ledger and the profile store."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

from ..domain import events
from ..domain.clock import Clock
from ..domain.economy import TokenType, balance_of, debit
from ..domain.events import EventBus
from ..domain.exceptions import ProfileInactive, ProfileNotFound
from ..storage.base import AuditStore, PlayerRecord, PlayerStore, ReconciliationEntry, ReconciliationStore

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(
        self,
        player_store: PlayerStore,
        reconciliation_store: ReconciliationStore,
        audit_store: AuditStore,
        clock: Clock,
        event_bus: EventBus,
    ) -> None:
        self._player_store = player_store
        self._reconciliations = reconciliation_store
        self._audit_store = audit_store
        self._clock = clock
        self._events = event_bus

    async def pending(self, limit: int = 50) -> Sequence[ReconciliationEntry]:
        return await self._reconciliations.pending(limit)

    async def resolve_by_commit(self, entry_id: str, *, operator: str) -> PlayerRecord:
        """Re-apply the missing profile debit for a transferred payout.

        The entry is moved to ``resolving`` before the debit is committed, so a
        retry after a partial failure cannot debit twice; an entry left in
        ``resolving`` needs manual inspection. The balance is clamped at zero
        and any shortfall is written to the audit log. Deactivated profiles
        cannot be debited; such entries can only be dismissed.
        """
        entry = await self._pending_entry(entry_id)
        record = await self._player_store.get(entry.identity)
        if record is None:
            raise ProfileNotFound(f"Profile {entry.identity} not found")
        if not record.is_active:
            raise ProfileInactive(f"Profile {entry.identity} is inactive; dismiss entry {entry_id} instead")
        token = TokenType(entry.token_type)
        shortfall = max(0, entry.amount - balance_of(record, token))

        def mutate(current: PlayerRecord) -> None:
            debit(current, token, entry.amount)

        now = self._clock.now()
        await self._reconciliations.mark(
            entry_id, "resolving", resolved_at=now, note=f"debit claimed by {operator}"
        )
        try:
            stored = await self._player_store.commit(
                entry.identity, mutate, expected_revision=record.revision, committed_at=now
            )
        except Exception:
            # Nothing was debited, so the entry may be retried.
            await self._reconciliations.mark(entry_id, "pending", resolved_at=None, note=None)
            raise
        await self._reconciliations.mark(
            entry_id, "resolved", resolved_at=now, note=f"debit committed by {operator}"
        )
        if shortfall:
            logger.warning(
                "Reconciliation %s left a shortfall of %s %s for %s.",
                entry_id,
                shortfall,
                token.value,
                entry.identity,
            )
        await self._audit(
            "reconciliation_resolved",
            {"entry_id": entry_id, "operator": operator, "shortfall": shortfall},
        )
        await self._events.publish(
            events.RECONCILIATION_RESOLVED,
            {"entry_id": entry_id, "identity": entry.identity, "shortfall": shortfall},
        )
        return stored

    async def dismiss(self, entry_id: str, *, operator: str, note: str | None = None) -> None:
        await self._pending_entry(entry_id)
        await self._reconciliations.mark(
            entry_id, "dismissed", resolved_at=self._clock.now(), note=note or f"dismissed by {operator}"
        )
        await self._audit("reconciliation_dismissed", {"entry_id": entry_id, "operator": operator, "note": note})
        await self._events.publish(events.RECONCILIATION_DISMISSED, {"entry_id": entry_id})

    async def _pending_entry(self, entry_id: str) -> ReconciliationEntry:
        entry = await self._reconciliations.get(entry_id)
        if entry is None:
            raise KeyError(f"Reconciliation entry {entry_id} not found")
        if entry.status != "pending":
            raise ValueError(f"Reconciliation entry {entry_id} is already {entry.status}")
        return entry

    async def _audit(self, action: str, payload: dict) -> None:
        await self._audit_store.add_entry(
            action,
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **payload,
            },
        )
