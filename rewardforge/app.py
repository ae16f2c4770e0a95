"""Top level application object for RewardForge services."""

from __future__ import annotations

from typing import Any

from .config import RewardForgeConfig
from .domain.clock import Clock, SystemClock
from .domain.engine import TransitionEngine
from .domain.events import EventBus
from .domain.ledger import InMemoryTokenLedger, TokenLedger
from .domain.validator import TransitionValidator
from .storage.base import AuditStore, PlayerStore, ReconciliationStore
from .storage.memory import InMemoryAuditStore, InMemoryPlayerStore, InMemoryReconciliationStore
from .storage.sqlalchemy import AsyncSQLAlchemyStorage


class GameApp:
    """Central dependency container used by bots, CLIs and game servers."""

    def __init__(
        self,
        config: RewardForgeConfig,
        *,
        ledger: TokenLedger | None = None,
        clock: Clock | None = None,
        player_store: PlayerStore | None = None,
        reconciliation_store: ReconciliationStore | None = None,
        audit_store: AuditStore | None = None,
        event_bus: EventBus | None = None,
        validator: TransitionValidator | None = None,
    ) -> None:
        self.config = config
        self.event_bus = event_bus or EventBus()
        self.clock = clock or SystemClock()
        # Without an injected ledger the app runs against local custody
        # balances, which is only meant for development and tests.
        self.ledger = ledger or InMemoryTokenLedger()

        self._sqlalchemy_storage: AsyncSQLAlchemyStorage | None = None
        (
            self.player_store,
            self.reconciliation_store,
            self.audit_store,
        ) = self._wire_storage(player_store, reconciliation_store, audit_store)

        self.engine = TransitionEngine(
            self.player_store,
            self.ledger,
            self.clock,
            ledger_config=self.config.ledger,
            progression=self.config.progression,
            reconciliations=self.reconciliation_store,
            audit_store=self.audit_store if self.config.admin.enable_audit_logs else None,
            event_bus=self.event_bus,
            validator=validator,
        )

    def _wire_storage(
        self,
        player_store: PlayerStore | None,
        reconciliation_store: ReconciliationStore | None,
        audit_store: AuditStore | None,
    ) -> tuple[PlayerStore, ReconciliationStore, AuditStore]:
        if player_store and reconciliation_store and audit_store:
            return player_store, reconciliation_store, audit_store

        backend = self.config.storage.backend
        if backend == "memory":
            return (
                player_store or InMemoryPlayerStore(),
                reconciliation_store or InMemoryReconciliationStore(),
                audit_store or InMemoryAuditStore(),
            )
        if backend == "sqlalchemy":
            dsn = self.config.storage.resolve_dsn()
            if not dsn:
                raise ValueError("SQLAlchemy backend requires a DSN")
            storage = AsyncSQLAlchemyStorage(dsn, echo=self.config.storage.echo_sql)
            self._sqlalchemy_storage = storage
            return (
                player_store or storage.player_store(),
                reconciliation_store or storage.reconciliation_store(),
                audit_store or storage.audit_store(),
            )
        raise ValueError(f"Unsupported storage backend {backend}")

    def snapshot(self) -> dict[str, Any]:
        """Export current configuration for debugging."""
        ledger = self.config.ledger
        return {
            "storage": self.config.storage.backend,
            "ledger": type(self.ledger).__name__,
            "treasuries": {
                ledger.primary_symbol: ledger.primary_treasury,
                ledger.premium_symbol: ledger.premium_treasury,
            },
            "reset_streak_on_missed_day": self.config.progression.reset_streak_on_missed_day,
        }

    async def init_backend(self) -> None:
        """Initialize storage backend resources (e.g., database tables)."""
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.init_models()

    async def close(self) -> None:
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.dispose()
