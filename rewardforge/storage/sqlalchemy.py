"""SQLAlchemy storage backend for RewardForge."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, Sequence

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, Integer, String, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

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
from .codec import SCHEMA_VERSION, decode_record, encode_record


class Base(DeclarativeBase):
    pass


class PlayerTable(Base):
    __tablename__ = "rewardforge_players"

    identity: Mapped[str] = mapped_column(String(128), primary_key=True)
    schema_version: Mapped[int] = mapped_column(Integer, default=SCHEMA_VERSION)
    revision: Mapped[int] = mapped_column(BigInteger, default=1)
    username: Mapped[str] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    updated_at: Mapped[int] = mapped_column(BigInteger, default=0)
    # Balances and counters are u64 and may not fit a signed column, so the
    # full record lives in the versioned JSON payload.
    payload: Mapped[dict] = mapped_column(JSON)


class ReconciliationTable(Base):
    __tablename__ = "rewardforge_reconciliations"

    entry_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    identity: Mapped[str] = mapped_column(String(128), index=True)
    token_type: Mapped[str] = mapped_column(String(16))
    amount: Mapped[str] = mapped_column(String(32))
    destination: Mapped[str] = mapped_column(String(255))
    transfer_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    reason: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[int] = mapped_column(BigInteger)
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True)
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resolved_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class AuditTable(Base):
    __tablename__ = "rewardforge_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    action: Mapped[str] = mapped_column(String(128))
    payload: Mapped[dict] = mapped_column(JSON)


class AsyncSQLAlchemyStorage:
    """Bundle of async stores backed by SQLAlchemy."""

    def __init__(self, dsn: str, *, echo: bool = False) -> None:
        self._engine = create_async_engine(dsn, echo=echo, future=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            yield session

    async def init_models(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    def player_store(self) -> "AsyncSQLAlchemyPlayerStore":
        return AsyncSQLAlchemyPlayerStore(self._session_factory)

    def reconciliation_store(self) -> "AsyncSQLAlchemyReconciliationStore":
        return AsyncSQLAlchemyReconciliationStore(self._session_factory)

    def audit_store(self) -> "AsyncSQLAlchemyAuditStore":
        return AsyncSQLAlchemyAuditStore(self._session_factory)


class AsyncSQLAlchemyPlayerStore(PlayerStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, identity: str) -> PlayerRecord | None:
        async with self._session_factory() as session:
            row = await session.get(PlayerTable, identity)
            return decode_record(dict(row.payload)) if row else None

    async def create(self, record: PlayerRecord) -> PlayerRecord:
        async with self._session_factory() as session:
            session.add(
                PlayerTable(
                    identity=record.identity,
                    schema_version=SCHEMA_VERSION,
                    revision=record.revision,
                    username=record.username,
                    is_active=record.is_active,
                    updated_at=record.updated_at,
                    payload=encode_record(record),
                )
            )
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise ProfileAlreadyExists(f"Profile {record.identity} already exists") from exc
        return record.copy()

    async def commit(
        self,
        identity: str,
        mutator: RecordMutator,
        *,
        expected_revision: int,
        committed_at: int,
    ) -> PlayerRecord:
        async with self._session_factory() as session:
            row = await session.get(PlayerTable, identity)
            if row is None:
                raise ProfileNotFound(f"Profile {identity} not found")
            current = decode_record(dict(row.payload))
            if current.revision != expected_revision:
                raise ConcurrentModification(
                    f"Profile {identity} is at revision {current.revision}, expected {expected_revision}"
                )
            if not current.is_active:
                raise ProfileInactive(f"Profile {identity} is inactive")
            mutator(current)
            current.updated_at = committed_at
            current.revision = expected_revision + 1
            stmt = (
                update(PlayerTable)
                .where(PlayerTable.identity == identity)
                .where(PlayerTable.revision == expected_revision)
                .values(
                    revision=current.revision,
                    is_active=current.is_active,
                    updated_at=current.updated_at,
                    payload=encode_record(current),
                )
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                await session.rollback()
                raise ConcurrentModification(f"Profile {identity} changed during commit")
            await session.commit()
            return current

    async def iter_identities(self) -> Iterable[str]:
        async with self._session_factory() as session:
            rows = await session.execute(select(PlayerTable.identity).order_by(PlayerTable.identity))
            return list(rows.scalars().all())


class AsyncSQLAlchemyReconciliationStore(ReconciliationStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add(self, entry: ReconciliationEntry) -> None:
        async with self._session_factory() as session:
            session.add(
                ReconciliationTable(
                    entry_id=entry.entry_id,
                    identity=entry.identity,
                    token_type=entry.token_type,
                    amount=str(entry.amount),
                    destination=entry.destination,
                    transfer_id=entry.transfer_id,
                    reason=entry.reason,
                    created_at=entry.created_at,
                    status=entry.status,
                    note=entry.note,
                    resolved_at=entry.resolved_at,
                )
            )
            await session.commit()

    async def get(self, entry_id: str) -> ReconciliationEntry | None:
        async with self._session_factory() as session:
            row = await session.get(ReconciliationTable, entry_id)
            return _to_entry(row) if row else None

    async def pending(self, limit: int = 50) -> Sequence[ReconciliationEntry]:
        async with self._session_factory() as session:
            stmt = (
                select(ReconciliationTable)
                .where(ReconciliationTable.status == "pending")
                .order_by(ReconciliationTable.created_at)
                .limit(limit)
            )
            rows = (await session.execute(stmt)).scalars().all()
            return [_to_entry(row) for row in rows]

    async def mark(
        self, entry_id: str, status: str, *, resolved_at: int | None, note: str | None = None
    ) -> None:
        async with self._session_factory() as session:
            stmt = (
                update(ReconciliationTable)
                .where(ReconciliationTable.entry_id == entry_id)
                .values(status=status, resolved_at=resolved_at, note=note)
            )
            result = await session.execute(stmt)
            if result.rowcount == 0:
                raise KeyError(f"Reconciliation entry {entry_id} not found")
            await session.commit()


def _to_entry(row: ReconciliationTable) -> ReconciliationEntry:
    return ReconciliationEntry(
        entry_id=row.entry_id,
        identity=row.identity,
        token_type=row.token_type,
        amount=int(row.amount),
        destination=row.destination,
        transfer_id=row.transfer_id,
        reason=row.reason,
        created_at=row.created_at,
        status=row.status,
        note=row.note,
        resolved_at=row.resolved_at,
    )


class AsyncSQLAlchemyAuditStore(AuditStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def add_entry(self, action: str, payload: dict) -> None:
        async with self._session_factory() as session:
            session.add(
                AuditTable(
                    created_at=datetime.now(timezone.utc),
                    action=action,
                    payload=dict(payload),
                )
            )
            await session.commit()
