"""Storage backends for RewardForge."""

from .base import (
    AuditStore,
    PlayerRecord,
    PlayerStore,
    ReconciliationEntry,
    ReconciliationStore,
)
from .codec import SCHEMA_VERSION, decode_record, encode_record
from .memory import InMemoryAuditStore, InMemoryPlayerStore, InMemoryReconciliationStore
from .sqlalchemy import AsyncSQLAlchemyStorage

__all__ = [
    "AuditStore",
    "PlayerRecord",
    "PlayerStore",
    "ReconciliationEntry",
    "ReconciliationStore",
    "SCHEMA_VERSION",
    "decode_record",
    "encode_record",
    "InMemoryAuditStore",
    "InMemoryPlayerStore",
    "InMemoryReconciliationStore",
    "AsyncSQLAlchemyStorage",
]
