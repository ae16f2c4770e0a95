"""Versioned encoding of persisted player records."""

from __future__ import annotations

import json
from typing import Any

from ..domain.exceptions import UnsupportedRecordVersion
from .base import PlayerRecord

SCHEMA_VERSION = 1

_INT_FIELDS = (
    "level",
    "score",
    "total_score",
    "primary_balance",
    "premium_balance",
    "levels_completed",
    "bosses_defeated",
    "achievement_count",
    "last_daily_claim",
    "last_weekly_claim",
    "created_at",
    "updated_at",
    "last_login",
    "streak_days",
    "revision",
)


def encode_record(record: PlayerRecord) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "identity": record.identity,
        "username": record.username,
        "achievements": sorted(record.achievements),
        "is_active": record.is_active,
    }
    for name in _INT_FIELDS:
        payload[name] = getattr(record, name)
    return payload


def decode_record(payload: dict[str, Any]) -> PlayerRecord:
    """Rebuild a record, refusing payloads written under another schema version."""
    version = payload.get("schema_version")
    if version != SCHEMA_VERSION:
        raise UnsupportedRecordVersion(version)
    try:
        return PlayerRecord(
            identity=str(payload["identity"]),
            username=str(payload["username"]),
            achievements=set(payload["achievements"]),
            is_active=bool(payload["is_active"]),
            **{name: int(payload[name]) for name in _INT_FIELDS},
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise UnsupportedRecordVersion(version) from exc


def dumps(record: PlayerRecord) -> str:
    return json.dumps(encode_record(record), sort_keys=True)


def loads(raw: str) -> PlayerRecord:
    return decode_record(json.loads(raw))
