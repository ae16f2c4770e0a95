"""Public, read-only view of a player record."""

from __future__ import annotations

from dataclasses import dataclass

from ..storage.base import PlayerRecord


@dataclass(slots=True, frozen=True)
class PlayerProfile:
    identity: str
    username: str
    level: int
    score: int
    total_score: int
    primary_balance: int
    premium_balance: int
    levels_completed: int
    bosses_defeated: int
    achievements: frozenset[str]
    achievement_count: int
    last_daily_claim: int
    last_weekly_claim: int
    created_at: int
    updated_at: int
    last_login: int
    is_active: bool
    streak_days: int

    @classmethod
    def from_record(cls, record: PlayerRecord) -> "PlayerProfile":
        return cls(
            identity=record.identity,
            username=record.username,
            level=record.level,
            score=record.score,
            total_score=record.total_score,
            primary_balance=record.primary_balance,
            premium_balance=record.premium_balance,
            levels_completed=record.levels_completed,
            bosses_defeated=record.bosses_defeated,
            achievements=frozenset(record.achievements),
            achievement_count=record.achievement_count,
            last_daily_claim=record.last_daily_claim,
            last_weekly_claim=record.last_weekly_claim,
            created_at=record.created_at,
            updated_at=record.updated_at,
            last_login=record.last_login,
            is_active=record.is_active,
            streak_days=record.streak_days,
        )
