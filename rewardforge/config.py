"""Configuration models for RewardForge."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Literal

from .domain.economy import TokenType

StorageBackend = Literal["memory", "sqlalchemy"]

_TRUTHY = {"1", "true", "yes"}


@dataclass(slots=True)
class StorageConfig:
    """Configure how player records are persisted."""

    backend: StorageBackend = "memory"
    dsn: str | None = None
    echo_sql: bool = False

    def resolve_dsn(self) -> str | None:
        if self.dsn:
            return self.dsn
        if self.backend == "sqlalchemy":
            return "sqlite+aiosqlite:///./rewardforge.db"
        return None


@dataclass(slots=True)
class LedgerConfig:
    """Treasury accounts and transfer limits for payouts."""

    primary_treasury: str = "treasury:primary"
    premium_treasury: str = "treasury:premium"
    player_account_template: str = "player:{identity}:{token}"
    primary_symbol: str = "PIRATE"
    premium_symbol: str = "ADMIRAL"
    transfer_timeout_seconds: float = 10.0

    def treasury_for(self, token: TokenType) -> str:
        return self.primary_treasury if token is TokenType.PRIMARY else self.premium_treasury

    def symbol_for(self, token: TokenType) -> str:
        return self.primary_symbol if token is TokenType.PRIMARY else self.premium_symbol

    def player_account(self, identity: str, token: TokenType) -> str:
        return self.player_account_template.format(identity=identity, token=token.value)


@dataclass(slots=True)
class ProgressionConfig:
    """Rules that are deliberately left switchable."""

    # Off by default: a missed day leaves the streak untouched.
    reset_streak_on_missed_day: bool = False


@dataclass(slots=True)
class AdminConfig:
    admin_ids: set[int] = field(default_factory=set)
    enable_audit_logs: bool = True


@dataclass(slots=True)
class RewardForgeConfig:
    """Top-level configuration container."""

    bot_token: str = ""
    storage: StorageConfig = field(default_factory=StorageConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    progression: ProgressionConfig = field(default_factory=ProgressionConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RewardForgeConfig":
        """Create config from environment variables prefixed with REWARDFORGE_."""
        prefix = "REWARDFORGE_"
        backend = os.getenv(f"{prefix}STORAGE_BACKEND", "memory")
        if backend not in {"memory", "sqlalchemy"}:
            raise ValueError(f"Unsupported storage backend {backend!r}")

        admin_ids = {
            int(_id.strip())
            for _id in os.getenv(f"{prefix}ADMIN_IDS", "").split(",")
            if _id.strip()
        }

        defaults = LedgerConfig()
        try:
            timeout = float(
                os.getenv(f"{prefix}LEDGER_TIMEOUT", str(defaults.transfer_timeout_seconds))
            )
        except ValueError as exc:
            raise ValueError(f"Invalid float for {prefix}LEDGER_TIMEOUT") from exc
        if timeout <= 0:
            raise ValueError(f"{prefix}LEDGER_TIMEOUT must be positive")

        ledger = LedgerConfig(
            primary_treasury=os.getenv(f"{prefix}PRIMARY_TREASURY", defaults.primary_treasury),
            premium_treasury=os.getenv(f"{prefix}PREMIUM_TREASURY", defaults.premium_treasury),
            player_account_template=os.getenv(
                f"{prefix}PLAYER_ACCOUNT_TEMPLATE", defaults.player_account_template
            ),
            primary_symbol=os.getenv(f"{prefix}PRIMARY_SYMBOL", defaults.primary_symbol),
            premium_symbol=os.getenv(f"{prefix}PREMIUM_SYMBOL", defaults.premium_symbol),
            transfer_timeout_seconds=timeout,
        )

        return cls(
            bot_token=os.getenv(f"{prefix}BOT_TOKEN", ""),
            storage=StorageConfig(
                backend=backend,
                dsn=os.getenv(f"{prefix}STORAGE_DSN"),
                echo_sql=os.getenv(f"{prefix}STORAGE_ECHO_SQL", "false").lower() in _TRUTHY,
            ),
            ledger=ledger,
            progression=ProgressionConfig(
                reset_streak_on_missed_day=os.getenv(f"{prefix}RESET_STREAK_ON_MISS", "false").lower()
                in _TRUTHY,
            ),
            admin=AdminConfig(
                admin_ids=admin_ids,
                enable_audit_logs=os.getenv(f"{prefix}ADMIN_ENABLE_AUDIT_LOGS", "true").lower()
                in _TRUTHY,
            ),
            log_level=os.getenv(f"{prefix}LOG_LEVEL", "INFO").upper(),
        )
