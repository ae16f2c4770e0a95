"""Token primitives."""

from __future__ import annotations

from enum import Enum

from .rewards import saturating_add, saturating_sub


class TokenType(str, Enum):
    PRIMARY = "primary"
    PREMIUM = "premium"

    @classmethod
    def parse(cls, raw: str) -> "TokenType":
        try:
            return cls(raw.strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown token type {raw!r}") from exc

    @property
    def balance_field(self) -> str:
        return f"{self.value}_balance"


def balance_of(record, token: TokenType) -> int:
    return getattr(record, token.balance_field)


def credit(record, token: TokenType, amount: int) -> None:
    """Add ``amount`` to the record balance, clamping at the u64 ceiling."""
    if amount < 0:
        raise ValueError("Cannot credit negative amount")
    setattr(record, token.balance_field, saturating_add(balance_of(record, token), amount))


def debit(record, token: TokenType, amount: int) -> None:
    if amount < 0:
        raise ValueError("Cannot debit negative amount")
    setattr(record, token.balance_field, saturating_sub(balance_of(record, token), amount))
