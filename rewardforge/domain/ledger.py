"""Token ledger collaborator.

The ledger owns custody balances. RewardForge only asks it to move tokens out
of a treasury account and trusts its all-or-nothing semantics.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TransferReceipt:
    success: bool
    reason: str | None = None
    transfer_id: str | None = None

    @classmethod
    def ok(cls, transfer_id: str) -> "TransferReceipt":
        return cls(success=True, transfer_id=transfer_id)

    @classmethod
    def declined(cls, reason: str) -> "TransferReceipt":
        return cls(success=False, reason=reason)


class TokenLedger(Protocol):
    async def transfer(
        self,
        from_account: str,
        to_account: str,
        amount: int,
        authorizing_identity: str,
    ) -> TransferReceipt:
        ...


class InMemoryTokenLedger(TokenLedger):
    """Custody balances held in a dict, used for development and tests."""

    def __init__(self, balances: dict[str, int] | None = None) -> None:
        self._balances: dict[str, int] = dict(balances or {})
        self._lock = asyncio.Lock()
        self.transfers: list[tuple[str, str, int, str]] = []

    def fund(self, account: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot fund negative amount")
        self._balances[account] = self._balances.get(account, 0) + amount

    def balance(self, account: str) -> int:
        return self._balances.get(account, 0)

    async def transfer(
        self,
        from_account: str,
        to_account: str,
        amount: int,
        authorizing_identity: str,
    ) -> TransferReceipt:
        if amount <= 0:
            return TransferReceipt.declined("amount must be positive")
        async with self._lock:
            available = self._balances.get(from_account, 0)
            if available < amount:
                logger.warning(
                    "Ledger declined transfer of %s from %s: only %s available.",
                    amount,
                    from_account,
                    available,
                )
                return TransferReceipt.declined(f"account {from_account} holds {available}")
            self._balances[from_account] = available - amount
            self._balances[to_account] = self._balances.get(to_account, 0) + amount
            self.transfers.append((from_account, to_account, amount, authorizing_identity))
        return TransferReceipt.ok(uuid4().hex)
