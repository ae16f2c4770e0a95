"""Transition engine: the single entry point for every player mutation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable
from uuid import uuid4

from . import events
from .clock import Clock
from .economy import TokenType, credit, debit
from .events import EventBus
from .exceptions import (
    ClockUnavailable,
    LedgerTransferFailed,
    LedgerUnavailable,
    PayoutReconciliationRequired,
    ProfileAlreadyExists,
    ProfileNotFound,
    RewardForgeError,
)
from .ledger import TokenLedger, TransferReceipt
from .player import PlayerProfile
from .requests import (
    AddAchievement,
    ClaimDaily,
    ClaimWeekly,
    CreateProfile,
    Deactivate,
    LevelUpdate,
    Payout,
    RecordBossDefeat,
    TouchLogin,
    TransitionRequest,
)
from .rewards import U32_MAX, RewardCalculator, saturating_add, saturating_sub
from .validator import TransitionValidator
from ..storage.base import (
    AuditStore,
    PlayerRecord,
    PlayerStore,
    ReconciliationEntry,
    ReconciliationStore,
    RecordMutator,
)

if TYPE_CHECKING:
    from ..config import LedgerConfig, ProgressionConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TransitionResult:
    profile: PlayerProfile
    reward: int = 0
    token_type: TokenType | None = None
    transfer_id: str | None = None


class TransitionEngine:
    """Validate, price and commit player transitions.

    Every operation reads the current record, validates the proposal against
    it, computes rewards and commits through the store's optimistic check.
    The engine never retries; a ``ConcurrentModification`` is handed back to
    the caller.
    """

    def __init__(
        self,
        store: PlayerStore,
        ledger: TokenLedger,
        clock: Clock,
        *,
        ledger_config: "LedgerConfig",
        progression: "ProgressionConfig",
        reconciliations: ReconciliationStore,
        audit_store: AuditStore | None = None,
        event_bus: EventBus | None = None,
        validator: TransitionValidator | None = None,
        calculator: type[RewardCalculator] = RewardCalculator,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._clock = clock
        self._ledger_config = ledger_config
        self._progression = progression
        self._reconciliations = reconciliations
        self._audit_store = audit_store
        self._events = event_bus or EventBus()
        self._validator = validator or TransitionValidator()
        self._rewards = calculator
        self._handlers: dict[type, Callable[[str, Any], Awaitable[TransitionResult]]] = {
            CreateProfile: lambda identity, req: self.initialize_player(identity, req.username),
            LevelUpdate: lambda identity, req: self.update_level(
                identity, req.level, req.score, req.level_completed
            ),
            AddAchievement: lambda identity, req: self.add_achievement(
                identity, req.achievement_id, req.name, req.reward
            ),
            RecordBossDefeat: lambda identity, req: self.record_boss_defeat(
                identity, req.boss_id, req.boss_level, req.reward
            ),
            ClaimDaily: lambda identity, req: self.claim_daily(identity),
            ClaimWeekly: lambda identity, req: self.claim_weekly(identity),
            TouchLogin: lambda identity, req: self.touch_login(identity),
            Payout: lambda identity, req: self.payout(
                identity, req.amount, req.token_type, destination=req.destination
            ),
            Deactivate: lambda identity, req: self.deactivate(identity),
        }

    async def submit(self, identity: str, request: TransitionRequest) -> TransitionResult:
        """Dispatch a typed request to the matching operation."""
        try:
            handler = self._handlers[type(request)]
        except KeyError as exc:
            raise TypeError(f"Unsupported transition request {type(request).__name__}") from exc
        return await handler(identity, request)

    async def get_profile(self, identity: str) -> PlayerProfile:
        record = await self._store.get(identity)
        if record is None:
            raise ProfileNotFound(f"Profile {identity} not found")
        return PlayerProfile.from_record(record)

    async def initialize_player(self, identity: str, username: str) -> TransitionResult:
        self._validator.username(username)
        if await self._store.get(identity) is not None:
            raise ProfileAlreadyExists(f"Profile {identity} already exists")
        now = self._now()
        record = PlayerRecord(
            identity=identity,
            username=username,
            created_at=now,
            updated_at=now,
            last_login=now,
        )
        stored = await self._store.create(record)
        logger.info("Player profile initialized for %s (%s).", identity, username)
        await self._events.publish(events.PLAYER_CREATED, {"identity": identity, "username": username})
        return TransitionResult(profile=PlayerProfile.from_record(stored))

    async def update_level(
        self, identity: str, level: int, score: int, level_completed: bool = False
    ) -> TransitionResult:
        now = self._now()
        record = await self._load_active(identity)
        decision = self._validator.level_update(record, level, score, level_completed)
        reward = self._rewards.level_reward(level) if decision.completion else 0

        def mutate(current: PlayerRecord) -> None:
            current.level = level
            current.score = score
            current.total_score = saturating_add(current.total_score, score)
            current.last_login = now
            if decision.completion:
                current.levels_completed = saturating_add(current.levels_completed, 1, limit=U32_MAX)
                credit(current, TokenType.PRIMARY, reward)

        stored = await self._commit(record, mutate, now)
        if decision.completion:
            logger.info("Player %s completed level %s, reward %s.", identity, level, reward)
        await self._events.publish(
            events.LEVEL_UPDATED,
            {"identity": identity, "level": level, "score": score, "reward": reward},
        )
        return self._result(stored, reward, TokenType.PRIMARY if reward else None)

    async def add_achievement(
        self, identity: str, achievement_id: str, name: str, reward: int = 0
    ) -> TransitionResult:
        now = self._now()
        record = await self._load_active(identity)
        self._validator.achievement(record, achievement_id, name, reward)

        def mutate(current: PlayerRecord) -> None:
            current.achievements.add(achievement_id)
            current.achievement_count = saturating_add(current.achievement_count, 1, limit=U32_MAX)
            credit(current, TokenType.PRIMARY, reward)

        stored = await self._commit(record, mutate, now)
        logger.info("Achievement %s unlocked by %s, reward %s.", achievement_id, identity, reward)
        await self._events.publish(
            events.ACHIEVEMENT_ADDED,
            {"identity": identity, "achievement_id": achievement_id, "name": name, "reward": reward},
        )
        return self._result(stored, reward, TokenType.PRIMARY if reward else None)

    async def record_boss_defeat(
        self, identity: str, boss_id: str, boss_level: int = 1, reward: int = 0
    ) -> TransitionResult:
        now = self._now()
        record = await self._load_active(identity)
        self._validator.boss_defeat(reward)

        def mutate(current: PlayerRecord) -> None:
            current.bosses_defeated = saturating_add(current.bosses_defeated, 1, limit=U32_MAX)
            credit(current, TokenType.PRIMARY, reward)

        stored = await self._commit(record, mutate, now)
        logger.info("Boss %s (level %s) defeated by %s.", boss_id, boss_level, identity)
        await self._events.publish(
            events.BOSS_DEFEATED,
            {"identity": identity, "boss_id": boss_id, "boss_level": boss_level, "reward": reward},
        )
        return self._result(stored, reward, TokenType.PRIMARY if reward else None)

    async def claim_daily(self, identity: str) -> TransitionResult:
        now = self._now()
        record = await self._load_active(identity)
        self._validator.daily_claim(record, now)
        streak = self._streak_for_claim(record, now)
        reward = self._rewards.daily_reward(streak)

        def mutate(current: PlayerRecord) -> None:
            credit(current, TokenType.PRIMARY, reward)
            current.last_daily_claim = now
            current.streak_days = saturating_add(streak, 1, limit=U32_MAX)

        stored = await self._commit(record, mutate, now)
        logger.info(
            "Daily reward %s claimed by %s (streak %s).", reward, identity, stored.streak_days
        )
        await self._events.publish(
            events.DAILY_CLAIMED,
            {"identity": identity, "reward": reward, "streak_days": stored.streak_days},
        )
        return self._result(stored, reward, TokenType.PRIMARY)

    async def claim_weekly(self, identity: str) -> TransitionResult:
        now = self._now()
        record = await self._load_active(identity)
        self._validator.weekly_claim(record, now)
        reward = self._rewards.weekly_reward(
            record.levels_completed, record.bosses_defeated, record.achievement_count
        )

        def mutate(current: PlayerRecord) -> None:
            credit(current, TokenType.PREMIUM, reward)
            current.last_weekly_claim = now

        stored = await self._commit(record, mutate, now)
        logger.info("Weekly reward %s claimed by %s.", reward, identity)
        await self._events.publish(events.WEEKLY_CLAIMED, {"identity": identity, "reward": reward})
        return self._result(stored, reward, TokenType.PREMIUM)

    async def touch_login(self, identity: str) -> TransitionResult:
        now = self._now()
        record = await self._load_active(identity)

        def mutate(current: PlayerRecord) -> None:
            current.last_login = now

        stored = await self._commit(record, mutate, now)
        await self._events.publish(events.LOGIN_TOUCHED, {"identity": identity, "at": now})
        return self._result(stored)

    async def deactivate(self, identity: str) -> TransitionResult:
        record = await self._store.get(identity)
        if record is None:
            raise ProfileNotFound(f"Profile {identity} not found")
        if not record.is_active:
            logger.debug("Profile %s already inactive.", identity)
            return self._result(record)
        now = self._now()

        def mutate(current: PlayerRecord) -> None:
            current.is_active = False

        stored = await self._commit(record, mutate, now)
        logger.info("Player account deactivated: %s.", identity)
        await self._events.publish(events.PLAYER_DEACTIVATED, {"identity": identity})
        return self._result(stored)

    async def payout(
        self,
        identity: str,
        amount: int,
        token_type: TokenType = TokenType.PRIMARY,
        *,
        destination: str | None = None,
    ) -> TransitionResult:
        """Move ``amount`` tokens from the treasury to the player.

        The ledger transfer happens first; only a successful transfer leads to
        the local debit, and only a successful debit completes the payout. If
        the debit cannot be committed after the transfer went through, the
        payout is queued for reconciliation instead of being reversed.
        """
        record = await self._load_active(identity)
        self._validator.payout(record, amount, token_type)
        destination = destination or self._ledger_config.player_account(identity, token_type)
        source = self._ledger_config.treasury_for(token_type)

        receipt = await self._transfer(source, destination, amount, identity)
        if not receipt.success:
            logger.warning(
                "Ledger declined payout of %s %s to %s: %s",
                amount,
                token_type.value,
                identity,
                receipt.reason,
            )
            raise LedgerTransferFailed(receipt.reason or "declined")

        def mutate(current: PlayerRecord) -> None:
            debit(current, token_type, amount)

        try:
            stored = await self._commit(record, mutate, self._now())
        except Exception as exc:
            entry = await self._flag_reconciliation(
                record, token_type, amount, destination, receipt, exc
            )
            raise PayoutReconciliationRequired(entry.entry_id, _reason(exc)) from exc

        logger.info(
            "Transferred %s %s tokens to %s (transfer %s).",
            amount,
            self._ledger_config.symbol_for(token_type),
            identity,
            receipt.transfer_id,
        )
        payload = {
            "identity": identity,
            "token_type": token_type.value,
            "amount": amount,
            "destination": destination,
            "transfer_id": receipt.transfer_id,
        }
        if self._audit_store:
            await self._audit_store.add_entry("payout", payload)
        await self._events.publish(events.PAYOUT_COMPLETED, payload)
        return self._result(stored, amount, token_type, receipt.transfer_id)

    async def _transfer(
        self, source: str, destination: str, amount: int, identity: str
    ) -> TransferReceipt:
        timeout = self._ledger_config.transfer_timeout_seconds
        try:
            return await asyncio.wait_for(
                self._ledger.transfer(source, destination, amount, identity), timeout
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Ledger transfer for %s timed out after %.1f s.", identity, timeout)
            raise LedgerUnavailable(f"Ledger did not answer within {timeout} seconds") from exc
        except RewardForgeError:
            raise
        except Exception as exc:
            logger.warning("Ledger transfer for %s failed: %s", identity, exc)
            raise LedgerUnavailable(f"Ledger transfer failed: {exc}") from exc

    async def _flag_reconciliation(
        self,
        record: PlayerRecord,
        token_type: TokenType,
        amount: int,
        destination: str,
        receipt: TransferReceipt,
        exc: BaseException,
    ) -> ReconciliationEntry:
        try:
            flagged_at = self._now()
        except ClockUnavailable:
            flagged_at = record.updated_at
        entry = ReconciliationEntry(
            entry_id=uuid4().hex,
            identity=record.identity,
            token_type=token_type.value,
            amount=amount,
            destination=destination,
            transfer_id=receipt.transfer_id,
            reason=_reason(exc),
            created_at=flagged_at,
        )
        logger.critical(
            "Payout of %s %s to %s transferred (transfer %s, destination %s) but profile debit "
            "failed: %s. Reconciliation entry %s.",
            amount,
            token_type.value,
            record.identity,
            receipt.transfer_id,
            destination,
            exc,
            entry.entry_id,
        )
        try:
            await self._reconciliations.add(entry)
        except Exception:
            logger.critical(
                "Could not persist reconciliation entry %s for %s (%s %s, transfer %s).",
                entry.entry_id,
                record.identity,
                amount,
                token_type.value,
                receipt.transfer_id,
                exc_info=True,
            )
        try:
            await self._events.publish(
                events.RECONCILIATION_REQUIRED,
                {"entry_id": entry.entry_id, "identity": record.identity, "amount": amount},
            )
        except Exception:
            logger.exception("Reconciliation listener failed for entry %s.", entry.entry_id)
        return entry

    async def _load_active(self, identity: str) -> PlayerRecord:
        return self._validator.active(await self._store.get(identity), identity)

    async def _commit(self, record: PlayerRecord, mutator: RecordMutator, now: int) -> PlayerRecord:
        return await self._store.commit(
            record.identity,
            mutator,
            expected_revision=record.revision,
            committed_at=now,
        )

    def _streak_for_claim(self, record: PlayerRecord, now: int) -> int:
        if not self._progression.reset_streak_on_missed_day or not record.last_daily_claim:
            return record.streak_days
        missed_after = 2 * self._validator.daily_cooldown
        if saturating_sub(now, record.last_daily_claim) >= missed_after:
            return 0
        return record.streak_days

    def _now(self) -> int:
        try:
            return int(self._clock.now())
        except Exception as exc:
            raise ClockUnavailable(f"Clock read failed: {exc}") from exc

    @staticmethod
    def _result(
        record: PlayerRecord,
        reward: int = 0,
        token_type: TokenType | None = None,
        transfer_id: str | None = None,
    ) -> TransitionResult:
        return TransitionResult(
            profile=PlayerProfile.from_record(record),
            reward=reward,
            token_type=token_type,
            transfer_id=transfer_id,
        )


def _reason(exc: BaseException) -> str:
    if isinstance(exc, RewardForgeError):
        return exc.code
    return type(exc).__name__
