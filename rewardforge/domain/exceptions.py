"""Exceptions raised by RewardForge domain services.

Errors fall into three families so callers can tell "your request was
invalid" apart from "try again later":

* ``TransitionRejected`` - the request must be corrected before resubmitting.
* ``ConcurrentModification`` - the record changed underneath; refetch and retry.
* ``InfrastructureError`` - a collaborator (ledger, clock, storage) failed.
"""

from __future__ import annotations


class RewardForgeError(RuntimeError):
    """Base class for domain exceptions."""

    code = "error"


class TransitionRejected(RewardForgeError):
    """A proposed transition failed validation; nothing was written."""

    code = "rejected"


class InvalidUsername(TransitionRejected):
    code = "invalid_username"


class ProfileAlreadyExists(TransitionRejected):
    code = "profile_exists"


class ProfileNotFound(TransitionRejected):
    code = "profile_not_found"


class ProfileInactive(TransitionRejected):
    code = "profile_inactive"


class InvalidLevelProgression(TransitionRejected):
    code = "invalid_level"


class InvalidScore(TransitionRejected):
    code = "invalid_score"


class AchievementAlreadyExists(TransitionRejected):
    code = "achievement_exists"


class InvalidAchievementData(TransitionRejected):
    code = "invalid_achievement"


class InvalidRewardAmount(TransitionRejected):
    code = "invalid_reward"


class InvalidPayoutAmount(TransitionRejected):
    code = "invalid_payout_amount"


class CooldownActive(TransitionRejected):
    """Raised when a periodic reward is claimed before its cooldown expires."""

    code = "cooldown"

    def __init__(self, seconds_remaining: int) -> None:
        super().__init__(f"Cooldown active for {seconds_remaining} seconds")
        self.seconds_remaining = seconds_remaining


class DailyRewardNotReady(CooldownActive):
    code = "daily_not_ready"


class WeeklyRewardNotReady(CooldownActive):
    code = "weekly_not_ready"


class InsufficientBalance(TransitionRejected):
    """Raised when a payout exceeds the profile balance of the selected token."""

    code = "insufficient_balance"

    def __init__(self, token: str, available: int, requested: int) -> None:
        super().__init__(f"Insufficient {token}: have {available}, need {requested}")
        self.token = token
        self.available = available
        self.requested = requested


class LedgerTransferFailed(TransitionRejected):
    """The ledger declined the transfer; the profile was not touched."""

    code = "ledger_declined"

    def __init__(self, reason: str) -> None:
        super().__init__(f"Ledger declined transfer: {reason}")
        self.reason = reason


class ConcurrentModification(RewardForgeError):
    """Optimistic commit lost a race; refetch the record and resubmit."""

    code = "concurrent_modification"


class InfrastructureError(RewardForgeError):
    """An external collaborator failed; the request itself may be valid."""

    code = "unavailable"


class LedgerUnavailable(InfrastructureError):
    code = "ledger_unavailable"


class ClockUnavailable(InfrastructureError):
    code = "clock_unavailable"


class UnsupportedRecordVersion(InfrastructureError):
    code = "unsupported_record"

    def __init__(self, version: object) -> None:
        super().__init__(f"Unsupported player record schema version: {version!r}")
        self.version = version


class PayoutReconciliationRequired(InfrastructureError):
    """The ledger transfer succeeded but the local debit could not be committed."""

    code = "reconciliation_required"

    def __init__(self, entry_id: str, reason: str) -> None:
        super().__init__(
            f"Payout transferred but profile debit failed ({reason}); "
            f"reconciliation entry {entry_id} recorded"
        )
        self.entry_id = entry_id
        self.reason = reason
