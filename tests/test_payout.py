import logging

import pytest

from rewardforge.config import LedgerConfig
from rewardforge.domain import events
from rewardforge.domain.economy import TokenType
from rewardforge.domain.exceptions import (
    ConcurrentModification,
    InfrastructureError,
    InsufficientBalance,
    InvalidPayoutAmount,
    LedgerTransferFailed,
    LedgerUnavailable,
    PayoutReconciliationRequired,
    ProfileInactive,
    RewardForgeError,
    TransitionRejected,
)
from rewardforge.domain.requests import Payout
from rewardforge.testing import app_fixture

FUNDS = 1_000_000


async def _player_with_balance(engine, identity="p1", balance=50):
    await engine.initialize_player(identity, "sailor")
    await engine.add_achievement(identity, "seed", "Seed", balance)


@pytest.mark.asyncio()
async def test_payout_requires_sufficient_balance(app, engine, ledger):
    await _player_with_balance(engine)

    with pytest.raises(InsufficientBalance) as excinfo:
        await engine.payout("p1", 60)
    assert excinfo.value.available == 50
    assert ledger.calls == 0
    assert (await engine.get_profile("p1")).primary_balance == 50

    result = await engine.payout("p1", 50)
    treasury = app.config.ledger.primary_treasury
    assert result.profile.primary_balance == 0
    assert result.reward == 50
    assert result.transfer_id
    assert ledger.balance(treasury) == FUNDS - 50
    assert ledger.balance(app.config.ledger.player_account("p1", TokenType.PRIMARY)) == 50


@pytest.mark.asyncio()
async def test_premium_payout_uses_premium_treasury(app, engine, ledger):
    await engine.initialize_player("p1", "sailor")
    await engine.claim_weekly("p1")

    result = await engine.payout("p1", 10, TokenType.PREMIUM, destination="wallet-xyz")
    assert result.profile.premium_balance == 0
    assert ledger.balance(app.config.ledger.premium_treasury) == FUNDS - 10
    assert ledger.balance(app.config.ledger.primary_treasury) == FUNDS
    assert ledger.balance("wallet-xyz") == 10
    assert ledger.transfers[-1][3] == "p1"


@pytest.mark.asyncio()
async def test_declined_transfer_leaves_profile_untouched(engine, ledger):
    await _player_with_balance(engine)
    before = await engine.get_profile("p1")
    ledger.decline_reason = "account frozen"

    with pytest.raises(LedgerTransferFailed) as excinfo:
        await engine.payout("p1", 20)

    assert excinfo.value.reason == "account frozen"
    assert isinstance(excinfo.value, TransitionRejected)
    assert await engine.get_profile("p1") == before


@pytest.mark.asyncio()
async def test_ledger_error_is_infrastructure_failure(engine, ledger):
    await _player_with_balance(engine)
    ledger.error = ConnectionError("ledger offline")

    with pytest.raises(LedgerUnavailable) as excinfo:
        await engine.payout("p1", 20)

    assert isinstance(excinfo.value, InfrastructureError)
    assert not isinstance(excinfo.value, TransitionRejected)
    assert (await engine.get_profile("p1")).primary_balance == 50


@pytest.mark.asyncio()
async def test_ledger_timeout_is_infrastructure_failure():
    app = app_fixture(ledger=LedgerConfig(transfer_timeout_seconds=0.01))
    await _player_with_balance(app.engine)
    app.ledger.delay = 1.0

    with pytest.raises(LedgerUnavailable):
        await app.engine.payout("p1", 20)
    assert (await app.engine.get_profile("p1")).primary_balance == 50


@pytest.mark.asyncio()
async def test_failed_debit_after_transfer_requires_reconciliation(app, engine, ledger):
    await _player_with_balance(engine)
    flagged = []

    async def listener(payload):
        flagged.append(payload)

    app.event_bus.subscribe(events.RECONCILIATION_REQUIRED, listener)
    # A concurrent login lands between the transfer and the local debit.
    ledger.on_transfer = lambda: engine.touch_login("p1")

    with pytest.raises(PayoutReconciliationRequired) as excinfo:
        await engine.payout("p1", 30)

    assert excinfo.value.reason == "concurrent_modification"
    assert ledger.balance(app.config.ledger.player_account("p1", TokenType.PRIMARY)) == 30
    # Never re-credited or silently debited: the profile still shows the old balance.
    assert (await engine.get_profile("p1")).primary_balance == 50

    pending = await app.reconciliation_store.pending()
    assert [entry.entry_id for entry in pending] == [excinfo.value.entry_id]
    assert pending[0].amount == 30
    assert pending[0].transfer_id is not None
    assert flagged and flagged[0]["entry_id"] == excinfo.value.entry_id


@pytest.mark.asyncio()
async def test_reconciliation_store_outage_still_flags_payout(app, engine, ledger, monkeypatch, caplog):
    await _player_with_balance(engine)

    async def store_down(entry):
        raise ConnectionError("reconciliation db down")

    monkeypatch.setattr(app.reconciliation_store, "add", store_down)
    ledger.on_transfer = lambda: engine.touch_login("p1")

    with caplog.at_level(logging.CRITICAL, logger="rewardforge.domain.engine"):
        with pytest.raises(PayoutReconciliationRequired) as excinfo:
            await engine.payout("p1", 30)

    assert isinstance(excinfo.value.__cause__, ConcurrentModification)
    assert excinfo.value.reason == "concurrent_modification"
    critical = [r.getMessage() for r in caplog.records if r.levelno == logging.CRITICAL]
    assert any("p1" in message and "30 primary" in message for message in critical)
    assert any(excinfo.value.entry_id in message for message in critical)
    assert (await engine.get_profile("p1")).primary_balance == 50


@pytest.mark.asyncio()
async def test_payout_rejects_non_positive_amount(engine, ledger):
    await _player_with_balance(engine)
    for amount in (0, -5):
        with pytest.raises(InvalidPayoutAmount) as excinfo:
            await engine.payout("p1", amount)
        assert isinstance(excinfo.value, TransitionRejected)
    assert ledger.calls == 0


@pytest.mark.asyncio()
async def test_submitted_payout_errors_stay_typed(engine):
    await _player_with_balance(engine)
    with pytest.raises(RewardForgeError):
        await engine.submit("p1", Payout(amount=0))


@pytest.mark.asyncio()
async def test_payout_from_inactive_profile_rejected(engine, ledger):
    await _player_with_balance(engine)
    await engine.deactivate("p1")
    with pytest.raises(ProfileInactive):
        await engine.payout("p1", 10)
    assert ledger.calls == 0


@pytest.mark.asyncio()
async def test_payout_is_audited(app, engine):
    await _player_with_balance(engine)
    await engine.payout("p1", 25)
    actions = [action for _, action, _ in app.audit_store.dump()]
    assert actions == ["payout"]
