from types import SimpleNamespace

import pytest

from rewardforge.admin.commands import app_admin_service, format_reconciliation_list
from rewardforge.domain.exceptions import (
    ConcurrentModification,
    PayoutReconciliationRequired,
    ProfileInactive,
)
from rewardforge.telegram.filters import AdminFilter


@pytest.fixture()
def admin(app):
    return app_admin_service(app)


async def _stuck_payout(engine, ledger, amount=30):
    await engine.initialize_player("p1", "sailor")
    await engine.add_achievement("p1", "seed", "Seed", 50)
    ledger.on_transfer = lambda: engine.touch_login("p1")
    with pytest.raises(PayoutReconciliationRequired) as excinfo:
        await engine.payout("p1", amount)
    ledger.on_transfer = None
    return excinfo.value.entry_id


@pytest.mark.asyncio()
async def test_resolve_applies_missing_debit(app, engine, ledger, admin):
    entry_id = await _stuck_payout(engine, ledger)

    await admin.resolve_by_commit(entry_id, operator="42")

    profile = await engine.get_profile("p1")
    assert profile.primary_balance == 20
    assert await admin.pending() == []
    entry = await app.reconciliation_store.get(entry_id)
    assert entry.status == "resolved"
    assert entry.resolved_at == app.clock.now()
    actions = [action for _, action, _ in app.audit_store.dump()]
    assert "reconciliation_resolved" in actions


@pytest.mark.asyncio()
async def test_resolve_twice_rejected(engine, ledger, admin):
    entry_id = await _stuck_payout(engine, ledger)
    await admin.resolve_by_commit(entry_id, operator="42")
    with pytest.raises(ValueError):
        await admin.resolve_by_commit(entry_id, operator="42")


@pytest.mark.asyncio()
async def test_dismiss_keeps_profile_balance(app, engine, ledger, admin):
    entry_id = await _stuck_payout(engine, ledger)

    await admin.dismiss(entry_id, operator="42", note="refunded off-chain")

    entry = await app.reconciliation_store.get(entry_id)
    assert entry.status == "dismissed"
    assert entry.note == "refunded off-chain"
    assert (await engine.get_profile("p1")).primary_balance == 50


@pytest.mark.asyncio()
async def test_unknown_entry(admin):
    with pytest.raises(KeyError):
        await admin.dismiss("missing", operator="42")


@pytest.mark.asyncio()
async def test_format_reconciliation_list(engine, ledger, admin):
    assert "✅" in format_reconciliation_list([])
    entry_id = await _stuck_payout(engine, ledger)
    text = format_reconciliation_list(list(await admin.pending()))
    assert entry_id in text
    assert "30 primary" in text


@pytest.mark.asyncio()
async def test_retry_after_failed_mark_does_not_debit_twice(app, engine, ledger, admin, monkeypatch):
    entry_id = await _stuck_payout(engine, ledger)
    store = app.reconciliation_store
    original_mark = store.mark

    async def flaky_mark(entry_id, status, **kwargs):
        if status == "resolved":
            raise ConnectionError("reconciliation db down")
        await original_mark(entry_id, status, **kwargs)

    monkeypatch.setattr(store, "mark", flaky_mark)
    with pytest.raises(ConnectionError):
        await admin.resolve_by_commit(entry_id, operator="42")
    monkeypatch.setattr(store, "mark", original_mark)

    with pytest.raises(ValueError):
        await admin.resolve_by_commit(entry_id, operator="42")
    assert (await engine.get_profile("p1")).primary_balance == 20
    assert (await store.get(entry_id)).status == "resolving"


@pytest.mark.asyncio()
async def test_failed_debit_returns_entry_to_pending(app, engine, ledger, admin, monkeypatch):
    entry_id = await _stuck_payout(engine, ledger)

    async def lost_race(*args, **kwargs):
        raise ConcurrentModification("Profile p1 changed during commit")

    monkeypatch.setattr(app.player_store, "commit", lost_race)
    with pytest.raises(ConcurrentModification):
        await admin.resolve_by_commit(entry_id, operator="42")
    monkeypatch.undo()

    assert (await app.reconciliation_store.get(entry_id)).status == "pending"
    await admin.resolve_by_commit(entry_id, operator="42")
    assert (await engine.get_profile("p1")).primary_balance == 20


@pytest.mark.asyncio()
async def test_inactive_profile_entry_can_only_be_dismissed(app, engine, ledger, admin):
    entry_id = await _stuck_payout(engine, ledger)
    await engine.deactivate("p1")

    with pytest.raises(ProfileInactive):
        await admin.resolve_by_commit(entry_id, operator="42")
    assert (await app.reconciliation_store.get(entry_id)).status == "pending"

    await admin.dismiss(entry_id, operator="42", note="account closed")
    assert (await app.reconciliation_store.get(entry_id)).status == "dismissed"


@pytest.mark.asyncio()
async def test_admin_filter_reads_current_admin_ids(app):
    guard = AdminFilter(app.config.admin)
    message = SimpleNamespace(from_user=SimpleNamespace(id=42))

    assert not await guard(message)
    app.config.admin.admin_ids.add(42)
    assert await guard(message)
    assert not await guard(SimpleNamespace(from_user=None))
