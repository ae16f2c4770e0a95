import pytest

from rewardforge.app import GameApp
from rewardforge.config import RewardForgeConfig, StorageConfig
from rewardforge.domain.clock import FrozenClock
from rewardforge.domain.exceptions import (
    ConcurrentModification,
    ProfileAlreadyExists,
    ProfileInactive,
    ProfileNotFound,
    UnsupportedRecordVersion,
)
from rewardforge.domain.rewards import U64_MAX
from rewardforge.storage.base import ReconciliationEntry
from rewardforge.storage.codec import SCHEMA_VERSION, decode_record, dumps, encode_record, loads
from rewardforge.storage.memory import InMemoryPlayerStore
from rewardforge.storage.sqlalchemy import AsyncSQLAlchemyStorage
from rewardforge.testing import PlayerFactory, ScriptedLedger


def _bump_level(record):
    record.level += 1


@pytest.mark.asyncio()
async def test_memory_commit_bumps_revision_and_timestamp():
    store = InMemoryPlayerStore()
    record = PlayerFactory().build_record("p1")
    await store.create(record)

    stored = await store.commit("p1", _bump_level, expected_revision=1, committed_at=500)

    assert stored.level == 2
    assert stored.revision == 2
    assert stored.updated_at == 500
    assert (await store.get("p1")).level == 2


@pytest.mark.asyncio()
async def test_memory_commit_rejects_stale_revision():
    store = InMemoryPlayerStore()
    await store.create(PlayerFactory().build_record("p1"))
    await store.commit("p1", _bump_level, expected_revision=1, committed_at=10)

    with pytest.raises(ConcurrentModification):
        await store.commit("p1", _bump_level, expected_revision=1, committed_at=11)
    assert (await store.get("p1")).level == 2


@pytest.mark.asyncio()
async def test_memory_commit_rejects_missing_and_inactive():
    store = InMemoryPlayerStore()
    with pytest.raises(ProfileNotFound):
        await store.commit("ghost", _bump_level, expected_revision=1, committed_at=1)

    await store.create(PlayerFactory().build_record("p1", is_active=False))
    with pytest.raises(ProfileInactive):
        await store.commit("p1", _bump_level, expected_revision=1, committed_at=1)


@pytest.mark.asyncio()
async def test_memory_create_is_unique():
    store = InMemoryPlayerStore()
    await store.create(PlayerFactory().build_record("p1"))
    with pytest.raises(ProfileAlreadyExists):
        await store.create(PlayerFactory().build_record("p1"))


@pytest.mark.asyncio()
async def test_memory_store_rejects_unknown_schema_version():
    store = InMemoryPlayerStore()
    await store.create(PlayerFactory().build_record("p1"))
    store.raw_payload("p1")["schema_version"] = SCHEMA_VERSION + 1

    with pytest.raises(UnsupportedRecordVersion):
        await store.get("p1")


def test_codec_carries_schema_version_and_u64_values():
    record = PlayerFactory().build_veteran("p1")
    record.primary_balance = U64_MAX

    payload = encode_record(record)
    assert payload["schema_version"] == SCHEMA_VERSION
    assert payload["achievements"] == sorted(record.achievements)
    assert loads(dumps(record)) == record


def test_codec_refuses_missing_fields():
    payload = encode_record(PlayerFactory().build_record("p1"))
    del payload["score"]
    with pytest.raises(UnsupportedRecordVersion):
        decode_record(payload)
    with pytest.raises(UnsupportedRecordVersion):
        decode_record({"identity": "p1"})


@pytest.mark.asyncio()
async def test_sqlalchemy_player_store(tmp_path):
    storage = AsyncSQLAlchemyStorage(f"sqlite+aiosqlite:///{(tmp_path / 'players.db').as_posix()}")
    await storage.init_models()
    store = storage.player_store()
    try:
        record = PlayerFactory().build_veteran("p1")
        await store.create(record)
        with pytest.raises(ProfileAlreadyExists):
            await store.create(record)

        loaded = await store.get("p1")
        assert loaded == record

        stored = await store.commit("p1", _bump_level, expected_revision=1, committed_at=99)
        assert stored.revision == 2
        assert (await store.get("p1")).level == record.level + 1
        with pytest.raises(ConcurrentModification):
            await store.commit("p1", _bump_level, expected_revision=1, committed_at=100)
        with pytest.raises(ProfileNotFound):
            await store.commit("ghost", _bump_level, expected_revision=1, committed_at=100)
        assert list(await store.iter_identities()) == ["p1"]
    finally:
        await storage.dispose()


@pytest.mark.asyncio()
async def test_sqlalchemy_reconciliation_store(tmp_path):
    storage = AsyncSQLAlchemyStorage(f"sqlite+aiosqlite:///{(tmp_path / 'recon.db').as_posix()}")
    await storage.init_models()
    store = storage.reconciliation_store()
    try:
        await store.add(
            ReconciliationEntry(
                entry_id="e1",
                identity="p1",
                token_type="primary",
                amount=U64_MAX,
                destination="player:p1:primary",
                transfer_id="t1",
                reason="concurrent_modification",
                created_at=10,
            )
        )
        pending = await store.pending()
        assert [entry.amount for entry in pending] == [U64_MAX]

        await store.mark("e1", "resolved", resolved_at=20, note="done")
        assert await store.pending() == []
        assert (await store.get("e1")).status == "resolved"
        with pytest.raises(KeyError):
            await store.mark("missing", "resolved", resolved_at=21)
    finally:
        await storage.dispose()


@pytest.mark.asyncio()
async def test_engine_on_sqlalchemy_backend(tmp_path):
    config = RewardForgeConfig(
        storage=StorageConfig(
            backend="sqlalchemy",
            dsn=f"sqlite+aiosqlite:///{(tmp_path / 'app.db').as_posix()}",
        )
    )
    ledger = ScriptedLedger({config.ledger.primary_treasury: 100})
    app = GameApp(config, ledger=ledger, clock=FrozenClock())
    await app.init_backend()
    try:
        await app.engine.initialize_player("p1", "sailor")
        await app.engine.update_level("p1", 5, 500, True)
        result = await app.engine.payout("p1", 35)
        assert result.profile.primary_balance == 0
        assert ledger.balance(config.ledger.primary_treasury) == 65
    finally:
        await app.close()
