import pytest

from rewardforge.config import LedgerConfig
from rewardforge.domain.economy import TokenType
from rewardforge.domain.engine import TransitionResult
from rewardforge.domain.exceptions import (
    DailyRewardNotReady,
    InsufficientBalance,
    LedgerUnavailable,
    ProfileNotFound,
)
from rewardforge.domain.player import PlayerProfile
from rewardforge.telegram.aiogram_router import (
    format_error_message,
    format_profile_message,
    format_reward_message,
    parse_withdraw_args,
    refresh_profile,
    render_help_message,
)
from rewardforge.testing import PlayerFactory

LEDGER = LedgerConfig()


def _profile(**overrides) -> PlayerProfile:
    record = PlayerFactory().build_record("p1", username="tester", **overrides)
    return PlayerProfile.from_record(record)


def test_format_profile_message_includes_balances():
    text = format_profile_message(_profile(primary_balance=120, premium_balance=7), LEDGER)
    assert "tester" in text
    assert "PIRATE: 120" in text
    assert "ADMIRAL: 7" in text
    assert "деактивирован" not in text


def test_format_profile_message_marks_inactive():
    text = format_profile_message(_profile(is_active=False), LEDGER)
    assert "деактивирован" in text


def test_format_reward_message_uses_token_symbol():
    daily = TransitionResult(_profile(streak_days=3), reward=35, token_type=TokenType.PRIMARY)
    weekly = TransitionResult(_profile(), reward=20, token_type=TokenType.PREMIUM)
    assert "35 PIRATE" in format_reward_message(daily, LEDGER)
    assert "3 дн." in format_reward_message(daily, LEDGER)
    assert "20 ADMIRAL" in format_reward_message(weekly, LEDGER)


def test_format_error_message():
    assert "120 сек" in format_error_message(DailyRewardNotReady(120), LEDGER)
    text = format_error_message(InsufficientBalance("primary", 50, 60), LEDGER)
    assert "PIRATE" in text and "50" in text and "60" in text
    assert "/register" in format_error_message(ProfileNotFound("p1"), LEDGER)
    assert "недоступно" in format_error_message(LedgerUnavailable("down"), LEDGER)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("/withdraw 10", (10, TokenType.PRIMARY)),
        ("/withdraw 5 premium", (5, TokenType.PREMIUM)),
        ("/withdraw 5 PRIMARY", (5, TokenType.PRIMARY)),
    ],
)
def test_parse_withdraw_args(text, expected):
    assert parse_withdraw_args(text) == expected


@pytest.mark.parametrize("text", [None, "/withdraw", "/withdraw 0", "/withdraw -3", "/withdraw ten", "/withdraw 5 gold"])
def test_parse_withdraw_args_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_withdraw_args(text)


def test_help_lists_commands():
    text = render_help_message()
    for command in ("/register", "/daily", "/weekly", "/withdraw"):
        assert command in text


@pytest.mark.asyncio()
async def test_refresh_profile_touches_login_for_active_players(engine, clock):
    await engine.initialize_player("p1", "sailor")
    clock.advance(60)
    profile = await refresh_profile(engine, "p1")
    assert profile.last_login == clock.now()


@pytest.mark.asyncio()
async def test_refresh_profile_shows_deactivated_profile(engine, clock):
    await engine.initialize_player("p1", "sailor")
    await engine.deactivate("p1")
    clock.advance(60)

    profile = await refresh_profile(engine, "p1")

    assert not profile.is_active
    assert profile.last_login < clock.now()
    assert "⛔" in format_profile_message(profile, LEDGER)
