"""Expose player operations to Telegram users through aiogram.

The Telegram user id is the verified identity; no command accepts an identity
from the message text.
"""

from __future__ import annotations

import logging

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from ..app import GameApp
from ..config import LedgerConfig
from ..domain.economy import TokenType
from ..domain.engine import TransitionEngine, TransitionResult
from ..domain.exceptions import (
    CooldownActive,
    InsufficientBalance,
    RewardForgeError,
)
from ..domain.player import PlayerProfile

logger = logging.getLogger(__name__)

_ERROR_MESSAGES = {
    "invalid_username": "Имя должно занимать от 3 до 20 байт (кириллица и эмодзи занимают больше одного).",
    "profile_exists": "Профиль уже создан.",
    "profile_not_found": "Профиль не найден. Зарегистрируйся командой /register <имя>.",
    "profile_inactive": "Профиль деактивирован.",
    "invalid_payout_amount": "Сумма вывода должна быть положительной.",
    "ledger_declined": "Казначейство отклонило перевод. Попробуй позже или обратись к администратору.",
    "ledger_unavailable": "Казначейство временно недоступно, попробуй позже.",
    "concurrent_modification": "Профиль изменился во время операции, повтори команду.",
    "reconciliation_required": "Перевод выполнен, но профиль не обновлён. Администратор уже уведомлён.",
}


def build_router(app: GameApp) -> Router:
    router = Router()
    engine = app.engine
    ledger_config = app.config.ledger

    @router.message(Command("start"))
    async def handle_start(message: Message) -> None:
        await message.answer(render_help_message())

    @router.message(Command("help"))
    async def handle_help(message: Message) -> None:
        await message.answer(render_help_message())

    @router.message(Command("register"))
    async def handle_register(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        parts = (message.text or "").split(maxsplit=1)
        username = parts[1].strip() if len(parts) > 1 else (user.username or "")
        try:
            result = await engine.initialize_player(str(user.id), username)
        except RewardForgeError as exc:
            await _reply_error(message, exc, ledger_config)
            return
        await message.answer(f"Добро пожаловать, {result.profile.username}!")

    @router.message(Command("profile"))
    async def handle_profile(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        identity = str(user.id)
        try:
            profile = await refresh_profile(engine, identity)
        except RewardForgeError as exc:
            await _reply_error(message, exc, ledger_config)
            return
        await message.answer(format_profile_message(profile, ledger_config))

    @router.message(Command("daily"))
    async def handle_daily(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        try:
            result = await engine.claim_daily(str(user.id))
        except RewardForgeError as exc:
            await _reply_error(message, exc, ledger_config)
            return
        await message.answer(format_reward_message(result, ledger_config))

    @router.message(Command("weekly"))
    async def handle_weekly(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        try:
            result = await engine.claim_weekly(str(user.id))
        except RewardForgeError as exc:
            await _reply_error(message, exc, ledger_config)
            return
        await message.answer(format_reward_message(result, ledger_config))

    @router.message(Command("withdraw"))
    async def handle_withdraw(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        try:
            amount, token = parse_withdraw_args(message.text)
        except ValueError:
            await message.answer("Использование: /withdraw <количество> [primary|premium]")
            return
        try:
            result = await engine.payout(str(user.id), amount, token)
        except RewardForgeError as exc:
            await _reply_error(message, exc, ledger_config)
            return
        await message.answer(
            f"💸 Переведено {result.reward} {ledger_config.symbol_for(token)} на твой кошелёк."
        )

    @router.message(Command("deactivate"))
    async def handle_deactivate(message: Message) -> None:
        user = message.from_user
        if not user:
            return
        try:
            await engine.deactivate(str(user.id))
        except RewardForgeError as exc:
            await _reply_error(message, exc, ledger_config)
            return
        await message.answer("Профиль деактивирован. Это действие нельзя отменить.")

    return router


async def refresh_profile(engine: TransitionEngine, identity: str) -> PlayerProfile:
    """Record the visit for active players; inactive profiles are shown as stored."""
    profile = await engine.get_profile(identity)
    if not profile.is_active:
        return profile
    result = await engine.touch_login(identity)
    return result.profile


async def _reply_error(message: Message, exc: RewardForgeError, ledger: LedgerConfig) -> None:
    user_id = message.from_user.id if message.from_user else None
    logger.debug("Command %r from %s rejected: %s", message.text, user_id, exc)
    await message.answer(format_error_message(exc, ledger))


def parse_withdraw_args(text: str | None) -> tuple[int, TokenType]:
    parts = (text or "").split()
    if len(parts) < 2:
        raise ValueError("amount is required")
    amount = int(parts[1])
    if amount <= 0:
        raise ValueError("amount must be positive")
    token = TokenType.parse(parts[2]) if len(parts) > 2 else TokenType.PRIMARY
    return amount, token


def render_help_message() -> str:
    lines = [
        "Привет! Здесь хранится твой игровой прогресс и награды.",
        "",
        "Команды:",
        "• /register <имя> — создать профиль",
        "• /profile — уровень, счёт и балансы",
        "• /daily — ежедневная награда",
        "• /weekly — еженедельная премиальная награда",
        "• /withdraw <количество> [primary|premium] — вывести токены на кошелёк",
        "• /deactivate — деактивировать профиль",
        "• /help — показать это сообщение",
    ]
    return "\n".join(lines)


def format_profile_message(profile: PlayerProfile, ledger: LedgerConfig) -> str:
    lines = [
        f"👤 Профиль {profile.username}",
        f"📈 Уровень: {profile.level}",
        f"🎯 Счёт: {profile.score} (всего {profile.total_score})",
        "",
        "💰 Баланс:",
        f"  {ledger.primary_symbol}: {profile.primary_balance}",
        f"  {ledger.premium_symbol}: {profile.premium_balance}",
        "",
        f"🏁 Пройдено уровней: {profile.levels_completed}",
        f"🐉 Побеждено боссов: {profile.bosses_defeated}",
        f"🏆 Достижения: {profile.achievement_count}",
        f"🔥 Серия: {profile.streak_days} дн.",
    ]
    if not profile.is_active:
        lines.append("")
        lines.append("⛔ Профиль деактивирован.")
    return "\n".join(lines)


def format_reward_message(result: TransitionResult, ledger: LedgerConfig) -> str:
    token = result.token_type or TokenType.PRIMARY
    lines = [f"🎁 Награда: {result.reward} {ledger.symbol_for(token)}"]
    if token is TokenType.PRIMARY and result.profile.streak_days:
        lines.append(f"🔥 Серия: {result.profile.streak_days} дн.")
    return "\n".join(lines)


def format_error_message(exc: RewardForgeError, ledger: LedgerConfig) -> str:
    if isinstance(exc, CooldownActive):
        return f"Награда ещё не готова, подожди {exc.seconds_remaining} сек."
    if isinstance(exc, InsufficientBalance):
        symbol = ledger.symbol_for(TokenType(exc.token))
        return f"Недостаточно {symbol}: доступно {exc.available}, запрошено {exc.requested}."
    return _ERROR_MESSAGES.get(exc.code, "Операция отклонена.")
