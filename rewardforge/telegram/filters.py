"""aiogram filters guarding operator-only commands."""

from __future__ import annotations

import logging
from typing import Union

from aiogram.filters import BaseFilter
from aiogram.types import CallbackQuery, Message

from ..config import AdminConfig

logger = logging.getLogger(__name__)


class AdminFilter(BaseFilter):
    """Pass only updates sent by configured operators.

    The id set is read on every update, so admins added to ``AdminConfig`` at
    runtime are honoured without rebuilding the router.
    """

    def __init__(self, admin: AdminConfig) -> None:
        self._admin = admin

    async def __call__(self, event: Union[Message, CallbackQuery]) -> bool:
        user = event.from_user
        if user is None:
            return False
        if user.id in self._admin.admin_ids:
            return True
        logger.debug("Operator command refused for user %s.", user.id)
        return False
