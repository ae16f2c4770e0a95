"""Telegram integration helpers."""

from .aiogram_router import build_router
from .filters import AdminFilter

__all__ = [
    "build_router",
    "AdminFilter",
]
