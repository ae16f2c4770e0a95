"""Admin tooling."""

from .commands import app_admin_service, build_admin_router
from .service import AdminService

__all__ = ["build_admin_router", "app_admin_service", "AdminService"]
