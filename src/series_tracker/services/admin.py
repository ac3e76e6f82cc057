"""Admin service for reporting."""

from dataclasses import dataclass
from typing import Protocol

from series_tracker.domain.admin import AdminUser


class AdminRepository(Protocol):
    """Persistence interface for admin data."""

    def list_users(self) -> list[AdminUser]:
        """Return all users with their series counts."""


@dataclass
class AdminService:
    """Service for admin dashboards."""

    admin_repository: AdminRepository

    def list_users(self) -> list[dict[str, object]]:
        """Return users with collection sizes."""
        return [
            {
                "id": str(user.id),
                "telegram_user_id": user.telegram_user_id,
                "last_active_at": user.last_active_at.isoformat()
                if user.last_active_at
                else None,
                "series_count": user.series_count,
            }
            for user in self.admin_repository.list_users()
        ]
