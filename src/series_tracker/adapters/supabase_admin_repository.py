"""Supabase admin data access."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from series_tracker.domain.admin import AdminUser
from series_tracker.services.admin import AdminRepository


@dataclass
class SupabaseAdminRepository(AdminRepository):
    """Supabase implementation for admin queries."""

    client: Client

    def list_users(self) -> list[AdminUser]:
        """Return all users ordered by last activity."""
        response = (
            self.client.table("users")
            .select("id, telegram_user_id, last_active_at, series(count)")
            .order("last_active_at", desc=True)
            .execute()
        )
        users = []
        for row in response.data or []:
            last_active = row.get("last_active_at")
            last_active_at = (
                datetime.fromisoformat(last_active)
                if isinstance(last_active, str) and last_active
                else None
            )
            users.append(
                AdminUser(
                    id=UUID(row["id"]),
                    telegram_user_id=row["telegram_user_id"],
                    last_active_at=last_active_at,
                    series_count=_embedded_count(row.get("series")),
                )
            )
        return users


def _embedded_count(value: object) -> int:
    """Read PostgREST's ``[{"count": n}]`` aggregate shape."""
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return int(value[0].get("count", 0))
    return 0
