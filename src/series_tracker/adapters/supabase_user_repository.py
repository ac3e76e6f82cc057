"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from series_tracker.domain.models import UserRecord
from series_tracker.services.users import UserRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user with the given id, if present."""
        response = (
            self.client.table("users")
            .select("id, telegram_user_id")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_user(response.data[0])

    def get_by_telegram_id(self, telegram_user_id: int) -> UserRecord | None:
        """Return the user for a Telegram user id, if present."""
        response = (
            self.client.table("users")
            .select("id, telegram_user_id")
            .eq("telegram_user_id", telegram_user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_user(response.data[0])

    def upsert_user(self, telegram_user_id: int) -> UserRecord:
        """Insert the user, or return the existing row on conflict."""
        response = (
            self.client.table("users")
            .upsert(
                {
                    "telegram_user_id": telegram_user_id,
                    "last_active_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="telegram_user_id",
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to upsert user in Supabase")
        return _parse_user(response.data[0])

    def touch_last_active(self, user_id: UUID) -> None:
        """Update the last_active_at timestamp for a user."""
        self.client.table("users").update(
            {"last_active_at": datetime.now(tz=UTC).isoformat()}
        ).eq("id", str(user_id)).execute()


def _parse_user(row: dict[str, object]) -> UserRecord:
    return UserRecord(
        id=UUID(str(row["id"])),
        telegram_user_id=int(row["telegram_user_id"]),
    )
