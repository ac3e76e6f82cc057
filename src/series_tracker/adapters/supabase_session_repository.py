"""Supabase-backed login session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from series_tracker.domain.models import SessionRecord
from series_tracker.services.sessions import SessionRepository


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for login sessions."""

    client: Client

    def create_session(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> SessionRecord:
        """Create a session row and return it."""
        response = (
            self.client.table("app_sessions")
            .insert(
                {
                    "user_id": str(user_id),
                    "token_hash": token_hash,
                    "expires_at": expires_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create session")
        return _parse_session(response.data[0])

    def get_by_token_hash(self, token_hash: str) -> SessionRecord | None:
        """Return the session for a token digest, if present."""
        response = (
            self.client.table("app_sessions")
            .select("id, user_id, expires_at")
            .eq("token_hash", token_hash)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_session(response.data[0])

    def delete_session(self, token_hash: str) -> None:
        """Delete the session for a token digest."""
        self.client.table("app_sessions").delete().eq(
            "token_hash", token_hash
        ).execute()


def _parse_session(row: dict[str, object]) -> SessionRecord:
    return SessionRecord(
        id=UUID(str(row["id"])),
        user_id=UUID(str(row["user_id"])),
        expires_at=datetime.fromisoformat(str(row["expires_at"])),
    )
