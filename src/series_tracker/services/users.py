"""User-related business logic."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from series_tracker.domain.models import UserRecord


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def get_by_id(self, user_id: UUID) -> UserRecord | None:
        """Return the user with the given internal id, if present."""

    def get_by_telegram_id(self, telegram_user_id: int) -> UserRecord | None:
        """Return the user for a Telegram user id, if present."""

    def upsert_user(self, telegram_user_id: int) -> UserRecord:
        """Create the user if absent and return the stored row."""

    def touch_last_active(self, user_id: UUID) -> None:
        """Update the last active timestamp for the user."""


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository

    def ensure_user(self, telegram_user_id: int) -> UserRecord:
        """Ensure a user exists for the Telegram id and return it."""
        existing = self.repository.get_by_telegram_id(telegram_user_id)
        if existing:
            self.repository.touch_last_active(existing.id)
            return existing
        return self.repository.upsert_user(telegram_user_id)

    def get_user(self, user_id: UUID) -> UserRecord | None:
        """Return a user by internal id."""
        return self.repository.get_by_id(user_id)
