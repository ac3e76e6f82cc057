"""Domain models for users and login sessions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: UUID
    telegram_user_id: int


@dataclass(frozen=True)
class SessionRecord:
    """Represents a persisted login session."""

    id: UUID
    user_id: UUID
    expires_at: datetime


@dataclass(frozen=True)
class IssuedSession:
    """A freshly issued session token with its owner."""

    token: str
    user: UserRecord
    expires_at: datetime
