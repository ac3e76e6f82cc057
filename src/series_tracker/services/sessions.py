"""Login sessions issued after launch-data verification."""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from uuid import UUID

from series_tracker.domain.models import IssuedSession, SessionRecord, UserRecord
from series_tracker.services.launch_data import verify_launch_data
from series_tracker.services.users import UserService

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=30)


class SessionRepository(Protocol):
    """Persistence interface for login sessions."""

    def create_session(
        self, user_id: UUID, token_hash: str, expires_at: datetime
    ) -> SessionRecord:
        """Create a session row and return it."""

    def get_by_token_hash(self, token_hash: str) -> SessionRecord | None:
        """Return the session for a token digest, if present."""

    def delete_session(self, token_hash: str) -> None:
        """Delete the session for a token digest."""


@dataclass
class SessionService:
    """Issues and resolves opaque session tokens."""

    user_service: UserService
    session_repository: SessionRepository
    signing_secret: str
    ttl: timedelta = DEFAULT_SESSION_TTL

    def login(self, raw_launch_data: str, now: datetime | None = None) -> IssuedSession:
        """Verify launch data and issue a session for its user.

        Raises ``LaunchDataError`` when the payload is rejected.
        """
        resolved_now = now or datetime.now(tz=UTC)
        telegram_user_id = verify_launch_data(
            raw_launch_data, self.signing_secret, resolved_now
        )
        return self.issue_session(telegram_user_id, resolved_now)

    def issue_session(
        self, telegram_user_id: int, now: datetime | None = None
    ) -> IssuedSession:
        """Upsert the user and bind a new token to it."""
        user = self.user_service.ensure_user(telegram_user_id)
        token = secrets.token_urlsafe(32)
        expires_at = (now or datetime.now(tz=UTC)) + self.ttl
        self.session_repository.create_session(
            user_id=user.id, token_hash=hash_token(token), expires_at=expires_at
        )
        logger.info("Issued session", extra={"user_id": str(user.id)})
        return IssuedSession(token=token, user=user, expires_at=expires_at)

    def resolve(self, token: str, now: datetime | None = None) -> UserRecord | None:
        """Return the user bound to a token, if the session is still valid."""
        if not token:
            return None
        session = self.session_repository.get_by_token_hash(hash_token(token))
        if session is None:
            return None
        if (now or datetime.now(tz=UTC)) >= session.expires_at:
            self.session_repository.delete_session(hash_token(token))
            return None
        return self.user_service.get_user(session.user_id)

    def revoke(self, token: str) -> None:
        """Forget a session token."""
        self.session_repository.delete_session(hash_token(token))


def hash_token(token: str) -> str:
    """Return the digest stored in place of the raw token."""
    return hashlib.sha256(token.encode()).hexdigest()
