"""Verification of Telegram Mini-App launch data.

The host client signs the launch payload with a key derived from the bot
token. Verification rebuilds the data-check string from the sorted fields,
recomputes the HMAC and checks the payload is fresh enough.
"""

import hashlib
import hmac
import json
from collections.abc import Mapping
from datetime import datetime
from enum import StrEnum
from urllib.parse import parse_qsl, urlencode

MAX_AGE_SECONDS = 60 * 60 * 24
_KEY_CONSTANT = b"WebAppData"
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class LaunchDataFailure(StrEnum):
    """Machine-readable rejection reasons."""

    MISSING_HASH = "missing hash"
    MISSING_AUTH_DATE = "missing auth_date"
    INVALID_AUTH_DATE = "bad auth_date"
    EXPIRED = "initData expired"
    HASH_MISMATCH = "hash mismatch"
    MISSING_USER = "missing user"
    MALFORMED_USER = "bad user json"
    MISSING_IDENTITY = "missing telegram id"


class LaunchDataError(Exception):
    """Launch data was rejected."""

    def __init__(self, reason: LaunchDataFailure) -> None:
        super().__init__(reason.value)
        self.reason = reason


def verify_launch_data(raw_payload: str, signing_secret: str, now: datetime) -> int:
    """Verify a signed launch payload and return the Telegram user id."""
    fields = dict(parse_qsl(raw_payload, keep_blank_values=True))
    received_hash = fields.pop("hash", None)
    if not received_hash:
        raise LaunchDataError(LaunchDataFailure.MISSING_HASH)

    raw_auth_date = fields.get("auth_date")
    if not raw_auth_date:
        raise LaunchDataError(LaunchDataFailure.MISSING_AUTH_DATE)
    try:
        auth_date = int(raw_auth_date)
    except ValueError:
        raise LaunchDataError(LaunchDataFailure.INVALID_AUTH_DATE) from None

    if int(now.timestamp()) - auth_date > MAX_AGE_SECONDS:
        raise LaunchDataError(LaunchDataFailure.EXPIRED)

    expected_hash = _compute_hash(fields, signing_secret)
    if not hmac.compare_digest(expected_hash.encode(), received_hash.encode()):
        raise LaunchDataError(LaunchDataFailure.HASH_MISMATCH)

    raw_user = fields.get("user")
    if not raw_user:
        raise LaunchDataError(LaunchDataFailure.MISSING_USER)
    try:
        user = json.loads(raw_user)
    except ValueError:
        raise LaunchDataError(LaunchDataFailure.MALFORMED_USER) from None

    telegram_id = user.get("id") if isinstance(user, dict) else None
    if not _is_int64(telegram_id) or telegram_id == 0:
        raise LaunchDataError(LaunchDataFailure.MISSING_IDENTITY)
    return telegram_id


def sign_launch_data(fields: Mapping[str, str], signing_secret: str) -> str:
    """Build a signed query string from launch data fields."""
    payload = dict(fields)
    payload["hash"] = _compute_hash(payload, signing_secret)
    return urlencode(payload)


def data_check_string(fields: Mapping[str, str]) -> str:
    """Return the canonical check string for the given fields."""
    return "\n".join(f"{key}={fields[key]}" for key in sorted(fields))


def _compute_hash(fields: Mapping[str, str], signing_secret: str) -> str:
    secret_key = hmac.new(
        _KEY_CONSTANT, signing_secret.strip().encode(), hashlib.sha256
    ).digest()
    return hmac.new(
        secret_key, data_check_string(fields).encode(), hashlib.sha256
    ).hexdigest()


def _is_int64(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return _INT64_MIN <= value <= _INT64_MAX
