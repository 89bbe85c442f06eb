from __future__ import annotations

import hmac
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from app.core.settings import Settings
from app.domain.exceptions import AuthenticationError


@dataclass(frozen=True)
class DemoUser:
    user_id: str
    username: str
    password: str
    full_name: str
    email: str
    role: str = "agent"


@dataclass(frozen=True)
class AuthToken:
    token: str
    user_id: str
    issued_at: datetime
    expires_at: datetime


def demo_user_from_settings(settings: Settings) -> DemoUser:
    return DemoUser(
        user_id="usr_demo_0001",
        username=settings.demo_username,
        password=settings.demo_password,
        full_name="Demo Travel Agent",
        email=f"{settings.demo_username}@hotel-mock.local",
    )


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenStore:
    """
    In-memory bearer tokens for the demo user.

    Tokens are opaque random strings; nothing is signed or persisted, so a restart
    logs everyone out. All access happens on the event loop thread.
    """

    def __init__(self, *, ttl_seconds: int, now: Callable[[], datetime] = _utcnow):
        self._ttl = timedelta(seconds=ttl_seconds)
        self._now = now
        self._tokens: dict[str, AuthToken] = {}

    def issue(self, *, user_id: str) -> AuthToken:
        self._purge_expired()
        issued_at = self._now()
        token = AuthToken(
            token=secrets.token_urlsafe(32),
            user_id=user_id,
            issued_at=issued_at,
            expires_at=issued_at + self._ttl,
        )
        self._tokens[token.token] = token
        return token

    def resolve(self, token: str) -> AuthToken | None:
        """Return the token record, or None when unknown or expired."""

        record = self._tokens.get(token)
        if record is None:
            return None
        if record.expires_at <= self._now():
            self._tokens.pop(token, None)
            return None
        return record

    def _purge_expired(self) -> None:
        now = self._now()
        expired = [t for t, rec in self._tokens.items() if rec.expires_at <= now]
        for t in expired:
            del self._tokens[t]


def authenticate(*, user: DemoUser, username: str, password: str) -> DemoUser:
    """Check credentials against the demo user. Raises AuthenticationError on mismatch."""

    # Compare both fields even when the first differs.
    username_ok = hmac.compare_digest(username.encode(), user.username.encode())
    password_ok = hmac.compare_digest(password.encode(), user.password.encode())
    if not (username_ok and password_ok):
        raise AuthenticationError("Invalid username or password")
    return user
