from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.auth.service import DemoUser, TokenStore
from app.domain.exceptions import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False, description="Token from POST /api/auth/login.")


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_demo_user(request: Request) -> DemoUser:
    return request.app.state.demo_user


async def require_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    store: TokenStore = Depends(get_token_store),
    user: DemoUser = Depends(get_demo_user),
) -> DemoUser:
    """Resolve the bearer token to the demo user, or raise AuthenticationError (401)."""

    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")

    record = store.resolve(credentials.credentials)
    if record is None or record.user_id != user.user_id:
        raise AuthenticationError("Invalid or expired token")
    return user
