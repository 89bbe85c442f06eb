from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from app.auth.deps import get_demo_user, get_token_store, require_user
from app.auth.schemas import DemoCredentialsOut, LoginIn, LoginOut, UserOut
from app.auth.service import DemoUser, TokenStore, authenticate
from app.core.forms import read_model

router = APIRouter(tags=["auth"])
logger = logging.getLogger("app.auth")


@router.post("/login", response_model=LoginOut)
async def login(
    request: Request,
    store: TokenStore = Depends(get_token_store),
    demo_user: DemoUser = Depends(get_demo_user),
) -> LoginOut:
    """Exchange the demo credentials for a bearer token (JSON or form body)."""

    payload = await read_model(request, LoginIn)
    # Never log the submitted password or the issued token.
    user = authenticate(user=demo_user, username=payload.username, password=payload.password)
    token = store.issue(user_id=user.user_id)
    logger.info(
        "Login succeeded",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )

    return LoginOut(
        token=token.token,
        expires_at=token.expires_at,
        user=UserOut.model_validate(user),
    )


@router.get("/profile", response_model=UserOut)
async def profile(user: DemoUser = Depends(require_user)) -> UserOut:
    return UserOut.model_validate(user)


@router.get("/demo-credentials", response_model=DemoCredentialsOut)
async def demo_credentials(demo_user: DemoUser = Depends(get_demo_user)) -> DemoCredentialsOut:
    return DemoCredentialsOut(username=demo_user.username, password=demo_user.password)
