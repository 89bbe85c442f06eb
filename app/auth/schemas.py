from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LoginIn(BaseModel):
    username: str = Field(min_length=1, max_length=255, examples=["demo"])
    password: str = Field(min_length=1, max_length=255, examples=["demo123"])


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str = Field(description="Stable user identifier.")
    username: str = Field(description="Login name.")
    full_name: str = Field(description="Display name.")
    email: str = Field(description="Contact e-mail address.")
    role: str = Field(description="Role of the user in the mock (always `agent`).")


class LoginOut(BaseModel):
    token: str = Field(description="Opaque bearer token for the Authorization header.")
    token_type: Literal["Bearer"] = "Bearer"
    expires_at: datetime = Field(description="Token expiry (UTC).")
    user: UserOut


class DemoCredentialsOut(BaseModel):
    username: str
    password: str
    note: str = Field(
        default="Mock credentials for local testing. POST them to /api/auth/login.",
    )
