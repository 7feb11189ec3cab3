from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from taskmarket.schemas.common import StrictBaseModel

RegisterRole = Literal["buyer", "worker"]


class RegisterRequest(StrictBaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=8, max_length=128)
    role: RegisterRole
    profile_pic: str | None = Field(default=None, max_length=2_048)


class LoginRequest(StrictBaseModel):
    email: str
    password: str


class AccountSummary(BaseModel):
    id: int
    name: str
    email: str
    role: str
    coins: int
    profile_pic: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountSummary
