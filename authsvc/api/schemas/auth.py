from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    password: str = Field(..., min_length=6, max_length=256)

    @model_validator(mode="after")
    def _require_identifier(self) -> "RegisterRequest":
        if not (self.email or self.phone):
            raise ValueError("Either email or phone is required.")
        return self


class LoginRequest(CamelModel):
    identifier: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class GoogleCallbackRequest(CamelModel):
    code: str | None = None
    state: str | None = None


class GoogleIdTokenRequest(CamelModel):
    id_token: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelModel):
    refresh_token: str | None = None


class PreferencesPayload(CamelModel):
    theme: Literal["light", "dark", "auto"] | None = None
    notifications: bool | None = None


class UpdateProfileRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    preferences: PreferencesPayload | None = None


class UpdateUserDetailsRequest(CamelModel):
    first_name: str = Field(..., min_length=2, max_length=50)
    last_name: str = Field(..., min_length=2, max_length=50)
    age: int = Field(..., ge=1, le=120)


class PreferencesResponse(CamelModel):
    theme: str
    notifications: bool


class UserResponse(CamelModel):
    id: str
    email: str | None = None
    phone: str | None = None
    name: str
    first_name: str | None = None
    last_name: str | None = None
    age: int | None = None
    picture: str = ""
    verified_email: bool
    verified_phone: bool
    last_login: datetime | None = None
    login_count: int
    preferences: PreferencesResponse


class TokensResponse(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: int


class AuthData(CamelModel):
    user: UserResponse
    tokens: TokensResponse


class TokensData(CamelModel):
    tokens: TokensResponse


class UserData(CamelModel):
    user: UserResponse


class EnvelopeResponse(CamelModel):
    success: bool = True
    message: str | None = None


class AuthEnvelope(EnvelopeResponse):
    data: AuthData


class TokensEnvelope(EnvelopeResponse):
    data: TokensData


class UserEnvelope(EnvelopeResponse):
    data: UserData


class ErrorEnvelope(EnvelopeResponse):
    success: bool = False
    error: Any = None
    errors: list[str] | None = None


class HealthResponse(CamelModel):
    success: bool = True
    message: str
    timestamp: datetime
    environment: str
    storage: str
