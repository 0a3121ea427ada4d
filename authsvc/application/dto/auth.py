from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from authsvc.domain.entities.user import Preferences


@dataclass(frozen=True)
class AuthUserOutput:
    id: str
    email: str | None
    phone: str | None
    name: str
    first_name: str | None
    last_name: str | None
    age: int | None
    picture: str
    verified_email: bool
    verified_phone: bool
    last_login: datetime | None
    login_count: int
    preferences: Preferences


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int


@dataclass(frozen=True)
class AuthTokensOutput:
    user: AuthUserOutput
    tokens: TokenPair


@dataclass(frozen=True)
class RefreshSessionOutput:
    tokens: TokenPair


@dataclass(frozen=True)
class RegisterUserInput:
    name: str
    email: str | None
    phone: str | None
    password: str
    device_info: str | None


@dataclass(frozen=True)
class LoginLocalInput:
    identifier: str
    password: str
    device_info: str | None


@dataclass(frozen=True)
class LoginGoogleIdTokenInput:
    id_token: str
    device_info: str | None


@dataclass(frozen=True)
class LoginGoogleCodeInput:
    code: str
    state: str | None
    device_info: str | None


@dataclass(frozen=True)
class RefreshSessionInput:
    refresh_token: str
    device_info: str | None


@dataclass(frozen=True)
class LogoutInput:
    refresh_token: str


@dataclass(frozen=True)
class UpdateProfileInput:
    user_id: str
    name: str | None
    theme: str | None
    notifications: bool | None


@dataclass(frozen=True)
class UpdateUserDetailsInput:
    user_id: str
    first_name: str
    last_name: str
    age: int


@dataclass(frozen=True)
class AccessTokenPayload:
    user_id: str
    email: str | None
    name: str | None


@dataclass(frozen=True)
class RefreshTokenPayload:
    user_id: str


@dataclass(frozen=True)
class ExternalIdentity:
    subject: str
    email: str | None
    email_verified: bool
    name: str
    first_name: str
    last_name: str
    picture: str | None
