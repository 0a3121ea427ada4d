from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Union


Theme = Literal["light", "dark", "auto"]

THEMES: tuple[str, ...] = ("light", "dark", "auto")
DEFAULT_DEVICE_INFO = "Unknown Device"


@dataclass(frozen=True)
class Preferences:
    theme: Theme = "auto"
    notifications: bool = True


@dataclass(frozen=True)
class PasswordCredential:
    password_hash: str


@dataclass(frozen=True)
class GoogleCredential:
    google_id: str


@dataclass(frozen=True)
class LinkedCredential:
    password_hash: str
    google_id: str


Credential = Union[PasswordCredential, GoogleCredential, LinkedCredential]


def build_credential(*, google_id: str | None, password_hash: str | None) -> Credential:
    """Return the credential variant for a stored user.

    A user without a Google link must have a password hash; anything else is a
    corrupt record.
    """
    if google_id and password_hash:
        return LinkedCredential(password_hash=password_hash, google_id=google_id)
    if google_id:
        return GoogleCredential(google_id=google_id)
    if password_hash:
        return PasswordCredential(password_hash=password_hash)
    raise ValueError("User must have a password hash or a linked Google account.")


@dataclass(frozen=True)
class User:
    id: str
    google_id: str | None
    email: str | None
    phone: str | None
    name: str
    first_name: str | None
    last_name: str | None
    age: int | None
    picture: str
    verified_email: bool
    verified_phone: bool
    is_active: bool
    login_count: int
    last_login: datetime | None
    preferences: Preferences
    created_at: datetime
    updated_at: datetime
    has_password: bool = False

    def __post_init__(self):
        if not (self.google_id or self.email or self.phone):
            raise ValueError("Either email or phone number is required.")
        if not self.google_id and not self.has_password:
            raise ValueError("Password is required for accounts without Google sign-in.")

    @property
    def is_google_linked(self) -> bool:
        return self.google_id is not None


@dataclass(frozen=True)
class RefreshTokenEntry:
    token: str
    created_at: datetime
    device_info: str = field(default=DEFAULT_DEVICE_INFO)
