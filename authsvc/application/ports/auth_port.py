from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from authsvc.domain.entities.user import Preferences, RefreshTokenEntry, User


TAuthResult = TypeVar("TAuthResult")


class AuthPort(Protocol):
    def execute_in_transaction(self, fn: Callable[[AuthPort], TAuthResult]) -> TAuthResult:
        ...

    def ping(self) -> bool:
        ...

    def get_user_by_id(self, *, user_id: str) -> User | None:
        ...

    def get_user_by_email(self, *, email: str) -> User | None:
        ...

    def get_user_by_phones(self, *, phones: list[str]) -> User | None:
        ...

    def get_user_by_google_id(self, *, google_id: str, include_inactive: bool = False) -> User | None:
        ...

    def get_password_hash(self, *, user_id: str) -> str | None:
        ...

    def create_user(
        self,
        *,
        user_id: str,
        name: str,
        email: str | None,
        phone: str | None,
        phone_national: str | None,
        google_id: str | None,
        password_hash: str | None,
        first_name: str | None,
        last_name: str | None,
        picture: str,
        verified_email: bool,
        login_count: int,
        created_at: datetime,
    ) -> User:
        ...

    def record_login(self, *, user_id: str, now: datetime) -> User:
        ...

    def record_google_login(
        self,
        *,
        user_id: str,
        google_id: str,
        name: str,
        picture: str | None,
        verified_email: bool,
        now: datetime,
    ) -> User:
        ...

    def update_profile(
        self,
        *,
        user_id: str,
        name: str,
        preferences: Preferences,
        now: datetime,
    ) -> User:
        ...

    def update_user_details(
        self,
        *,
        user_id: str,
        first_name: str,
        last_name: str,
        age: int,
        now: datetime,
    ) -> User:
        ...

    def add_refresh_token(
        self,
        *,
        user_id: str,
        token: str,
        device_info: str,
        created_at: datetime,
        not_before: datetime,
        max_tokens: int,
    ) -> None:
        ...

    def rotate_refresh_token(
        self,
        *,
        user_id: str,
        old_token: str,
        new_token: str,
        device_info: str,
        created_at: datetime,
        not_before: datetime,
        max_tokens: int,
    ) -> bool:
        ...

    def has_refresh_token(self, *, user_id: str, token: str, not_before: datetime) -> bool:
        ...

    def list_refresh_tokens(self, *, user_id: str, not_before: datetime) -> list[RefreshTokenEntry]:
        ...

    def remove_refresh_token(self, *, user_id: str, token: str) -> None:
        ...

    def clear_refresh_tokens(self, *, user_id: str) -> None:
        ...
