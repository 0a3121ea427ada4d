from __future__ import annotations

from dataclasses import replace
from datetime import datetime
import logging
import threading
from typing import Callable, TypeVar

from authsvc.application.ports.auth_port import AuthPort
from authsvc.domain.entities.user import Preferences, RefreshTokenEntry, User
from authsvc.domain.exceptions import UserAlreadyExistsError, UserNotFoundError
from authsvc.domain.services.names import join_full_name
from authsvc.domain.services.refresh_ledger import append_bounded, live_entries, without_token


logger = logging.getLogger(__name__)

TResult = TypeVar("TResult")


class InMemoryAuthRepository(AuthPort):
    """Process-local AuthPort for development and tests.

    Every operation runs under one re-entrant lock, which plays the role of
    the per-row lock the SQL repository takes.
    """

    def __init__(self):
        self.users: dict[str, User] = {}
        self.password_hashes: dict[str, str] = {}
        self.national_phones: dict[str, str] = {}
        self.refresh_tokens: dict[str, list[RefreshTokenEntry]] = {}
        self._lock = threading.RLock()

    def execute_in_transaction(self, fn: Callable[[AuthPort], TResult]) -> TResult:
        with self._lock:
            return fn(self)

    def ping(self) -> bool:
        return True

    def _active(self, predicate: Callable[[User], bool], *, include_inactive: bool = False) -> User | None:
        with self._lock:
            for user in self.users.values():
                if (include_inactive or user.is_active) and predicate(user):
                    return user
        return None

    def get_user_by_id(self, *, user_id: str) -> User | None:
        return self._active(lambda user: user.id == user_id)

    def get_user_by_email(self, *, email: str) -> User | None:
        email_l = email.lower()
        return self._active(lambda user: user.email is not None and user.email.lower() == email_l)

    def get_user_by_phones(self, *, phones: list[str]) -> User | None:
        wanted = set(phones)
        return self._active(lambda user: user.phone is not None and user.phone in wanted)

    def get_user_by_google_id(self, *, google_id: str, include_inactive: bool = False) -> User | None:
        return self._active(lambda user: user.google_id == google_id, include_inactive=include_inactive)

    def get_password_hash(self, *, user_id: str) -> str | None:
        with self._lock:
            if self.get_user_by_id(user_id=user_id) is None:
                return None
            return self.password_hashes.get(user_id)

    def _check_unique(
        self,
        *,
        user_id: str,
        email: str | None,
        phone_national: str | None,
        google_id: str | None,
    ) -> None:
        for other in self.users.values():
            if other.id == user_id:
                continue
            if google_id and other.google_id == google_id:
                raise UserAlreadyExistsError("User already exists with this Google account.")
            if not other.is_active:
                continue
            if email and other.email and other.email.lower() == email.lower():
                raise UserAlreadyExistsError("User already exists with this email or phone number.")
            if phone_national and self.national_phones.get(other.id) == phone_national:
                raise UserAlreadyExistsError("User already exists with this email or phone number.")

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
        with self._lock:
            self._check_unique(
                user_id=user_id,
                email=email,
                phone_national=phone_national,
                google_id=google_id,
            )
            user = User(
                id=user_id,
                google_id=google_id,
                email=email,
                phone=phone,
                name=name,
                first_name=first_name,
                last_name=last_name,
                age=None,
                picture=picture,
                verified_email=verified_email,
                verified_phone=False,
                is_active=True,
                login_count=login_count,
                last_login=created_at,
                preferences=Preferences(),
                created_at=created_at,
                updated_at=created_at,
                has_password=password_hash is not None,
            )
            self.users[user.id] = user
            if password_hash is not None:
                self.password_hashes[user.id] = password_hash
            if phone_national is not None:
                self.national_phones[user.id] = phone_national
            self.refresh_tokens[user.id] = []
        return user

    def _update(self, user_id: str, **changes) -> User:
        with self._lock:
            user = self.get_user_by_id(user_id=user_id)
            if user is None:
                raise UserNotFoundError("User not found.")
            updated = replace(user, **changes)
            self._check_unique(
                user_id=user_id,
                email=updated.email,
                phone_national=self.national_phones.get(user_id),
                google_id=updated.google_id,
            )
            self.users[user_id] = updated
        return updated

    def record_login(self, *, user_id: str, now: datetime) -> User:
        with self._lock:
            user = self.get_user_by_id(user_id=user_id)
            if user is None:
                raise UserNotFoundError("User not found.")
            return self._update(user_id, login_count=user.login_count + 1, last_login=now, updated_at=now)

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
        with self._lock:
            user = self.get_user_by_id(user_id=user_id)
            if user is None:
                raise UserNotFoundError("User not found.")
            return self._update(
                user_id,
                google_id=google_id,
                name=name,
                picture=picture or user.picture,
                verified_email=verified_email,
                login_count=user.login_count + 1,
                last_login=now,
                updated_at=now,
            )

    def update_profile(
        self,
        *,
        user_id: str,
        name: str,
        preferences: Preferences,
        now: datetime,
    ) -> User:
        return self._update(user_id, name=name, preferences=preferences, updated_at=now)

    def update_user_details(
        self,
        *,
        user_id: str,
        first_name: str,
        last_name: str,
        age: int,
        now: datetime,
    ) -> User:
        return self._update(
            user_id,
            first_name=first_name,
            last_name=last_name,
            age=age,
            name=join_full_name(first_name, last_name),
            updated_at=now,
        )

    def _push_token(
        self,
        *,
        user_id: str,
        token: str,
        device_info: str,
        created_at: datetime,
        not_before: datetime,
        max_tokens: int,
    ) -> None:
        entries = live_entries(self.refresh_tokens.get(user_id, []), not_before=not_before)
        entry = RefreshTokenEntry(token=token, created_at=created_at, device_info=device_info)
        updated = append_bounded(entries, entry, max_tokens=max_tokens)
        evicted = len(entries) + 1 - len(updated)
        if evicted:
            logger.info("memory_auth_repository: refresh_tokens_evicted user_id=%s count=%s", user_id, evicted)
        self.refresh_tokens[user_id] = updated

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
        with self._lock:
            if self.get_user_by_id(user_id=user_id) is None:
                raise UserNotFoundError("User not found.")
            self._push_token(
                user_id=user_id,
                token=token,
                device_info=device_info,
                created_at=created_at,
                not_before=not_before,
                max_tokens=max_tokens,
            )

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
        with self._lock:
            if not self.has_refresh_token(user_id=user_id, token=old_token, not_before=not_before):
                return False
            self.refresh_tokens[user_id] = without_token(self.refresh_tokens[user_id], old_token)
            self._push_token(
                user_id=user_id,
                token=new_token,
                device_info=device_info,
                created_at=created_at,
                not_before=not_before,
                max_tokens=max_tokens,
            )
        return True

    def has_refresh_token(self, *, user_id: str, token: str, not_before: datetime) -> bool:
        return any(entry.token == token for entry in self.list_refresh_tokens(user_id=user_id, not_before=not_before))

    def list_refresh_tokens(self, *, user_id: str, not_before: datetime) -> list[RefreshTokenEntry]:
        with self._lock:
            if self.get_user_by_id(user_id=user_id) is None:
                return []
            return live_entries(self.refresh_tokens.get(user_id, []), not_before=not_before)

    def remove_refresh_token(self, *, user_id: str, token: str) -> None:
        with self._lock:
            if user_id in self.refresh_tokens:
                self.refresh_tokens[user_id] = without_token(self.refresh_tokens[user_id], token)

    def clear_refresh_tokens(self, *, user_id: str) -> None:
        with self._lock:
            if user_id in self.refresh_tokens:
                self.refresh_tokens[user_id] = []
