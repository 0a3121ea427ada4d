from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Callable, Iterator, TypeVar

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError

from authsvc.application.ports.auth_port import AuthPort
from authsvc.domain.entities.user import Preferences, RefreshTokenEntry, User
from authsvc.domain.exceptions import UserAlreadyExistsError, UserNotFoundError
from authsvc.domain.services.names import join_full_name
from authsvc.infrastructure.db.mappers.users_mapper import (
    map_row_to_refresh_token_entry,
    map_row_to_user,
)


logger = logging.getLogger(__name__)

TResult = TypeVar("TResult")

USER_COLUMNS = """
    id, google_id, email, phone, name, first_name, last_name, age, picture,
    verified_email, verified_phone, is_active, login_count, last_login,
    theme, notifications, created_at, updated_at,
    (password_hash IS NOT NULL) AS has_password
"""

DUPLICATE_USER_MESSAGE = "User already exists with this email or phone number."


class SqlUsersRepository(AuthPort):
    """Users and their refresh-token ledger in Postgres.

    Ledger writes lock the owning user row first, so a token pull and push on
    the same user never interleave with another writer.
    """

    def __init__(self, engine, *, connection=None):
        self._engine = engine
        self._connection = connection

    @contextmanager
    def _begin(self) -> Iterator:
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.begin() as conn:
            yield conn

    def execute_in_transaction(self, fn: Callable[[AuthPort], TResult]) -> TResult:
        if self._connection is not None:
            return fn(self)
        with self._engine.begin() as conn:
            return fn(SqlUsersRepository(self._engine, connection=conn))

    def ping(self) -> bool:
        with self._begin() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def _select_user(self, where: str, params: dict, *, include_inactive: bool = False) -> User | None:
        active_filter = "" if include_inactive else "AND is_active = true"
        sql = f"""
            SELECT {USER_COLUMNS}
            FROM public.users
            WHERE {where}
              {active_filter}
            LIMIT 1
        """
        stmt = text(sql)
        if "phones" in params:
            stmt = stmt.bindparams(bindparam("phones", expanding=True))
        with self._begin() as conn:
            row = conn.execute(stmt, params).mappings().first()
        if row is None:
            return None
        return map_row_to_user(row)

    def get_user_by_id(self, *, user_id: str) -> User | None:
        return self._select_user("id = :user_id", {"user_id": user_id})

    def get_user_by_email(self, *, email: str) -> User | None:
        return self._select_user("lower(email) = :email", {"email": email.lower()})

    def get_user_by_phones(self, *, phones: list[str]) -> User | None:
        if not phones:
            return None
        return self._select_user("phone IN :phones", {"phones": phones})

    def get_user_by_google_id(self, *, google_id: str, include_inactive: bool = False) -> User | None:
        return self._select_user(
            "google_id = :google_id",
            {"google_id": google_id},
            include_inactive=include_inactive,
        )

    def get_password_hash(self, *, user_id: str) -> str | None:
        sql = """
            SELECT password_hash
            FROM public.users
            WHERE id = :user_id
              AND is_active = true
            LIMIT 1
        """
        with self._begin() as conn:
            row = conn.execute(text(sql), {"user_id": user_id}).mappings().first()
        if row is None:
            return None
        return row["password_hash"]

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
        sql = f"""
            INSERT INTO public.users (
                id, google_id, email, phone, phone_national, password_hash, name, first_name,
                last_name, picture, verified_email, login_count, last_login, created_at, updated_at
            ) VALUES (
                :id, :google_id, :email, :phone, :phone_national, :password_hash, :name, :first_name,
                :last_name, :picture, :verified_email, :login_count, :created_at, :created_at, :created_at
            )
            RETURNING {USER_COLUMNS}
        """
        params = {
            "id": user_id,
            "google_id": google_id,
            "email": email,
            "phone": phone,
            "phone_national": phone_national,
            "password_hash": password_hash,
            "name": name,
            "first_name": first_name,
            "last_name": last_name,
            "picture": picture,
            "verified_email": verified_email,
            "login_count": login_count,
            "created_at": created_at,
        }
        try:
            with self._begin() as conn:
                row = conn.execute(text(sql), params).mappings().one()
        except IntegrityError as exc:
            logger.info("users_repository: create_user unique_violation")
            raise UserAlreadyExistsError(DUPLICATE_USER_MESSAGE) from exc
        return map_row_to_user(row)

    def _update_user(self, assignments: str, params: dict) -> User:
        sql = f"""
            UPDATE public.users
            SET {assignments},
                updated_at = :now
            WHERE id = :user_id
              AND is_active = true
            RETURNING {USER_COLUMNS}
        """
        try:
            with self._begin() as conn:
                row = conn.execute(text(sql), params).mappings().first()
        except IntegrityError as exc:
            raise UserAlreadyExistsError(DUPLICATE_USER_MESSAGE) from exc
        if row is None:
            raise UserNotFoundError("User not found.")
        return map_row_to_user(row)

    def record_login(self, *, user_id: str, now: datetime) -> User:
        return self._update_user(
            "login_count = login_count + 1, last_login = :now",
            {"user_id": user_id, "now": now},
        )

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
        return self._update_user(
            """
                google_id = :google_id,
                name = :name,
                picture = COALESCE(NULLIF(:picture, ''), picture),
                verified_email = :verified_email,
                login_count = login_count + 1,
                last_login = :now
            """,
            {
                "user_id": user_id,
                "google_id": google_id,
                "name": name,
                "picture": picture,
                "verified_email": verified_email,
                "now": now,
            },
        )

    def update_profile(
        self,
        *,
        user_id: str,
        name: str,
        preferences: Preferences,
        now: datetime,
    ) -> User:
        return self._update_user(
            "name = :name, theme = :theme, notifications = :notifications",
            {
                "user_id": user_id,
                "name": name,
                "theme": preferences.theme,
                "notifications": preferences.notifications,
                "now": now,
            },
        )

    def update_user_details(
        self,
        *,
        user_id: str,
        first_name: str,
        last_name: str,
        age: int,
        now: datetime,
    ) -> User:
        return self._update_user(
            "first_name = :first_name, last_name = :last_name, age = :age, name = :name",
            {
                "user_id": user_id,
                "first_name": first_name,
                "last_name": last_name,
                "age": age,
                "name": join_full_name(first_name, last_name),
                "now": now,
            },
        )

    def _lock_user(self, conn, user_id: str) -> bool:
        sql = """
            SELECT id
            FROM public.users
            WHERE id = :user_id
              AND is_active = true
            FOR UPDATE
        """
        return conn.execute(text(sql), {"user_id": user_id}).first() is not None

    def _push_token(
        self,
        conn,
        *,
        user_id: str,
        token: str,
        device_info: str,
        created_at: datetime,
        not_before: datetime,
        max_tokens: int,
    ) -> None:
        conn.execute(
            text(
                """
                DELETE FROM public.user_refresh_tokens
                WHERE user_id = :user_id
                  AND created_at <= :not_before
                """
            ),
            {"user_id": user_id, "not_before": not_before},
        )
        conn.execute(
            text(
                """
                INSERT INTO public.user_refresh_tokens (user_id, token, device_info, created_at)
                VALUES (:user_id, :token, :device_info, :created_at)
                """
            ),
            {
                "user_id": user_id,
                "token": token,
                "device_info": device_info,
                "created_at": created_at,
            },
        )
        evicted = conn.execute(
            text(
                """
                DELETE FROM public.user_refresh_tokens
                WHERE user_id = :user_id
                  AND seq NOT IN (
                      SELECT seq
                      FROM public.user_refresh_tokens
                      WHERE user_id = :user_id
                      ORDER BY seq DESC
                      LIMIT :max_tokens
                  )
                """
            ),
            {"user_id": user_id, "max_tokens": max_tokens},
        )
        if evicted.rowcount:
            logger.info(
                "users_repository: refresh_tokens_evicted user_id=%s count=%s",
                user_id,
                evicted.rowcount,
            )

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
        with self._begin() as conn:
            if not self._lock_user(conn, user_id):
                raise UserNotFoundError("User not found.")
            self._push_token(
                conn,
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
        with self._begin() as conn:
            if not self._lock_user(conn, user_id):
                return False
            pulled = conn.execute(
                text(
                    """
                    DELETE FROM public.user_refresh_tokens
                    WHERE user_id = :user_id
                      AND token = :token
                      AND created_at > :not_before
                    RETURNING seq
                    """
                ),
                {"user_id": user_id, "token": old_token, "not_before": not_before},
            ).first()
            if pulled is None:
                return False
            self._push_token(
                conn,
                user_id=user_id,
                token=new_token,
                device_info=device_info,
                created_at=created_at,
                not_before=not_before,
                max_tokens=max_tokens,
            )
        return True

    def has_refresh_token(self, *, user_id: str, token: str, not_before: datetime) -> bool:
        sql = """
            SELECT 1
            FROM public.user_refresh_tokens
            WHERE user_id = :user_id
              AND token = :token
              AND created_at > :not_before
            LIMIT 1
        """
        with self._begin() as conn:
            row = conn.execute(
                text(sql),
                {"user_id": user_id, "token": token, "not_before": not_before},
            ).first()
        return row is not None

    def list_refresh_tokens(self, *, user_id: str, not_before: datetime) -> list[RefreshTokenEntry]:
        sql = """
            SELECT token, device_info, created_at
            FROM public.user_refresh_tokens
            WHERE user_id = :user_id
              AND created_at > :not_before
            ORDER BY seq
        """
        with self._begin() as conn:
            rows = conn.execute(text(sql), {"user_id": user_id, "not_before": not_before}).mappings().all()
        return [map_row_to_refresh_token_entry(row) for row in rows]

    def remove_refresh_token(self, *, user_id: str, token: str) -> None:
        sql = """
            DELETE FROM public.user_refresh_tokens
            WHERE user_id = :user_id
              AND token = :token
        """
        with self._begin() as conn:
            conn.execute(text(sql), {"user_id": user_id, "token": token})

    def clear_refresh_tokens(self, *, user_id: str) -> None:
        sql = """
            DELETE FROM public.user_refresh_tokens
            WHERE user_id = :user_id
        """
        with self._begin() as conn:
            conn.execute(text(sql), {"user_id": user_id})
