from __future__ import annotations

from typing import Any, Mapping

from authsvc.domain.entities.user import Preferences, RefreshTokenEntry, User


def _as_str(value: Any) -> str:
    return str(value)


def map_row_to_user(row: Mapping[str, Any]) -> User:
    return User(
        id=_as_str(row["id"]),
        google_id=row.get("google_id"),
        email=row.get("email"),
        phone=row.get("phone"),
        name=row["name"],
        first_name=row.get("first_name"),
        last_name=row.get("last_name"),
        age=int(row["age"]) if row.get("age") is not None else None,
        picture=row.get("picture") or "",
        verified_email=bool(row["verified_email"]),
        verified_phone=bool(row["verified_phone"]),
        is_active=bool(row["is_active"]),
        login_count=int(row["login_count"]),
        last_login=row.get("last_login"),
        preferences=Preferences(
            theme=row.get("theme") or "auto",
            notifications=bool(row["notifications"]),
        ),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        has_password=bool(row["has_password"]),
    )


def map_row_to_refresh_token_entry(row: Mapping[str, Any]) -> RefreshTokenEntry:
    return RefreshTokenEntry(
        token=row["token"],
        created_at=row["created_at"],
        device_info=row["device_info"],
    )
