from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Identity,
    Index,
    Integer,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from authsvc.infrastructure.db.engine import Base


class UserModel(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "google_id IS NOT NULL OR email IS NOT NULL OR phone IS NOT NULL",
            name="ck_users_has_identifier",
        ),
        CheckConstraint(
            "google_id IS NOT NULL OR password_hash IS NOT NULL",
            name="ck_users_has_credential",
        ),
        CheckConstraint("theme IN ('light', 'dark', 'auto')", name="ck_users_theme"),
        CheckConstraint("age IS NULL OR (age BETWEEN 1 AND 120)", name="ck_users_age"),
        Index("uq_users_google_id", "google_id", unique=True),
        Index(
            "uq_users_active_phone_national",
            "phone_national",
            unique=True,
            postgresql_where=text("is_active AND phone_national IS NOT NULL"),
        ),
        {"schema": "public"},
    )

    id: Mapped[UUID] = mapped_column(PGUUID(as_uuid=True), primary_key=True)
    google_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    phone_national: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    picture: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("''"))
    verified_email: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    verified_phone: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    login_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    theme: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'auto'"))
    notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))


class UserRefreshTokenModel(Base):
    __tablename__ = "user_refresh_tokens"
    __table_args__ = (
        Index("ix_user_refresh_tokens_user_seq", "user_id", "seq"),
        {"schema": "public"},
    )

    seq: Mapped[int] = mapped_column(BigInteger, Identity(always=True), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("public.users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    device_info: Mapped[str] = mapped_column(Text, nullable=False, server_default=text("'Unknown Device'"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("now()"))


Index(
    "uq_users_active_email",
    func.lower(UserModel.email),
    unique=True,
    postgresql_where=text("is_active AND email IS NOT NULL"),
)
