from __future__ import annotations

import logging
from datetime import datetime, timedelta

from authsvc.application.ports.auth_port import AuthPort
from authsvc.domain.entities.user import DEFAULT_DEVICE_INFO, RefreshTokenEntry
from authsvc.domain.exceptions import TokenInvalidError
from authsvc.domain.services.refresh_ledger import (
    MAX_REFRESH_TOKENS,
    REFRESH_TOKEN_TTL,
    ledger_cutoff,
)


logger = logging.getLogger(__name__)


class SessionLedger:
    """Server-side record of the refresh tokens a user may still present.

    A refresh token is only usable while it is both validly signed and listed
    here; removing it here revokes it for every holder.
    """

    def __init__(
        self,
        *,
        auth_port: AuthPort,
        max_tokens: int = MAX_REFRESH_TOKENS,
        ttl: timedelta = REFRESH_TOKEN_TTL,
    ):
        self._auth_port = auth_port
        self._max_tokens = max_tokens
        self._ttl = ttl

    def add(self, *, user_id: str, token: str, device_info: str | None, now: datetime) -> None:
        self._auth_port.add_refresh_token(
            user_id=user_id,
            token=token,
            device_info=device_info or DEFAULT_DEVICE_INFO,
            created_at=now,
            not_before=ledger_cutoff(now, ttl=self._ttl),
            max_tokens=self._max_tokens,
        )

    def remove(self, *, user_id: str, token: str) -> None:
        self._auth_port.remove_refresh_token(user_id=user_id, token=token)

    def clear(self, *, user_id: str) -> None:
        self._auth_port.clear_refresh_tokens(user_id=user_id)
        logger.info("session_ledger: cleared user_id=%s", user_id)

    def contains(self, *, user_id: str, token: str, now: datetime) -> bool:
        return self._auth_port.has_refresh_token(
            user_id=user_id,
            token=token,
            not_before=ledger_cutoff(now, ttl=self._ttl),
        )

    def entries(self, *, user_id: str, now: datetime) -> list[RefreshTokenEntry]:
        return self._auth_port.list_refresh_tokens(
            user_id=user_id,
            not_before=ledger_cutoff(now, ttl=self._ttl),
        )

    def rotate(
        self,
        *,
        user_id: str,
        old_token: str,
        new_token: str,
        device_info: str | None,
        now: datetime,
    ) -> None:
        rotated = self._auth_port.rotate_refresh_token(
            user_id=user_id,
            old_token=old_token,
            new_token=new_token,
            device_info=device_info or DEFAULT_DEVICE_INFO,
            created_at=now,
            not_before=ledger_cutoff(now, ttl=self._ttl),
            max_tokens=self._max_tokens,
        )
        if not rotated:
            logger.warning("session_ledger: rotate_rejected user_id=%s", user_id)
            raise TokenInvalidError("Invalid refresh token.")
