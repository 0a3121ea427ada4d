from __future__ import annotations

import logging

from authsvc.application.dto.auth import LogoutInput
from authsvc.application.ports.token_port import TokenPort
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.domain.exceptions import TokenInvalidError


logger = logging.getLogger(__name__)


class LogoutSessionUseCase:
    def __init__(self, *, token_port: TokenPort, ledger: SessionLedger):
        self._token_port = token_port
        self._ledger = ledger

    def execute(self, command: LogoutInput) -> None:
        token = command.refresh_token.strip()
        if not token:
            raise TokenInvalidError("Missing refresh token.")

        payload = self._token_port.decode_refresh_token(token=token)
        # Already-rotated or already-removed tokens log out successfully.
        self._ledger.remove(user_id=payload.user_id, token=token)
        logger.info("logout_session: user_id=%s", payload.user_id)
