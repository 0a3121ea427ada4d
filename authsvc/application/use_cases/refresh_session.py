from __future__ import annotations

import logging

from authsvc.application.dto.auth import RefreshSessionInput, RefreshSessionOutput
from authsvc.application.ports.auth_port import AuthPort
from authsvc.application.ports.token_port import TokenPort
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.domain.exceptions import TokenInvalidError

from .auth_common import resolve_refresh_token, utcnow


logger = logging.getLogger(__name__)


class RefreshSessionUseCase:
    """Rotate-on-use: the presented token is pulled from the ledger as the new
    one is pushed, so a given refresh token can be exchanged at most once."""

    def __init__(self, *, auth_port: AuthPort, token_port: TokenPort, ledger: SessionLedger):
        self._auth_port = auth_port
        self._token_port = token_port
        self._ledger = ledger

    def execute(self, command: RefreshSessionInput) -> RefreshSessionOutput:
        token = command.refresh_token.strip()
        if not token:
            raise TokenInvalidError("Missing refresh token.")

        user = resolve_refresh_token(token=token, token_port=self._token_port, auth_port=self._auth_port)
        tokens = self._token_port.mint_pair(user=user)
        self._ledger.rotate(
            user_id=user.id,
            old_token=token,
            new_token=tokens.refresh_token,
            device_info=command.device_info,
            now=utcnow(),
        )
        logger.info("refresh_session: rotated user_id=%s", user.id)
        return RefreshSessionOutput(tokens=tokens)
