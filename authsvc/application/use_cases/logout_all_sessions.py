from __future__ import annotations

from authsvc.application.dto.auth import LogoutInput
from authsvc.application.ports.auth_port import AuthPort
from authsvc.application.ports.token_port import TokenPort
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.domain.exceptions import TokenInvalidError

from .auth_common import resolve_refresh_token, utcnow


class LogoutAllSessionsUseCase:
    def __init__(self, *, auth_port: AuthPort, token_port: TokenPort, ledger: SessionLedger):
        self._auth_port = auth_port
        self._token_port = token_port
        self._ledger = ledger

    def execute(self, command: LogoutInput) -> None:
        token = command.refresh_token.strip()
        if not token:
            raise TokenInvalidError("Missing refresh token.")

        user = resolve_refresh_token(token=token, token_port=self._token_port, auth_port=self._auth_port)
        if not self._ledger.contains(user_id=user.id, token=token, now=utcnow()):
            raise TokenInvalidError("Invalid refresh token.")
        self._ledger.clear(user_id=user.id)
