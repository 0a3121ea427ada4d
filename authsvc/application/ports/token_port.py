from __future__ import annotations

from typing import Protocol

from authsvc.application.dto.auth import AccessTokenPayload, RefreshTokenPayload, TokenPair
from authsvc.domain.entities.user import User


class TokenPort(Protocol):
    def mint_pair(self, *, user: User) -> TokenPair:
        ...

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        ...

    def decode_refresh_token(self, *, token: str) -> RefreshTokenPayload:
        ...
