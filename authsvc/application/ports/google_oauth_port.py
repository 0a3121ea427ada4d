from __future__ import annotations

from typing import Protocol

from authsvc.application.dto.auth import ExternalIdentity


class GoogleOauthPort(Protocol):
    def verify_id_token(self, *, id_token: str) -> ExternalIdentity:
        ...

    def exchange_auth_code(self, *, code: str) -> ExternalIdentity:
        ...
