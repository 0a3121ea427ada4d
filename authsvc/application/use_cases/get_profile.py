from __future__ import annotations

from authsvc.application.dto.auth import AuthUserOutput
from authsvc.domain.entities.user import User

from .auth_common import build_auth_user_output


class GetProfileUseCase:
    def execute(self, *, user: User) -> AuthUserOutput:
        return build_auth_user_output(user)
