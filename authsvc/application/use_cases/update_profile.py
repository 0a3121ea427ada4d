from __future__ import annotations

from dataclasses import replace

from authsvc.application.dto.auth import AuthUserOutput, UpdateProfileInput
from authsvc.application.ports.auth_port import AuthPort
from authsvc.domain.entities.user import THEMES
from authsvc.domain.exceptions import UserNotFoundError, ValidationError

from .auth_common import build_auth_user_output, utcnow


MAX_NAME_LENGTH = 100


class UpdateProfileUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, command: UpdateProfileInput) -> AuthUserOutput:
        if command.theme is not None and command.theme not in THEMES:
            raise ValidationError(f"theme must be one of: {', '.join(THEMES)}.")

        name = command.name.strip() if command.name is not None else None
        if name is not None and not (1 <= len(name) <= MAX_NAME_LENGTH):
            raise ValidationError(f"name must have between 1 and {MAX_NAME_LENGTH} characters.")

        def _tx(auth_port: AuthPort):
            user = auth_port.get_user_by_id(user_id=command.user_id)
            if user is None:
                raise UserNotFoundError("User not found.")

            preferences = user.preferences
            if command.theme is not None:
                preferences = replace(preferences, theme=command.theme)
            if command.notifications is not None:
                preferences = replace(preferences, notifications=command.notifications)

            return auth_port.update_profile(
                user_id=user.id,
                name=name or user.name,
                preferences=preferences,
                now=utcnow(),
            )

        return build_auth_user_output(self._auth_port.execute_in_transaction(_tx))
