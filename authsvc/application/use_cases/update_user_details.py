from __future__ import annotations

from authsvc.application.dto.auth import AuthUserOutput, UpdateUserDetailsInput
from authsvc.application.ports.auth_port import AuthPort
from authsvc.domain.exceptions import UserNotFoundError, ValidationError

from .auth_common import build_auth_user_output, utcnow


MIN_NAME_PART_LENGTH = 2
MAX_NAME_PART_LENGTH = 50
MIN_AGE = 1
MAX_AGE = 120


class UpdateUserDetailsUseCase:
    def __init__(self, *, auth_port: AuthPort):
        self._auth_port = auth_port

    def execute(self, command: UpdateUserDetailsInput) -> AuthUserOutput:
        first_name = command.first_name.strip()
        last_name = command.last_name.strip()
        for label, value in (("firstName", first_name), ("lastName", last_name)):
            if not (MIN_NAME_PART_LENGTH <= len(value) <= MAX_NAME_PART_LENGTH):
                raise ValidationError(
                    f"{label} must have between {MIN_NAME_PART_LENGTH} and {MAX_NAME_PART_LENGTH} characters."
                )
        if not (MIN_AGE <= command.age <= MAX_AGE):
            raise ValidationError(f"age must be between {MIN_AGE} and {MAX_AGE}.")

        if self._auth_port.get_user_by_id(user_id=command.user_id) is None:
            raise UserNotFoundError("User not found.")

        user = self._auth_port.update_user_details(
            user_id=command.user_id,
            first_name=first_name,
            last_name=last_name,
            age=command.age,
            now=utcnow(),
        )
        return build_auth_user_output(user)
