from __future__ import annotations

import logging
from uuid import uuid4

from authsvc.application.dto.auth import AuthTokensOutput, RegisterUserInput
from authsvc.application.ports.auth_port import AuthPort
from authsvc.application.ports.password_hasher_port import PasswordHasherPort
from authsvc.application.ports.token_port import TokenPort
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.domain.exceptions import UserAlreadyExistsError, ValidationError
from authsvc.domain.services.identifiers import (
    is_email,
    is_valid_phone,
    national_number,
    normalize_email,
)
from authsvc.domain.services.names import split_full_name

from .auth_common import DEFAULT_COUNTRY_CODE, find_user_by_phone, issue_tokens, utcnow


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class RegisterUserUseCase:
    def __init__(
        self,
        *,
        auth_port: AuthPort,
        password_hasher: PasswordHasherPort,
        token_port: TokenPort,
        ledger: SessionLedger,
        country_code: str = DEFAULT_COUNTRY_CODE,
    ):
        self._auth_port = auth_port
        self._password_hasher = password_hasher
        self._token_port = token_port
        self._ledger = ledger
        self._country_code = country_code

    def execute(self, command: RegisterUserInput) -> AuthTokensOutput:
        name = command.name.strip()
        email = normalize_email(command.email) if command.email else None
        phone = command.phone.strip() if command.phone else None
        password = command.password

        if not name:
            raise ValidationError("name is required.")
        if not email and not phone:
            raise ValidationError("Either email or phone number is required.")
        if email and not is_email(email):
            raise ValidationError("Please provide a valid email address.")
        if phone and not is_valid_phone(phone):
            raise ValidationError("Please provide a valid phone number.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"password must have at least {MIN_PASSWORD_LENGTH} characters.")

        password_hash = self._password_hasher.hash(password)
        phone_national = national_number(phone, country_code=self._country_code) if phone else None
        first_name, last_name = split_full_name(name)

        def _tx(auth_port: AuthPort):
            if email and auth_port.get_user_by_email(email=email) is not None:
                raise UserAlreadyExistsError("User already exists with this email or phone number.")
            if phone and find_user_by_phone(auth_port, phone, country_code=self._country_code) is not None:
                raise UserAlreadyExistsError("User already exists with this email or phone number.")

            return auth_port.create_user(
                user_id=str(uuid4()),
                name=name,
                email=email,
                phone=phone,
                phone_national=phone_national,
                google_id=None,
                password_hash=password_hash,
                first_name=first_name or None,
                last_name=last_name or None,
                picture="",
                verified_email=False,
                login_count=0,
                created_at=utcnow(),
            )

        user = self._auth_port.execute_in_transaction(_tx)
        logger.info("register_user: created user_id=%s via=%s", user.id, "email" if email else "phone")
        return issue_tokens(
            user=user,
            token_port=self._token_port,
            ledger=self._ledger,
            device_info=command.device_info,
        )
