from __future__ import annotations

import logging

from authsvc.application.dto.auth import AuthTokensOutput, LoginLocalInput
from authsvc.application.ports.auth_port import AuthPort
from authsvc.application.ports.password_hasher_port import PasswordHasherPort
from authsvc.application.ports.token_port import TokenPort
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.domain.entities.user import GoogleCredential, User, build_credential
from authsvc.domain.exceptions import InvalidCredentialsError

from .auth_common import DEFAULT_COUNTRY_CODE, find_user_by_email_or_phone, issue_tokens, utcnow


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."


class LoginLocalUseCase:
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

    def verify_password(self, identifier: str, password: str) -> User:
        user = find_user_by_email_or_phone(
            self._auth_port,
            identifier,
            country_code=self._country_code,
        )
        if user is None:
            self._password_hasher.dummy_verify()
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        password_hash = self._auth_port.get_password_hash(user_id=user.id)
        credential = build_credential(google_id=user.google_id, password_hash=password_hash)
        if isinstance(credential, GoogleCredential):
            self._password_hasher.dummy_verify()
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        if not self._password_hasher.verify(password, credential.password_hash):
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)
        return user

    def execute(self, command: LoginLocalInput) -> AuthTokensOutput:
        try:
            user = self.verify_password(command.identifier, command.password)
        except InvalidCredentialsError:
            logger.info("login_local: rejected")
            raise

        now = utcnow()
        user = self._auth_port.record_login(user_id=user.id, now=now)
        logger.info("login_local: success user_id=%s login_count=%s", user.id, user.login_count)
        return issue_tokens(
            user=user,
            token_port=self._token_port,
            ledger=self._ledger,
            device_info=command.device_info,
            now=now,
        )
