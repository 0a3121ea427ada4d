from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from authsvc.application.dto.auth import (
    AuthTokensOutput,
    ExternalIdentity,
    LoginGoogleCodeInput,
    LoginGoogleIdTokenInput,
)
from authsvc.application.ports.auth_port import AuthPort
from authsvc.application.ports.google_oauth_port import GoogleOauthPort
from authsvc.application.ports.token_port import TokenPort
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.domain.entities.user import User
from authsvc.domain.exceptions import InvalidCredentialsError, ValidationError
from authsvc.domain.services.identifiers import normalize_email

from .auth_common import issue_tokens, utcnow


logger = logging.getLogger(__name__)


def create_or_link_from_google(auth_port: AuthPort, identity: ExternalIdentity, *, now: datetime) -> User:
    """Resolve a verified Google identity to exactly one user.

    Lookup order is google_id, then email. A password account with the same
    email is upgraded in place by attaching the google_id; a new user is only
    created when neither matches. A deactivated user still owns its google_id,
    so that subject is refused instead of recreated.
    """
    email = normalize_email(identity.email) if identity.email else None

    user = auth_port.get_user_by_google_id(google_id=identity.subject)
    if user is None and auth_port.get_user_by_google_id(
        google_id=identity.subject,
        include_inactive=True,
    ) is not None:
        logger.info("login_google: rejected deactivated google subject")
        raise InvalidCredentialsError("This account has been deactivated.")
    if user is None and email:
        user = auth_port.get_user_by_email(email=email)
        if user is not None:
            if user.google_id and user.google_id != identity.subject:
                logger.warning(
                    "login_google: relinking user_id=%s to a different google subject",
                    user.id,
                )
            logger.info("login_google: linking google account to user_id=%s", user.id)

    if user is not None:
        return auth_port.record_google_login(
            user_id=user.id,
            google_id=identity.subject,
            name=identity.name or user.name,
            picture=identity.picture,
            verified_email=identity.email_verified,
            now=now,
        )

    name = identity.name or (email.split("@")[0] if email else "Google User")
    user = auth_port.create_user(
        user_id=str(uuid4()),
        name=name,
        email=email,
        phone=None,
        phone_national=None,
        google_id=identity.subject,
        password_hash=None,
        first_name=identity.first_name or None,
        last_name=identity.last_name or None,
        picture=identity.picture or "",
        verified_email=identity.email_verified,
        login_count=1,
        created_at=now,
    )
    logger.info("login_google: created user_id=%s", user.id)
    return user


class _GoogleSignIn:
    def __init__(
        self,
        *,
        auth_port: AuthPort,
        google_oauth_port: GoogleOauthPort,
        token_port: TokenPort,
        ledger: SessionLedger,
    ):
        self._auth_port = auth_port
        self._google_oauth_port = google_oauth_port
        self._token_port = token_port
        self._ledger = ledger

    def _sign_in(self, identity: ExternalIdentity, device_info: str | None) -> AuthTokensOutput:
        now = utcnow()
        user = self._auth_port.execute_in_transaction(
            lambda auth_port: create_or_link_from_google(auth_port, identity, now=now)
        )
        return issue_tokens(
            user=user,
            token_port=self._token_port,
            ledger=self._ledger,
            device_info=device_info,
            now=now,
        )


class LoginGoogleIdTokenUseCase(_GoogleSignIn):
    def execute(self, command: LoginGoogleIdTokenInput) -> AuthTokensOutput:
        if not command.id_token.strip():
            raise ValidationError("id_token is required.")
        identity = self._google_oauth_port.verify_id_token(id_token=command.id_token.strip())
        return self._sign_in(identity, command.device_info)


class LoginGoogleCodeUseCase(_GoogleSignIn):
    def execute(self, command: LoginGoogleCodeInput) -> AuthTokensOutput:
        if not command.code.strip():
            raise ValidationError("Authorization code is required.")
        identity = self._google_oauth_port.exchange_auth_code(code=command.code.strip())
        return self._sign_in(identity, command.device_info)
