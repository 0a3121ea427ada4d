from __future__ import annotations

from datetime import datetime, timezone

from authsvc.application.dto.auth import AuthTokensOutput, AuthUserOutput
from authsvc.application.ports.auth_port import AuthPort
from authsvc.application.ports.token_port import TokenPort
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.domain.entities.user import User
from authsvc.domain.exceptions import TokenInvalidError
from authsvc.domain.services.identifiers import is_email, normalize_email, phone_lookup_candidates


DEFAULT_COUNTRY_CODE = "91"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def find_user_by_phone(auth_port: AuthPort, phone: str, *, country_code: str) -> User | None:
    return auth_port.get_user_by_phones(
        phones=phone_lookup_candidates(phone, country_code=country_code),
    )


def find_user_by_email_or_phone(
    auth_port: AuthPort,
    identifier: str,
    *,
    country_code: str,
) -> User | None:
    identifier = identifier.strip()
    if is_email(identifier):
        return auth_port.get_user_by_email(email=normalize_email(identifier))
    return find_user_by_phone(auth_port, identifier, country_code=country_code)


def build_auth_user_output(user: User) -> AuthUserOutput:
    return AuthUserOutput(
        id=user.id,
        email=user.email,
        phone=user.phone,
        name=user.name,
        first_name=user.first_name,
        last_name=user.last_name,
        age=user.age,
        picture=user.picture,
        verified_email=user.verified_email,
        verified_phone=user.verified_phone,
        last_login=user.last_login,
        login_count=user.login_count,
        preferences=user.preferences,
    )


def issue_tokens(
    *,
    user: User,
    token_port: TokenPort,
    ledger: SessionLedger,
    device_info: str | None,
    now: datetime | None = None,
) -> AuthTokensOutput:
    tokens = token_port.mint_pair(user=user)
    ledger.add(
        user_id=user.id,
        token=tokens.refresh_token,
        device_info=device_info,
        now=now or utcnow(),
    )
    return AuthTokensOutput(user=build_auth_user_output(user), tokens=tokens)


def resolve_refresh_token(*, token: str, token_port: TokenPort, auth_port: AuthPort) -> User:
    """Verify a refresh token's signature and type and load its active user."""
    payload = token_port.decode_refresh_token(token=token)
    user = auth_port.get_user_by_id(user_id=payload.user_id)
    if user is None:
        raise TokenInvalidError("Invalid refresh token.")
    return user
