from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException

from authsvc.api.auth import require_bearer
from authsvc.application.ports.auth_port import AuthPort
from authsvc.application.use_cases.get_profile import GetProfileUseCase
from authsvc.application.use_cases.login_google import (
    LoginGoogleCodeUseCase,
    LoginGoogleIdTokenUseCase,
)
from authsvc.application.use_cases.login_local import LoginLocalUseCase
from authsvc.application.use_cases.logout_all_sessions import LogoutAllSessionsUseCase
from authsvc.application.use_cases.logout_session import LogoutSessionUseCase
from authsvc.application.use_cases.refresh_session import RefreshSessionUseCase
from authsvc.application.use_cases.register_user import RegisterUserUseCase
from authsvc.application.use_cases.session_ledger import SessionLedger
from authsvc.application.use_cases.update_profile import UpdateProfileUseCase
from authsvc.application.use_cases.update_user_details import UpdateUserDetailsUseCase
from authsvc.domain.entities.user import User
from authsvc.domain.exceptions import TokenExpiredError, TokenInvalidError
from authsvc.infrastructure.clients.google_oidc_client import (
    GoogleOidcClient,
    GoogleOidcClientSettings,
)
from authsvc.infrastructure.db.engine import get_engine
from authsvc.infrastructure.db.repositories.users_repository import SqlUsersRepository
from authsvc.infrastructure.memory.auth_repository import InMemoryAuthRepository
from authsvc.infrastructure.security.password_hasher import PasswordHasher
from authsvc.infrastructure.security.token_service import JwtTokenService
from authsvc.shared.config import get_settings


AUTH_STORE_MEMORY = "memory"


def _get_db_engine():
    settings = get_settings()
    if not settings.postgres_dsn:
        raise HTTPException(status_code=500, detail="POSTGRES_DSN is required.")
    return get_engine(settings.postgres_dsn)


@lru_cache(maxsize=1)
def _get_memory_repository() -> InMemoryAuthRepository:
    return InMemoryAuthRepository()


def get_auth_repository() -> AuthPort:
    if get_settings().auth_store == AUTH_STORE_MEMORY:
        return _get_memory_repository()
    return SqlUsersRepository(_get_db_engine())


@lru_cache(maxsize=1)
def _get_password_hasher() -> PasswordHasher:
    return PasswordHasher()


@lru_cache(maxsize=1)
def _get_token_service() -> JwtTokenService:
    settings = get_settings()
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is required.")
    return JwtTokenService(
        jwt_secret=settings.jwt_secret,
        access_expires_in=settings.jwt_expires_in,
        refresh_expires_in=settings.refresh_token_expires_in,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )


@lru_cache(maxsize=1)
def _get_google_oauth_client() -> GoogleOidcClient:
    settings = get_settings()
    return GoogleOidcClient(
        GoogleOidcClientSettings(
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            redirect_uri=settings.google_redirect_uri,
            token_url=settings.google_token_url,
            userinfo_url=settings.google_userinfo_url,
            tokeninfo_url=settings.google_tokeninfo_url,
            id_token_verifier=settings.google_id_token_verifier,
            timeout_seconds=settings.google_http_timeout_seconds,
        )
    )


def get_token_service() -> JwtTokenService:
    return _get_token_service()


def get_password_hasher() -> PasswordHasher:
    return _get_password_hasher()


def get_google_oauth_client() -> GoogleOidcClient:
    settings = get_settings()
    if not settings.google_client_id:
        raise HTTPException(status_code=500, detail="GOOGLE_CLIENT_ID is required.")
    return _get_google_oauth_client()


def get_session_ledger(auth_port: AuthPort = Depends(get_auth_repository)) -> SessionLedger:
    return SessionLedger(auth_port=auth_port)


def get_register_user_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
    ledger: SessionLedger = Depends(get_session_ledger),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    token_service: JwtTokenService = Depends(get_token_service),
) -> RegisterUserUseCase:
    return RegisterUserUseCase(
        auth_port=auth_port,
        password_hasher=password_hasher,
        token_port=token_service,
        ledger=ledger,
        country_code=get_settings().phone_country_code,
    )


def get_login_local_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
    ledger: SessionLedger = Depends(get_session_ledger),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    token_service: JwtTokenService = Depends(get_token_service),
) -> LoginLocalUseCase:
    return LoginLocalUseCase(
        auth_port=auth_port,
        password_hasher=password_hasher,
        token_port=token_service,
        ledger=ledger,
        country_code=get_settings().phone_country_code,
    )


def get_login_google_id_token_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
    ledger: SessionLedger = Depends(get_session_ledger),
    google_oauth_client: GoogleOidcClient = Depends(get_google_oauth_client),
    token_service: JwtTokenService = Depends(get_token_service),
) -> LoginGoogleIdTokenUseCase:
    return LoginGoogleIdTokenUseCase(
        auth_port=auth_port,
        google_oauth_port=google_oauth_client,
        token_port=token_service,
        ledger=ledger,
    )


def get_login_google_code_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
    ledger: SessionLedger = Depends(get_session_ledger),
    google_oauth_client: GoogleOidcClient = Depends(get_google_oauth_client),
    token_service: JwtTokenService = Depends(get_token_service),
) -> LoginGoogleCodeUseCase:
    return LoginGoogleCodeUseCase(
        auth_port=auth_port,
        google_oauth_port=google_oauth_client,
        token_port=token_service,
        ledger=ledger,
    )


def get_refresh_session_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
    ledger: SessionLedger = Depends(get_session_ledger),
    token_service: JwtTokenService = Depends(get_token_service),
) -> RefreshSessionUseCase:
    return RefreshSessionUseCase(
        auth_port=auth_port,
        token_port=token_service,
        ledger=ledger,
    )


def get_logout_session_use_case(
    ledger: SessionLedger = Depends(get_session_ledger),
    token_service: JwtTokenService = Depends(get_token_service),
) -> LogoutSessionUseCase:
    return LogoutSessionUseCase(token_port=token_service, ledger=ledger)


def get_logout_all_sessions_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
    ledger: SessionLedger = Depends(get_session_ledger),
    token_service: JwtTokenService = Depends(get_token_service),
) -> LogoutAllSessionsUseCase:
    return LogoutAllSessionsUseCase(
        auth_port=auth_port,
        token_port=token_service,
        ledger=ledger,
    )


def get_get_profile_use_case() -> GetProfileUseCase:
    return GetProfileUseCase()


def get_update_profile_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
) -> UpdateProfileUseCase:
    return UpdateProfileUseCase(auth_port=auth_port)


def get_update_user_details_use_case(
    auth_port: AuthPort = Depends(get_auth_repository),
) -> UpdateUserDetailsUseCase:
    return UpdateUserDetailsUseCase(auth_port=auth_port)


def get_current_user(
    token: str = Depends(require_bearer),
    auth_port: AuthPort = Depends(get_auth_repository),
    token_service: JwtTokenService = Depends(get_token_service),
) -> User:
    try:
        payload = token_service.decode_access_token(token=token)
    except TokenExpiredError as exc:
        raise HTTPException(status_code=401, detail="Access token expired.") from exc
    except TokenInvalidError as exc:
        raise HTTPException(status_code=401, detail="Invalid access token.") from exc

    user = auth_port.get_user_by_id(user_id=payload.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid access token.")
    return user
