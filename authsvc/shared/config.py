from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _bool(name: str, default: bool = False) -> bool:
    value = _env(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _csv(name: str, default: str = "") -> tuple[str, ...]:
    value = _env(name, default) or ""
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    app_env: str
    log_level: str
    auth_store: str
    postgres_dsn: str
    db_auto_create: bool
    jwt_secret: str
    jwt_expires_in: str
    refresh_token_expires_in: str
    jwt_issuer: str
    jwt_audience: str
    google_client_id: str
    google_client_secret: str
    google_redirect_uri: str
    google_token_url: str
    google_userinfo_url: str
    google_tokeninfo_url: str
    google_id_token_verifier: str
    google_http_timeout_seconds: float
    phone_country_code: str
    mobile_redirect_scheme: str
    cors_origins: tuple[str, ...]
    rate_limit_enabled: bool
    rate_limit_max_requests: int
    rate_limit_window_seconds: int

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


def get_settings() -> Settings:
    return Settings(
        app_env=_env("APP_ENV", "development"),
        log_level=_env("LOG_LEVEL", "INFO"),
        auth_store=_env("AUTH_STORE", "postgres"),
        postgres_dsn=_env("POSTGRES_DSN", ""),
        db_auto_create=_bool("DB_AUTO_CREATE"),
        jwt_secret=_env("JWT_SECRET", ""),
        jwt_expires_in=_env("JWT_EXPIRES_IN", "30d"),
        refresh_token_expires_in=_env("REFRESH_TOKEN_EXPIRES_IN", "90d"),
        jwt_issuer=_env("JWT_ISSUER", "rlx-api"),
        jwt_audience=_env("JWT_AUDIENCE", "rlx-mobile"),
        google_client_id=_env("GOOGLE_CLIENT_ID", ""),
        google_client_secret=_env("GOOGLE_CLIENT_SECRET", ""),
        google_redirect_uri=_env("GOOGLE_REDIRECT_URI", "http://localhost:8080/oauth/callback"),
        google_token_url=_env("GOOGLE_TOKEN_URL", "https://oauth2.googleapis.com/token"),
        google_userinfo_url=_env("GOOGLE_USERINFO_URL", "https://www.googleapis.com/oauth2/v2/userinfo"),
        google_tokeninfo_url=_env("GOOGLE_TOKENINFO_URL", "https://oauth2.googleapis.com/tokeninfo"),
        google_id_token_verifier=_env("GOOGLE_ID_TOKEN_VERIFIER", "tokeninfo"),
        google_http_timeout_seconds=float(_env("GOOGLE_HTTP_TIMEOUT_SECONDS", "30")),
        phone_country_code=_env("PHONE_COUNTRY_CODE", "91"),
        mobile_redirect_scheme=_env("MOBILE_REDIRECT_SCHEME", "com.example.googleoidcdemo"),
        cors_origins=_csv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8080"),
        rate_limit_enabled=_bool("RATE_LIMIT_ENABLED", True),
        rate_limit_max_requests=int(_env("RATE_LIMIT_MAX_REQUESTS", "100")),
        rate_limit_window_seconds=int(_env("RATE_LIMIT_WINDOW_SECONDS", "900")),
    )
