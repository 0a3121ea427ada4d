from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base for domain errors."""


class ValidationError(DomainError):
    """Malformed or missing input."""


class UserAlreadyExistsError(DomainError):
    """Another active user already owns the email or phone."""


class UserNotFoundError(DomainError):
    """No active user matches the lookup."""


class InvalidCredentialsError(DomainError):
    """Unknown identifier or wrong password; the two are never distinguished."""


class TokenInvalidError(DomainError):
    """Token signature, claims or ledger presence check failed."""


class TokenExpiredError(TokenInvalidError):
    """Token signature is valid but the token is past its exp claim."""


class UpstreamProviderError(DomainError):
    """An identity provider rejected the request."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class GoogleTokenValidationError(UpstreamProviderError):
    """Google did not accept the presented id_token."""


class GoogleOAuthExchangeError(UpstreamProviderError):
    """Authorization code exchange or userinfo lookup failed at Google."""


class UpstreamUnavailableError(UpstreamProviderError):
    """Identity provider could not be reached or timed out."""
