from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import httpx
from google.auth.transport import requests
from google.oauth2 import id_token

from authsvc.application.dto.auth import ExternalIdentity
from authsvc.application.ports.google_oauth_port import GoogleOauthPort
from authsvc.domain.exceptions import (
    GoogleOAuthExchangeError,
    GoogleTokenValidationError,
    UpstreamUnavailableError,
)
from authsvc.domain.services.names import split_full_name


logger = logging.getLogger(__name__)


VERIFIER_TOKENINFO = "tokeninfo"
VERIFIER_LOCAL = "local"


@dataclass(frozen=True)
class GoogleOidcClientSettings:
    client_id: str
    client_secret: str
    redirect_uri: str
    token_url: str
    userinfo_url: str
    tokeninfo_url: str
    id_token_verifier: str
    timeout_seconds: float


class GoogleOidcClient(GoogleOauthPort):
    def __init__(
        self,
        settings: GoogleOidcClientSettings,
        *,
        transport: httpx.BaseTransport | None = None,
    ):
        self._settings = settings
        self._transport = transport

    def verify_id_token(self, *, id_token: str) -> ExternalIdentity:
        if self._settings.id_token_verifier == VERIFIER_LOCAL:
            payload = self._verify_id_token_locally(id_token)
        else:
            payload = self._introspect_id_token(id_token)

        subject = payload.get("sub")
        if not subject:
            raise GoogleTokenValidationError("Google id_token missing required claims.")

        audience = payload.get("aud")
        if self._settings.client_id and audience and audience != self._settings.client_id:
            logger.warning("google_oidc_client: id_token audience mismatch")
            raise GoogleTokenValidationError("Google id_token was issued for another client.")

        return _to_identity(
            subject=str(subject),
            email=payload.get("email"),
            email_verified=payload.get("email_verified", False),
            name=payload.get("name"),
            picture=payload.get("picture"),
        )

    def exchange_auth_code(self, *, code: str) -> ExternalIdentity:
        token_response = self._request(
            "POST",
            self._settings.token_url,
            data={
                "code": code,
                "client_id": self._settings.client_id,
                "client_secret": self._settings.client_secret,
                "redirect_uri": self._settings.redirect_uri,
                "grant_type": "authorization_code",
            },
        )
        if not token_response.is_success:
            logger.warning(
                "google_oidc_client: token_exchange_failed status=%s",
                token_response.status_code,
            )
            raise GoogleOAuthExchangeError(
                "Google OAuth error",
                status_code=token_response.status_code,
                payload=_body(token_response),
            )

        token_payload = _json_object(token_response, hop="token_exchange")
        access_token = token_payload.get("access_token")
        if not access_token:
            raise GoogleOAuthExchangeError(
                "Google OAuth error",
                status_code=token_response.status_code,
                payload={"error": "missing_access_token"},
            )

        userinfo_response = self._request(
            "GET",
            self._settings.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if not userinfo_response.is_success:
            logger.warning(
                "google_oidc_client: userinfo_failed status=%s",
                userinfo_response.status_code,
            )
            raise GoogleOAuthExchangeError(
                "Google OAuth error",
                status_code=userinfo_response.status_code,
                payload=_body(userinfo_response),
            )

        userinfo = _json_object(userinfo_response, hop="userinfo")
        subject = userinfo.get("id") or userinfo.get("sub")
        if not subject:
            raise GoogleOAuthExchangeError(
                "Google OAuth error",
                status_code=userinfo_response.status_code,
                payload={"error": "missing_subject"},
            )
        return _to_identity(
            subject=str(subject),
            email=userinfo.get("email"),
            email_verified=userinfo.get("verified_email", userinfo.get("email_verified", False)),
            name=userinfo.get("name"),
            picture=userinfo.get("picture"),
        )

    def _introspect_id_token(self, token: str) -> dict:
        response = self._request(
            "GET",
            self._settings.tokeninfo_url,
            params={"id_token": token},
        )
        if not response.is_success:
            logger.info("google_oidc_client: tokeninfo_rejected status=%s", response.status_code)
            raise GoogleTokenValidationError(
                "Invalid Google id_token.",
                status_code=response.status_code,
                payload=_body(response),
            )
        payload = _body(response)
        if not payload or not isinstance(payload, dict):
            raise GoogleTokenValidationError("Empty response from Google token validation.")
        return payload

    def _verify_id_token_locally(self, token: str) -> dict:
        try:
            return id_token.verify_oauth2_token(token, requests.Request(), self._settings.client_id or None)
        except ValueError as exc:
            raise GoogleTokenValidationError("Invalid Google id_token.") from exc

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        timeout = httpx.Timeout(self._settings.timeout_seconds)
        try:
            with httpx.Client(timeout=timeout, transport=self._transport) as client:
                return client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("google_oidc_client: timeout method=%s url=%s", method, url)
            raise UpstreamUnavailableError("Identity provider timed out.") from exc
        except httpx.TransportError as exc:
            logger.warning("google_oidc_client: transport_error method=%s url=%s error=%s", method, url, exc)
            raise UpstreamUnavailableError("Identity provider is unreachable.") from exc


def _body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _json_object(response: httpx.Response, *, hop: str) -> dict:
    body = _body(response)
    if not isinstance(body, dict):
        logger.warning("google_oidc_client: %s_unexpected_body status=%s", hop, response.status_code)
        raise GoogleOAuthExchangeError(
            "Google OAuth error",
            status_code=response.status_code,
            payload=body,
        )
    return body


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _to_identity(
    *,
    subject: str,
    email: Any,
    email_verified: Any,
    name: Any,
    picture: Any,
) -> ExternalIdentity:
    full_name = name.strip() if isinstance(name, str) else ""
    first_name, last_name = split_full_name(full_name)
    return ExternalIdentity(
        subject=subject,
        email=str(email) if email else None,
        email_verified=_as_bool(email_verified),
        name=full_name,
        first_name=first_name,
        last_name=last_name,
        picture=str(picture) if picture else None,
    )
