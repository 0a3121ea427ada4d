from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from authsvc.domain.exceptions import (
    GoogleOAuthExchangeError,
    GoogleTokenValidationError,
    UpstreamUnavailableError,
)
from authsvc.infrastructure.clients.google_oidc_client import (
    GoogleOidcClient,
    GoogleOidcClientSettings,
)


TOKEN_URL = "https://oauth2.test/token"
USERINFO_URL = "https://oauth2.test/userinfo"
TOKENINFO_URL = "https://oauth2.test/tokeninfo"


def _client(handler, **overrides) -> GoogleOidcClient:
    values = {
        "client_id": "client-123",
        "client_secret": "shh",
        "redirect_uri": "http://localhost:8080/oauth/callback",
        "token_url": TOKEN_URL,
        "userinfo_url": USERINFO_URL,
        "tokeninfo_url": TOKENINFO_URL,
        "id_token_verifier": "tokeninfo",
        "timeout_seconds": 2.0,
    }
    values.update(overrides)
    return GoogleOidcClient(GoogleOidcClientSettings(**values), transport=httpx.MockTransport(handler))


def test_verify_id_token_via_tokeninfo():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["id_token"] = request.url.params.get("id_token")
        return httpx.Response(
            200,
            json={
                "sub": "google-sub-1",
                "aud": "client-123",
                "email": "mary@example.com",
                "email_verified": "true",
                "name": "Mary Ann Evans",
                "picture": "https://example.com/m.png",
            },
        )

    identity = _client(handler).verify_id_token(id_token="id-token-1")

    assert seen["id_token"] == "id-token-1"
    assert identity.subject == "google-sub-1"
    assert identity.email_verified is True
    assert identity.first_name == "Mary"
    assert identity.last_name == "Ann Evans"
    assert identity.picture == "https://example.com/m.png"


def test_verify_id_token_rejected_by_google():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_token"})

    with pytest.raises(GoogleTokenValidationError) as exc_info:
        _client(handler).verify_id_token(id_token="bad")

    assert exc_info.value.status_code == 400
    assert exc_info.value.payload == {"error": "invalid_token"}


def test_verify_id_token_rejects_other_audience():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"sub": "google-sub-1", "aud": "someone-else"})

    with pytest.raises(GoogleTokenValidationError):
        _client(handler).verify_id_token(id_token="id-token-1")


def test_verify_id_token_accepts_any_audience_without_client_id():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"sub": "google-sub-1", "aud": "someone-else"})

    identity = _client(handler, client_id="").verify_id_token(id_token="id-token-1")

    assert identity.subject == "google-sub-1"
    assert identity.email is None


def test_exchange_auth_code_posts_form_then_reads_userinfo():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "google-access", "expires_in": 3599})
        assert request.headers["Authorization"] == "Bearer google-access"
        return httpx.Response(
            200,
            json={
                "id": "google-sub-2",
                "email": "ada@example.com",
                "verified_email": True,
                "name": "Ada Lovelace",
            },
        )

    identity = _client(handler).exchange_auth_code(code="auth-code")

    token_request = calls[0]
    assert token_request.method == "POST"
    form = parse_qs(token_request.content.decode())
    assert form["code"] == ["auth-code"]
    assert form["grant_type"] == ["authorization_code"]
    assert form["client_id"] == ["client-123"]
    assert form["redirect_uri"] == ["http://localhost:8080/oauth/callback"]
    assert identity.subject == "google-sub-2"
    assert identity.email_verified is True
    assert identity.picture is None


def test_exchange_auth_code_carries_upstream_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid_grant"})

    with pytest.raises(GoogleOAuthExchangeError) as exc_info:
        _client(handler).exchange_auth_code(code="used-code")

    assert str(exc_info.value) == "Google OAuth error"
    assert exc_info.value.payload == {"error": "invalid_grant"}


def test_exchange_auth_code_userinfo_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "google-access"})
        return httpx.Response(401, json={"error": "unauthorized"})

    with pytest.raises(GoogleOAuthExchangeError) as exc_info:
        _client(handler).exchange_auth_code(code="auth-code")

    assert exc_info.value.status_code == 401


def test_timeout_is_reported_as_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(UpstreamUnavailableError):
        _client(handler).exchange_auth_code(code="auth-code")
    with pytest.raises(UpstreamUnavailableError):
        _client(handler).verify_id_token(id_token="id-token-1")


def test_connection_error_is_reported_as_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(UpstreamUnavailableError):
        _client(handler).verify_id_token(id_token="id-token-1")


@pytest.mark.parametrize("failing_url", [TOKEN_URL, USERINFO_URL])
def test_exchange_auth_code_rejects_non_json_success_body(failing_url):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url == failing_url:
            return httpx.Response(200, text="<html>ok</html>")
        if request.url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "google-access"})
        return httpx.Response(200, json={"id": "google-sub-2"})

    with pytest.raises(GoogleOAuthExchangeError) as exc_info:
        _client(handler).exchange_auth_code(code="auth-code")

    assert exc_info.value.status_code == 200
    assert exc_info.value.payload == "<html>ok</html>"


def test_exchange_auth_code_rejects_json_array_userinfo():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url == TOKEN_URL:
            return httpx.Response(200, json={"access_token": "google-access"})
        return httpx.Response(200, json=["not", "an", "object"])

    with pytest.raises(GoogleOAuthExchangeError):
        _client(handler).exchange_auth_code(code="auth-code")
