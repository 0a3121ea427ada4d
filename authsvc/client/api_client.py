from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

import httpx


logger = logging.getLogger(__name__)


class AuthApiError(RuntimeError):
    """The auth API could not be reached or returned a non-JSON body."""


@dataclass(frozen=True)
class ApiResponse:
    success: bool
    status_code: int
    message: str | None
    data: dict | None
    error: Any = None


class AuthApiClient:
    """Blocking client for the ``/auth`` endpoints.

    Every call returns the decoded envelope; HTTP error statuses come back as
    ``success=False`` responses, only transport failures raise.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def register(
        self,
        *,
        name: str,
        password: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> ApiResponse:
        body: dict[str, Any] = {"name": name, "password": password}
        if email is not None:
            body["email"] = email
        if phone is not None:
            body["phone"] = phone
        return self._request("POST", "/auth/register", json=body)

    def login(self, *, identifier: str, password: str) -> ApiResponse:
        return self._request("POST", "/auth/login", json={"identifier": identifier, "password": password})

    def google_callback(self, *, code: str, state: str | None = None) -> ApiResponse:
        return self._request("POST", "/auth/google/callback", json={"code": code, "state": state})

    def google_id_token(self, *, id_token: str) -> ApiResponse:
        return self._request("POST", "/auth/google/id-token", json={"idToken": id_token})

    def refresh(self, *, refresh_token: str) -> ApiResponse:
        return self._request("POST", "/auth/refresh", json={"refreshToken": refresh_token})

    def logout(self, *, refresh_token: str) -> ApiResponse:
        return self._request("POST", "/auth/logout", json={"refreshToken": refresh_token})

    def logout_all(self, *, refresh_token: str) -> ApiResponse:
        return self._request("POST", "/auth/logout-all", json={"refreshToken": refresh_token})

    def get_profile(self, *, access_token: str) -> ApiResponse:
        return self._request("GET", "/auth/profile", access_token=access_token)

    def update_profile(
        self,
        *,
        access_token: str,
        name: str | None = None,
        theme: str | None = None,
        notifications: bool | None = None,
    ) -> ApiResponse:
        body: dict[str, Any] = {}
        if name is not None:
            body["name"] = name
        preferences = {
            key: value
            for key, value in (("theme", theme), ("notifications", notifications))
            if value is not None
        }
        if preferences:
            body["preferences"] = preferences
        return self._request("PUT", "/auth/profile", json=body, access_token=access_token)

    def update_user_details(
        self,
        *,
        access_token: str,
        first_name: str,
        last_name: str,
        age: int,
    ) -> ApiResponse:
        return self._request(
            "PUT",
            "/auth/user-details",
            json={"firstName": first_name, "lastName": last_name, "age": age},
            access_token=access_token,
        )

    def check(self, *, access_token: str) -> ApiResponse:
        return self._request("GET", "/auth/check", access_token=access_token)

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        access_token: str | None = None,
    ) -> ApiResponse:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        try:
            with httpx.Client(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout_seconds),
                transport=self._transport,
            ) as client:
                response = client.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("auth_api_client: request_failed method=%s path=%s error=%s", method, path, exc)
            raise AuthApiError(f"Network error calling {path}.") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise AuthApiError(f"Unexpected response from {path} status={response.status_code}.") from exc

        return ApiResponse(
            success=bool(body.get("success")) and response.is_success,
            status_code=response.status_code,
            message=body.get("message"),
            data=body.get("data"),
            error=body.get("error"),
        )
