from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import jwt

from authsvc.application.dto.auth import AccessTokenPayload, RefreshTokenPayload, TokenPair
from authsvc.application.ports.token_port import TokenPort
from authsvc.domain.entities.user import User
from authsvc.domain.exceptions import TokenExpiredError, TokenInvalidError
from authsvc.domain.services.durations import parse_duration_seconds


ALGORITHM = "HS256"
REFRESH_TOKEN_TYPE = "refresh"
ACCESS_TOKEN_TYPE = "access"


class JwtTokenService(TokenPort):
    """Signs access and refresh tokens with one shared secret.

    The ``type`` claim is what keeps an access token from being accepted
    where a refresh token is expected, and the reverse.
    """

    def __init__(
        self,
        *,
        jwt_secret: str,
        access_expires_in: str,
        refresh_expires_in: str,
        issuer: str,
        audience: str,
    ):
        self._jwt_secret = jwt_secret
        self._access_ttl_seconds = parse_duration_seconds(access_expires_in)
        self._refresh_ttl_seconds = parse_duration_seconds(refresh_expires_in)
        self._issuer = issuer
        self._audience = audience

    @property
    def access_ttl_seconds(self) -> int:
        return self._access_ttl_seconds

    def mint_pair(self, *, user: User, now: datetime | None = None) -> TokenPair:
        now = now or utcnow()
        access_token = self._encode(
            {
                "userId": user.id,
                "email": user.email,
                "name": user.name,
                "type": ACCESS_TOKEN_TYPE,
            },
            now=now,
            ttl_seconds=self._access_ttl_seconds,
        )
        refresh_token = self._encode(
            {
                "userId": user.id,
                "type": REFRESH_TOKEN_TYPE,
            },
            now=now,
            ttl_seconds=self._refresh_ttl_seconds,
        )
        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._access_ttl_seconds,
        )

    def verify(self, *, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self._jwt_secret,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token expired.") from exc
        except jwt.PyJWTError as exc:
            raise TokenInvalidError("Invalid token.") from exc

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        payload = self.verify(token=token)
        if payload.get("type") == REFRESH_TOKEN_TYPE:
            raise TokenInvalidError("Invalid token type.")
        return AccessTokenPayload(
            user_id=_user_id(payload),
            email=payload.get("email"),
            name=payload.get("name"),
        )

    def decode_refresh_token(self, *, token: str) -> RefreshTokenPayload:
        payload = self.verify(token=token)
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise TokenInvalidError("Invalid token type.")
        return RefreshTokenPayload(user_id=_user_id(payload))

    def _encode(self, claims: dict[str, Any], *, now: datetime, ttl_seconds: int) -> str:
        payload = {
            **claims,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=ttl_seconds)).timestamp()),
            "jti": uuid4().hex,
        }
        return jwt.encode(payload, self._jwt_secret, algorithm=ALGORITHM)


def _user_id(payload: dict[str, Any]) -> str:
    user_id = payload.get("userId")
    if not user_id or not isinstance(user_id, str):
        raise TokenInvalidError("Invalid token subject.")
    return user_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
