from __future__ import annotations

import logging

from passlib.context import CryptContext

from authsvc.application.ports.password_hasher_port import PasswordHasherPort


logger = logging.getLogger(__name__)


class PasswordHasher(PasswordHasherPort):
    def __init__(self):
        self._ctx = CryptContext(
            schemes=["argon2", "bcrypt"],
            deprecated="auto",
        )

    def hash(self, plain_password: str) -> str:
        return self._ctx.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        try:
            return self._ctx.verify(plain_password, password_hash)
        except (ValueError, TypeError):
            logger.warning("password_hasher: unrecognized stored hash")
            return False

    def dummy_verify(self) -> None:
        # Spends the same work as a real verify when there is no hash to check.
        self._ctx.dummy_verify()
