from __future__ import annotations

from dataclasses import asdict, dataclass
import json
import logging
import os
from pathlib import Path
import tempfile


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientSession:
    access_token: str
    refresh_token: str
    user_id: str
    email: str | None
    phone: str | None
    name: str
    first_name: str
    last_name: str
    picture: str
    is_logged_in: bool
    token_expiry: int

    def __post_init__(self):
        if not (self.email or self.phone):
            raise ValueError("A session needs an email or a phone.")

    @classmethod
    def from_dict(cls, payload: dict) -> ClientSession:
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload["refresh_token"],
            user_id=payload["user_id"],
            email=payload.get("email"),
            phone=payload.get("phone"),
            name=payload["name"],
            first_name=payload.get("first_name") or "",
            last_name=payload.get("last_name") or "",
            picture=payload.get("picture") or "",
            is_logged_in=bool(payload.get("is_logged_in", False)),
            token_expiry=int(payload.get("token_expiry", 0)),
        )


class FileSessionStore:
    """One JSON file holding the whole session record.

    Writes go to a sibling temp file that is then renamed over the target, so
    a reader sees either the previous record or the new one.
    """

    def __init__(self, path: str | os.PathLike):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> ClientSession | None:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return ClientSession.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            logger.warning("session_store: unreadable session file path=%s", self._path)
            return None

    def save(self, session: ClientSession) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(asdict(session), handle)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)
