from __future__ import annotations

from dataclasses import replace
import logging
import threading
import time
from typing import Callable

from authsvc.client.api_client import AuthApiClient, AuthApiError
from authsvc.client.session_store import ClientSession, FileSessionStore


logger = logging.getLogger(__name__)

TOKEN_EXPIRY_BUFFER_MS = 5 * 60 * 1000
LOGIN_STATE_POLL_SECONDS = 1.0


def _now_ms() -> int:
    return int(time.time() * 1000)


class ClientSessionManager:
    """Local session cache for an app talking to the auth API.

    Every failure on the refresh path clears the cached session, so callers
    never hold a half-refreshed token pair.
    """

    def __init__(
        self,
        *,
        store: FileSessionStore,
        api_client: AuthApiClient,
        now_ms: Callable[[], int] = _now_ms,
    ):
        self._store = store
        self._api_client = api_client
        self._now_ms = now_ms
        self._lock = threading.Lock()

    def save_session(self, auth_data: dict) -> ClientSession:
        """Persist the ``data`` object of a register, login or Google response."""
        user = auth_data["user"]
        tokens = auth_data["tokens"]
        session = ClientSession(
            access_token=tokens["accessToken"],
            refresh_token=tokens["refreshToken"],
            user_id=user["id"],
            email=user.get("email"),
            phone=user.get("phone"),
            name=user["name"],
            first_name=user.get("firstName") or "",
            last_name=user.get("lastName") or "",
            picture=user.get("picture") or "",
            is_logged_in=True,
            token_expiry=self._now_ms() + int(tokens["expiresIn"]) * 1000,
        )
        with self._lock:
            self._store.save(session)
        logger.info("session_manager: saved user_id=%s", session.user_id)
        return session

    def current_session(self) -> ClientSession | None:
        session = self._store.load()
        if session is None or not session.is_logged_in:
            return None
        return session

    def is_token_expired(self, session: ClientSession | None = None) -> bool:
        session = session or self.current_session()
        if session is None:
            return True
        return self._now_ms() >= session.token_expiry - TOKEN_EXPIRY_BUFFER_MS

    def is_logged_in(self) -> bool:
        session = self.current_session()
        return session is not None and not self.is_token_expired(session)

    def clear_session(self) -> None:
        with self._lock:
            self._store.clear()
        logger.info("session_manager: cleared")

    def refresh_if_needed(self) -> bool:
        session = self.current_session()
        if session is None:
            return False
        if not self.is_token_expired(session):
            return True

        logger.info("session_manager: refreshing user_id=%s", session.user_id)
        try:
            response = self._api_client.refresh(refresh_token=session.refresh_token)
            if not response.success or not response.data:
                logger.warning(
                    "session_manager: refresh_rejected status=%s message=%s",
                    response.status_code,
                    response.message,
                )
                self.clear_session()
                return False
            tokens = response.data["tokens"]
            refreshed = replace(
                session,
                access_token=tokens["accessToken"],
                refresh_token=tokens["refreshToken"],
                token_expiry=self._now_ms() + int(tokens["expiresIn"]) * 1000,
            )
        except (AuthApiError, KeyError, TypeError, ValueError):
            logger.exception("session_manager: refresh_failed user_id=%s", session.user_id)
            self.clear_session()
            return False

        with self._lock:
            self._store.save(refreshed)
        return True

    def validate_session(self) -> bool:
        """Local check only: a stored, unexpired session is valid."""
        session = self.current_session()
        if session is None:
            return False
        if self.is_token_expired(session):
            logger.info("session_manager: session_expired user_id=%s", session.user_id)
            self.clear_session()
            return False
        return True

    def logout(self) -> bool:
        session = self.current_session()
        try:
            if session is not None:
                response = self._api_client.logout(refresh_token=session.refresh_token)
                if not response.success:
                    logger.warning("session_manager: server_logout_failed message=%s", response.message)
        except AuthApiError:
            logger.exception("session_manager: server_logout_unreachable")
            return False
        finally:
            self.clear_session()
        return True

    def get_access_token(self) -> str | None:
        session = self.current_session()
        if session is None or self.is_token_expired(session):
            return None
        return session.access_token

    def watch_login_state(
        self,
        on_change: Callable[[bool], None],
        *,
        stop_event: threading.Event,
        interval_seconds: float = LOGIN_STATE_POLL_SECONDS,
    ) -> None:
        """Poll ``is_logged_in`` until ``stop_event`` is set, calling
        ``on_change`` with the first observed state and on every flip."""
        last_state: bool | None = None
        while not stop_event.is_set():
            state = self.is_logged_in()
            if state != last_state:
                last_state = state
                on_change(state)
            stop_event.wait(interval_seconds)
