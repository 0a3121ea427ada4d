from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from itertools import count
import threading

import pytest

from authsvc.application.dto.auth import (
    AccessTokenPayload,
    ExternalIdentity,
    LoginGoogleCodeInput,
    LoginGoogleIdTokenInput,
    LoginLocalInput,
    LogoutInput,
    RefreshSessionInput,
    RefreshTokenPayload,
    RegisterUserInput,
    TokenPair,
    UpdateProfileInput,
    UpdateUserDetailsInput,
)
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
from authsvc.domain.exceptions import (
    InvalidCredentialsError,
    TokenInvalidError,
    UserAlreadyExistsError,
    ValidationError,
)
from authsvc.infrastructure.memory.auth_repository import InMemoryAuthRepository


class FakePasswordHasher:
    def __init__(self):
        self.dummy_calls = 0

    def hash(self, plain_password: str) -> str:
        return f"hashed::{plain_password}"

    def verify(self, plain_password: str, password_hash: str) -> bool:
        return password_hash == f"hashed::{plain_password}"

    def dummy_verify(self) -> None:
        self.dummy_calls += 1


class FakeTokenPort:
    def __init__(self):
        self._seq = count(1)

    def mint_pair(self, *, user: User) -> TokenPair:
        n = next(self._seq)
        return TokenPair(
            access_token=f"access::{user.id}::{n}",
            refresh_token=f"refresh::{user.id}::{n}",
            expires_in=3600,
        )

    def decode_access_token(self, *, token: str) -> AccessTokenPayload:
        kind, user_id, _ = token.split("::")
        if kind != "access":
            raise TokenInvalidError("Invalid token type.")
        return AccessTokenPayload(user_id=user_id, email=None, name=None)

    def decode_refresh_token(self, *, token: str) -> RefreshTokenPayload:
        parts = token.split("::")
        if len(parts) != 3 or parts[0] != "refresh":
            raise TokenInvalidError("Invalid refresh token.")
        return RefreshTokenPayload(user_id=parts[1])


class FakeGoogleOauthPort:
    def __init__(self, identity: ExternalIdentity):
        self.identity = identity

    def verify_id_token(self, *, id_token: str) -> ExternalIdentity:
        assert id_token == "token-google"
        return self.identity

    def exchange_auth_code(self, *, code: str) -> ExternalIdentity:
        assert code == "code-google"
        return self.identity


def _identity(**overrides) -> ExternalIdentity:
    values = {
        "subject": "google-sub-1",
        "email": "User@Example.com",
        "email_verified": True,
        "name": "Google User",
        "first_name": "Google",
        "last_name": "User",
        "picture": "https://example.com/p.png",
    }
    values.update(overrides)
    return ExternalIdentity(**values)


class Harness:
    def __init__(self, identity: ExternalIdentity | None = None):
        self.auth_port = InMemoryAuthRepository()
        self.hasher = FakePasswordHasher()
        self.token_port = FakeTokenPort()
        self.ledger = SessionLedger(auth_port=self.auth_port)
        self.google = FakeGoogleOauthPort(identity or _identity())

    def register(self, **kwargs):
        values = {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": None,
            "password": "secret1",
            "device_info": "pytest",
        }
        values.update(kwargs)
        return RegisterUserUseCase(
            auth_port=self.auth_port,
            password_hasher=self.hasher,
            token_port=self.token_port,
            ledger=self.ledger,
        ).execute(RegisterUserInput(**values))

    def login(self, identifier: str, password: str):
        return LoginLocalUseCase(
            auth_port=self.auth_port,
            password_hasher=self.hasher,
            token_port=self.token_port,
            ledger=self.ledger,
        ).execute(LoginLocalInput(identifier=identifier, password=password, device_info="pytest"))

    def refresh(self, token: str):
        return RefreshSessionUseCase(
            auth_port=self.auth_port,
            token_port=self.token_port,
            ledger=self.ledger,
        ).execute(RefreshSessionInput(refresh_token=token, device_info="pytest"))

    def google_id_token(self):
        return LoginGoogleIdTokenUseCase(
            auth_port=self.auth_port,
            google_oauth_port=self.google,
            token_port=self.token_port,
            ledger=self.ledger,
        ).execute(LoginGoogleIdTokenInput(id_token="token-google", device_info="pytest"))

    def google_code(self):
        return LoginGoogleCodeUseCase(
            auth_port=self.auth_port,
            google_oauth_port=self.google,
            token_port=self.token_port,
            ledger=self.ledger,
        ).execute(LoginGoogleCodeInput(code="code-google", state="xyz", device_info="pytest"))

    def ledger_tokens(self, user_id: str) -> list[str]:
        now = datetime.now(timezone.utc)
        return [entry.token for entry in self.ledger.entries(user_id=user_id, now=now)]


def test_register_user_hashes_password_and_issues_tokens():
    harness = Harness()

    output = harness.register()

    assert output.user.email == "ada@example.com"
    assert output.user.first_name == "Ada"
    assert output.user.last_name == "Lovelace"
    assert output.user.login_count == 0
    assert harness.auth_port.password_hashes[output.user.id] == "hashed::secret1"
    assert output.tokens.expires_in == 3600
    assert harness.ledger_tokens(output.user.id) == [output.tokens.refresh_token]


def test_register_user_rejects_duplicate_email_case_insensitively():
    harness = Harness()
    harness.register(email="a@b.com")

    with pytest.raises(UserAlreadyExistsError):
        harness.register(email="A@B.com")

    assert len(harness.auth_port.users) == 1


def test_register_user_rejects_phone_stored_in_another_format():
    harness = Harness()
    harness.register(email=None, phone="+919876543210")

    with pytest.raises(UserAlreadyExistsError):
        harness.register(email=None, phone="9876543210")


def test_memory_store_rejects_national_phone_already_owned():
    harness = Harness()
    registered = harness.register(email=None, phone="+919876543210")

    assert harness.auth_port.national_phones[registered.user.id] == "9876543210"
    with pytest.raises(UserAlreadyExistsError):
        harness.auth_port.create_user(
            user_id="racing-user",
            name="Racer",
            email=None,
            phone="919876543210",
            phone_national="9876543210",
            google_id=None,
            password_hash="hashed::secret1",
            first_name=None,
            last_name=None,
            picture="",
            verified_email=False,
            login_count=0,
            created_at=datetime.now(timezone.utc),
        )


@pytest.mark.parametrize(
    "kwargs",
    [
        {"email": None, "phone": None},
        {"email": "not-an-email"},
        {"email": None, "phone": "12345"},
        {"password": "short"},
        {"name": "   "},
    ],
)
def test_register_user_validates_input(kwargs):
    harness = Harness()

    with pytest.raises(ValidationError):
        harness.register(**kwargs)


def test_login_local_accepts_any_phone_format():
    harness = Harness()
    registered = harness.register(email=None, phone="+919876543210")

    for identifier in ("+919876543210", "919876543210", "9876543210"):
        output = harness.login(identifier, "secret1")
        assert output.user.id == registered.user.id


def test_login_local_failures_are_indistinguishable():
    harness = Harness()
    harness.register(email="a@b.com")

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        harness.login("a@b.com", "wrong-password")
    with pytest.raises(InvalidCredentialsError) as unknown_user:
        harness.login("nobody@b.com", "secret1")

    assert str(wrong_password.value) == str(unknown_user.value)
    assert harness.hasher.dummy_calls == 1


def test_login_local_rejects_google_only_account_with_dummy_work():
    harness = Harness()
    harness.google_id_token()

    with pytest.raises(InvalidCredentialsError):
        harness.login("user@example.com", "anything")

    assert harness.hasher.dummy_calls == 1


def test_login_local_increments_login_count():
    harness = Harness()
    harness.register()

    first = harness.login("ada@example.com", "secret1")
    second = harness.login("ADA@example.com", "secret1")

    assert first.user.login_count == 1
    assert second.user.login_count == 2
    assert first.tokens.access_token != second.tokens.access_token


def test_google_then_register_conflicts_and_leaves_single_google_user():
    harness = Harness()
    google_output = harness.google_id_token()

    with pytest.raises(UserAlreadyExistsError):
        harness.register(email="user@example.com")

    assert list(harness.auth_port.users) == [google_output.user.id]
    user = harness.auth_port.users[google_output.user.id]
    assert user.google_id == "google-sub-1"
    assert google_output.user.id not in harness.auth_port.password_hashes


def test_google_sign_in_creates_user_with_split_name():
    harness = Harness(identity=_identity(name="Mary Ann Evans", first_name="Mary", last_name="Ann Evans"))

    output = harness.google_code()

    assert output.user.email == "user@example.com"
    assert output.user.first_name == "Mary"
    assert output.user.last_name == "Ann Evans"
    assert output.user.login_count == 1
    assert output.user.verified_email is True


def test_google_sign_in_links_existing_password_account_by_email():
    harness = Harness()
    registered = harness.register(email="user@example.com")

    output = harness.google_id_token()

    assert output.user.id == registered.user.id
    user = harness.auth_port.users[registered.user.id]
    assert user.google_id == "google-sub-1"
    assert user.has_password is True
    assert output.user.picture == "https://example.com/p.png"

    # A linked account still signs in with its password.
    assert harness.login("user@example.com", "secret1").user.id == registered.user.id


def test_google_sign_in_reuses_user_by_google_id():
    harness = Harness()
    first = harness.google_id_token()
    harness.google.identity = _identity(email="changed@example.com", picture=None)

    second = harness.google_id_token()

    assert second.user.id == first.user.id
    assert second.user.login_count == 2
    assert second.user.picture == "https://example.com/p.png"


def test_google_sign_in_requires_token():
    harness = Harness()
    use_case = LoginGoogleIdTokenUseCase(
        auth_port=harness.auth_port,
        google_oauth_port=harness.google,
        token_port=harness.token_port,
        ledger=harness.ledger,
    )

    with pytest.raises(ValidationError):
        use_case.execute(LoginGoogleIdTokenInput(id_token="  ", device_info=None))


def test_google_sign_in_refuses_deactivated_account():
    harness = Harness()
    first = harness.google_id_token()
    user = harness.auth_port.users[first.user.id]
    harness.auth_port.users[user.id] = replace(user, is_active=False)

    with pytest.raises(InvalidCredentialsError):
        harness.google_id_token()
    with pytest.raises(InvalidCredentialsError):
        harness.google_code()

    assert list(harness.auth_port.users) == [user.id]


def test_refresh_rotates_and_rejects_reuse():
    harness = Harness()
    r1 = harness.register().tokens.refresh_token

    r2 = harness.refresh(r1).tokens.refresh_token

    with pytest.raises(TokenInvalidError):
        harness.refresh(r1)
    r3 = harness.refresh(r2).tokens.refresh_token
    assert r3 not in (r1, r2)


def test_concurrent_refresh_with_same_token_succeeds_once():
    harness = Harness()
    registered = harness.register()
    r1 = registered.tokens.refresh_token
    barrier = threading.Barrier(8)
    outcomes = []

    def attempt():
        barrier.wait()
        try:
            harness.refresh(r1)
            outcomes.append("ok")
        except TokenInvalidError:
            outcomes.append("invalid")

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(outcomes) == ["invalid"] * 7 + ["ok"]
    ledger = harness.ledger_tokens(registered.user.id)
    assert len(ledger) == 1
    assert r1 not in ledger


def test_refresh_rejects_missing_and_foreign_tokens():
    harness = Harness()
    harness.register()

    with pytest.raises(TokenInvalidError):
        harness.refresh("")
    with pytest.raises(TokenInvalidError):
        harness.refresh("refresh::unknown-user::1")
    with pytest.raises(TokenInvalidError):
        harness.refresh("garbage")


def test_ledger_keeps_five_newest_refresh_tokens():
    harness = Harness()
    registered = harness.register()
    issued = [registered.tokens.refresh_token]
    for _ in range(5):
        issued.append(harness.login("ada@example.com", "secret1").tokens.refresh_token)

    assert harness.ledger_tokens(registered.user.id) == issued[1:]
    with pytest.raises(TokenInvalidError):
        harness.refresh(issued[0])


def test_ledger_ignores_entries_older_than_ttl():
    harness = Harness()
    registered = harness.register()
    now = datetime.now(timezone.utc)
    harness.ledger.add(
        user_id=registered.user.id,
        token="refresh::old::1",
        device_info=None,
        now=now - timedelta(days=91),
    )

    assert not harness.ledger.contains(user_id=registered.user.id, token="refresh::old::1", now=now)
    assert harness.ledger.contains(
        user_id=registered.user.id,
        token=registered.tokens.refresh_token,
        now=now,
    )


def test_logout_is_idempotent():
    harness = Harness()
    registered = harness.register()
    use_case = LogoutSessionUseCase(token_port=harness.token_port, ledger=harness.ledger)
    command = LogoutInput(refresh_token=registered.tokens.refresh_token)

    use_case.execute(command)
    use_case.execute(command)

    assert harness.ledger_tokens(registered.user.id) == []


def test_logout_all_clears_every_session():
    harness = Harness()
    registered = harness.register()
    harness.login("ada@example.com", "secret1")
    use_case = LogoutAllSessionsUseCase(
        auth_port=harness.auth_port,
        token_port=harness.token_port,
        ledger=harness.ledger,
    )

    use_case.execute(LogoutInput(refresh_token=registered.tokens.refresh_token))

    assert harness.ledger_tokens(registered.user.id) == []
    with pytest.raises(TokenInvalidError):
        use_case.execute(LogoutInput(refresh_token=registered.tokens.refresh_token))


def test_update_profile_merges_preferences():
    harness = Harness()
    registered = harness.register()
    use_case = UpdateProfileUseCase(auth_port=harness.auth_port)

    first = use_case.execute(
        UpdateProfileInput(user_id=registered.user.id, name=None, theme="dark", notifications=None)
    )
    second = use_case.execute(
        UpdateProfileInput(user_id=registered.user.id, name="Ada L", theme=None, notifications=False)
    )

    assert first.preferences.theme == "dark"
    assert first.preferences.notifications is True
    assert second.name == "Ada L"
    assert second.preferences.theme == "dark"
    assert second.preferences.notifications is False


def test_update_profile_rejects_unknown_theme():
    harness = Harness()
    registered = harness.register()

    with pytest.raises(ValidationError):
        UpdateProfileUseCase(auth_port=harness.auth_port).execute(
            UpdateProfileInput(user_id=registered.user.id, name=None, theme="neon", notifications=None)
        )


def test_update_user_details_rewrites_full_name():
    harness = Harness()
    registered = harness.register()

    output = UpdateUserDetailsUseCase(auth_port=harness.auth_port).execute(
        UpdateUserDetailsInput(user_id=registered.user.id, first_name="Augusta", last_name="King", age=36)
    )

    assert output.name == "Augusta King"
    assert output.age == 36


@pytest.mark.parametrize(
    ("first_name", "last_name", "age"),
    [("A", "King", 30), ("Augusta", "K", 30), ("Augusta", "King", 0), ("Augusta", "King", 121)],
)
def test_update_user_details_validates_bounds(first_name, last_name, age):
    harness = Harness()
    registered = harness.register()

    with pytest.raises(ValidationError):
        UpdateUserDetailsUseCase(auth_port=harness.auth_port).execute(
            UpdateUserDetailsInput(
                user_id=registered.user.id,
                first_name=first_name,
                last_name=last_name,
                age=age,
            )
        )
