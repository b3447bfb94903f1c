from __future__ import annotations

import asyncio

import pytest

from pinstash.application.services.authentication import AuthenticationService
from pinstash.domain.users import (
    InvalidCredentialsError,
    InvalidResetTokenError,
    TooManyResetRequestsError,
    UserAlreadyExistsError,
)
from pinstash.shared.errors import ValidationError

RESET_BASE = "https://pinstash.test/reset-password"


def test_register_then_login_scenario(auth_service: AuthenticationService) -> None:
    alice = asyncio.run(auth_service.register("alice", "password1234"))

    logged_in = asyncio.run(auth_service.login("alice", "password1234"))

    assert logged_in.id == alice.id
    assert alice.email_hash is None
    with pytest.raises(InvalidCredentialsError):
        asyncio.run(auth_service.login("alice", "wrongpw"))


def test_register_never_keeps_plaintext(auth_service: AuthenticationService, users) -> None:
    user = asyncio.run(auth_service.register("alice", "password1234", "alice@example.com"))

    stored = users.users[user.id]
    assert stored.password_hash != "password1234"
    assert "password1234" not in stored.password_hash
    assert stored.email_hash and "alice" not in stored.email_hash


def test_login_for_unknown_user_does_dummy_work(
    auth_service: AuthenticationService, hasher
) -> None:
    with pytest.raises(InvalidCredentialsError) as excinfo:
        asyncio.run(auth_service.login("ghost", "password1234"))

    assert hasher.dummy_calls == 1
    assert excinfo.value.message == "Invalid username or password"


def test_login_failures_are_indistinguishable(auth_service: AuthenticationService) -> None:
    asyncio.run(auth_service.register("alice", "password1234"))

    with pytest.raises(InvalidCredentialsError) as unknown:
        asyncio.run(auth_service.login("ghost", "password1234"))
    with pytest.raises(InvalidCredentialsError) as wrong:
        asyncio.run(auth_service.login("alice", "nope-nope"))

    assert unknown.value.to_dict() == wrong.value.to_dict()


def test_username_uniqueness_ignores_case(auth_service: AuthenticationService) -> None:
    asyncio.run(auth_service.register("alice", "password1234"))

    with pytest.raises(UserAlreadyExistsError) as excinfo:
        asyncio.run(auth_service.register("ALICE", "password1234"))

    assert excinfo.value.field == "username"
    assert excinfo.value.status == 409


def test_email_uniqueness(auth_service: AuthenticationService) -> None:
    asyncio.run(auth_service.register("alice", "password1234", "alice@example.com"))

    with pytest.raises(UserAlreadyExistsError) as excinfo:
        asyncio.run(auth_service.register("bob", "password1234", "Alice@Example.com"))

    assert excinfo.value.field == "email"


@pytest.mark.parametrize(
    ("username", "password", "email", "field", "message"),
    [
        ("al", "password1234", None, "username", "Username must be at least 3 characters"),
        ("a" * 21, "password1234", None, "username", "Username must be at most 20 characters"),
        ("al ice", "password1234", None, "username",
         "Username can only contain letters, numbers, and underscores"),
        ("alice", "short", None, "password", "Password must be at least 8 characters"),
        ("alice", "p" * 101, None, "password", "Password must be at most 100 characters"),
        ("alice", "password1234", "not-an-email", "email", "Invalid email address"),
    ],
)
def test_register_validation_messages(
    auth_service: AuthenticationService,
    users,
    username: str,
    password: str,
    email: str | None,
    field: str,
    message: str,
) -> None:
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(auth_service.register(username, password, email))

    assert excinfo.value.fields[field] == [message]
    assert excinfo.value.status == 422
    assert users.users == {}


def test_blank_email_counts_as_absent(auth_service: AuthenticationService) -> None:
    user = asyncio.run(auth_service.register("alice", "password1234", "   "))

    assert user.email_hash is None


def test_change_password_requires_current_password(
    auth_service: AuthenticationService, hasher, users
) -> None:
    user = asyncio.run(auth_service.register("alice", "password1234"))

    with pytest.raises(InvalidCredentialsError):
        asyncio.run(auth_service.change_password(user.id, "wrong-password", "newpassword99"))

    asyncio.run(auth_service.change_password(user.id, "password1234", "newpassword99"))

    stored = users.users[user.id].password_hash
    assert asyncio.run(hasher.verify_password("newpassword99", stored))
    assert not asyncio.run(hasher.verify_password("password1234", stored))


def test_change_password_validates_new_password(auth_service: AuthenticationService) -> None:
    user = asyncio.run(auth_service.register("alice", "password1234"))

    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(auth_service.change_password(user.id, "password1234", "short"))

    assert "new_password" in excinfo.value.fields


def test_change_password_for_missing_user(auth_service: AuthenticationService, hasher) -> None:
    with pytest.raises(InvalidCredentialsError):
        asyncio.run(auth_service.change_password("missing", "password1234", "newpassword99"))

    assert hasher.dummy_calls == 1


def test_update_email_sets_and_clears_hash(auth_service: AuthenticationService, hasher) -> None:
    user = asyncio.run(auth_service.register("alice", "password1234"))

    updated = asyncio.run(auth_service.update_email(user.id, "alice@example.com"))
    assert updated.email_hash == hasher.hash_identifier("alice@example.com")
    assert asyncio.run(auth_service.find_by_email("ALICE@example.com")).id == user.id

    cleared = asyncio.run(auth_service.update_email(user.id, None))
    assert cleared.email_hash is None
    assert asyncio.run(auth_service.find_by_email("alice@example.com")) is None


def test_update_email_rejects_address_of_other_user(auth_service: AuthenticationService) -> None:
    asyncio.run(auth_service.register("alice", "password1234", "alice@example.com"))
    bob = asyncio.run(auth_service.register("bob", "password1234"))

    with pytest.raises(UserAlreadyExistsError):
        asyncio.run(auth_service.update_email(bob.id, "alice@example.com"))


def test_update_email_to_own_address_is_allowed(auth_service: AuthenticationService) -> None:
    alice = asyncio.run(auth_service.register("alice", "password1234", "alice@example.com"))

    updated = asyncio.run(auth_service.update_email(alice.id, "alice@example.com"))

    assert updated.email_hash == alice.email_hash


def test_reset_for_unknown_email_is_silent(
    auth_service: AuthenticationService, email_service, reset_tokens
) -> None:
    result = asyncio.run(auth_service.request_password_reset("nobody@example.com", RESET_BASE))

    assert result is None
    assert email_service.sent == []
    assert reset_tokens.tokens == {}


def test_reset_round_trip(auth_service: AuthenticationService, email_service) -> None:
    asyncio.run(auth_service.register("alice", "password1234", "alice@example.com"))

    token = asyncio.run(auth_service.request_password_reset("alice@example.com", RESET_BASE))

    assert email_service.sent == [("alice@example.com", token, RESET_BASE)]
    assert asyncio.run(auth_service.validate_reset_token(token)) is True

    asyncio.run(auth_service.reset_password(token, "freshpassword1"))

    assert asyncio.run(auth_service.login("alice", "freshpassword1"))
    with pytest.raises(InvalidCredentialsError):
        asyncio.run(auth_service.login("alice", "password1234"))
    with pytest.raises(InvalidResetTokenError):
        asyncio.run(auth_service.reset_password(token, "freshpassword2"))


def test_reset_rate_limit_sends_no_mail(
    auth_service: AuthenticationService, email_service, clock
) -> None:
    asyncio.run(auth_service.register("alice", "password1234", "alice@example.com"))
    for _ in range(3):
        asyncio.run(auth_service.request_password_reset("alice@example.com", RESET_BASE))
        clock.advance(seconds=30)

    with pytest.raises(TooManyResetRequestsError):
        asyncio.run(auth_service.request_password_reset("alice@example.com", RESET_BASE))

    assert len(email_service.sent) == 3


def test_reset_password_validates_before_touching_token(
    auth_service: AuthenticationService,
) -> None:
    asyncio.run(auth_service.register("alice", "password1234", "alice@example.com"))
    token = asyncio.run(auth_service.request_password_reset("alice@example.com", RESET_BASE))

    with pytest.raises(ValidationError):
        asyncio.run(auth_service.reset_password(token, "short"))

    assert asyncio.run(auth_service.validate_reset_token(token)) is True


def test_request_reset_requires_valid_email(auth_service: AuthenticationService) -> None:
    with pytest.raises(ValidationError) as excinfo:
        asyncio.run(auth_service.request_password_reset("nope", RESET_BASE))

    assert excinfo.value.fields["email"] == ["Invalid email address"]
