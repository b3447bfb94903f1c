from __future__ import annotations

import asyncio

import pytest

from pinstash.application.services.password_hashing import (
    CredentialHasher,
    generate_secure_token,
    hash_token,
)

from conftest import TEST_HASH_METHOD


@pytest.fixture()
def plain_hasher() -> CredentialHasher:
    return CredentialHasher(method=TEST_HASH_METHOD)


def test_hash_password_is_opaque_and_verifies(plain_hasher: CredentialHasher) -> None:
    hashed = asyncio.run(plain_hasher.hash_password("password1234"))

    assert hashed != "password1234"
    assert "password1234" not in hashed
    assert asyncio.run(plain_hasher.verify_password("password1234", hashed)) is True
    assert asyncio.run(plain_hasher.verify_password("password12345", hashed)) is False


def test_hash_password_is_salted(plain_hasher: CredentialHasher) -> None:
    first = asyncio.run(plain_hasher.hash_password("same-password"))
    second = asyncio.run(plain_hasher.hash_password("same-password"))

    assert first != second


@pytest.mark.parametrize(
    "malformed",
    ["", "not-a-hash", "pbkdf2:sha256:1000$onlysalt", "nosuchmethod$salt$deadbeef"],
)
def test_verify_password_rejects_malformed_hash_without_raising(
    plain_hasher: CredentialHasher, malformed: str
) -> None:
    assert asyncio.run(plain_hasher.verify_password("password1234", malformed)) is False


def test_verify_dummy_completes(plain_hasher: CredentialHasher) -> None:
    asyncio.run(plain_hasher.verify_dummy("whatever"))


def test_hash_identifier_normalizes_and_hides_value(plain_hasher: CredentialHasher) -> None:
    lowered = plain_hasher.hash_identifier("alice@example.com")

    assert plain_hasher.hash_identifier("  Alice@Example.COM ") == lowered
    assert lowered != "alice@example.com"
    assert len(lowered) == 64
    assert plain_hasher.hash_identifier("bob@example.com") != lowered


def test_secure_tokens_are_unique_and_hash_deterministically() -> None:
    first, second = generate_secure_token(), generate_secure_token()

    assert first != second
    assert len(first) >= 43
    assert hash_token(first) == hash_token(first)
    assert hash_token(first) != hash_token(second)
    assert hash_token(first) != first
