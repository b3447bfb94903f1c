from __future__ import annotations

import pytest

from pinstash.application.services.token_codec import SessionClaims, TokenCodec

NOW = 1_750_000_000


def _codec(secret: str = "codec-secret", now: int = NOW) -> TokenCodec:
    return TokenCodec(secret, clock=lambda: float(now))


def _claims(**overrides: object) -> SessionClaims:
    fields: dict[str, object] = {
        "user_id": "3f2a9c0d5b8e4f6a9d1c2b3a4e5f6a7b",
        "issued_at": NOW - 60,
        "expires_at": NOW + 3600,
        "persistent": True,
    }
    fields.update(overrides)
    return SessionClaims(**fields)  # type: ignore[arg-type]


def test_round_trip_returns_identical_claims() -> None:
    codec = _codec()
    claims = _claims(flash={"type": "success", "message": "Saved!"})

    assert codec.decode(codec.encode(claims)) == claims


def test_round_trip_without_optional_fields() -> None:
    codec = _codec()
    claims = _claims(persistent=False)

    assert codec.decode(codec.encode(claims)) == claims


def test_every_signature_character_is_tamper_evident() -> None:
    codec = _codec()
    token = codec.encode(_claims())
    payload, signature = token.split(".")

    for index, char in enumerate(signature):
        replacement = "A" if char != "A" else "B"
        mutated = payload + "." + signature[:index] + replacement + signature[index + 1:]
        assert codec.decode(mutated) is None, f"mutation at {index} accepted"


def test_payload_tampering_is_rejected() -> None:
    codec = _codec()
    token = codec.encode(_claims())
    payload, signature = token.split(".")

    for index in (0, len(payload) // 2, len(payload) - 1):
        char = payload[index]
        replacement = "A" if char != "A" else "B"
        mutated = payload[:index] + replacement + payload[index + 1:] + "." + signature
        assert codec.decode(mutated) is None


def test_token_signed_with_other_secret_is_rejected() -> None:
    token = _codec("other-secret").encode(_claims())

    assert _codec().decode(token) is None


def test_expired_token_decodes_to_none() -> None:
    codec = _codec()

    assert codec.decode(codec.encode(_claims(expires_at=NOW - 1))) is None
    assert codec.decode(codec.encode(_claims(expires_at=NOW))) is None


def test_token_expires_as_clock_moves() -> None:
    token = _codec().encode(_claims(expires_at=NOW + 10))

    assert _codec(now=NOW + 9).decode(token) is not None
    assert _codec(now=NOW + 10).decode(token) is None


@pytest.mark.parametrize(
    "garbage",
    [None, "", "no-separator", ".", "payload.", ".signature", "a.b.c", "ü.ß", "%%%.###"],
)
def test_malformed_tokens_decode_to_none(garbage: str | None) -> None:
    assert _codec().decode(garbage) is None


def test_empty_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        TokenCodec("")
