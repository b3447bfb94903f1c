from __future__ import annotations

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from pinstash.infrastructure.email.console import ConsoleEmailService
from pinstash.infrastructure.email.mailgun import MailgunEmailService
from pinstash.infrastructure.email.templates import build_reset_url, password_reset_email
from pinstash.infrastructure.resilience import CircuitBreaker, CircuitOpenError
from pinstash.shared.config import MailConfig
from pinstash.shared.errors import EmailSendError


def _config(**overrides) -> MailConfig:
    values = {
        "provider": "mailgun",
        "mailgun_api_key": "key-test",
        "mailgun_domain": "mg.example.com",
        "max_retries": 1,
        "backoff_base": 0.1,
        "backoff_cap": 0.1,
    }
    values.update(overrides)
    return MailConfig(**values)


def test_reset_url_joins_base_and_token() -> None:
    assert build_reset_url("https://pinstash.app/reset-password/", "abc") == (
        "https://pinstash.app/reset-password/abc"
    )


def test_reset_email_escapes_link_in_html() -> None:
    rendered = password_reset_email("https://x.test/r/a&b", 15)

    assert "https://x.test/r/a&amp;b" in rendered.html
    assert "https://x.test/r/a&b" in rendered.text
    assert "15 minutes" in rendered.text


def test_mailgun_posts_form_with_api_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "<1@mg>", "message": "Queued"})

    service = MailgunEmailService(_config(), transport=httpx.MockTransport(handler))

    asyncio.run(
        service.send_password_reset_email(
            "alice@example.com", "tok123", "https://pinstash.app/reset-password"
        )
    )

    (request,) = seen
    assert str(request.url) == "https://api.mailgun.net/v3/mg.example.com/messages"
    assert request.headers["Authorization"].startswith("Basic ")
    form = parse_qs(request.content.decode())
    assert form["to"] == ["alice@example.com"]
    assert form["from"] == ["PinStash <no-reply@pinstash.local>"]
    assert "https://pinstash.app/reset-password/tok123" in form["text"][0]


def test_mailgun_rejection_raises_email_send_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(401, text="Forbidden")

    service = MailgunEmailService(_config(), transport=httpx.MockTransport(handler))

    with pytest.raises(EmailSendError) as exc_info:
        asyncio.run(service.send_password_reset_email("a@example.com", "t", "https://x"))

    assert exc_info.value.status == 502
    # provider rejections are not retried
    assert calls == 1


def test_mailgun_retries_transport_errors() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"message": "Queued"})

    service = MailgunEmailService(_config(), transport=httpx.MockTransport(handler))

    asyncio.run(service.send_password_reset_email("a@example.com", "t", "https://x"))

    assert calls == 2


def test_open_circuit_refuses_delivery() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    breaker = CircuitBreaker(name="email.mailgun", failure_threshold=1)
    service = MailgunEmailService(
        _config(max_retries=0), transport=httpx.MockTransport(handler), breaker=breaker
    )

    with pytest.raises(EmailSendError):
        asyncio.run(service.send_password_reset_email("a@example.com", "t", "https://x"))
    assert breaker.is_open

    with pytest.raises(EmailSendError) as exc_info:
        asyncio.run(service.send_password_reset_email("a@example.com", "t", "https://x"))
    assert isinstance(exc_info.value.__cause__, CircuitOpenError)


def test_mailgun_requires_credentials() -> None:
    with pytest.raises(ValueError):
        MailgunEmailService(MailConfig(provider="mailgun"))


def test_console_service_prints_link_and_keeps_nothing(capsys) -> None:
    service = ConsoleEmailService()

    async def send_many() -> None:
        for n in range(50):
            await service.send_password_reset_email(
                f"u{n}@example.com", f"rawtoken{n:03d}", "http://localhost/r"
            )

    asyncio.run(send_many())

    out = capsys.readouterr().out
    assert "http://localhost/r/rawtoken000" in out
    assert "http://localhost/r/rawtoken049" in out
    assert vars(service) == {}
