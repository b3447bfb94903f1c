# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import httpx

from pinstash.infrastructure.resilience import (
    CircuitBreaker,
    CircuitOpenError,
    RetryPolicy,
    resilient_call,
)
from pinstash.shared.config import MailConfig
from pinstash.shared.errors import EmailSendError
from pinstash.shared.logging import logger

from .templates import build_reset_url, password_reset_email


class MailgunEmailService:
    def __init__(
        self,
        config: MailConfig,
        *,
        expires_in_minutes: int = 15,
        transport: httpx.AsyncBaseTransport | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        if not config.mailgun_api_key or not config.mailgun_domain:
            raise ValueError("mailgun_api_key and mailgun_domain are required")
        self._config = config
        self._expires_in_minutes = expires_in_minutes
        self._transport = transport
        self._breaker = breaker or CircuitBreaker(name="email.mailgun")
        self._policy = RetryPolicy(
            max_retries=config.max_retries,
            backoff_base=config.backoff_base,
            backoff_cap=config.backoff_cap,
            timeout=config.timeout_seconds,
            retry_on=(httpx.TransportError,),
        )

    @property
    def _messages_url(self) -> str:
        base = self._config.mailgun_base_url.rstrip("/")
        return f"{base}/v3/{self._config.mailgun_domain}/messages"

    @property
    def _sender(self) -> str:
        if self._config.from_name:
            return f"{self._config.from_name} <{self._config.from_email}>"
        return self._config.from_email

    async def send_password_reset_email(
        self, email: str, raw_token: str, reset_url_base: str
    ) -> None:
        if not email or not raw_token or not reset_url_base:
            raise EmailSendError(
                "mailgun",
                message="Invalid email parameters: email, token and reset url are required",
            )

        rendered = password_reset_email(
            build_reset_url(reset_url_base, raw_token), self._expires_in_minutes
        )
        form = {
            "from": self._sender,
            "to": email,
            "subject": rendered.subject,
            "text": rendered.text,
            "html": rendered.html,
        }

        try:
            await resilient_call(
                self._post, form, policy=self._policy, breaker=self._breaker
            )
        except (httpx.HTTPError, CircuitOpenError, TimeoutError) as exc:
            logger.error(f"email.mailgun: delivery failed: {type(exc).__name__}")
            raise EmailSendError(
                "mailgun", message="Failed to send password reset email"
            ) from exc
        logger.info("email.mailgun: password reset email accepted")

    async def _post(self, form: dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(
            transport=self._transport, timeout=self._config.timeout_seconds
        ) as client:
            response = await client.post(
                self._messages_url,
                auth=("api", self._config.mailgun_api_key or ""),
                data=form,
            )
            response.raise_for_status()
            return response
