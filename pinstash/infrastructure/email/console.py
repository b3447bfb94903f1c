# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from pinstash.shared.logging import logger

from .templates import build_reset_url


class ConsoleEmailService:
    """Development delivery: the reset link goes to stdout instead of an inbox.

    Nothing is kept after the call returns. Production refuses this provider.
    """

    async def send_password_reset_email(
        self, email: str, raw_token: str, reset_url_base: str
    ) -> None:
        reset_url = build_reset_url(reset_url_base, raw_token)
        # printed raw, the log filter would mask the token
        print(f"[pinstash] password reset link: {reset_url}", flush=True)
        logger.info("email.console: password reset link printed to stdout")
