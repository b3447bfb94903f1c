# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import hashlib
import re
import secrets
import time
from collections.abc import Mapping

from flask import Flask, Response, g, request

from pinstash.shared.logging import clear_correlation_id, logger, set_correlation_id

_HASHED_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})
_REDACTED_PARAMS = ("password", "token", "secret", "key", "email")
_TOKEN_IN_PATH = re.compile(r"^(/api/auth/reset-password/)[^/]+")


def _client_ip() -> str:
    forwarded = request.headers.get("X-Forwarded-For", "")
    return forwarded.split(",")[0].strip() or request.remote_addr or "unknown"


def _path() -> str:
    return _TOKEN_IN_PATH.sub(r"\1<token>", request.path)


def _fingerprint(value: str) -> str:
    return f"<sha256:{hashlib.sha256(value.encode()).hexdigest()[:8]}>"


def describe_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Headers safe to log: credentials are replaced by a short fingerprint."""
    return {
        name: _fingerprint(value) if name.lower() in _HASHED_HEADERS else value
        for name, value in headers.items()
    }


def describe_params(params: Mapping[str, str]) -> dict[str, str]:
    return {
        name: "<redacted>" if any(s in name.lower() for s in _REDACTED_PARAMS) else value
        for name, value in params.items()
    }


def configure_request_logging(app: Flask, *, debug_mode: bool = False) -> None:
    @app.before_request
    def _start() -> None:
        set_correlation_id(request.headers.get("X-Request-ID") or secrets.token_hex(6))
        g.request_started = time.perf_counter()
        if debug_mode:
            logger.debug(
                f"--> {request.method} {_path()} from {_client_ip()} "
                f"query={describe_params(request.args)} headers={describe_headers(request.headers)}"
            )

    @app.after_request
    def _finish(response: Response) -> Response:
        elapsed_ms = (time.perf_counter() - g.get("request_started", time.perf_counter())) * 1000
        user = g.get("user_id") or "anonymous"
        logger.info(
            f"{request.method} {_path()} -> {response.status_code} "
            f"in {elapsed_ms:.1f} ms user={user} from {_client_ip()}"
        )
        return response

    @app.teardown_request
    def _teardown(exc: BaseException | None) -> None:
        if exc is not None:
            logger.error(f"{request.method} {_path()} failed: {type(exc).__name__}")
        clear_correlation_id()


__all__ = ["configure_request_logging", "describe_headers", "describe_params"]
