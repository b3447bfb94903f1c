# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import inspect
from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Flask, Response, g, jsonify, request

from pinstash.application.services.session_store import CookieDirective, SessionStore


def apply_cookie(
    response: Response,
    directive: CookieDirective,
    *,
    cookie_name: str,
    secure: bool,
) -> None:
    if directive.clears:
        response.delete_cookie(
            cookie_name, path="/", secure=secure, httponly=True, samesite="Lax"
        )
        return
    # no max_age keeps non-persistent sessions as browser-session cookies
    response.set_cookie(
        cookie_name,
        directive.value or "",
        max_age=directive.max_age,
        path="/",
        secure=secure,
        httponly=True,
        samesite="Lax",
    )


def configure_sessions(
    app: Flask,
    *,
    store_factory: Callable[[], SessionStore],
    cookie_name: str,
    secure: bool,
) -> None:
    @app.before_request
    async def _resolve_session() -> None:
        store = store_factory()
        await store.resolve(request.cookies.get(cookie_name))
        g.session_store = store
        g.user_id = store.current_user_id()

    @app.after_request
    async def _persist_session(response: Response) -> Response:
        store: SessionStore | None = g.pop("session_store", None)
        if store is None:
            return response
        directive = await store.flush()
        if directive is not None:
            apply_cookie(response, directive, cookie_name=cookie_name, secure=secure)
        return response


def current_session() -> SessionStore:
    store = g.get("session_store")
    if store is None:
        raise RuntimeError("session middleware is not configured")
    return store


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(view)
    async def _wrapped(*args: Any, **kwargs: Any) -> Any:
        if not current_session().is_authenticated():
            return jsonify({"error": "unauthorized", "message": "Authentication required"}), 401
        result = view(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result

    return _wrapped


__all__ = ["apply_cookie", "configure_sessions", "current_session", "login_required"]
