# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request

from pinstash.application.services.authentication import AuthenticationService
from pinstash.domain.sessions import FlashType
from pinstash.interfaces.http.dto.auth import (
    AuthSuccessDTO,
    ChangePasswordRequestDTO,
    CurrentUserDTO,
    FlashDTO,
    ForgotPasswordRequestDTO,
    LoginRequestDTO,
    MessageDTO,
    RegisterRequestDTO,
    ResetPasswordRequestDTO,
    ResetTokenStatusDTO,
    UpdateEmailRequestDTO,
    UserDTO,
)
from pinstash.shared.logging import logger
from pinstash.shared.middleware.session import current_session, login_required

FORGOT_PASSWORD_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)


class AuthController:
    def __init__(
        self,
        *,
        auth_service: AuthenticationService,
        reset_path: str = "reset-password",
        public_base_url: str | None = None,
    ) -> None:
        self._auth = auth_service
        self._reset_path = reset_path.strip("/")
        self._public_base_url = public_base_url

    async def register(self) -> tuple[Response, int]:
        dto = RegisterRequestDTO.parse(request.get_json(silent=True))

        user = await self._auth.register(dto.username, dto.password, dto.email)

        store = current_session()
        await store.create(user.id, persistent=False)
        store.set_flash(FlashType.SUCCESS, "Welcome to PinStash!")
        payload = AuthSuccessDTO(user=UserDTO.from_entity(user)).model_dump()
        return jsonify(payload), 201

    async def login(self) -> tuple[Response, int]:
        dto = LoginRequestDTO.parse(request.get_json(silent=True))

        user = await self._auth.login(dto.username, dto.password)

        store = current_session()
        await store.create(user.id, persistent=dto.keep_signed_in)
        store.set_flash(FlashType.SUCCESS, "Welcome back!")
        payload = AuthSuccessDTO(user=UserDTO.from_entity(user)).model_dump()
        return jsonify(payload), 200

    async def logout(self) -> tuple[Response, int]:
        await current_session().destroy()
        return jsonify(AuthSuccessDTO().model_dump()), 200

    @login_required
    async def me(self) -> tuple[Response, int]:
        store = current_session()
        user = await store.current_user()
        if user is None:
            return jsonify({"error": "unauthorized", "message": "Authentication required"}), 401

        payload = CurrentUserDTO(
            user=UserDTO.from_entity(user),
            flash=FlashDTO.from_entity(store.consume_flash()),
        )
        return jsonify(payload.model_dump()), 200

    @login_required
    async def change_password(self) -> tuple[Response, int]:
        dto = ChangePasswordRequestDTO.parse(request.get_json(silent=True))
        store = current_session()

        await self._auth.change_password(
            store.current_user_id() or "", dto.current_password, dto.new_password
        )

        store.set_flash(FlashType.SUCCESS, "Password updated successfully")
        return jsonify(AuthSuccessDTO().model_dump()), 200

    @login_required
    async def update_email(self) -> tuple[Response, int]:
        dto = UpdateEmailRequestDTO.parse(request.get_json(silent=True))
        store = current_session()

        user = await self._auth.update_email(store.current_user_id() or "", dto.email)
        if user is None:
            await store.destroy()
            return jsonify({"error": "unauthorized", "message": "Authentication required"}), 401

        store.set_flash(FlashType.SUCCESS, "Email updated successfully")
        payload = AuthSuccessDTO(user=UserDTO.from_entity(user)).model_dump()
        return jsonify(payload), 200

    async def forgot_password(self) -> tuple[Response, int]:
        dto = ForgotPasswordRequestDTO.parse(request.get_json(silent=True))
        # the Host header is client-controlled; production must configure an origin
        origin = self._public_base_url or request.host_url.rstrip("/")
        reset_url_base = f"{origin}/{self._reset_path}"

        # same answer whether or not the address belongs to anyone
        await self._auth.request_password_reset(dto.email, reset_url_base)

        return jsonify(MessageDTO(message=FORGOT_PASSWORD_MESSAGE).model_dump()), 200

    async def check_reset_token(self, token: str) -> tuple[Response, int]:
        valid = await self._auth.validate_reset_token(token)
        return jsonify(ResetTokenStatusDTO(valid=valid).model_dump()), 200

    async def reset_password(self, token: str) -> tuple[Response, int]:
        dto = ResetPasswordRequestDTO.parse(request.get_json(silent=True))

        await self._auth.reset_password(token, dto.new_password)

        logger.info("auth.reset_password: ok")
        return jsonify(
            MessageDTO(message="Your password has been reset. Please sign in.").model_dump()
        ), 200

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("auth", __name__, url_prefix="/api/auth")
        bp.add_url_rule("/register", view_func=self.register, methods=["POST"])
        bp.add_url_rule("/login", view_func=self.login, methods=["POST"])
        bp.add_url_rule("/logout", view_func=self.logout, methods=["POST"])
        bp.add_url_rule("/me", view_func=self.me, methods=["GET"])
        bp.add_url_rule("/password", view_func=self.change_password, methods=["POST"])
        bp.add_url_rule("/email", view_func=self.update_email, methods=["POST"])
        bp.add_url_rule(
            "/forgot-password", view_func=self.forgot_password, methods=["POST"]
        )
        bp.add_url_rule(
            "/reset-password/<token>",
            endpoint="check_reset_token",
            view_func=self.check_reset_token,
            methods=["GET"],
        )
        bp.add_url_rule(
            "/reset-password/<token>",
            endpoint="reset_password",
            view_func=self.reset_password,
            methods=["POST"],
        )
        return bp
