# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Flask

from pinstash.container import Container
from pinstash.shared.config import AppConfig, load_config
from pinstash.shared.logging import logger, setup_logging
from pinstash.shared.middleware.error_handler import configure_error_handling
from pinstash.shared.middleware.request_logger import configure_request_logging
from pinstash.shared.middleware.session import configure_sessions


def create_app(config: AppConfig | None = None) -> Flask:
    config = config or load_config()
    setup_logging(
        config.log_level, log_file=config.log_file, debug_mode=config.debug_logging
    )

    container = Container(config)
    container.database.init_schema()

    app = Flask(__name__)
    app.config.update(SECRET_KEY=config.secret_key)
    app.extensions["pinstash.container"] = container

    configure_error_handling(app, debug_mode=config.debug_logging)
    configure_request_logging(app, debug_mode=config.debug_logging)
    configure_sessions(
        app,
        store_factory=container.new_session_store,
        cookie_name=config.session.cookie_name,
        secure=config.secure_cookies,
    )

    app.register_blueprint(container.misc_controller.as_blueprint())
    app.register_blueprint(container.auth_controller.as_blueprint())

    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")

        resp.headers.setdefault("Referrer-Policy", "no-referrer")

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")

        resp.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")

        resp.headers.setdefault("Cache-Control", "no-store")

        if config.is_production():
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains",
            )

        return resp

    logger.info(
        f"Flask app initialized env={config.app_env} session_strategy={config.session.strategy}"
    )
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
