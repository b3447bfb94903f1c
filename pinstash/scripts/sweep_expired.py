# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Delete expired server-side sessions and stale password reset records."""

from __future__ import annotations

import argparse
import asyncio

from pinstash.application.interfaces import utcnow
from pinstash.container import Container
from pinstash.shared.config import load_config
from pinstash.shared.logging import setup_logging


async def sweep(container: Container) -> tuple[int, int]:
    sessions = await container.session_repository.delete_expired(utcnow())
    reset_records = await container.password_reset_flow.sweep()
    return sessions, reset_records


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Remove expired sessions and reset tokens")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE__URL",
    )
    args = parser.parse_args(argv)

    config = load_config()
    if args.database_url:
        config = config.model_copy(
            update={"database": config.database.model_copy(update={"url": args.database_url})}
        )
    setup_logging(
        config.log_level, log_file=config.log_file, debug_mode=config.debug_logging
    )

    container = Container(config)
    try:
        sessions, reset_records = asyncio.run(sweep(container))
    finally:
        container.database.dispose()
    print(f"Removed {sessions} expired sessions and {reset_records} stale reset records")


if __name__ == "__main__":
    main()
