# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Create the database schema."""

from __future__ import annotations

import argparse

from pinstash.infrastructure.db import Database
from pinstash.shared.config import load_config
from pinstash.shared.logging import setup_logging


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Create the PinStash database schema")
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="Override DATABASE__URL",
    )
    args = parser.parse_args(argv)

    config = load_config()
    db_config = config.database
    if args.database_url:
        db_config = db_config.model_copy(update={"url": args.database_url})
    setup_logging(
        config.log_level, log_file=config.log_file, debug_mode=config.debug_logging
    )

    database = Database(db_config)
    try:
        database.init_schema()
    finally:
        database.dispose()
    print(f"Schema ensured for {db_config.url.split('@')[-1]}")


if __name__ == "__main__":
    main()
