#!/usr/bin/env python3
"""
Container entrypoint: wait for the database, migrate, provision staff accounts, then hand over to uvicorn.
"""
import logging
import os
import sys

from alembic import command
from alembic.config import Config

logger = logging.getLogger("start_api")

HERE = os.path.dirname(os.path.abspath(__file__))


def migrate(database_url: str) -> None:
    cfg = Config(os.path.join(HERE, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(HERE, "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(cfg, "head")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")

    import wait_for_db  # noqa: F401  (blocks until Postgres accepts connections)
    from venuebook.core.config import settings

    logger.info("applying migrations")
    migrate(settings.DATABASE_URL)

    # staff accounts are skipped per role when its seed password is not configured
    from venuebook.seed import run as run_seed
    results = run_seed()
    logger.info("seeded %d staff account(s)", sum(1 for r in results if r.get("status") == "created"))

    port = os.getenv("PORT", "8000")
    os.execv(
        sys.executable,
        [sys.executable, "-m", "uvicorn", "venuebook.main:app", "--host", "0.0.0.0", "--port", port],
    )


if __name__ == "__main__":
    main()
