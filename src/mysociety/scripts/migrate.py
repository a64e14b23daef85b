# src/mysociety/scripts/migrate.py
"""Upgrade the database schema to the latest Alembic revision.

Migrations live in the top-level `migrations/` directory of a source
checkout and are not shipped inside the wheel, so run this from a checkout
(or an editable install):

    python -m mysociety.scripts.migrate
"""
from __future__ import annotations

import logging
import os

from alembic import command
from alembic.config import Config

from mysociety.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def build_config(database_url: str | None = None) -> Config:
    """Return an Alembic config pointed at the checkout's migrations.

    Raises:
        FileNotFoundError: If no `migrations/alembic.ini` sits next to `src/`.
    """
    ini_path = os.path.join(MIGRATIONS_DIR, "alembic.ini")
    if not os.path.isfile(ini_path):
        raise FileNotFoundError(
            f"No Alembic config at {ini_path}; run migrations from a source checkout"
        )
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade_head(database_url: str | None = None) -> None:
    """Bring the schema up to the latest revision."""
    logger.info("Upgrading schema to head")
    command.upgrade(build_config(database_url), "head")


if __name__ == "__main__":
    run_upgrade_head()
