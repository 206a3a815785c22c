from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from brainquiz.db.engine import make_engine
from brainquiz.logging_config import configure_logging

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head", database_url: Optional[str] = None) -> None:
    """Apply the Alembic migrations up to ``target_revision``."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    if database_url:
        alembic_cfg.cmd_opts = argparse.Namespace(x=[f"db_url={database_url}"])
    command.upgrade(alembic_cfg, target_revision)


def list_tables(database_url: Optional[str] = None) -> list[str]:
    engine = make_engine(database_url)
    try:
        return sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def main(argv: Optional[list[str]] = None) -> None:
    """Migrate the quiz store and report the resulting tables."""
    parser = argparse.ArgumentParser(description="Create or upgrade the quiz database")
    parser.add_argument("--revision", default="head")
    parser.add_argument("--db-url", default=None, help="Overrides DB_URL")
    args = parser.parse_args(argv)

    logger = configure_logging()
    upgrade_db(args.revision, args.db_url)
    logger.info(f"Current tables: {', '.join(list_tables(args.db_url))}")


if __name__ == "__main__":
    main()
