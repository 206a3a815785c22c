"""Compare the live database schema with the ORM models.

Exit codes: 0 when in sync, 1 when differences are found, 2 on errors.
"""

from __future__ import annotations

import sys
from typing import Optional

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext

from brainquiz.db.engine import make_engine
from brainquiz.models import Base


def _print_ops(ops, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in ops:
        print(f"{prefix}- {op}")
        if getattr(op, "ops", None):
            _print_ops(op.ops, indent + 1)


def main(database_url: Optional[str] = None) -> int:
    engine = make_engine(database_url)
    shown = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            migration_context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            upgrade_ops = ag_api.produce_migrations(
                migration_context, Base.metadata
            ).upgrade_ops
    except Exception as exc:
        print(f"Schema drift check: ERROR for {shown}: {exc}", file=sys.stderr)
        return 2
    finally:
        engine.dispose()

    if upgrade_ops is None or upgrade_ops.is_empty():
        print(f"Schema drift check: OK for {shown}.")
        return 0
    print(f"Schema drift check: FAILED for {shown}. Run an Alembic revision for:")
    _print_ops(upgrade_ops.ops or [])
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1] if len(sys.argv) > 1 else None))
