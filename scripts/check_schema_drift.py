from __future__ import annotations

import sys

from alembic.autogenerate import api as ag_api
from alembic.runtime.migration import MigrationContext

from courselottery.db.engine import make_engine
from courselottery.models import Base


def _print_ops(ops, indent: int = 0) -> None:
    prefix = "  " * indent
    for op in ops:
        print(f"{prefix}- {op}")
        nested = getattr(op, "ops", None)
        if nested:
            _print_ops(nested, indent + 1)


def main() -> int:
    """Compare the registry models with the live schema.

    Exit status is 0 when they agree, 1 when differences exist and 2 when
    the comparison itself fails.
    """
    engine = make_engine()
    url_display = engine.url.render_as_string(hide_password=True)
    try:
        with engine.connect() as connection:
            context = MigrationContext.configure(
                connection=connection,
                opts={
                    "compare_type": True,
                    "render_as_batch": connection.dialect.name == "sqlite",
                },
            )
            migration = ag_api.produce_migrations(context, Base.metadata)
            upgrade_ops = migration.upgrade_ops
            if upgrade_ops is None:
                print(f"Registry schema check: ERROR for {url_display}: no upgrade ops produced.")
                return 2
            if upgrade_ops.is_empty():
                print(f"Registry schema check: OK for {url_display}.")
                return 0
            print(f"Registry schema check: DRIFT for {url_display}:")
            _print_ops(upgrade_ops.ops or [])
            return 1
    except Exception as exc:
        print(f"Registry schema check: ERROR for {url_display}: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
