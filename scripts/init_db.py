from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from courselottery.db.engine import make_engine
from courselottery.settings import log_level

logger = logging.getLogger(__name__)


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    logger.info(f"Upgrading registry schema to {target_revision}")
    command.upgrade(alembic_cfg, target_revision)


def print_tables() -> None:
    """Inspect the configured registry database and print its tables."""
    engine = make_engine()
    insp = inspect(engine)
    print("Registry tables:", ", ".join(sorted(insp.get_table_names())))


def main() -> None:
    """Apply migrations (default to head) and report the resulting schema."""
    logging.basicConfig(level=log_level())
    upgrade_db()
    print_tables()


if __name__ == "__main__":
    main()
