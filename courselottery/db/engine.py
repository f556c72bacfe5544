import os
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ..settings import DEFAULT_DB_URL, ROOT_DIR
from .utils import resolve_sqlite_url

DEFAULT_SQLITE_URL = resolve_sqlite_url(os.getenv("DB_URL", DEFAULT_DB_URL), ROOT_DIR)


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    url = database_url or DEFAULT_SQLITE_URL
    return create_engine(
        url,
        echo=echo,
        future=True,
    )


def get_sessionmaker(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,  # Keep registry rows readable after the lottery commits
        future=True,
    )
