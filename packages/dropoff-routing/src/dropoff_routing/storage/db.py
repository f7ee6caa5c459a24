from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from .schema import Base


def get_engine(db_path: str | Path):
    db_path_str = str(db_path)
    if db_path_str == ":memory:":
        # One shared connection so every thread sees the same database.
        return create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(f"sqlite+pysqlite:///{db_path_str}")


def get_session(engine) -> Session:
    return Session(engine)


def init_db(engine) -> None:
    Base.metadata.create_all(engine)
