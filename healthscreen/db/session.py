from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from healthscreen.db.models import Base


def build_engine(db_url: str) -> Engine:
    if db_url.startswith("sqlite:///") and ":memory:" not in db_url:
        Path(db_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(db_url, connect_args={"check_same_thread": False})
    return create_engine(db_url)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
