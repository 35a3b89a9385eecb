"""Generate database session"""

from typing import Iterator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import get_settings
from src.db.schema import Base


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # request handlers may run in a threadpool
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


settings = get_settings()
engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Ensure all tables are created"""
    Base.metadata.create_all(bind=bind)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
