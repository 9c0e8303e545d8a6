from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.config import get_database_url
from store.models import Base


def create_db_engine(database_url=None):
    """Engine for DATABASE_URL; SQLite parent directories are created on demand."""
    url = database_url or get_database_url()

    if url.startswith("sqlite:///") and url != "sqlite:///:memory:":
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)

    return create_engine(url)


def create_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def init_db(engine):
    Base.metadata.create_all(bind=engine)
