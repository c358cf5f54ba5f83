"""SQLite database setup via SQLAlchemy."""
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

# Default DB lives in data/ (gitignored); VELOCITYCHIP_DATABASE_URL overrides it
_DB_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
_DEFAULT_URL = f"sqlite:///{os.path.join(_DB_DIR, 'velocitychip.db')}"
DATABASE_URL = os.getenv("VELOCITYCHIP_DATABASE_URL") or _DEFAULT_URL


def make_engine(url: str = DATABASE_URL):
    if url == _DEFAULT_URL:
        os.makedirs(_DB_DIR, exist_ok=True)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(bind) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


class Base(DeclarativeBase):
    pass


def init_db(bind) -> None:
    """Create all tables."""
    import backend.models_db  # noqa: F401  registers tables on Base
    Base.metadata.create_all(bind=bind)
