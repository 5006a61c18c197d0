"""
Database connection and session.

Schema source of truth: print_station.models. On startup, Base.metadata.create_all(bind=engine)
creates all tables and columns from the current models; there are no migration scripts.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from print_station.config import get_settings

settings = get_settings()

_connect_args = {}
if settings.database_url.startswith("sqlite"):
    # FastAPI runs sync endpoints in a threadpool; sessions cross threads
    _connect_args["check_same_thread"] = False

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    connect_args=_connect_args,
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    # Import models so Base.metadata has all tables before create_all
    from print_station import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
