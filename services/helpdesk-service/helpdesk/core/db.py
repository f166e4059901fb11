from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from helpdesk.core.config import settings

# check_same_thread is only meaningful for SQLite
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Generator:
    """
    Yield a database session for the duration of a request and close it afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
