"""Database connection setup."""

from __future__ import annotations

from sqlalchemy import URL, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker

from multifinance.config import Config


def build_database_url(config: Config) -> URL:
    """Build the MySQL connection URL from the database settings."""
    db = config.database
    return URL.create(
        "mysql+pymysql",
        username=db.user or None,
        password=db.password or None,
        host=db.host or None,
        port=int(db.port) if db.port else None,
        database=db.name or None,
    )


def get_database_connection(config: Config) -> scoped_session:
    """Connect to the database and return a thread-local session registry.

    Raises ConnectionError when the database cannot be reached.
    """
    print(f"Welcome to {config.server.name}")
    engine = create_engine(build_database_url(config), pool_pre_ping=True)
    try:
        with engine.connect():
            pass
    except SQLAlchemyError as exc:
        engine.dispose()
        raise ConnectionError(f"Failed to connect to database: {exc}") from exc

    print("Connected to MySQL successfully!")
    return scoped_session(sessionmaker(bind=engine))