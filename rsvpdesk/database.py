"""
Database Connection Handles
Async query handle (databases) plus a sync SQLAlchemy engine for migrations
"""

from databases import Database
from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base

from rsvpdesk.exceptions import ConfigurationError

SQLITE = "sqlite"
POSTGRESQL = "postgresql"

# Metadata for models
metadata = MetaData()

# Base class for models
Base = declarative_base(metadata=metadata)


def normalize_url(database_url: str) -> str:
    """Accept the legacy postgres:// scheme some hosts still hand out"""
    if database_url.startswith("postgres://"):
        return "postgresql://" + database_url[len("postgres://"):]
    return database_url


def engine_name(database_url: str) -> str:
    """
    Resolve which backing engine a database URL points at

    Raises:
        ConfigurationError: If the URL is neither SQLite nor PostgreSQL
    """
    backend = make_url(normalize_url(database_url)).get_backend_name()
    if backend in (SQLITE, POSTGRESQL):
        return backend
    raise ConfigurationError(f"Unsupported DATABASE_URL backend: {backend}")


def create_database(database_url: str) -> Database:
    """Create the async query handle used by the record store"""
    database_url = normalize_url(database_url)

    if engine_name(database_url) == SQLITE:
        return Database(database_url)

    # Supabase pooler (pgbouncer) cannot use prepared statements
    if "supabase.com" in database_url:
        db_options = {"min_size": 1, "max_size": 5, "statement_cache_size": 0}
    else:
        db_options = {"min_size": 1, "max_size": 10}
    return Database(database_url, **db_options)


def create_sync_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine used for schema migrations"""
    url = make_url(normalize_url(database_url))
    if engine_name(database_url) == POSTGRESQL:
        url = url.set(drivername="postgresql+psycopg2")
    else:
        url = url.set(drivername="sqlite")
    return create_engine(url)
