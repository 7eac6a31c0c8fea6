"""
Record Store
Pick the backing engine once, from the database URL
"""

from rsvpdesk.database import POSTGRESQL, create_database, engine_name
from rsvpdesk.store.base import (
    DEFAULT_SORT_COLUMN,
    SORTABLE_COLUMNS,
    InsertResult,
    RecordStore,
    RSVPStats,
    resolve_sort,
)


def create_record_store(database_url: str, **kwargs) -> RecordStore:
    """
    Build the record store for a database URL

    Raises:
        ConfigurationError: If the URL is neither SQLite nor PostgreSQL
    """
    database = create_database(database_url)

    if engine_name(database_url) == POSTGRESQL:
        # asyncpg is only needed when a server engine is configured
        from rsvpdesk.store.postgres import PostgresRecordStore
        return PostgresRecordStore(database, **kwargs)

    from rsvpdesk.store.sqlite import SQLiteRecordStore
    return SQLiteRecordStore(database, **kwargs)


__all__ = [
    "DEFAULT_SORT_COLUMN",
    "SORTABLE_COLUMNS",
    "InsertResult",
    "RecordStore",
    "RSVPStats",
    "create_record_store",
    "resolve_sort",
]
