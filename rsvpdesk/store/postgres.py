"""
Networked Engine
Record store backed by a PostgreSQL server
"""

from asyncpg.exceptions import UniqueViolationError
from sqlalchemy import String

from rsvpdesk.database import POSTGRESQL
from rsvpdesk.models import REFERRAL_ID_INDEX, rsvps_table
from rsvpdesk.store.base import RecordStore

# Byte-wise text ordering, the way SQLite compares strings
BYTE_ORDER_COLLATION = "C"


class PostgresRecordStore(RecordStore):
    """Record store for postgresql:// URLs (asyncpg driver)"""

    engine = POSTGRESQL

    async def _insert_row(self, values: dict) -> int:
        # asyncpg has no lastrowid; the id comes back through RETURNING
        query = rsvps_table.insert().values(**values).returning(rsvps_table.c.id)
        return await self.database.execute(query)

    def is_referral_conflict(self, exc: Exception) -> bool:
        return (
            isinstance(exc, UniqueViolationError)
            and getattr(exc, "constraint_name", None) == REFERRAL_ID_INDEX
        )

    def sort_key(self, column):
        if isinstance(column.type, String):
            return column.collate(BYTE_ORDER_COLLATION)
        return column
