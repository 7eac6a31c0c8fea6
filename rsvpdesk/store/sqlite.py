"""
Embedded Engine
Record store backed by a single SQLite file
"""

import sqlite3

from rsvpdesk.database import SQLITE
from rsvpdesk.models import rsvps_table
from rsvpdesk.store.base import RecordStore


class SQLiteRecordStore(RecordStore):
    """Record store for sqlite:// URLs (aiosqlite driver)"""

    engine = SQLITE

    async def _insert_row(self, values: dict) -> int:
        # The sqlite backend returns the cursor's lastrowid
        return await self.database.execute(rsvps_table.insert().values(**values))

    def is_referral_conflict(self, exc: Exception) -> bool:
        return (
            isinstance(exc, sqlite3.IntegrityError)
            and f"{rsvps_table.name}.referral_id" in str(exc)
        )
