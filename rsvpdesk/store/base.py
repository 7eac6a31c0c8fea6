"""
RSVP Record Store
Insert, list, aggregate and delete operations shared by both backing engines
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from databases import Database
from sqlalchemy import delete, func, select

from rsvpdesk.exceptions import ReferralCodeExhaustedError
from rsvpdesk.models import rsvps_table
from rsvpdesk.services.referral_service import MAX_REFERRAL_ATTEMPTS, generate_referral_code

logger = logging.getLogger(__name__)

# Only these columns may be used to order the admin listing. The requested
# name is looked up in this tuple and resolved through the table object, so
# caller input never reaches the SQL text.
SORTABLE_COLUMNS = ("id", "full_name", "email", "created_at", "rsvp_status", "referral_source")
DEFAULT_SORT_COLUMN = "created_at"
DEFAULT_SORT_DIRECTION = "desc"

RSVP_STATUSES = ("Yes", "No", "Maybe")
REFERRAL_SOURCES = ("Friend", "Social", "Invite")


@dataclass
class InsertResult:
    id: int
    referral_id: str


@dataclass
class RSVPStats:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    by_referral_source: Dict[str, int] = field(default_factory=dict)
    wants_updates: int = 0


def resolve_sort(sort_column: Optional[str], sort_direction: Optional[str]) -> Tuple[str, str]:
    """Map caller-supplied sort options onto the allow-list, falling back silently"""
    column = sort_column if sort_column in SORTABLE_COLUMNS else DEFAULT_SORT_COLUMN
    direction = "asc" if sort_direction == "asc" else DEFAULT_SORT_DIRECTION
    return column, direction


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _row_to_dict(row) -> dict:
    return {column.name: row[column.name] for column in rsvps_table.columns}


class RecordStore:
    """
    Persistence for RSVP records

    Subclasses bind the store to one backing engine. They only decide how a
    new primary key is read back and how a referral-code collision looks;
    every query is shared so both engines behave the same.
    """

    engine = ""

    def __init__(
        self,
        database: Database,
        code_generator: Callable[[], str] = generate_referral_code,
        clock: Callable[[], datetime] = _utcnow,
        max_attempts: int = MAX_REFERRAL_ATTEMPTS,
    ):
        self.database = database
        self.code_generator = code_generator
        self.clock = clock
        self.max_attempts = max_attempts

    async def connect(self):
        await self.database.connect()
        logger.info("Connected to %s database", self.engine)

    async def disconnect(self):
        await self.database.disconnect()
        logger.info("Disconnected from %s database", self.engine)

    async def _insert_row(self, values: dict) -> int:
        """Write one row and return its new id"""
        raise NotImplementedError

    def is_referral_conflict(self, exc: Exception) -> bool:
        """True when exc is a uniqueness violation on referral_id"""
        raise NotImplementedError

    async def insert(self, record: dict) -> InsertResult:
        """
        Insert a validated RSVP

        A fresh referral code is generated for each attempt. Only a collision
        on referral_id is retried; any other error propagates unchanged.

        Args:
            record: Validated submission fields

        Returns:
            The new row id and its referral code

        Raises:
            ValueError: If both donation amounts are set
            ReferralCodeExhaustedError: If every attempt collided
        """
        if record.get("donation_value") is not None and record.get("donation_custom") is not None:
            raise ValueError("donation_value and donation_custom are mutually exclusive")

        values = {
            "full_name": record["full_name"],
            "email": record["email"],
            "phone_number": record.get("phone_number"),
            "number_of_guests": record["number_of_guests"],
            "rsvp_status": record["rsvp_status"],
            "message": record.get("message"),
            "profession_organization": record.get("profession_organization"),
            "interest_types": json.dumps(list(record.get("interest_types") or [])),
            "referral_source": record.get("referral_source"),
            "receive_updates": 1 if record.get("receive_updates") else 0,
            "donation_intent": json.dumps(list(record.get("donation_intent") or [])),
            "donation_value": record.get("donation_value"),
            "donation_custom": record.get("donation_custom"),
            "created_at": self.clock(),
        }

        for attempt in range(1, self.max_attempts + 1):
            referral_id = self.code_generator()
            try:
                new_id = await self._insert_row({**values, "referral_id": referral_id})
            except Exception as exc:
                if not self.is_referral_conflict(exc):
                    raise
                logger.warning(
                    "Referral code %s already taken (attempt %d/%d)",
                    referral_id, attempt, self.max_attempts
                )
                continue
            return InsertResult(id=int(new_id), referral_id=referral_id)

        raise ReferralCodeExhaustedError(self.max_attempts)

    async def get(self, rsvp_id: int) -> Optional[dict]:
        row = await self.database.fetch_one(
            select(rsvps_table).where(rsvps_table.c.id == rsvp_id)
        )
        return _row_to_dict(row) if row else None

    def sort_key(self, column):
        """Expression the listing orders by; engines override to pin text comparison"""
        return column

    def list_query(self, sort_column: Optional[str] = None, sort_direction: Optional[str] = None):
        """
        SELECT for the admin listing

        NULLs sort as the smallest value and ties are broken by id in the
        same direction, so both engines return rows in the same order.
        """
        column_name, direction = resolve_sort(sort_column, sort_direction)
        key = self.sort_key(rsvps_table.c[column_name])

        if direction == "asc":
            order_by = [key.asc().nulls_first(), rsvps_table.c.id.asc()]
        else:
            order_by = [key.desc().nulls_last(), rsvps_table.c.id.desc()]

        return select(rsvps_table).order_by(*order_by)

    async def list(self, sort_column: Optional[str] = None, sort_direction: Optional[str] = None) -> List[dict]:
        """List every RSVP ordered by an allow-listed column, ties broken by id"""
        rows = await self.database.fetch_all(self.list_query(sort_column, sort_direction))
        return [_row_to_dict(row) for row in rows]

    async def aggregate_stats(self) -> RSVPStats:
        total = await self.database.fetch_val(select(func.count()).select_from(rsvps_table))

        status_rows = await self.database.fetch_all(
            select(rsvps_table.c.rsvp_status, func.count().label("count"))
            .group_by(rsvps_table.c.rsvp_status)
        )
        source_rows = await self.database.fetch_all(
            select(rsvps_table.c.referral_source, func.count().label("count"))
            .where(rsvps_table.c.referral_source.is_not(None))
            .group_by(rsvps_table.c.referral_source)
        )
        wants_updates = await self.database.fetch_val(
            select(func.count()).select_from(rsvps_table).where(rsvps_table.c.receive_updates == 1)
        )

        by_status = {status: 0 for status in RSVP_STATUSES}
        for row in status_rows:
            by_status[row["rsvp_status"]] = int(row["count"])

        by_referral_source = {source: 0 for source in REFERRAL_SOURCES}
        for row in source_rows:
            by_referral_source[row["referral_source"]] = int(row["count"])

        return RSVPStats(
            total=int(total or 0),
            by_status=by_status,
            by_referral_source=by_referral_source,
            wants_updates=int(wants_updates or 0),
        )

    async def delete_by_ids(self, ids: Iterable[int]) -> int:
        """
        Delete RSVPs by id

        Returns:
            Number of rows actually removed; ids that do not exist are ignored
        """
        ids = sorted({int(rsvp_id) for rsvp_id in ids})
        if not ids:
            return 0

        async with self.database.transaction():
            rows = await self.database.fetch_all(
                select(rsvps_table.c.id).where(rsvps_table.c.id.in_(ids))
            )
            existing_ids = [row["id"] for row in rows]
            if existing_ids:
                await self.database.execute(
                    delete(rsvps_table).where(rsvps_table.c.id.in_(existing_ids))
                )

        logger.info("Deleted %d of %d requested RSVPs", len(existing_ids), len(ids))
        return len(existing_ids)
