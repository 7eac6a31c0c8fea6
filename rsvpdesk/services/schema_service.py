"""
Schema Service
Creates the rsvps table and adds columns introduced after the first release
"""

import logging
from typing import List

import sqlalchemy as sa
from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from rsvpdesk.database import metadata
from rsvpdesk.exceptions import SchemaMigrationError
from rsvpdesk.models import REFERRAL_ID_INDEX, rsvps_table

logger = logging.getLogger(__name__)

# PostgreSQL: duplicate_column, duplicate_table (also raised for indexes)
_ALREADY_EXISTS_PGCODES = {"42701", "42P07"}


def optional_columns() -> List[sa.Column]:
    """Columns added after the first release, in the order they shipped"""
    return [
        sa.Column("referral_id", sa.String(32), nullable=True),
        sa.Column("profession_organization", sa.String(200), nullable=True),
        sa.Column("interest_types", sa.Text(), nullable=True),
        sa.Column("referral_source", sa.String(20), nullable=True),
        sa.Column("receive_updates", sa.Integer(), server_default="0", nullable=False),
        sa.Column("donation_intent", sa.Text(), nullable=True),
        sa.Column("donation_value", sa.Float(), nullable=True),
        sa.Column("donation_custom", sa.Float(), nullable=True),
    ]


def is_already_exists_error(exc: Exception) -> bool:
    """True when the engine rejected DDL only because the object is already there"""
    orig = getattr(exc, "orig", None) or exc
    if getattr(orig, "pgcode", None) in _ALREADY_EXISTS_PGCODES:
        return True
    text = str(orig).lower()
    return "duplicate column" in text or "already exists" in text


class SchemaManager:
    """Idempotent startup migration for the rsvps table"""

    def __init__(self, engine: Engine):
        self.engine = engine

    def ensure_schema(self) -> List[str]:
        """
        Bring the rsvps table up to date

        Safe to run on every start: existing rows are never touched and a
        column or index that is already present counts as success.

        Returns:
            Names of the columns that were added

        Raises:
            SchemaMigrationError: On any failure other than "already exists"
        """
        try:
            inspector = sa.inspect(self.engine)
            if not inspector.has_table(rsvps_table.name):
                metadata.create_all(self.engine, tables=[rsvps_table])
                logger.info("Created table %s", rsvps_table.name)
                return []

            existing = {column["name"] for column in inspector.get_columns(rsvps_table.name)}
            indexes = {index["name"] for index in inspector.get_indexes(rsvps_table.name)}
        except SQLAlchemyError as exc:
            raise SchemaMigrationError(f"Could not inspect table {rsvps_table.name}: {exc}") from exc

        added = []
        for column in optional_columns():
            if column.name in existing:
                continue
            if self._run(lambda op: op.add_column(rsvps_table.name, column)):
                logger.info("Added column %s.%s", rsvps_table.name, column.name)
                added.append(column.name)

        if REFERRAL_ID_INDEX not in indexes:
            if self._run(lambda op: op.create_index(
                REFERRAL_ID_INDEX, rsvps_table.name, ["referral_id"], unique=True
            )):
                logger.info("Created index %s", REFERRAL_ID_INDEX)

        return added

    def _run(self, operation) -> bool:
        """Run one DDL operation in its own transaction; False if it already existed"""
        try:
            with self.engine.begin() as conn:
                operation(Operations(MigrationContext.configure(conn)))
        except SQLAlchemyError as exc:
            if is_already_exists_error(exc):
                logger.info("Skipping migration step, object already exists: %s", getattr(exc, "orig", exc))
                return False
            raise SchemaMigrationError(f"Migration of {rsvps_table.name} failed: {exc}") from exc
        return True

    def column_names(self) -> List[str]:
        return [column["name"] for column in sa.inspect(self.engine).get_columns(rsvps_table.name)]
