#!/usr/bin/env python
"""Bring the rsvps table in `DATABASE_URL` up to date and list its columns.

Usage:
  python scripts/migrate.py
"""
import os
import sys

# Ensure project root is on sys.path so `rsvpdesk` can be imported from a checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rsvpdesk.config import get_settings
from rsvpdesk.database import create_sync_engine
from rsvpdesk.exceptions import RSVPDeskError
from rsvpdesk.logging_config import setup_logging
from rsvpdesk.services.schema_service import SchemaManager


def main():
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    engine = create_sync_engine(settings.DATABASE_URL)
    manager = SchemaManager(engine)
    try:
        added = manager.ensure_schema()
        columns = manager.column_names()
    except RSVPDeskError as e:
        print("Migration failed:", e)
        sys.exit(1)
    finally:
        engine.dispose()

    print("added columns:", added or "none")
    print("rsvps columns:", columns)


if __name__ == "__main__":
    main()
