#!/usr/bin/env python
"""Create the PostgreSQL database named in `DATABASE_URL` from .env.

Not needed for the embedded SQLite engine, which creates its file on first use.

Usage:
  python scripts/create_database.py [--password PW]
"""
import argparse
import os
import sys

# Ensure project root is on sys.path so `rsvpdesk` can be imported from a checkout
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import psycopg2
from psycopg2 import OperationalError, sql
from sqlalchemy.engine import make_url

from rsvpdesk.config import get_settings
from rsvpdesk.database import POSTGRESQL, engine_name, normalize_url


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--password", "-p", help="Postgres admin password")
    args = parser.parse_args()

    settings = get_settings()
    if engine_name(settings.DATABASE_URL) != POSTGRESQL:
        print("DATABASE_URL is not a PostgreSQL URL; nothing to create.")
        return

    url = make_url(normalize_url(settings.DATABASE_URL))
    target_db = url.database
    if not target_db:
        print("No database name found in DATABASE_URL")
        sys.exit(1)

    password = args.password or os.getenv("POSTGRES_PASSWORD") or url.password

    try:
        conn = psycopg2.connect(
            dbname="postgres",
            user=url.username,
            password=password,
            host=url.host or "localhost",
            port=url.port or 5432,
        )
    except OperationalError as e:
        print("Could not connect to the postgres database:", e)
        print("Provide the password via --password or POSTGRES_PASSWORD env var.")
        sys.exit(1)

    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM pg_database WHERE datname=%s", (target_db,))
            if cur.fetchone():
                print(f"Database '{target_db}' already exists.")
            else:
                cur.execute(sql.SQL("CREATE DATABASE {};").format(sql.Identifier(target_db)))
                print(f"Database '{target_db}' created.")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
