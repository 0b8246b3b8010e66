"""Database helpers for provisioning the Supabase/Postgres collections."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional, Sequence

import psycopg2
from psycopg2.extensions import connection as PGConnection

from makemydays.core.stores import (
    BOOKINGS,
    COMMIT_FUNCTION,
    EVENTS,
    REVISION_CONFLICT_CODE,
    USERS,
)

APPLICATION_TABLES: Sequence[str] = (EVENTS, BOOKINGS, USERS)

_LOGGER = logging.getLogger(__name__)


def get_connection(dsn: Optional[str] = None) -> PGConnection:
    """Return a new database connection using the configured DSN."""

    connection_dsn = dsn or os.getenv("SUPABASE_DB_URL") or os.getenv("DATABASE_URL")
    if not connection_dsn:
        raise RuntimeError("No database DSN configured via SUPABASE_DB_URL or DATABASE_URL")
    return psycopg2.connect(connection_dsn)


@contextmanager
def connection_ctx(dsn: Optional[str] = None) -> Generator[PGConnection, None, None]:
    """Context manager that yields a database connection and ensures it is closed."""

    connection = get_connection(dsn)
    try:
        yield connection
    finally:
        connection.close()


def _document_table_ddl(table: str) -> Sequence[str]:
    return (
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id TEXT PRIMARY KEY,
            data JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            revision TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
        """,
        f"CREATE INDEX IF NOT EXISTS {table}_created_at_idx ON {table} (created_at DESC)",
    )


def _commit_function_ddl() -> str:
    collections = ", ".join(f"'{table}'" for table in APPLICATION_TABLES)
    return f"""
        CREATE OR REPLACE FUNCTION {COMMIT_FUNCTION}(writes JSONB)
        RETURNS VOID
        LANGUAGE plpgsql
        AS $$
        DECLARE
            item JSONB;
            target TEXT;
            affected INTEGER;
        BEGIN
            FOR item IN SELECT value FROM jsonb_array_elements(writes)
            LOOP
                target := item->>'collection';
                IF target NOT IN ({collections}) THEN
                    RAISE EXCEPTION 'unknown collection %', target USING ERRCODE = '22023';
                END IF;

                IF NOT COALESCE((item->>'checked')::BOOLEAN, FALSE) THEN
                    EXECUTE format(
                        'INSERT INTO %I (id, data, revision, created_at)
                         VALUES ($1, $2, $3, COALESCE($4::TIMESTAMPTZ, NOW()))
                         ON CONFLICT (id) DO UPDATE SET data = EXCLUDED.data, revision = EXCLUDED.revision',
                        target
                    ) USING item->>'id', item->'data', item->>'revision', item->>'created_at';
                ELSIF item->>'expected_revision' IS NULL THEN
                    EXECUTE format(
                        'INSERT INTO %I (id, data, revision, created_at)
                         VALUES ($1, $2, $3, COALESCE($4::TIMESTAMPTZ, NOW()))
                         ON CONFLICT (id) DO NOTHING',
                        target
                    ) USING item->>'id', item->'data', item->>'revision', item->>'created_at';
                    GET DIAGNOSTICS affected = ROW_COUNT;
                    IF affected = 0 THEN
                        RAISE EXCEPTION '%/% was created concurrently', target, item->>'id'
                            USING ERRCODE = '{REVISION_CONFLICT_CODE}';
                    END IF;
                ELSE
                    EXECUTE format(
                        'UPDATE %I SET data = $2, revision = $3 WHERE id = $1 AND revision = $4',
                        target
                    ) USING item->>'id', item->'data', item->>'revision', item->>'expected_revision';
                    GET DIAGNOSTICS affected = ROW_COUNT;
                    IF affected = 0 THEN
                        RAISE EXCEPTION '%/% changed during transaction', target, item->>'id'
                            USING ERRCODE = '{REVISION_CONFLICT_CODE}';
                    END IF;
                END IF;
            END LOOP;
        END;
        $$
    """


def ensure_application_tables(connection: PGConnection) -> None:
    """Create the document tables if they do not already exist."""

    with connection.cursor() as cursor:
        for table in APPLICATION_TABLES:
            for statement in _document_table_ddl(table):
                cursor.execute(statement)
        cursor.execute(
            f"CREATE INDEX IF NOT EXISTS {BOOKINGS}_user_idx ON {BOOKINGS} ((data->>'userId'))"
        )
        cursor.execute(_commit_function_ddl())
    connection.commit()
    _LOGGER.info("Ensured application tables: %s", ", ".join(APPLICATION_TABLES))


__all__ = [
    "APPLICATION_TABLES",
    "connection_ctx",
    "ensure_application_tables",
    "get_connection",
]
