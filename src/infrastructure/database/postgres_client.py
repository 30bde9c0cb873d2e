"""PostgreSQL client for running the profile store without Supabase.

Enabled with USE_LOCAL_DB=1. Queries run against a local ``profiles`` table
that mirrors the Supabase schema; driver errors surface as ``DatabaseError``
carrying the SQLSTATE code.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Generator

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

from src.domain.errors import DatabaseError


class PostgresClient:
    """PostgreSQL database client with connection pooling."""

    def __init__(self) -> None:
        self.enabled = os.getenv("USE_LOCAL_DB", "0") == "1"
        self._pool: pool.SimpleConnectionPool | None = None

        if self.enabled:
            try:
                self._pool = pool.SimpleConnectionPool(
                    minconn=1,
                    maxconn=10,
                    host=os.getenv("POSTGRES_HOST", "localhost"),
                    port=int(os.getenv("POSTGRES_PORT", "5432")),
                    database=os.getenv("POSTGRES_DB", "app"),
                    user=os.getenv("POSTGRES_USER", "app"),
                    password=os.getenv("POSTGRES_PASSWORD", "app_dev_password"),
                )
            except psycopg2.Error as exc:  # pragma: no cover
                raise DatabaseError(
                    f"Failed to initialize PostgreSQL connection pool: {exc}", provider_code=exc.pgcode
                ) from exc

    @contextmanager
    def cursor(self) -> Generator[Any, None, None]:
        """Yield a dict cursor inside a transaction that commits on success."""
        if not self.enabled or self._pool is None:
            raise DatabaseError("Local PostgreSQL database is not enabled")

        conn = self._pool.getconn()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                yield cur
            conn.commit()
        except psycopg2.Error as exc:
            conn.rollback()
            raise DatabaseError(f"PostgreSQL query failed: {exc}", provider_code=exc.pgcode) from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def fetch_one(self, query: str, params: tuple = ()) -> dict[str, Any] | None:
        """
        Execute a query and fetch one result.

        Args:
            query: SQL query with %s placeholders
            params: Query parameters

        Returns:
            Single row as a dictionary, or None
        """
        with self.cursor() as cur:
            cur.execute(query, params)
            row = cur.fetchone()
            return dict(row) if row else None

    def fetch_all(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        """
        Execute a query and fetch all results.

        Args:
            query: SQL query with %s placeholders
            params: Query parameters

        Returns:
            List of rows as dictionaries
        """
        with self.cursor() as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]

    def close(self) -> None:
        """Close all connections in the pool."""
        if self._pool:
            self._pool.closeall()


_POSTGRES_CLIENT: PostgresClient | None = None


def get_postgres_client() -> PostgresClient | None:
    """Shared client when USE_LOCAL_DB=1, otherwise None."""
    global _POSTGRES_CLIENT
    if os.getenv("USE_LOCAL_DB", "0") != "1":
        return None
    if _POSTGRES_CLIENT is None:
        _POSTGRES_CLIENT = PostgresClient()
    return _POSTGRES_CLIENT
