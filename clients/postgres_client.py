"""
PostgreSQL access for the accounts store.

One ThreadedConnectionPool per client. Route handlers run in Starlette's
threadpool, so each concurrent request borrows its own connection. A
connection is rolled back before it goes back to the pool if the borrower
raised, so an aborted transaction never leaks into another request.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

Params = Tuple | Dict | None

_adapters_lock = threading.Lock()
_adapters_registered = False


def _register_adapters() -> None:
    """JSONB columns decode to Python objects; uuid columns to uuid.UUID."""
    global _adapters_registered
    with _adapters_lock:
        if not _adapters_registered:
            psycopg2.extras.register_default_jsonb(globally=True)
            psycopg2.extras.register_uuid()
            _adapters_registered = True


class PostgresClient:
    """
    Pooled psycopg2 client returning rows as dicts.

    Usage:
        db = PostgresClient(database_url)
        rows = db.execute("SELECT id, email FROM accounts")

        with db.transaction() as cur:
            cur.execute("SELECT ... FOR UPDATE", params)
            cur.execute("UPDATE ...", params)
    """

    def __init__(self, database_url: str, min_connections: int = 2, max_connections: int = 20):
        _register_adapters()
        self._pool = psycopg2.pool.ThreadedConnectionPool(
            minconn=min_connections,
            maxconn=max_connections,
            dsn=database_url,
            connect_timeout=30,
        )
        logger.info(f"Connection pool created ({min_connections}-{max_connections} connections)")

    @contextmanager
    def get_connection(self):
        """Borrow a pooled connection; roll back if the caller fails."""
        conn = self._pool.getconn()
        try:
            yield conn
        except Exception:
            if not conn.closed:
                conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def transaction(self) -> Iterator[psycopg2.extras.RealDictCursor]:
        """
        Dict cursor whose statements commit together when the block exits.

        Any exception inside the block rolls back every statement in it.
        Used for read-modify-write sequences that lock rows with FOR UPDATE.
        """
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                yield cur
            conn.commit()

    def execute(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """Run one statement and commit. Returns row dicts, or [] if it yields none."""
        with self.transaction() as cur:
            cur.execute(query, params)
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_single(self, query: str, params: Params = None) -> Dict[str, Any] | None:
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_returning(self, query: str, params: Params = None) -> List[Dict[str, Any]]:
        """INSERT/UPDATE/DELETE ... RETURNING. Always produces a result set."""
        with self.transaction() as cur:
            cur.execute(query, params)
            return [dict(row) for row in cur.fetchall()]

    def close(self) -> None:
        if not self._pool.closed:
            self._pool.closeall()
            logger.info("Connection pool closed")
