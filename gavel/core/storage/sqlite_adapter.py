import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from gavel.utils.logger import get_logger

logger = get_logger("storage.sqlite")


class SQLiteAdapter:
    """
    SQLite backend for persistent storage.

    A single key-value table holding named text documents, the
    server-side stand-in for the browser's localStorage.

    Each thread gets its own connection. Every connection opened is
    tracked so `close()` can release them all, including those opened
    by worker threads that have since gone away.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._conn_local = threading.local()
        self._connections: List[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

        # Ensure directory exists
        if not db_path.parent.exists():
            db_path.parent.mkdir(parents=True, exist_ok=True)

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get or create connection for current thread."""
        if not hasattr(self._conn_local, "conn"):
            conn = sqlite3.connect(
                self.db_path,
                timeout=30.0,
                check_same_thread=False
            )
            conn.row_factory = sqlite3.Row
            # Enable WAL mode for better concurrency
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            self._conn_local.conn = conn
            self._conn_local.depth = 0
            with self._connections_lock:
                self._connections.append(conn)
        return self._conn_local.conn

    def _init_schema(self):
        """Initialize database schema."""
        conn = self._get_conn()
        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

    # =========================================================================
    # Transactions
    # =========================================================================

    @contextmanager
    def write_transaction(self) -> Iterator[None]:
        """
        Hold the database write lock for the duration of the block.

        `BEGIN IMMEDIATE` makes every other connection to the file,
        from this process or another one, wait before it can start
        its own write transaction. The block commits on success and
        rolls back on error. Nested blocks on one thread join the
        outermost transaction.
        """
        conn = self._get_conn()
        if self._conn_local.depth:
            self._conn_local.depth += 1
            try:
                yield
            finally:
                self._conn_local.depth -= 1
            return

        conn.execute("BEGIN IMMEDIATE")
        self._conn_local.depth = 1
        try:
            yield
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()
        finally:
            self._conn_local.depth = 0

    def _execute_write(self, sql: str, params: tuple = ()):
        conn = self._get_conn()
        if self._conn_local.depth:
            # Committed by the enclosing write_transaction()
            conn.execute(sql, params)
        else:
            with conn:
                conn.execute(sql, params)

    # =========================================================================
    # Key-Value Operations
    # =========================================================================

    def put(self, key: str, value: str):
        """Save a key-value pair."""
        self._execute_write(
            "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
            (key, value)
        )

    def get(self, key: str) -> Optional[str]:
        """Get value by key."""
        conn = self._get_conn()
        cursor = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row['value'] if row else None

    def clear(self):
        """Remove every document."""
        self._execute_write("DELETE FROM kv_store")
        logger.warning(f"Store cleared: {self.db_path}")

    def close(self):
        """Close every connection opened by any thread."""
        with self._connections_lock:
            connections, self._connections = self._connections, []
        for conn in connections:
            conn.close()
        # Threads that reconnect after close() get a fresh connection
        self._conn_local = threading.local()
        logger.debug(f"Closed {len(connections)} connection(s) to {self.db_path}")
