import logging
import sqlite3
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class Database:
    """Explicit handle on the SQLite file backing the inventory.

    A fresh connection is opened for every operation and closed afterwards, so a
    single handle can be shared by concurrent request threads without locking.
    """

    def __init__(self, db_file: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.db_file = str(db_file)
        self.timeout = timeout

    def __repr__(self) -> str:  # pragma: no cover
        return f"Database(db_file={self.db_file!r})"

    def _open(self) -> sqlite3.Connection:
        # isolation_level=None leaves transaction control to transaction() below
        conn = sqlite3.connect(self.db_file, timeout=self.timeout, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection for read-only work, closing it afterwards."""
        conn = self._open()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a write transaction.

        BEGIN IMMEDIATE takes SQLite's reserved lock up front, so every read made
        inside the block sees the same state the subsequent write applies to.
        Commits when the block exits normally, rolls back on any exception.
        """
        conn = self._open()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def create_tables(self) -> None:
        """Creates the items table if it does not exist."""
        with self.connect() as conn:
            # WAL lets readers proceed while a checkout holds the write lock
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("""
                CREATE TABLE IF NOT EXISTS items (
                    id TEXT PRIMARY KEY,
                    title TEXT,
                    author TEXT,
                    quantity INTEGER
                )
            """)

    def initialize(self) -> None:
        """Initializes the database file, creating tables if needed."""
        self.create_tables()
        logger.info(f"Database ready: {self.db_file}")

    def ping(self) -> bool:
        """Cheap connectivity check used by the health endpoint."""
        try:
            with self.connect() as conn:
                conn.execute("SELECT 1")
            return True
        except sqlite3.Error as e:
            logger.error(f"Database ping failed: {e}")
            return False
