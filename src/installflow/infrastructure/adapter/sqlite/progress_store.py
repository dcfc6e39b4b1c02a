import sqlite3
import threading
import time

from installflow.application.port import ProgressStore
from installflow.domain.entity import InstallProgress
from installflow.domain.exception import InstallAlreadyExistsError, InstallNotFoundError
from installflow.domain.service import advance_progress
from installflow.domain.value_object import InstallState


class SQLiteProgressStore(ProgressStore):
    """SQLite-based store for install progress records."""

    def __init__(self, db_path: str = ":memory:"):
        """
        Initialize the SQLite progress store.

        :param db_path: Path to SQLite database file (defaults to in-memory)
        :type db_path: str
        """
        self.db_path = db_path
        self._conn = None
        self._lock = threading.Lock()
        self._init_database()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        return self._conn

    def _init_database(self):
        """Initialize the database schema."""
        conn = self._get_connection()
        conn.execute("""
            CREATE TABLE IF NOT EXISTS install_progress (
                install_id TEXT PRIMARY KEY,
                state TEXT NOT NULL,
                last_error TEXT,
                updated_at REAL NOT NULL
            )
        """)
        conn.commit()

    def _fetch(self, conn: sqlite3.Connection, install_id: str) -> InstallProgress:
        row = conn.execute(
            "SELECT state, last_error, updated_at FROM install_progress WHERE install_id = ?", (install_id,)
        ).fetchone()
        if row is None:
            raise InstallNotFoundError(install_id)
        state, last_error, updated_at = row
        return InstallProgress(
            install_id=install_id, state=InstallState(state), last_error=last_error, updated_at=updated_at
        )

    def create(self, install_id: str) -> InstallProgress:
        progress = InstallProgress(install_id=install_id, state=InstallState.INIT, updated_at=time.time())
        with self._lock:
            conn = self._get_connection()
            try:
                with conn:
                    conn.execute(
                        "INSERT INTO install_progress (install_id, state, last_error, updated_at) VALUES (?, ?, ?, ?)",
                        (install_id, progress.state.value, None, progress.updated_at),
                    )
            except sqlite3.IntegrityError:
                raise InstallAlreadyExistsError(install_id) from None
        return progress

    def transition(self, install_id: str, state: InstallState, error: str | None = None) -> InstallProgress:
        with self._lock:
            conn = self._get_connection()
            progress = advance_progress(self._fetch(conn, install_id), state, error)
            with conn:
                conn.execute(
                    "UPDATE install_progress SET state = ?, last_error = ?, updated_at = ? WHERE install_id = ?",
                    (progress.state.value, progress.last_error, progress.updated_at, install_id),
                )
        return progress

    def get(self, install_id: str) -> InstallProgress:
        with self._lock:
            return self._fetch(self._get_connection(), install_id)

    def remove(self, install_id: str) -> None:
        with self._lock:
            conn = self._get_connection()
            with conn:
                cursor = conn.execute("DELETE FROM install_progress WHERE install_id = ?", (install_id,))
            if cursor.rowcount == 0:
                raise InstallNotFoundError(install_id)

    def list_ids(self) -> list[str]:
        with self._lock:
            rows = self._get_connection().execute(
                "SELECT install_id FROM install_progress ORDER BY install_id"
            ).fetchall()
        return [row[0] for row in rows]

    def close(self):
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __del__(self):
        """Close the database connection on cleanup."""
        if self._conn:
            self._conn.close()
