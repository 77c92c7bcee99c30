# oauthkit/storage/sqlite_base.py
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# One connection per database path for the application lifecycle
_db_connections: Dict[str, sqlite3.Connection] = {}
_connections_lock = threading.Lock()


def get_sqlite_db_connection(db_path: str) -> sqlite3.Connection:
    """
    Get or create the SQLite connection for ``db_path``.

    Ensures the database directory exists and initializes the schema on
    first connection.

    Returns:
        sqlite3.Connection: The database connection instance

    Raises:
        sqlite3.Error: If database connection fails
    """
    resolved = db_path if db_path == ":memory:" else str(Path(db_path).resolve())
    with _connections_lock:
        conn = _db_connections.get(resolved)
        if conn is not None:
            return conn
        try:
            if resolved != ":memory:":
                Path(resolved).parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Attempting to connect to SQLite DB at: {resolved}")

            conn = sqlite3.connect(resolved, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            init_sqlite_db(conn)
        except sqlite3.Error as e:
            logger.error(f"Error connecting to SQLite database at {resolved}: {e}", exc_info=True)
            raise
        _db_connections[resolved] = conn
        logger.info(f"Successfully connected to SQLite DB: {resolved}")
        return conn


def init_sqlite_db(conn: sqlite3.Connection) -> None:
    """Create the token and consumer tables if they do not exist."""
    cursor = conn.cursor()

    # Request and access tokens share one table so token strings are unique across both
    cursor.execute('''
    CREATE TABLE IF NOT EXISTS oauth_tokens (
        token TEXT PRIMARY KEY,
        token_type TEXT NOT NULL,
        consumer_key TEXT NOT NULL,
        user_id TEXT,
        token_data TEXT NOT NULL
    )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_oauth_tokens_consumer ON oauth_tokens (consumer_key)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_oauth_tokens_user ON oauth_tokens (user_id)')
    logger.info("Ensured 'oauth_tokens' table exists.")

    cursor.execute('''
    CREATE TABLE IF NOT EXISTS oauth_consumers (
        consumer_key TEXT PRIMARY KEY,
        consumer_data TEXT NOT NULL
    )
    ''')
    logger.info("Ensured 'oauth_consumers' table exists.")

    conn.commit()


def close_sqlite_db_connection(db_path: Optional[str] = None) -> None:
    """Close one connection, or all of them when ``db_path`` is None."""
    with _connections_lock:
        if db_path is None:
            paths = list(_db_connections)
        else:
            paths = [db_path if db_path == ":memory:" else str(Path(db_path).resolve())]
        for path in paths:
            conn = _db_connections.pop(path, None)
            if conn is not None:
                logger.info(f"Closing SQLite DB connection: {path}")
                conn.close()
