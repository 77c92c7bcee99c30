# oauthkit/tokens/sqlite_store.py
import logging
import sqlite3
import threading
from typing import List, Optional, Union

from pydantic import ValidationError

from ..storage.sqlite_base import get_sqlite_db_connection
from .models import AccessToken, Consumer, RequestToken, TokenStatus, token_adapter
from .storage_interfaces import AbstractConsumerStore, AbstractTokenStore, AnyToken

logger = logging.getLogger(__name__)

# Serialises every statement on the shared connection
_store_lock = threading.RLock()


class _SQLiteStoreBase:

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn = get_sqlite_db_connection(db_path)

    def _execute_query(self, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a write query with automatic commit/rollback handling."""
        cursor = self._conn.cursor()
        try:
            cursor.execute(query, params)
            self._conn.commit()
        except sqlite3.IntegrityError:
            self._conn.rollback()
            raise
        except sqlite3.Error as e:
            logger.error(f"SQLite error: {e}", exc_info=True)
            self._conn.rollback()
            raise
        return cursor

    def _fetchall(self, query: str, params: tuple = ()) -> List[sqlite3.Row]:
        cursor = self._conn.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        except sqlite3.Error as e:
            logger.error(f"SQLite error: {e}", exc_info=True)
            raise

    def _fetchone(self, query: str, params: tuple = ()) -> Optional[sqlite3.Row]:
        rows = self._fetchall(query, params)
        return rows[0] if rows else None


class SQLiteTokenStore(_SQLiteStoreBase, AbstractTokenStore):
    """Token store persisted to SQLite as JSON documents."""

    def __init__(self, db_path: str):
        super().__init__(db_path)
        logger.info(f"SQLiteTokenStore initialized at '{db_path}'.")

    def _row_to_token(self, row: Optional[sqlite3.Row]) -> Optional[AnyToken]:
        if not row:
            return None
        try:
            return token_adapter.validate_json(row["token_data"])
        except ValidationError as e:
            logger.error(f"Error deserializing token: {e}", exc_info=True)
            return None

    def _get(self, token: str, token_type: Optional[str] = None) -> Optional[AnyToken]:
        query = "SELECT token_data FROM oauth_tokens WHERE token = ?"
        params: tuple = (token,)
        if token_type is not None:
            query += " AND token_type = ?"
            params += (token_type,)
        with _store_lock:
            return self._row_to_token(self._fetchone(query, params))

    def add(self, token: AnyToken) -> bool:
        query = '''
            INSERT INTO oauth_tokens (token, token_type, consumer_key, user_id, token_data)
            VALUES (?, ?, ?, ?, ?)
        '''
        params = (token.token, token.token_type, token.consumer_key, token.authenticated_user, token.model_dump_json())
        with _store_lock:
            try:
                self._execute_query(query, params)
            except sqlite3.IntegrityError:
                return False
        logger.debug(f"Stored {token.token_type} token for consumer '{token.consumer_key}'")
        return True

    def contains(self, token: str) -> bool:
        return self._get(token) is not None

    def contains_request_token(self, token: str) -> bool:
        return self._get(token, "request") is not None

    def contains_access_token(self, token: str) -> bool:
        return self._get(token, "access") is not None

    def get_request_token(self, token: str) -> Optional[RequestToken]:
        return self._get(token, "request")

    def get_access_token(self, token: str) -> Optional[AccessToken]:
        return self._get(token, "access")

    def update(self, token: AnyToken) -> bool:
        query = '''
            UPDATE oauth_tokens SET consumer_key = ?, user_id = ?, token_data = ?
            WHERE token = ? AND token_type = ?
        '''
        params = (token.consumer_key, token.authenticated_user, token.model_dump_json(), token.token, token.token_type)
        with _store_lock:
            return self._execute_query(query, params).rowcount > 0

    def compare_and_update(self, token: AnyToken, expected_status: TokenStatus) -> bool:
        query = '''
            UPDATE oauth_tokens SET consumer_key = ?, user_id = ?, token_data = ?
            WHERE token = ? AND token_type = ? AND json_extract(token_data, '$.status') = ?
        '''
        params = (
            token.consumer_key, token.authenticated_user, token.model_dump_json(),
            token.token, token.token_type, expected_status.value,
        )
        with _store_lock:
            return self._execute_query(query, params).rowcount > 0

    def remove(self, token: Union[AnyToken, str]) -> bool:
        key = token if isinstance(token, str) else token.token
        with _store_lock:
            return self._execute_query("DELETE FROM oauth_tokens WHERE token = ?", (key,)).rowcount > 0

    def _query_tokens(self, query: str, params: tuple) -> List[AnyToken]:
        with _store_lock:
            rows = self._fetchall(query, params)
        return [t for t in (self._row_to_token(row) for row in rows) if t is not None]

    def get_tokens_by_user(self, user: str, consumer_key: Optional[str] = None) -> List[AnyToken]:
        if consumer_key is None:
            return self._query_tokens("SELECT token_data FROM oauth_tokens WHERE user_id = ?", (user,))
        return self._query_tokens(
            "SELECT token_data FROM oauth_tokens WHERE user_id = ? AND consumer_key = ?", (user, consumer_key)
        )

    def get_tokens_by_consumer(self, consumer_key: str) -> List[AnyToken]:
        return self._query_tokens("SELECT token_data FROM oauth_tokens WHERE consumer_key = ?", (consumer_key,))


class SQLiteConsumerStore(_SQLiteStoreBase, AbstractConsumerStore):

    def __init__(self, db_path: str):
        super().__init__(db_path)
        logger.info(f"SQLiteConsumerStore initialized at '{db_path}'.")

    def add_consumer(self, consumer: Consumer) -> bool:
        with _store_lock:
            try:
                self._execute_query(
                    "INSERT INTO oauth_consumers (consumer_key, consumer_data) VALUES (?, ?)",
                    (consumer.key, consumer.model_dump_json()),
                )
            except sqlite3.IntegrityError:
                return False
        return True

    def update_consumer(self, consumer: Consumer) -> bool:
        with _store_lock:
            cursor = self._execute_query(
                "UPDATE oauth_consumers SET consumer_data = ? WHERE consumer_key = ?",
                (consumer.model_dump_json(), consumer.key),
            )
            return cursor.rowcount > 0

    def remove_consumer(self, consumer_key: str) -> bool:
        with _store_lock:
            return self._execute_query(
                "DELETE FROM oauth_consumers WHERE consumer_key = ?", (consumer_key,)
            ).rowcount > 0

    def get_consumer(self, consumer_key: str) -> Optional[Consumer]:
        with _store_lock:
            row = self._fetchone("SELECT consumer_data FROM oauth_consumers WHERE consumer_key = ?", (consumer_key,))
        if not row:
            return None
        return Consumer.model_validate_json(row["consumer_data"])
