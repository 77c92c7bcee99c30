# oauthkit/nonces.py
"""
Nonce generation for consumers, and replay detection for providers keyed by
(consumer key, nonce, timestamp) within a bounded timestamp window.
"""
import logging
import secrets
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Set, Tuple

import redis

from . import problems
from .problems import ProblemReport, ProblemType

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 600


class NonceProvider:
    """Generates the nonce and timestamp for an outbound signed request."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock

    def generate_nonce(self) -> str:
        return secrets.token_hex(16)

    def generate_timestamp(self) -> str:
        return str(int(self._clock()))


def parse_timestamp(timestamp: Optional[str]) -> Optional[int]:
    """A positive integer timestamp, or None when the value is not one."""
    if timestamp is None or not (timestamp.isascii() and timestamp.isdigit()):
        return None
    value = int(timestamp)
    return value if value > 0 else None


class AbstractRequestIdValidator(ABC):
    """Atomically checks and records request identifiers."""

    def __init__(self, window_seconds: int = DEFAULT_WINDOW_SECONDS, clock: Callable[[], float] = time.time):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.window_seconds = window_seconds
        self._clock = clock

    @property
    def half_window(self) -> int:
        return self.window_seconds // 2

    def check_timestamp(self, timestamp: Optional[str]) -> Tuple[Optional[int], Optional[ProblemReport]]:
        now = int(self._clock())
        value = parse_timestamp(timestamp)
        if value is None or abs(value - now) > self.half_window:
            logger.warning(f"Timestamp '{timestamp}' refused; server time is {now}")
            return None, problems.timestamp_refused(now - self.half_window, now + self.half_window)
        return value, None

    def check_and_record(self, consumer_key: str, nonce: str, timestamp: Optional[str]) -> Optional[ProblemReport]:
        """
        Validate the timestamp and record the nonce in one indivisible step.

        Returns:
            None when the request id is fresh, otherwise timestamp_refused or nonce_used.
        """
        value, problem = self.check_timestamp(timestamp)
        if problem is not None:
            return problem
        if not self._record(consumer_key, nonce, value):
            logger.warning(f"Nonce replay detected for consumer '{consumer_key}'")
            return problems.simple(ProblemType.NONCE_USED)
        return None

    @abstractmethod
    def _record(self, consumer_key: str, nonce: str, timestamp: int) -> bool:
        """Record the request id; False if it was already recorded."""
        pass


class InMemoryRequestIdValidator(AbstractRequestIdValidator):
    """Nonces bucketed by timestamp; buckets older than half the window are pruned."""

    def __init__(self, window_seconds: int = DEFAULT_WINDOW_SECONDS, clock: Callable[[], float] = time.time):
        super().__init__(window_seconds, clock)
        self._lock = threading.Lock()
        self._nonces: Dict[int, Set[Tuple[str, str]]] = {}

    def _record(self, consumer_key: str, nonce: str, timestamp: int) -> bool:
        with self._lock:
            self._prune(int(self._clock()))
            bucket = self._nonces.setdefault(timestamp, set())
            if (consumer_key, nonce) in bucket:
                return False
            bucket.add((consumer_key, nonce))
            return True

    def _prune(self, now: int) -> None:
        cutoff = now - self.half_window
        for timestamp in [t for t in self._nonces if t < cutoff]:
            del self._nonces[timestamp]

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._nonces.values())


class RedisRequestIdValidator(AbstractRequestIdValidator):
    """Request ids stored with ``SET NX EX`` so the check and the write are one command."""
    _redis_client: Optional[redis.Redis] = None

    def __init__(
        self,
        client: Optional[redis.Redis] = None,
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        key_prefix: str = "oauthkit:nonce:",
        clock: Callable[[], float] = time.time,
    ):
        super().__init__(window_seconds, clock)
        self._redis_client = client
        self.key_prefix = key_prefix
        logger.info(f"RedisRequestIdValidator initialized. Window: {window_seconds}s.")

    def initialize(self, host: str = "localhost", port: int = 6379, db: int = 0,
                   password: Optional[str] = None, ssl: bool = False) -> None:
        """Establish the Redis connection when no client was injected."""
        if self._redis_client:
            return

        connection_params = {"host": host, "port": port, "db": db, "ssl": ssl, "decode_responses": False}
        if password:
            connection_params["password"] = password

        try:
            self._redis_client = redis.Redis(**connection_params)
            self._redis_client.ping()
            logger.info("RedisRequestIdValidator: Successfully connected to Redis.")
        except redis.RedisError as e:
            logger.error(f"RedisRequestIdValidator: Failed to connect: {e}", exc_info=True)
            self._redis_client = None
            raise

    def teardown(self) -> None:
        if self._redis_client:
            self._redis_client.close()
            self._redis_client = None
            logger.info("RedisRequestIdValidator: Connection closed.")

    def _get_client(self) -> redis.Redis:
        if not self._redis_client:
            raise RuntimeError("RedisRequestIdValidator not initialized.")
        return self._redis_client

    def _get_key(self, consumer_key: str, nonce: str, timestamp: int) -> str:
        return f"{self.key_prefix}{consumer_key}:{timestamp}:{nonce}"

    def _record(self, consumer_key: str, nonce: str, timestamp: int) -> bool:
        client = self._get_client()
        try:
            created = client.set(self._get_key(consumer_key, nonce, timestamp), b"1", nx=True, ex=self.window_seconds)
        except redis.RedisError as e:
            logger.error(f"RedisRequestIdValidator: Failed to record nonce: {e}", exc_info=True)
            raise
        return bool(created)
