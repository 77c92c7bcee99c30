"""Tests for nonce generation and request id validation."""

from unittest.mock import MagicMock

import pytest
import redis

from oauthkit.nonces import InMemoryRequestIdValidator, NonceProvider, RedisRequestIdValidator, parse_timestamp
from oauthkit.problems import ProblemType

from .conftest import NOW, fixed_clock


class TestNonceProvider:

    def test_nonces_are_unique(self):
        provider = NonceProvider(clock=fixed_clock)
        assert len({provider.generate_nonce() for _ in range(50)}) == 50

    def test_timestamp_uses_clock(self):
        assert NonceProvider(clock=lambda: 1234.9).generate_timestamp() == "1234"


class TestParseTimestamp:

    @pytest.mark.parametrize("value, expected", [
        ("1700000000", 1700000000),
        ("0", None),
        ("-5", None),
        ("12.5", None),
        ("abc", None),
        ("²", None),
        ("١٢٣", None),
        ("", None),
        (None, None),
    ])
    def test_parse(self, value, expected):
        assert parse_timestamp(value) == expected


class TestInMemoryRequestIdValidator:
    """Tests for the in-memory replay detector."""

    def test_fresh_request_is_accepted_once(self):
        validator = InMemoryRequestIdValidator(window_seconds=600, clock=fixed_clock)
        assert validator.check_and_record("ck", "n1", str(NOW)) is None
        report = validator.check_and_record("ck", "n1", str(NOW))
        assert report.problem == ProblemType.NONCE_USED

    def test_same_nonce_different_consumer_or_timestamp(self):
        validator = InMemoryRequestIdValidator(window_seconds=600, clock=fixed_clock)
        assert validator.check_and_record("ck", "n1", str(NOW)) is None
        assert validator.check_and_record("other", "n1", str(NOW)) is None
        assert validator.check_and_record("ck", "n1", str(NOW - 1)) is None
        assert len(validator) == 3

    @pytest.mark.parametrize("timestamp", [str(NOW - 301), str(NOW + 301), "garbage", None])
    def test_timestamp_outside_window(self, timestamp):
        validator = InMemoryRequestIdValidator(window_seconds=600, clock=fixed_clock)
        report = validator.check_and_record("ck", "n1", timestamp)
        assert report.problem == ProblemType.TIMESTAMP_REFUSED
        assert report.additional_parameter == ("oauth_acceptable_timestamps", f"{NOW - 300}-{NOW + 300}")
        assert len(validator) == 0

    @pytest.mark.parametrize("offset", [-300, 300])
    def test_window_edges_are_inclusive(self, offset):
        validator = InMemoryRequestIdValidator(window_seconds=600, clock=fixed_clock)
        assert validator.check_and_record("ck", "n1", str(NOW + offset)) is None

    def test_old_buckets_are_pruned(self):
        now = [NOW]
        validator = InMemoryRequestIdValidator(window_seconds=600, clock=lambda: now[0])
        validator.check_and_record("ck", "n1", str(NOW))
        now[0] = NOW + 1000
        validator.check_and_record("ck", "n2", str(NOW + 1000))
        assert len(validator) == 1

    def test_window_must_be_positive(self):
        with pytest.raises(ValueError):
            InMemoryRequestIdValidator(window_seconds=0)


class TestRedisRequestIdValidator:
    """Tests for the Redis replay detector against a mocked client."""

    def test_records_with_set_nx(self):
        client = MagicMock()
        client.set.return_value = True
        validator = RedisRequestIdValidator(client=client, window_seconds=600, clock=fixed_clock)

        assert validator.check_and_record("ck", "n1", str(NOW)) is None
        client.set.assert_called_once_with(f"oauthkit:nonce:ck:{NOW}:n1", b"1", nx=True, ex=600)

    def test_existing_key_is_a_replay(self):
        client = MagicMock()
        client.set.return_value = None
        validator = RedisRequestIdValidator(client=client, clock=fixed_clock)
        assert validator.check_and_record("ck", "n1", str(NOW)).problem == ProblemType.NONCE_USED

    def test_refused_timestamp_does_not_touch_redis(self):
        client = MagicMock()
        validator = RedisRequestIdValidator(client=client, clock=fixed_clock)
        assert validator.check_and_record("ck", "n1", "1").problem == ProblemType.TIMESTAMP_REFUSED
        client.set.assert_not_called()

    def test_redis_errors_propagate(self):
        client = MagicMock()
        client.set.side_effect = redis.ConnectionError("down")
        validator = RedisRequestIdValidator(client=client, clock=fixed_clock)
        with pytest.raises(redis.ConnectionError):
            validator.check_and_record("ck", "n1", str(NOW))

    def test_uninitialized(self):
        validator = RedisRequestIdValidator(clock=fixed_clock)
        with pytest.raises(RuntimeError):
            validator.check_and_record("ck", "n1", str(NOW))

    def test_teardown_closes_client(self):
        client = MagicMock()
        validator = RedisRequestIdValidator(client=client)
        validator.teardown()
        client.close.assert_called_once()
