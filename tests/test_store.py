"""
Tests for resque_status.store module.

Covers:
- InMemoryStatusStore: Redis key semantics for hashes, strings, and sets
- RedisStatusStore: command mapping and error translation (mocked client)
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

redis = pytest.importorskip("redis")

from resque_status.errors import ErrorCategory, StoreUnavailableError
from resque_status.store import InMemoryStatusStore, RedisStatusStore


class TestInMemoryStatusStore:
    """Test InMemoryStatusStore backend."""

    def test_hash_operations(self):
        store = InMemoryStatusStore()
        store.hset("h", "1", "a")
        store.hset("h", "2", "b")
        store.hset("h", "1", "c")
        assert store.hgetall("h") == {"1": "c", "2": "b"}
        assert sorted(store.hkeys("h")) == ["1", "2"]
        assert store.hdel("h", "1") == 1
        assert store.hdel("h", "1") == 0

    def test_missing_keys_read_empty(self):
        store = InMemoryStatusStore()
        assert store.hgetall("h") == {}
        assert store.hkeys("h") == []
        assert store.get("s") is None
        assert store.smembers("p") == set()

    def test_hash_disappears_with_last_field(self):
        store = InMemoryStatusStore()
        store.hset("h", "1", "a")
        store.hdel("h", "1")
        assert store.delete("h") == 0

    def test_string_operations(self):
        store = InMemoryStatusStore()
        store.set("s", "100")
        assert store.get("s") == "100"
        store.set("s", "200")
        assert store.get("s") == "200"

    def test_delete_counts_existing_keys(self):
        store = InMemoryStatusStore()
        store.hset("h", "1", "a")
        store.sadd("p", "w1")
        assert store.delete("h", "p", "missing") == 2
        assert store.delete("h", "p") == 0

    def test_delete_if_equals(self):
        store = InMemoryStatusStore()
        store.set("s", "100")
        assert store.delete_if_equals("s", "200") is False
        assert store.get("s") == "100"
        assert store.delete_if_equals("s", "100") is True
        assert store.get("s") is None
        assert store.delete_if_equals("s", "100") is False

    def test_set_operations(self):
        store = InMemoryStatusStore()
        assert store.sadd("p", "w1") == 1
        assert store.sadd("p", "w1") == 0
        assert store.smembers("p") == {"w1"}
        assert store.srem("p", "w1") == 1
        assert store.srem("p", "w1") == 0
        assert store.smembers("p") == set()

    def test_returned_collections_are_copies(self):
        store = InMemoryStatusStore()
        store.sadd("p", "w1")
        members = store.smembers("p")
        members.add("w2")
        assert store.smembers("p") == {"w1"}

    def test_set_replaces_other_types(self):
        """A key holds one type at a time, as in Redis."""
        store = InMemoryStatusStore()
        store.hset("k", "1", "a")
        store.set("k", "v")
        assert store.hgetall("k") == {}
        assert store.get("k") == "v"


class TestRedisStatusStore:
    """Test RedisStatusStore against a mocked redis client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def store(self, client):
        return RedisStatusStore(client)

    def test_registers_compare_and_delete_script(self, client, store):
        client.register_script.assert_called_once()
        script_source = client.register_script.call_args[0][0]
        assert "GET" in script_source and "DEL" in script_source

    def test_from_url(self, monkeypatch):
        mock_from_url = MagicMock(return_value=MagicMock())
        monkeypatch.setattr(redis, "from_url", mock_from_url)

        RedisStatusStore.from_url("redis://custom:6380/1", socket_timeout=2.0)
        mock_from_url.assert_called_once_with(
            "redis://custom:6380/1", decode_responses=True, socket_timeout=2.0
        )

    def test_hash_commands(self, client, store):
        client.hgetall.return_value = {"1": "a"}
        client.hkeys.return_value = ["1"]
        client.hdel.return_value = 1

        store.hset("ResqueWorker", "1", "a")
        client.hset.assert_called_once_with("ResqueWorker", "1", "a")
        assert store.hgetall("ResqueWorker") == {"1": "a"}
        assert store.hkeys("ResqueWorker") == ["1"]
        assert store.hdel("ResqueWorker", "1") == 1

    def test_string_commands(self, client, store):
        client.get.return_value = "100"
        store.set("ResqueSchedulerWorker", "100")
        client.set.assert_called_once_with("ResqueSchedulerWorker", "100")
        assert store.get("ResqueSchedulerWorker") == "100"

    def test_multi_key_delete_is_one_command(self, client, store):
        client.delete.return_value = 2
        assert store.delete("ResqueWorker", "PausedWorker") == 2
        client.delete.assert_called_once_with("ResqueWorker", "PausedWorker")

    def test_delete_without_keys(self, client, store):
        assert store.delete() == 0
        client.delete.assert_not_called()

    def test_delete_if_equals_runs_script(self, client, store):
        script = client.register_script.return_value
        script.return_value = 1
        assert store.delete_if_equals("ResqueSchedulerWorker", "100") is True
        script.assert_called_once_with(keys=["ResqueSchedulerWorker"], args=["100"])

        script.return_value = 0
        assert store.delete_if_equals("ResqueSchedulerWorker", "100") is False

    def test_set_commands(self, client, store):
        client.sadd.return_value = 1
        client.srem.return_value = 0
        client.smembers.return_value = {"w1"}
        assert store.sadd("PausedWorker", "w1") == 1
        assert store.srem("PausedWorker", "w2") == 0
        assert store.smembers("PausedWorker") == {"w1"}

    @pytest.mark.parametrize(
        "error",
        [
            redis.ConnectionError("Connection refused"),
            redis.TimeoutError("Timeout reading from socket"),
            redis.ResponseError("WRONGTYPE Operation against a key"),
        ],
    )
    def test_errors_become_store_unavailable(self, client, store, error):
        client.hgetall.side_effect = error
        with pytest.raises(StoreUnavailableError) as exc_info:
            store.hgetall("ResqueWorker")

        exc = exc_info.value
        assert exc.cause is error
        assert exc.__cause__ is error
        assert exc.retryable is True
        assert exc.category == ErrorCategory.STORE
        assert exc.context.key == "ResqueWorker"
        assert exc.context.command == "HGETALL"

    def test_script_errors_become_store_unavailable(self, client, store):
        client.register_script.return_value.side_effect = redis.ConnectionError("gone")
        with pytest.raises(StoreUnavailableError):
            store.delete_if_equals("ResqueSchedulerWorker", "100")
