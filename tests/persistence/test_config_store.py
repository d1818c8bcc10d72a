"""Tests for the in-memory and SQLite config stores."""

import pytest

from algo_app.errors import PersistenceError
from algo_app.persistence import InMemoryConfigStore, SQLiteConfigStore


class FakeTime:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path, fake_time):
    if request.param == "memory":
        return InMemoryConfigStore(fake_time)
    return SQLiteConfigStore(str(tmp_path / "config.db"), fake_time)


class TestConfigStoreContract:
    """Behaviour shared by every store implementation."""

    def test_set_and_get(self, any_store):
        any_store.set("algorithm_config:algo_1", {"name": "test", "symbols": ["EURUSD"]})
        assert any_store.get("algorithm_config:algo_1") == {"name": "test", "symbols": ["EURUSD"]}

    def test_missing_key(self, any_store):
        assert any_store.get("missing") is None

    def test_ttl_expiry(self, any_store, fake_time):
        any_store.set("risk_metrics:default", {"risk_score": 10.0}, ttl=60)
        fake_time.now += 59
        assert any_store.get("risk_metrics:default") == {"risk_score": 10.0}
        fake_time.now += 1
        assert any_store.get("risk_metrics:default") is None

    @pytest.mark.parametrize("ttl", [None, 0, -5])
    def test_non_positive_ttl_never_expires(self, any_store, fake_time, ttl):
        any_store.set("key", 1, ttl=ttl)
        fake_time.now += 10 ** 9
        assert any_store.get("key") == 1

    def test_delete(self, any_store):
        any_store.set("key", "value")
        assert any_store.delete("key") is True
        assert any_store.delete("key") is False
        assert any_store.get("key") is None

    def test_keys_by_prefix(self, any_store, fake_time):
        any_store.set("algorithm_state:b", {})
        any_store.set("algorithm_state:a", {})
        any_store.set("algorithm_config:a", {})
        any_store.set("algorithm_state:gone", {}, ttl=1)
        fake_time.now += 2
        assert any_store.keys("algorithm_state:") == ["algorithm_state:a", "algorithm_state:b"]

    def test_prefix_wildcards_are_literal(self, any_store):
        any_store.set("a_b:1", 1)
        any_store.set("axb:1", 2)
        assert any_store.keys("a_b") == ["a_b:1"]

    def test_clear(self, any_store):
        any_store.set("one", 1)
        any_store.set("two", 2)
        any_store.clear()
        assert any_store.keys() == []

    def test_overwrite(self, any_store):
        any_store.set("key", {"version": 1})
        any_store.set("key", {"version": 2})
        assert any_store.get("key") == {"version": 2}


class TestInMemoryConfigStore:
    """Test copy semantics of the in-memory store."""

    def test_values_are_copied(self, fake_time):
        store = InMemoryConfigStore(fake_time)
        value = {"parameters": {"lookback_period": 20}}
        store.set("config", value)

        value["parameters"]["lookback_period"] = 5
        fetched = store.get("config")
        assert fetched["parameters"]["lookback_period"] == 20

        fetched["parameters"]["lookback_period"] = 7
        assert store.get("config")["parameters"]["lookback_period"] == 20


class TestSQLiteConfigStore:
    """Test SQLite persistence specifics."""

    def test_survives_reopen(self, tmp_path, fake_time):
        path = str(tmp_path / "config.db")
        SQLiteConfigStore(path, fake_time).set("algorithm_config:algo_1", {"name": "persisted"})
        assert SQLiteConfigStore(path, fake_time).get("algorithm_config:algo_1") == {"name": "persisted"}

    def test_purge_expired(self, tmp_path, fake_time):
        store = SQLiteConfigStore(str(tmp_path / "config.db"), fake_time)
        store.set("short", 1, ttl=10)
        store.set("long", 2, ttl=100)
        store.set("forever", 3)

        fake_time.now += 50
        assert store.purge_expired() == 1
        assert store.keys() == ["forever", "long"]

    def test_non_json_value_raises(self, tmp_path, fake_time):
        store = SQLiteConfigStore(str(tmp_path / "config.db"), fake_time)
        with pytest.raises(PersistenceError) as exc_info:
            store.set("bad", {"value": object()})
        assert exc_info.value.target == "bad"
