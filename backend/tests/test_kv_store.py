from datetime import datetime, timedelta

from banner_service.services.kv_store import MemoryKeyValueStore, SqlKeyValueStore


def test_sql_store_set_get_delete(db):
    store = SqlKeyValueStore(db)
    assert store.get("k") is None
    store.set("k", "v1")
    store.set("k", "v2")
    assert store.get("k") == "v2"
    store.delete("k")
    assert store.get("k") is None


def test_sql_store_ttl_expiry(db):
    now = [datetime(2030, 1, 1, 12, 0)]
    store = SqlKeyValueStore(db, now=lambda: now[0])
    store.set("cursor", "3", ttl=60)
    assert store.get("cursor") == "3"
    now[0] += timedelta(seconds=61)
    assert store.get("cursor") is None


def test_sql_store_add_only_when_absent(db):
    now = [datetime(2030, 1, 1, 12, 0)]
    store = SqlKeyValueStore(db, now=lambda: now[0])
    assert store.add("secret", "first")
    assert not store.add("secret", "second")
    assert store.get("secret") == "first"

    store.set("temp", "old", ttl=10)
    now[0] += timedelta(seconds=11)
    assert store.add("temp", "new")
    assert store.get("temp") == "new"


def test_memory_store_add_and_ttl():
    clock = [0.0]
    store = MemoryKeyValueStore(clock=lambda: clock[0])
    assert store.add("a", "1")
    assert not store.add("a", "2")
    store.set("b", "x", ttl=5)
    clock[0] = 5.0
    assert store.get("b") is None
    assert store.get("a") == "1"
