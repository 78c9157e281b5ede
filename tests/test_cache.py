import logging
import threading
import time

import redis
from pydantic import TypeAdapter

from app.core.cache import ReadCache
from app.core.locks import VehicleLocks
from app.core.performance import log_slow_operation

STR_ADAPTER = TypeAdapter(str | None)


def _counting_loader(value="value"):
    calls = []

    def load():
        calls.append(1)
        return value

    return load, calls


def _cache(client, ttl_seconds: int = 60) -> ReadCache:
    return ReadCache(None, ttl_seconds, client=client)


# ============================================================================
# READ CACHE TESTS
# ============================================================================


def test_cache_returns_loaded_value_on_hit(redis_client):
    cache = _cache(redis_client)
    load, calls = _counting_loader()

    assert cache.get_or_load(("rental", 1), load, STR_ADAPTER) == "value"
    assert cache.get_or_load(("rental", 1), load, STR_ADAPTER) == "value"
    assert len(calls) == 1


def test_cache_entries_expire_with_ttl(redis_client):
    cache = _cache(redis_client, ttl_seconds=30)

    cache.get_or_load(("rental", 1), lambda: "value", STR_ADAPTER)

    keys = list(redis_client.scan_iter(match="rental:data:*"))
    assert len(keys) == 1
    assert 0 < redis_client.ttl(keys[0]) <= 30


def test_cache_keys_are_independent(redis_client):
    cache = _cache(redis_client)

    assert cache.get_or_load(("rental", 1), lambda: "one", STR_ADAPTER) == "one"
    assert cache.get_or_load(("rental", 2), lambda: "two", STR_ADAPTER) == "two"


def test_cache_caches_none(redis_client):
    cache = _cache(redis_client)
    load, calls = _counting_loader(value=None)

    assert cache.get_or_load(("rental", 9), load, STR_ADAPTER) is None
    assert cache.get_or_load(("rental", 9), load, STR_ADAPTER) is None
    assert len(calls) == 1


def test_cache_invalidate_drops_all_entries(redis_client):
    cache = _cache(redis_client)
    load, calls = _counting_loader()

    cache.get_or_load(("rental", 1), load, STR_ADAPTER)
    cache.invalidate()

    assert list(redis_client.scan_iter(match="rental:data:*")) == []
    cache.get_or_load(("rental", 1), load, STR_ADAPTER)
    assert len(calls) == 2


def test_invalidate_reaches_other_workers(redis_client):
    """Two processes share Redis: a write in one is seen by reads in the other."""
    worker_a = _cache(redis_client)
    worker_b = _cache(redis_client)

    assert worker_a.get_or_load(("rentals", 1), lambda: "before", STR_ADAPTER) == "before"
    worker_b.invalidate()

    assert worker_a.get_or_load(("rentals", 1), lambda: "after", STR_ADAPTER) == "after"


def test_load_overlapping_invalidate_is_not_cached(redis_client):
    """A read that started before a write must not put pre-write data back."""
    cache = _cache(redis_client)
    database = {"value": "old"}
    loaded = threading.Event()
    release = threading.Event()
    results = []

    def slow_load():
        value = database["value"]
        loaded.set()
        release.wait(timeout=5)
        return value

    reader = threading.Thread(
        target=lambda: results.append(cache.get_or_load(("rental", 1), slow_load, STR_ADAPTER))
    )
    reader.start()
    assert loaded.wait(timeout=5)

    database["value"] = "new"
    cache.invalidate()
    release.set()
    reader.join(timeout=5)

    assert results == ["old"]
    assert list(redis_client.scan_iter(match="rental:data:*")) == []
    assert cache.get_or_load(("rental", 1), lambda: database["value"], STR_ADAPTER) == "new"


def test_cache_disabled_with_zero_ttl(redis_client):
    cache = _cache(redis_client, ttl_seconds=0)
    load, calls = _counting_loader()

    assert cache.enabled is False
    cache.get_or_load(("rental", 1), load, STR_ADAPTER)
    cache.get_or_load(("rental", 1), load, STR_ADAPTER)
    assert len(calls) == 2
    assert list(redis_client.scan_iter()) == []


def test_cache_disabled_without_redis_url():
    cache = ReadCache(None, 60)
    load, calls = _counting_loader()

    assert cache.enabled is False
    cache.get_or_load(("rental", 1), load, STR_ADAPTER)
    cache.invalidate()
    assert len(calls) == 1


def test_cache_falls_back_to_loader_when_redis_fails(caplog):
    class UnreachableRedis:
        def get(self, key):
            raise redis.ConnectionError("connection refused")

    cache = _cache(UnreachableRedis())
    caplog.set_level(logging.WARNING, logger="app.core.cache")

    assert cache.get_or_load(("rental", 1), lambda: "from db", STR_ADAPTER) == "from db"
    assert "Rental cache read failed" in caplog.text


# ============================================================================
# SLOW OPERATION LOGGING TESTS
# ============================================================================


def test_slow_operation_logs_warning(caplog):
    caplog.set_level(logging.WARNING, logger="app.core.performance")

    with log_slow_operation("list_rentals", threshold_seconds=0):
        sum(range(1000))

    assert "Slow operation list_rentals" in caplog.text


def test_fast_operation_is_silent(caplog):
    caplog.set_level(logging.WARNING, logger="app.core.performance")

    with log_slow_operation("get_rental", threshold_seconds=60):
        pass

    assert caplog.text == ""


# ============================================================================
# VEHICLE LOCK TESTS
# ============================================================================


def test_vehicle_locks_serialize_same_vehicle():
    locks = VehicleLocks()
    inside = []
    overlap = []
    guard = threading.Lock()
    start = threading.Barrier(4)

    def worker():
        start.wait(timeout=5)
        with locks.hold(1):
            with guard:
                inside.append(1)
                if len(inside) > 1:
                    overlap.append(1)
            time.sleep(0.01)
            with guard:
                inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert overlap == []


def test_vehicle_locks_do_not_block_other_vehicles():
    locks = VehicleLocks()

    with locks.hold(1):
        acquired = threading.Event()

        def other():
            with locks.hold(2):
                acquired.set()

        thread = threading.Thread(target=other)
        thread.start()
        thread.join(timeout=5)

    assert acquired.is_set()
