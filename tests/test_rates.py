import threading

import pytest

from src.db import get_connection, init_db
from src.models import RateSnapshot
from src.rates import RateFetchError, RateRegistry, snapshot_from_mapping, store_rate_fetcher, update_rates


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def source():
    return {"gold": 6000.0, "silver": 80.0}


@pytest.fixture
def registry(source):
    return RateRegistry(lambda: dict(source))


def test_empty_until_first_refresh(registry):
    assert registry.get_rates() == RateSnapshot()
    assert registry.refresh() == RateSnapshot(gold=6000.0, silver=80.0)
    assert registry.get_rates() == RateSnapshot(gold=6000.0, silver=80.0)


def test_subscribers_are_notified_on_change_only(registry, source):
    seen = []
    registry.subscribe(seen.append)
    registry.refresh()
    registry.refresh()
    source["gold"] = 6100.0
    registry.refresh()
    assert seen == [RateSnapshot(6000.0, 80.0), RateSnapshot(6100.0, 80.0)]


def test_unsubscribe_stops_delivery_and_is_idempotent(registry, source):
    seen = []
    subscription = registry.subscribe(seen.append)
    assert registry.subscriber_count == 1
    subscription.unsubscribe()
    subscription.unsubscribe()
    assert registry.subscriber_count == 0
    registry.refresh()
    assert seen == []


def test_subscription_as_context_manager(registry):
    with registry.subscribe(lambda snapshot: None):
        assert registry.subscriber_count == 1
    assert registry.subscriber_count == 0


def test_failing_listener_does_not_block_others(registry):
    seen = []

    def broken(snapshot):
        raise RuntimeError("boom")

    registry.subscribe(broken)
    registry.subscribe(seen.append)
    registry.refresh()
    assert len(seen) == 1


def test_failed_refresh_keeps_cached_rates(source):
    calls = {"fail": False}

    def fetch():
        if calls["fail"]:
            raise OSError("database locked")
        return dict(source)

    registry = RateRegistry(fetch)
    registry.refresh()
    calls["fail"] = True
    with pytest.raises(RateFetchError):
        registry.refresh()
    assert registry.get_rates() == RateSnapshot(gold=6000.0, silver=80.0)


def test_negative_rate_is_a_failed_refresh(source, registry):
    registry.refresh()
    source["silver"] = -1
    with pytest.raises(RateFetchError):
        registry.refresh()
    assert registry.get_rates().silver == 80.0


def test_refresh_if_stale_uses_clock(source):
    clock = FakeClock()
    fetches = []

    def fetch():
        fetches.append(clock.now)
        return dict(source)

    registry = RateRegistry(fetch, clock=clock)
    registry.refresh_if_stale(30)
    clock.now = 10
    registry.refresh_if_stale(30)
    clock.now = 31
    registry.refresh_if_stale(30)
    assert fetches == [0.0, 31]


def test_concurrent_refresh_returns_current_snapshot_without_waiting(source):
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def slow_fetch():
        calls.append(1)
        entered.set()
        release.wait(timeout=5)
        return dict(source)

    registry = RateRegistry(slow_fetch)
    worker = threading.Thread(target=registry.refresh)
    worker.start()
    assert entered.wait(timeout=5)

    assert registry.refresh() == RateSnapshot()
    assert len(calls) == 1

    release.set()
    worker.join(timeout=5)
    assert registry.get_rates() == RateSnapshot(gold=6000.0, silver=80.0)


def test_readers_never_see_mixed_snapshots():
    counter = {"n": 1}

    def fetch():
        counter["n"] += 1
        return {"gold": float(counter["n"]), "silver": float(counter["n"] * 10)}

    registry = RateRegistry(fetch)
    registry.refresh()
    stop = threading.Event()

    def writer():
        while not stop.is_set():
            registry.refresh()

    thread = threading.Thread(target=writer)
    thread.start()
    try:
        for _ in range(2000):
            snapshot = registry.get_rates()
            assert snapshot.silver == snapshot.gold * 10
    finally:
        stop.set()
        thread.join(timeout=5)


def test_snapshot_from_mapping_normalizes_keys():
    assert snapshot_from_mapping({"GOLD": "6000", " Silver ": 80}) == RateSnapshot(6000.0, 80.0)
    assert snapshot_from_mapping({}) == RateSnapshot()
    with pytest.raises(ValueError):
        snapshot_from_mapping({"gold": -5})


def test_update_rates_persists_and_reloads(tmp_path):
    db_path = tmp_path / "store.db"
    conn = get_connection(db_path)
    init_db(conn)
    registry = RateRegistry(store_rate_fetcher(db_path))
    seen = []
    registry.subscribe(seen.append)

    update_rates(conn, registry, {"gold": 6200, "silver": 81.5})

    assert registry.get_rates() == RateSnapshot(gold=6200.0, silver=81.5)
    assert seen == [RateSnapshot(gold=6200.0, silver=81.5)]
    conn.close()
