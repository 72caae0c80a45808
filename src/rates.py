import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from src.db import get_connection, get_metal_rates, upsert_metal_rates
from src.models import RateSnapshot

logger = logging.getLogger(__name__)

RateFetcher = Callable[[], Mapping[str, Any]]
RateListener = Callable[[RateSnapshot], None]


class RateFetchError(RuntimeError):
    """A rate refresh failed; the previously cached snapshot is still in use."""


class Subscription:
    def __init__(self, registry: "RateRegistry", listener: RateListener):
        self._registry = registry
        self._listener = listener
        self.active = True

    def deliver(self, snapshot: RateSnapshot) -> None:
        if self.active:
            self._listener(snapshot)

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._registry._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


def _coerce_rate(value: Any) -> Optional[float]:
    if value is None:
        return None
    rate = float(value)
    if rate < 0:
        raise ValueError(f"Negative rate {rate}")
    return rate


def snapshot_from_mapping(raw: Mapping[str, Any]) -> RateSnapshot:
    normalized = {str(key).strip().lower(): value for key, value in raw.items()}
    return RateSnapshot(
        gold=_coerce_rate(normalized.get("gold")),
        silver=_coerce_rate(normalized.get("silver")),
    )


class RateRegistry:
    """
    Holds the current gold and silver rates.

    The snapshot is replaced as a whole on every change, so readers always see
    both rates from the same refresh. Reads never wait on a refresh.
    """

    def __init__(self, fetch_rates: RateFetcher, clock: Callable[[], float] = time.monotonic):
        self._fetch_rates = fetch_rates
        self._clock = clock
        self._snapshot = RateSnapshot()
        self._subscriptions: list[Subscription] = []
        self._subscriptions_lock = threading.Lock()
        self._refresh_lock = threading.Lock()
        self.last_refreshed_at: Optional[float] = None

    def get_rates(self) -> RateSnapshot:
        return self._snapshot

    def subscribe(self, on_change: RateListener) -> Subscription:
        subscription = Subscription(self, on_change)
        with self._subscriptions_lock:
            self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        with self._subscriptions_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._subscriptions_lock:
            return len(self._subscriptions)

    def refresh(self) -> RateSnapshot:
        if not self._refresh_lock.acquire(blocking=False):
            return self._snapshot
        try:
            try:
                fresh = snapshot_from_mapping(self._fetch_rates())
            except Exception as exc:
                logger.warning("Rate refresh failed, keeping cached rates %s: %s", self._snapshot, exc)
                raise RateFetchError(f"Could not load metal rates: {exc}") from exc

            previous = self._snapshot
            self._snapshot = fresh
            self.last_refreshed_at = self._clock()

            # Delivered under the refresh lock so listeners see changes in order.
            if fresh != previous:
                logger.info("Metal rates changed: gold=%s silver=%s", fresh.gold, fresh.silver)
                self._notify(fresh)
        finally:
            self._refresh_lock.release()
        return fresh

    def refresh_if_stale(self, max_age_seconds: float) -> RateSnapshot:
        if self.last_refreshed_at is None or self._clock() - self.last_refreshed_at >= max_age_seconds:
            return self.refresh()
        return self._snapshot

    def _notify(self, snapshot: RateSnapshot) -> None:
        with self._subscriptions_lock:
            listeners = list(self._subscriptions)
        for subscription in listeners:
            try:
                subscription.deliver(snapshot)
            except Exception:
                logger.exception("Rate listener failed")


def store_rate_fetcher(db_path: Optional[Path] = None) -> RateFetcher:
    """Reads rates with a short-lived connection so any thread can refresh."""

    def fetch() -> dict[str, Optional[float]]:
        conn = get_connection(db_path)
        try:
            return get_metal_rates(conn)
        finally:
            conn.close()

    return fetch


def update_rates(
    conn: sqlite3.Connection,
    registry: RateRegistry,
    rates: Mapping[str, Any],
    source: str = "admin",
) -> RateSnapshot:
    upsert_metal_rates(conn, dict(rates), source)
    return registry.refresh()
