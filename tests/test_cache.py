"""Tests for the in-memory ledger cache."""

from royalty_ledger.services.cache import InMemoryLedgerCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestInMemoryLedgerCache:
    def test_get_returns_value_until_expiry(self):
        clock = FakeClock()
        cache = InMemoryLedgerCache(clock=clock)

        cache.set("ledger:a", "value", ttl_seconds=60)
        assert cache.get("ledger:a") == "value"

        clock.now += 59
        assert cache.get("ledger:a") == "value"

        clock.now += 1
        assert cache.get("ledger:a") is None

    def test_missing_key(self):
        assert InMemoryLedgerCache().get("nope") is None

    def test_invalidate(self):
        cache = InMemoryLedgerCache(clock=FakeClock())
        cache.set("ledger:a", 1, ttl_seconds=60)
        cache.set("ledger:b", 2, ttl_seconds=60)

        cache.invalidate("ledger:a")
        cache.invalidate("ledger:missing")

        assert cache.get("ledger:a") is None
        assert cache.get("ledger:b") == 2

    def test_non_positive_ttl_disables_caching(self):
        cache = InMemoryLedgerCache(clock=FakeClock())
        cache.set("ledger:a", 1, ttl_seconds=0)
        assert cache.get("ledger:a") is None

    def test_instances_do_not_share_state(self):
        first = InMemoryLedgerCache(clock=FakeClock())
        second = InMemoryLedgerCache(clock=FakeClock())

        first.set("ledger:a", 1, ttl_seconds=60)

        assert second.get("ledger:a") is None
        first.clear()
        assert first.get("ledger:a") is None
