"""
Tests for the in-memory shortcode registry.
"""
import asyncio
import threading

import pytest

from shortlink_app.models.url import ClickEvent, UrlEntry
from shortlink_app.registry.factory import RegistryBackend, RegistryFactory
from shortlink_app.registry.strategies import InMemoryRegistry, ShortcodeConflictError
from shortlink_app.registry.sweeper import ExpirySweeper


def make_entry(clock, code="abcd", url="https://example.com/a", minutes=30):
    return UrlEntry.create(code, url, minutes, clock())


class TestInMemoryRegistry:
    """Basic registry contract"""

    def test_insert_then_lookup(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock)))

        entry = asyncio.run(registry.lookup("abcd"))
        assert entry.original_url == "https://example.com/a"
        assert asyncio.run(registry.exists("abcd")) is True

    def test_lookup_unknown_code(self, registry):
        assert asyncio.run(registry.lookup("nope")) is None
        assert asyncio.run(registry.exists("nope")) is False

    def test_duplicate_insert_conflicts(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock)))

        with pytest.raises(ShortcodeConflictError):
            asyncio.run(registry.insert(make_entry(clock, url="https://other.example.com")))

        # The first mapping is untouched
        assert asyncio.run(registry.lookup("abcd")).original_url == "https://example.com/a"

    def test_expired_but_unswept_code_still_conflicts(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock, minutes=1)))
        clock.advance(minutes=5)

        with pytest.raises(ShortcodeConflictError):
            asyncio.run(registry.insert(make_entry(clock)))

    def test_append_click(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock)))

        assert asyncio.run(registry.append_click("abcd", ClickEvent(referrer="https://t.co"))) is True
        entry = asyncio.run(registry.lookup("abcd"))
        assert entry.total_clicks == 1
        assert entry.clicks[0].referrer == "https://t.co"

    def test_append_click_unknown_code(self, registry):
        assert asyncio.run(registry.append_click("nope", ClickEvent())) is False

    def test_lookup_returns_a_copy(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock)))

        snapshot = asyncio.run(registry.lookup("abcd"))
        snapshot.clicks.append(ClickEvent())

        assert asyncio.run(registry.lookup("abcd")).total_clicks == 0

    def test_clicks_keep_insertion_order(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock)))
        for i in range(5):
            asyncio.run(registry.append_click("abcd", ClickEvent(referrer=f"ref{i}")))

        entry = asyncio.run(registry.lookup("abcd"))
        assert [c.referrer for c in entry.clicks] == [f"ref{i}" for i in range(5)]


class TestSweep:
    """Expiry sweep"""

    def test_sweep_removes_only_expired(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock, code="short1", minutes=1)))
        asyncio.run(registry.insert(make_entry(clock, code="long01", minutes=60)))
        clock.advance(minutes=2)

        removed = asyncio.run(registry.sweep_expired(clock()))

        assert removed == 1
        assert asyncio.run(registry.exists("short1")) is False
        assert asyncio.run(registry.exists("long01")) is True

    def test_entry_expiring_exactly_now_is_kept(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock, minutes=1)))
        clock.advance(minutes=1)

        assert asyncio.run(registry.sweep_expired(clock())) == 0

    def test_swept_code_can_be_reused(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock, minutes=1)))
        clock.advance(minutes=2)
        asyncio.run(registry.sweep_expired(clock()))

        asyncio.run(registry.insert(make_entry(clock, url="https://example.com/new")))
        assert asyncio.run(registry.lookup("abcd")).original_url == "https://example.com/new"

    def test_sweeper_counts_removed_entries(self, registry, clock):
        asyncio.run(registry.insert(make_entry(clock, minutes=1)))
        clock.advance(minutes=2)
        sweeper = ExpirySweeper(registry, interval=60, clock=clock)

        assert asyncio.run(sweeper.sweep_once()) == 1
        assert sweeper.total_swept == 1


class TestConcurrency:
    """Atomicity under concurrent callers"""

    def test_racing_inserts_admit_one_winner(self, registry, clock):
        """Threads racing on the same custom code: exactly one insert succeeds"""
        outcomes = []
        barrier = threading.Barrier(20)

        def attempt(i):
            barrier.wait()
            try:
                asyncio.run(registry.insert(make_entry(clock, url=f"https://example.com/{i}")))
                outcomes.append("ok")
            except ShortcodeConflictError:
                outcomes.append("conflict")

        threads = [threading.Thread(target=attempt, args=(i,)) for i in range(20)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("ok") == 1
        assert outcomes.count("conflict") == 19
        assert asyncio.run(registry.count()) == 1

    def test_concurrent_appends_are_not_lost(self, registry, clock):
        """Clicks appended from many threads are all recorded"""
        asyncio.run(registry.insert(make_entry(clock)))
        per_thread = 50

        def click_many():
            for _ in range(per_thread):
                asyncio.run(registry.append_click("abcd", ClickEvent()))

        threads = [threading.Thread(target=click_many) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert asyncio.run(registry.lookup("abcd")).total_clicks == 8 * per_thread


class TestRegistryFactory:
    """Test registry factory"""

    def setup_method(self):
        RegistryFactory.clear_instance()

    def teardown_method(self):
        RegistryFactory.clear_instance()

    def test_creates_memory_registry(self):
        assert isinstance(RegistryFactory.create(RegistryBackend.MEMORY), InMemoryRegistry)

    def test_instance_is_shared(self):
        first = RegistryFactory.create(RegistryBackend.MEMORY)
        assert RegistryFactory.create(RegistryBackend.MEMORY) is first
