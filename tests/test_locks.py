"""Tests for the per-document keyed lock."""

import threading
import time

from docboard.services.locks import KeyedLock


class TestKeyedLock:

    def test_entries_dropped_after_release(self):
        locks = KeyedLock()
        with locks.hold(1):
            assert locks.active_keys() == 1
        assert locks.active_keys() == 0

    def test_same_key_is_serialised(self):
        locks = KeyedLock()
        inside = []
        overlaps = []

        def worker():
            with locks.hold("doc"):
                inside.append(1)
                if len(inside) > 1:
                    overlaps.append(True)
                time.sleep(0.01)
                inside.pop()

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
        assert locks.active_keys() == 0

    def test_different_keys_do_not_block(self):
        locks = KeyedLock()
        entered = threading.Event()

        def other():
            with locks.hold(2):
                entered.set()

        with locks.hold(1):
            t = threading.Thread(target=other)
            t.start()
            assert entered.wait(timeout=2)
            t.join()

    def test_released_on_exception(self):
        locks = KeyedLock()
        try:
            with locks.hold(7):
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert locks.active_keys() == 0
