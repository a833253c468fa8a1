"""
Unit tests for the reader/writer lock.
"""

import threading
import time

import pytest

from tiergate.license.rwlock import ReadWriteLock


class TestReadWriteLock:
    """Test shared/exclusive semantics."""

    def test_readers_do_not_block_each_other(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(3, timeout=5)

        def reader():
            with lock.read_locked():
                # All three readers must be inside at once to pass the barrier.
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert not any(t.is_alive() for t in threads)

    def test_writer_excludes_readers(self):
        lock = ReadWriteLock()
        events = []
        writer_holding = threading.Event()

        def writer():
            with lock.write_locked():
                writer_holding.set()
                time.sleep(0.05)
                events.append("writer_done")

        def reader():
            writer_holding.wait(timeout=5)
            with lock.read_locked():
                events.append("reader")

        w = threading.Thread(target=writer)
        r = threading.Thread(target=reader)
        w.start()
        r.start()
        w.join(timeout=5)
        r.join(timeout=5)

        assert events == ["writer_done", "reader"]

    def test_waiting_writer_blocks_new_readers(self):
        lock = ReadWriteLock()
        order = []
        lock.acquire_read()

        writer_started = threading.Event()

        def writer():
            writer_started.set()
            with lock.write_locked():
                order.append("writer")

        def late_reader():
            with lock.read_locked():
                order.append("reader")

        w = threading.Thread(target=writer)
        w.start()
        writer_started.wait(timeout=5)
        # Give the writer time to register as waiting.
        deadline = time.time() + 5
        while lock._writers_waiting == 0 and time.time() < deadline:
            time.sleep(0.001)

        r = threading.Thread(target=late_reader)
        r.start()
        time.sleep(0.05)
        assert order == []

        lock.release_read()
        w.join(timeout=5)
        r.join(timeout=5)

        assert order == ["writer", "reader"]

    def test_release_without_acquire_raises(self):
        lock = ReadWriteLock()
        with pytest.raises(RuntimeError):
            lock.release_read()
        with pytest.raises(RuntimeError):
            lock.release_write()

    def test_lock_released_on_exception(self):
        lock = ReadWriteLock()
        with pytest.raises(ValueError):
            with lock.write_locked():
                raise ValueError("boom")
        with lock.write_locked():
            pass
