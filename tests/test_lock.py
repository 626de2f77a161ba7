from __future__ import annotations

import threading

import pytest

from meterthing.state.lock import ReadWriteLock


def test_readers_share_the_lock() -> None:
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=2.0)

    def reader() -> None:
        with lock.read():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=2.0)

    # Both readers were inside at once, otherwise the barrier would have broken.
    assert not inside.broken


def test_writer_excludes_readers() -> None:
    lock = ReadWriteLock()
    events: list[str] = []
    reader_waiting = threading.Event()

    lock.acquire_write()

    def reader() -> None:
        reader_waiting.set()
        with lock.read():
            events.append("read")

    thread = threading.Thread(target=reader)
    thread.start()
    reader_waiting.wait(timeout=2.0)
    thread.join(timeout=0.1)
    events.append("write done")
    lock.release_write()
    thread.join(timeout=2.0)

    assert events == ["write done", "read"]


def test_waiting_writer_blocks_new_readers() -> None:
    lock = ReadWriteLock()
    order: list[str] = []

    lock.acquire_read()
    writer = threading.Thread(target=lambda: (lock.acquire_write(), order.append("write"), lock.release_write()))
    writer.start()
    # Wait until the writer has registered itself as waiting.
    for _ in range(200):
        if lock._writers_waiting:  # noqa: SLF001
            break
        threading.Event().wait(0.01)

    late_reader = threading.Thread(target=lambda: (lock.acquire_read(), order.append("read"), lock.release_read()))
    late_reader.start()
    late_reader.join(timeout=0.1)
    assert order == []

    lock.release_read()
    writer.join(timeout=2.0)
    late_reader.join(timeout=2.0)
    assert order == ["write", "read"]


def test_unbalanced_release_raises() -> None:
    lock = ReadWriteLock()
    with pytest.raises(RuntimeError):
        lock.release_read()
    with pytest.raises(RuntimeError):
        lock.release_write()
