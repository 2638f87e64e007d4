import threading

import pytest

from atlaskv.memtable import TOMBSTONE, MemTable, Tombstone


@pytest.fixture
def memtable():
    return MemTable()


def test_new_memtable_is_empty(memtable):
    assert len(memtable) == 0
    assert memtable.size() == 0
    assert memtable.is_empty()


def test_put_and_get(memtable):
    memtable.put(b"key1", b"value1")
    assert memtable.get(b"key1") == b"value1"


def test_get_nonexistent_key(memtable):
    assert memtable.get(b"nonexistent") is None


def test_put_multiple_entries(memtable):
    memtable.put(b"key1", b"value1")
    memtable.put(b"key2", b"value2")
    memtable.put(b"key3", b"value3")
    assert len(memtable) == 3
    assert memtable.get(b"key1") == b"value1"
    assert memtable.get(b"key2") == b"value2"
    assert memtable.get(b"key3") == b"value3"


def test_put_overwrites_existing(memtable):
    memtable.put(b"key1", b"value1")
    memtable.put(b"key1", b"value2")
    assert len(memtable) == 1
    assert memtable.get(b"key1") == b"value2"


def test_delete_creates_tombstone(memtable):
    memtable.put(b"key1", b"value1")
    memtable.delete(b"key1")
    assert memtable.get(b"key1") is TOMBSTONE
    assert len(memtable) == 1


def test_delete_nonexistent_key(memtable):
    memtable.delete(b"nonexistent")
    assert memtable.get(b"nonexistent") is Tombstone()
    assert len(memtable) == 1


def test_put_after_delete(memtable):
    memtable.put(b"key1", b"value1")
    memtable.delete(b"key1")
    memtable.put(b"key1", b"value2")
    assert memtable.get(b"key1") == b"value2"


def test_size_tracking_put(memtable):
    assert memtable.size() == 0
    memtable.put(b"key", b"value")
    assert memtable.size() == len(b"key") + len(b"value")


def test_put_returns_new_size(memtable):
    assert memtable.put(b"key", b"value") == len(b"key") + len(b"value")
    assert memtable.delete(b"key") == len(b"key")


def test_size_tracking_multiple_puts(memtable):
    memtable.put(b"key1", b"value1")
    memtable.put(b"key2", b"value2")
    expected = (len(b"key1") + len(b"value1")) + (len(b"key2") + len(b"value2"))
    assert memtable.size() == expected


def test_size_tracking_overwrite(memtable):
    memtable.put(b"key", b"short")
    first = memtable.size()
    memtable.put(b"key", b"much_longer_value")
    second = memtable.size()
    assert first == len(b"key") + len(b"short")
    assert second == len(b"key") + len(b"much_longer_value")


def test_size_tracking_delete(memtable):
    memtable.put(b"key", b"value")
    after_put = memtable.size()
    memtable.delete(b"key")
    assert after_put == len(b"key") + len(b"value")
    assert memtable.size() == len(b"key")


def test_iter_empty(memtable):
    assert memtable.items() == []


def test_iter_sorted_order(memtable):
    memtable.put(b"cherry", b"3")
    memtable.put(b"apple", b"1")
    memtable.put(b"banana", b"2")
    entries = memtable.items()
    assert len(entries) == 3
    assert [key for key, _ in entries] == [b"apple", b"banana", b"cherry"]


def test_iter_includes_tombstones(memtable):
    memtable.put(b"key1", b"value1")
    memtable.delete(b"key2")
    memtable.put(b"key3", b"value3")
    entries = memtable.items()
    assert len(entries) == 3
    assert entries[0][1] == b"value1"
    assert entries[1][1] is TOMBSTONE
    assert entries[2][1] == b"value3"


def test_iter_clones_data(memtable):
    memtable.put(b"key", b"value")
    entries = memtable.items()
    memtable.put(b"key", b"modified")
    assert entries[0][1] == b"value"


def test_clear(memtable):
    memtable.put(b"key1", b"value1")
    memtable.put(b"key2", b"value2")
    assert len(memtable) == 2
    assert memtable.size() > 0
    memtable.clear()
    assert len(memtable) == 0
    assert memtable.size() == 0
    assert memtable.is_empty()
    assert memtable.get(b"key1") is None


def test_should_flush_under_limit(memtable):
    memtable.put(b"key", b"value")
    assert not memtable.should_flush(1000)


def test_should_flush_over_limit(memtable):
    memtable.put(b"key", b"value")
    size = memtable.size()
    assert memtable.should_flush(size - 1)
    assert memtable.should_flush(size)


def test_should_flush_exact_limit(memtable):
    memtable.put(b"key", b"value")
    assert memtable.should_flush(memtable.size())


def test_empty_key(memtable):
    memtable.put(b"", b"value")
    assert memtable.get(b"") == b"value"


def test_empty_value(memtable):
    memtable.put(b"key", b"")
    assert memtable.get(b"key") == b""


def test_large_value(memtable):
    large_value = bytes([0xAB]) * (1024 * 1024)
    memtable.put(b"big_key", large_value)
    value = memtable.get(b"big_key")
    assert len(value) == 1024 * 1024
    assert value == large_value


def test_many_entries(memtable):
    for i in range(1000):
        memtable.put(f"key{i:04}".encode(), f"value{i}".encode())
    assert len(memtable) == 1000
    keys = [key for key, _ in memtable.items()]
    assert all(a < b for a, b in zip(keys, keys[1:]))


def test_concurrent_reads(memtable):
    memtable.put(b"key", b"value")
    results = []
    lock = threading.Lock()

    def reader():
        local = [memtable.get(b"key") for _ in range(100)]
        with lock:
            results.extend(local)

    threads = [threading.Thread(target=reader) for _ in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert results == [b"value"] * 1000
    assert memtable.get(b"key") == b"value"
    assert len(memtable) == 1


def test_concurrent_writes(memtable):
    def writer(i):
        for j in range(10):
            memtable.put(f"key{i}_{j}".encode(), f"value{i}_{j}".encode())

    threads = [threading.Thread(target=writer, args=(i,)) for i in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(memtable) == 100