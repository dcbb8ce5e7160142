import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait

from delvers.engine.store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    PersistenceAdapter,
    create_store,
)


class FailingStore:
    def get_item(self, key: str):
        raise OSError("disk unavailable")

    def set_item(self, key: str, value) -> None:
        raise OSError("disk unavailable")


class DeferredExecutor:
    def __init__(self) -> None:
        self.pending: list[tuple] = []

    def submit(self, fn, *args) -> Future:
        future: Future = Future()
        self.pending.append((fn, args, future))
        return future

    def run_pending(self) -> None:
        for fn, args, future in self.pending:
            future.set_result(fn(*args))
        self.pending.clear()


def test_create_store_returns_file_store_when_path_present(tmp_path) -> None:
    store = create_store(storage_path=str(tmp_path / "state.json"))

    assert isinstance(store, JsonFileKeyValueStore)


def test_create_store_returns_in_memory_store_when_path_missing() -> None:
    store = create_store(storage_path=None)

    assert isinstance(store, InMemoryKeyValueStore)


def test_in_memory_store_round_trips_and_clears() -> None:
    store = InMemoryKeyValueStore()

    store.set_item("slot", {"id": "encounter-1", "depth": 2})
    stored = store.get_item("slot")
    store.set_item("slot", None)

    assert stored == {"id": "encounter-1", "depth": 2}
    assert store.get_item("slot") is None


def test_in_memory_store_reads_unparsable_entry_as_missing() -> None:
    store = InMemoryKeyValueStore()
    store._entries["slot"] = "{not json"

    assert store.get_item("slot") is None


def test_file_store_persists_between_instances(tmp_path) -> None:
    path = str(tmp_path / "nested" / "state.json")
    JsonFileKeyValueStore(path=path).set_item("slot", {"id": "encounter-1"})

    reopened = JsonFileKeyValueStore(path=path)

    assert reopened.get_item("slot") == {"id": "encounter-1"}
    reopened.set_item("slot", None)
    assert JsonFileKeyValueStore(path=path).get_item("slot") is None


def test_file_store_treats_corrupt_file_as_empty(tmp_path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{{{", encoding="utf-8")

    store = JsonFileKeyValueStore(path=str(path))

    assert store.get_item("slot") is None


def test_adapter_swallows_store_failures(caplog) -> None:
    adapter = PersistenceAdapter(FailingStore())

    with caplog.at_level(logging.ERROR):
        value = adapter.read("slot")
        result = adapter.write("slot", {"id": "encounter-1"})

    assert value is None
    assert result is None
    assert "Failed to read 'slot'" in caplog.text
    assert "Failed to write 'slot'" in caplog.text


def test_adapter_dispatches_writes_to_executor() -> None:
    store = InMemoryKeyValueStore()
    executor = DeferredExecutor()
    adapter = PersistenceAdapter(store, executor)

    future = adapter.write("slot", {"id": "encounter-1"})

    assert future is not None
    assert store.get_item("slot") is None

    executor.run_pending()

    assert future.done()
    assert store.get_item("slot") == {"id": "encounter-1"}


def test_adapter_writes_inline_without_executor() -> None:
    store = InMemoryKeyValueStore()
    adapter = PersistenceAdapter(store)

    adapter.write("slot", [1, 2, 3])

    assert adapter.read("slot") == [1, 2, 3]


class SlowFirstWriteStore(InMemoryKeyValueStore):
    def __post_init__(self) -> None:
        super().__post_init__()
        self.writes: list[tuple[str, object]] = []
        self._first = True

    def set_item(self, key: str, value) -> None:
        if self._first:
            self._first = False
            time.sleep(0.05)
        self.writes.append((key, value))
        super().set_item(key, value)


def test_adapter_keeps_write_order_across_workers() -> None:
    store = SlowFirstWriteStore()

    with ThreadPoolExecutor(max_workers=2) as executor:
        adapter = PersistenceAdapter(store, executor)
        first = adapter.write("slot", {"id": "encounter-1"})
        second = adapter.write("slot", None)
        wait([first, second])

    assert store.writes == [("slot", {"id": "encounter-1"}), ("slot", None)]
    assert store.get_item("slot") is None


def test_adapter_logs_encode_failures_instead_of_raising(caplog) -> None:
    store = InMemoryKeyValueStore()
    adapter = PersistenceAdapter(store)

    def explode(value):
        raise TypeError("not serializable")

    with caplog.at_level(logging.ERROR):
        result = adapter.write("slot", {"id": "encounter-1"}, encode=explode)

    assert result is None
    assert "Failed to encode 'slot'" in caplog.text
    assert store.get_item("slot") is None


def test_adapter_logs_unserializable_payloads(caplog) -> None:
    adapter = PersistenceAdapter(InMemoryKeyValueStore())

    with caplog.at_level(logging.ERROR):
        adapter.write("slot", {"when": object()})

    assert "Failed to write 'slot'" in caplog.text


def test_file_store_keeps_concurrent_writes(tmp_path) -> None:
    store = JsonFileKeyValueStore(path=str(tmp_path / "state.json"))
    keys = [f"slot-{index}" for index in range(20)]

    with ThreadPoolExecutor(max_workers=8) as executor:
        list(executor.map(lambda key: store.set_item(key, {"key": key}), keys))

    reopened = JsonFileKeyValueStore(path=str(tmp_path / "state.json"))
    assert all(reopened.get_item(key) == {"key": key} for key in keys)
    assert list(tmp_path.glob("*.tmp")) == []
