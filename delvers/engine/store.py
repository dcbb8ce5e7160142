"""Key/value storage port, implementations and the fire-and-forget adapter."""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
import threading
from typing import Any, Protocol
import uuid

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Any | None:
        """Return the stored value, or None when absent or unreadable."""

    def set_item(self, key: str, value: Any) -> None:
        """Serialize and store a value; None clears the entry."""


@dataclass
class InMemoryKeyValueStore:
    def __post_init__(self) -> None:
        self._entries: dict[str, str] = {}

    def get_item(self, key: str) -> Any | None:
        raw = self._entries.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return None

    def set_item(self, key: str, value: Any) -> None:
        if value is None:
            self._entries.pop(key, None)
            return
        self._entries[key] = json.dumps(value)


@dataclass
class JsonFileKeyValueStore:
    path: str

    def __post_init__(self) -> None:
        self._lock = threading.Lock()

    def _load(self) -> dict[str, Any]:
        file_path = Path(self.path)
        if not file_path.exists():
            return {}
        try:
            payload = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Unreadable store file {self.path}: {exc}")
            return {}
        return payload if isinstance(payload, dict) else {}

    def get_item(self, key: str) -> Any | None:
        return self._load().get(key)

    def set_item(self, key: str, value: Any) -> None:
        with self._lock:
            payload = self._load()
            if value is None:
                payload.pop(key, None)
            else:
                payload[key] = value

            file_path = Path(self.path)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = file_path.with_name(f"{file_path.name}.{uuid.uuid4().hex}.tmp")
            tmp_path.write_text(json.dumps(payload), encoding="utf-8")
            os.replace(tmp_path, file_path)


def create_store(storage_path: str | None) -> KeyValueStore:
    if storage_path:
        return JsonFileKeyValueStore(path=storage_path)
    return InMemoryKeyValueStore()


class PersistenceAdapter:
    """Narrow boundary around a KeyValueStore.

    Reads are synchronous. Writes are encoded at call time, then dispatched
    to ``executor`` when one is given and never awaited; without an executor
    they run inline. Writes reach the store in the order they were issued,
    whatever the executor's worker count. Encoding and store errors are
    logged and swallowed.
    """

    def __init__(self, store: KeyValueStore, executor: Executor | None = None) -> None:
        self._store = store
        self._executor = executor
        self._pending: deque[tuple[str, Any]] = deque()
        self._write_lock = threading.Lock()

    def read(self, key: str) -> Any | None:
        try:
            return self._store.get_item(key)
        except Exception:
            logger.exception(f"Failed to read {key!r} from storage")
            return None

    def write(self, key: str, value: Any, encode: Callable[[Any], Any] | None = None) -> Future | None:
        try:
            payload = encode(value) if encode is not None and value is not None else value
        except Exception:
            logger.exception(f"Failed to encode {key!r} for storage")
            return None

        self._pending.append((key, payload))
        if self._executor is None:
            self._drain()
            return None
        return self._executor.submit(self._drain)

    def _drain(self) -> None:
        # Every queued write is applied under one lock in FIFO order.
        with self._write_lock:
            while True:
                try:
                    key, payload = self._pending.popleft()
                except IndexError:
                    return
                self._write_now(key, payload)

    def _write_now(self, key: str, payload: Any) -> None:
        try:
            self._store.set_item(key, payload)
        except Exception:
            logger.exception(f"Failed to write {key!r} to storage")
