"""Key-value store interface for state persisted between cycles."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..exceptions import StoreError
from ..log_setup import get_logger

T = TypeVar("T")

SUMMARY_HISTORY_KEY = "wxmonitor_stats_history_v1"
STATION_SNAPSHOT_KEY = "wxmonitor_station_snap_v1"
STATION_EVENTS_KEY = "wxmonitor_station_events_v1"
PREVIOUS_VISIBILITY_KEY_PREFIX = "wxm_prev_vis_"

_LOGGER = get_logger("store")


class KeyValueStore(Protocol):
    """Minimal byte store; read-after-write consistent within one process."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStore:
    """Dictionary-backed store for tests and single-run use."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class DirectoryStore:
    """One file per key under a state directory, replaced atomically."""

    def __init__(self, root: Path) -> None:
        self.root = root
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreError(f"Failed creating state directory {root}: {exc}") from exc

    def _path(self, key: str) -> Path:
        safe_key = "".join(ch if ch.isalnum() or ch in {"-", "_"} else "_" for ch in key)
        return self.root / f"{safe_key}.json"

    def get(self, key: str) -> bytes | None:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"Failed reading state key {key}: {exc}") from exc

    def set(self, key: str, value: bytes) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            tmp_path.write_bytes(value)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StoreError(f"Failed writing state key {key}: {exc}") from exc

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"Failed removing state key {key}: {exc}") from exc


def load_model(
    store: KeyValueStore,
    key: str,
    adapter: TypeAdapter[T],
    fallback: T,
    *,
    logger: logging.Logger | None = None,
) -> T:
    """Read and validate a stored JSON value; corrupt or drifted data yields ``fallback``."""
    raw = store.get(key)
    if raw is None:
        return fallback
    try:
        return adapter.validate_json(raw)
    except ValidationError as exc:
        (logger or _LOGGER).warning(
            "Stored state %s is invalid (%d errors); starting from empty state.",
            key,
            exc.error_count(),
            extra={"store_key": key},
        )
        return fallback


def save_model(store: KeyValueStore, key: str, adapter: TypeAdapter[Any], value: Any) -> None:
    store.set(key, adapter.dump_json(value))
