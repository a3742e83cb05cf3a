"""
Per-job persistence of edited spritesheets.

One record per job id, last write wins. The cache never blocks editing: when the
underlying store fails, reads return None and writes are dropped, with a warning
in the log.
"""

from __future__ import annotations

import base64
import json
import sqlite3
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Protocol

import numpy as np

from spritesheet_editor.errors import DecodeFailure, StorageUnavailable
from spritesheet_editor.logging_config import get_logger
from spritesheet_editor.raster import decode_image, encode_png

log = get_logger(__name__)

SPRITE_PREFIX = "spritesheets/"
ASSET_PREFIX = "image-assets/"


class KeyValueStore(Protocol):
    """Anything that can put and get bytes by string key. Failures raise StorageUnavailable."""

    def put(self, key: str, value: bytes) -> None: ...

    def get(self, key: str) -> bytes | None: ...


class MemoryStore:
    """Store backed by a plain dict."""

    def __init__(self):
        self._data: dict[str, bytes] = {}

    def put(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def __len__(self) -> int:
        return len(self._data)


class SqliteStore:
    """
    Store backed by a single SQLite file.

    A connection is opened per operation, so the store can be shared between
    the event loop thread and worker threads.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.path)
            if not self._initialized:
                conn.execute("CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value BLOB NOT NULL)")
                conn.commit()
                self._initialized = True
            return conn
        except (OSError, sqlite3.Error) as e:
            raise StorageUnavailable(f"cannot open {self.path}: {e}") from e

    def put(self, key: str, value: bytes) -> None:
        with self._lock:
            conn = self._connect()
            try:
                with conn:
                    conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))
            except sqlite3.Error as e:
                raise StorageUnavailable(f"write to {self.path} failed: {e}") from e
            finally:
                conn.close()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            conn = self._connect()
            try:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            except sqlite3.Error as e:
                raise StorageUnavailable(f"read from {self.path} failed: {e}") from e
            finally:
                conn.close()
        return None if row is None else bytes(row[0])


@dataclass(frozen=True)
class CacheRecord:
    """
    Saved state of one job.

    Attributes:
        job_id: Generation job id
        packed_sheet: PNG bytes of the reconstructed sheet (all frames, excluded ones included)
        excluded_indices: Frame indices excluded at save time
        frame_count: Number of frames packed in the sheet
        updated_at: Unix timestamp of the write
    """
    job_id: str
    packed_sheet: bytes
    excluded_indices: tuple[int, ...]
    frame_count: int
    updated_at: float

    def sheet_image(self) -> np.ndarray:
        return decode_image(self.packed_sheet)

    def to_bytes(self) -> bytes:
        return json.dumps({
            "job_id": self.job_id,
            "packed_sheet": base64.b64encode(self.packed_sheet).decode("ascii"),
            "excluded_indices": list(self.excluded_indices),
            "frame_count": self.frame_count,
            "updated_at": self.updated_at,
        }).encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> CacheRecord:
        raw = json.loads(data.decode("utf-8"))
        return cls(
            job_id=raw["job_id"],
            packed_sheet=base64.b64decode(raw["packed_sheet"]),
            excluded_indices=tuple(sorted(int(i) for i in raw["excluded_indices"])),
            frame_count=int(raw["frame_count"]),
            updated_at=float(raw["updated_at"]),
        )


class PersistentCache:
    def __init__(self, store: KeyValueStore | None = None):
        self.store: KeyValueStore = store if store is not None else MemoryStore()

    def put(
        self,
        job_id: str,
        sheet: np.ndarray | bytes,
        excluded_indices: Iterable[int],
        frame_count: int,
    ) -> CacheRecord | None:
        """
        Upsert the record for job_id.

        Args:
            job_id: Generation job id
            sheet: Reconstructed sheet, as an RGBA array or PNG bytes
            excluded_indices: Indices excluded from playback and export
            frame_count: Number of frames in the sheet

        Returns:
            The stored record, or None if the store was unavailable
        """
        packed = sheet if isinstance(sheet, bytes) else encode_png(sheet)
        record = CacheRecord(
            job_id=job_id,
            packed_sheet=packed,
            excluded_indices=tuple(sorted(set(excluded_indices))),
            frame_count=frame_count,
            updated_at=time.time(),
        )
        try:
            self.store.put(SPRITE_PREFIX + job_id, record.to_bytes())
        except StorageUnavailable as e:
            log.warning("Cache write for job %s skipped: %s", job_id, e)
            return None
        log.debug("Cached job %s (%d frames, %d excluded)", job_id, frame_count, len(record.excluded_indices))
        return record

    def get(self, job_id: str) -> CacheRecord | None:
        try:
            data = self.store.get(SPRITE_PREFIX + job_id)
        except StorageUnavailable as e:
            log.warning("Cache read for job %s skipped: %s", job_id, e)
            return None
        if data is None:
            return None
        try:
            return CacheRecord.from_bytes(data)
        except (ValueError, KeyError, TypeError) as e:
            log.warning("Ignoring unreadable cache record for job %s: %s", job_id, e)
            return None

    def put_asset(self, url: str, data: bytes) -> None:
        """Keep the bytes of a fetched reference image, keyed by its URL."""
        try:
            self.store.put(ASSET_PREFIX + url, data)
        except StorageUnavailable as e:
            log.warning("Asset cache write for %s skipped: %s", url, e)

    def get_asset(self, url: str) -> bytes | None:
        try:
            return self.store.get(ASSET_PREFIX + url)
        except StorageUnavailable as e:
            log.warning("Asset cache read for %s skipped: %s", url, e)
            return None

    def load_frames_source(self, job_id: str) -> tuple[np.ndarray, CacheRecord] | None:
        """Fetch and decode the cached sheet of a job, or None if missing or unreadable."""
        record = self.get(job_id)
        if record is None:
            return None
        try:
            return record.sheet_image(), record
        except DecodeFailure as e:
            log.warning("Cached sheet for job %s is corrupt: %s", job_id, e)
            return None
