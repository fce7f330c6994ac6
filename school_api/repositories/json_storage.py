"""
JSON-document persistence for resource collections.

Every resource owns one JSON array document and one upload directory. Mutations
rewrite the whole document (temp file + rename) while holding a per-document
lock, so concurrent writers cannot drop each other's records.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence
import json
import logging
import os
import threading

from school_api.domain.resources import max_plus_one

logger = logging.getLogger(__name__)

RESERVED_KEYS = frozenset({"id", "imageFilename", "createdAt", "updatedAt"})
LEGACY_IMAGE_KEY = "imageUrl"

_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


class StoreError(Exception):
    """Base class for record store failures."""


class StorageReadError(StoreError):
    """The document exists but could not be read."""


class MalformedDataError(StoreError):
    """The document is not a JSON array of objects."""


class StorageWriteError(StoreError):
    """The document could not be persisted."""


class NotFoundError(StoreError):
    """No record with the requested id."""

    def __init__(self, record_id: int):
        super().__init__(f"Record {record_id} not found")
        self.record_id = record_id


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _locks_guard:
        lock = _locks.get(key)
        if lock is None:
            lock = _locks[key] = threading.Lock()
        return lock


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-01T10:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonRecordStore:
    """CRUD over one JSON-array document and its upload directory."""

    def __init__(
        self,
        document_path: Path,
        upload_dir: Path,
        *,
        id_strategy: Callable[[Sequence[Mapping[str, Any]]], int] = max_plus_one,
        track_updates: bool = False,
    ) -> None:
        self.document_path = Path(document_path)
        self.upload_dir = Path(upload_dir)
        self.id_strategy = id_strategy
        self.track_updates = track_updates
        self._lock = _lock_for(self.document_path)

    def ensure_dirs(self) -> None:
        self.document_path.parent.mkdir(parents=True, exist_ok=True)
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def upload_path(self, filename: str) -> Path:
        # Only bare names are stored; strip anything that could leave the directory.
        return self.upload_dir / Path(filename).name

    def _read(self) -> list[dict]:
        try:
            raw = self.document_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageReadError(f"Cannot read {self.document_path}: {exc}") from exc
        if not raw.strip():
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedDataError(f"{self.document_path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise MalformedDataError(f"{self.document_path} must hold a JSON array of objects")
        return [self._normalize(item) for item in data]

    @staticmethod
    def _normalize(item: dict) -> dict:
        record = dict(item)
        # Older documents kept the stored filename under "imageUrl".
        if "imageFilename" not in record and LEGACY_IMAGE_KEY in record:
            record["imageFilename"] = record.pop(LEGACY_IMAGE_KEY)
        return record

    def _write(self, records: list[dict]) -> None:
        tmp = self.document_path.with_name(self.document_path.name + ".tmp")
        try:
            self.document_path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.document_path)
        except (OSError, TypeError, ValueError) as exc:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                logger.warning("Could not remove temp file %s", tmp)
            raise StorageWriteError(f"Cannot write {self.document_path}: {exc}") from exc

    def list_all(self) -> list[dict]:
        return self._read()

    def append(self, fields: Mapping[str, Any], image_filename: str | None = None) -> dict:
        """
        Add a record with the next id and persist the collection.

        If anything fails after an image was saved for this record, the image is
        deleted before the error propagates.
        """
        with self._lock:
            try:
                records = self._read()
                now = utc_timestamp()
                record: dict[str, Any] = {"id": self.id_strategy(records)}
                record.update({k: v for k, v in fields.items() if k not in RESERVED_KEYS})
                record["imageFilename"] = image_filename
                record["createdAt"] = now
                if self.track_updates:
                    record["updatedAt"] = now
                records.append(record)
                self._write(records)
            except StoreError:
                if image_filename:
                    self.discard_upload(image_filename)
                raise
        logger.info("Created record %s in %s", record["id"], self.document_path.name)
        return dict(record)

    def delete_by_id(self, record_id: int) -> dict:
        """
        Remove a record and persist the collection, then delete its image.

        The image removal is best-effort: failures are logged and the record
        stays deleted.
        """
        with self._lock:
            records = self._read()
            index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
            if index is None:
                raise NotFoundError(record_id)
            removed = records.pop(index)
            self._write(records)
        logger.info("Deleted record %s from %s", record_id, self.document_path.name)
        filename = removed.get("imageFilename")
        if filename:
            self.discard_upload(filename)
        return removed

    def discard_upload(self, filename: str) -> bool:
        """Delete an uploaded file; returns False (and logs) when it could not be removed."""
        path = self.upload_path(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Upload %s already missing from %s", filename, self.upload_dir)
            return False
        except OSError:
            logger.exception("Failed to delete upload %s", path)
            return False
        return True

    def orphaned_uploads(self) -> list[str]:
        """
        Files in the upload directory that no record references.

        An upload whose request is still in flight shows up here too; only prune
        while the API is idle.
        """
        if not self.upload_dir.is_dir():
            return []
        referenced = {r.get("imageFilename") for r in self.list_all() if r.get("imageFilename")}
        return sorted(
            p.name for p in self.upload_dir.iterdir() if p.is_file() and p.name not in referenced
        )
