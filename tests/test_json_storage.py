"""
Record store behaviour against a temporary directory.
"""
from __future__ import annotations

import json
import logging
import sys
import threading
from pathlib import Path

import pytest

# Make the school_api package importable when running tests from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from school_api.repositories import json_storage  # noqa: E402
from school_api.repositories.json_storage import (  # noqa: E402
    JsonRecordStore,
    MalformedDataError,
    NotFoundError,
    StorageReadError,
    StorageWriteError,
)


@pytest.fixture()
def store(tmp_path):
    s = JsonRecordStore(tmp_path / "data" / "news.json", tmp_path / "public" / "news", track_updates=True)
    s.ensure_dirs()
    return s


def _put_image(store: JsonRecordStore, name: str = "1700000000000-1.png") -> str:
    store.upload_path(name).write_bytes(b"img")
    return name


def test_missing_or_blank_document_is_empty(store):
    assert store.list_all() == []
    store.document_path.write_text("  \n", encoding="utf-8")
    assert store.list_all() == []


def test_append_assigns_increasing_ids_and_timestamps(store):
    first = store.append({"title": "A", "content": "x"})
    second = store.append({"title": "B", "content": "y"})

    assert first["id"] == 1
    assert second["id"] == 2
    assert first["imageFilename"] is None
    assert first["createdAt"].endswith("Z")
    assert first["updatedAt"] == first["createdAt"]
    assert len(store.list_all()) == 2


def test_append_ignores_reserved_keys_from_caller(store):
    record = store.append({"id": 99, "createdAt": "never", "title": "A"})
    assert record["id"] == 1
    assert record["createdAt"] != "never"


def test_ids_are_not_reused_after_deleting_the_last_but_one(store):
    for title in ("a", "b", "c"):
        store.append({"title": title})
    store.delete_by_id(2)
    new = store.append({"title": "d"})
    assert new["id"] == 4
    assert [r["id"] for r in store.list_all()] == [1, 3, 4]


def test_round_trip_preserves_order_and_fields(store):
    payloads = [{"title": f"t{i}", "content": f"c{i}", "extra": [i, "x"]} for i in range(5)]
    for payload in payloads:
        store.append(payload)
    records = store.list_all()
    assert [r["id"] for r in records] == [1, 2, 3, 4, 5]
    for payload, record in zip(payloads, records):
        for key, value in payload.items():
            assert record[key] == value


def test_document_is_a_plain_json_array(store):
    store.append({"title": "Olá"})
    data = json.loads(store.document_path.read_text(encoding="utf-8"))
    assert isinstance(data, list)
    assert data[0]["title"] == "Olá"
    assert not store.document_path.with_name("news.json.tmp").exists()


def test_malformed_document_raises(store):
    store.document_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedDataError):
        store.list_all()
    store.document_path.write_text('{"id": 1}', encoding="utf-8")
    with pytest.raises(MalformedDataError):
        store.list_all()
    store.document_path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(MalformedDataError):
        store.list_all()


def test_unreadable_document_raises_read_error(store, monkeypatch):
    store.document_path.write_text("[]", encoding="utf-8")

    def boom(self, *a, **kw):
        raise PermissionError("denied")

    with monkeypatch.context() as m:
        m.setattr(Path, "read_text", boom)
        with pytest.raises(StorageReadError):
            store.list_all()


def test_legacy_image_key_is_read_as_filename(store):
    store.document_path.write_text(
        json.dumps([{"id": 3, "title": "old", "imageUrl": "123-old.png"}]), encoding="utf-8"
    )
    [record] = store.list_all()
    assert record["imageFilename"] == "123-old.png"
    assert "imageUrl" not in record


def test_failed_write_removes_saved_image_and_adds_nothing(store, monkeypatch):
    store.append({"title": "keep"})
    image = _put_image(store)

    def boom(src, dst):
        raise OSError("disk full")

    with monkeypatch.context() as m:
        m.setattr(json_storage.os, "replace", boom)
        with pytest.raises(StorageWriteError):
            store.append({"title": "lost"}, image)

    assert not store.upload_path(image).exists()
    assert [r["title"] for r in store.list_all()] == ["keep"]


def test_malformed_document_during_append_removes_saved_image(store):
    store.document_path.write_text("oops", encoding="utf-8")
    image = _put_image(store)
    with pytest.raises(MalformedDataError):
        store.append({"title": "x"}, image)
    assert not store.upload_path(image).exists()


def test_delete_unknown_id_leaves_collection_unchanged(store):
    store.append({"title": "a"})
    before = store.document_path.read_text(encoding="utf-8")
    with pytest.raises(NotFoundError):
        store.delete_by_id(999)
    assert store.document_path.read_text(encoding="utf-8") == before


def test_delete_removes_record_and_image(store):
    image = _put_image(store)
    store.append({"title": "a"}, image)
    store.append({"title": "b"})

    removed = store.delete_by_id(1)

    assert removed["title"] == "a"
    assert removed["imageFilename"] == image
    assert not store.upload_path(image).exists()
    assert [r["id"] for r in store.list_all()] == [2]


def test_delete_succeeds_when_image_already_gone(store, caplog):
    store.append({"title": "a"}, "missing.png")
    with caplog.at_level(logging.WARNING):
        removed = store.delete_by_id(1)
    assert removed["id"] == 1
    assert store.list_all() == []
    assert "missing.png" in caplog.text


def test_failed_delete_write_keeps_record_and_image(store, monkeypatch):
    image = _put_image(store)
    store.append({"title": "a"}, image)

    def boom(src, dst):
        raise OSError("read-only")

    with monkeypatch.context() as m:
        m.setattr(json_storage.os, "replace", boom)
        with pytest.raises(StorageWriteError):
            store.delete_by_id(1)

    assert [r["id"] for r in store.list_all()] == [1]
    assert store.upload_path(image).exists()


def test_orphaned_uploads_lists_unreferenced_files(store):
    used = _put_image(store, "1-used.png")
    _put_image(store, "2-stray.png")
    store.append({"title": "a"}, used)
    assert store.orphaned_uploads() == ["2-stray.png"]


def test_custom_id_strategy(tmp_path):
    s = JsonRecordStore(tmp_path / "r.json", tmp_path / "r", id_strategy=lambda records: 100 + len(records))
    assert s.append({"title": "a"})["id"] == 100
    assert s.append({"title": "b"})["id"] == 101


def test_concurrent_appends_keep_every_record(tmp_path):
    threads_count, per_thread = 8, 20
    stores = [
        JsonRecordStore(tmp_path / "news.json", tmp_path / "news")
        for _ in range(threads_count)
    ]
    start = threading.Barrier(threads_count)
    errors: list[BaseException] = []

    def writer(s: JsonRecordStore, worker: int) -> None:
        try:
            start.wait()
            for i in range(per_thread):
                s.append({"title": f"{worker}-{i}"})
        except BaseException as exc:  # surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(s, n)) for n, s in enumerate(stores)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    records = JsonRecordStore(tmp_path / "news.json", tmp_path / "news").list_all()
    ids = [r["id"] for r in records]
    assert len(ids) == threads_count * per_thread == len(set(ids))
    assert len({r["title"] for r in records}) == threads_count * per_thread


def test_concurrent_deletes_and_appends_stay_consistent(store):
    for i in range(40):
        store.append({"title": f"seed-{i}"})

    def deleter() -> None:
        for record_id in range(1, 41):
            store.delete_by_id(record_id)

    def appender() -> None:
        for i in range(40):
            store.append({"title": f"new-{i}"})

    threads = [threading.Thread(target=deleter), threading.Thread(target=appender)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    records = store.list_all()
    assert sorted(r["title"] for r in records) == sorted(f"new-{i}" for i in range(40))
    assert len({r["id"] for r in records}) == 40
