import json

import pytest

from text_refinery.adapters.google_adapter import GoogleDriveConfig, GoogleDriveMemoryStore
from text_refinery.adapters.memory_store import load_memory, persist_memory
from text_refinery.errors import TransportError
from text_refinery.memory import Memory


class _Request:
    def __init__(self, fn):
        self._fn = fn

    def execute(self):
        return self._fn()


class FakeFiles:
    """Minimal stand-in for the Drive v3 files() resource."""

    def __init__(self, fail_uploads=False):
        self.by_id = {}
        self.names = {}
        self.queries = []
        self.created = []
        self.updated = []
        self.fail_uploads = fail_uploads

    def list(self, q, fields):
        self.queries.append(q)

        def run():
            hits = [{"id": fid, "name": name} for name, fid in self.names.items() if f"name='{name}'" in q]
            return {"files": hits}
        return _Request(run)

    def get_media(self, fileId):
        return _Request(lambda: self.by_id[fileId])

    def _upload(self, media):
        if self.fail_uploads:
            raise RuntimeError("quota exceeded")
        return media.getbytes(0, media.size())

    def create(self, body, media_body, fields):
        def run():
            data = self._upload(media_body)
            fid = f"file-{len(self.by_id) + 1}"
            self.by_id[fid] = data
            self.names[body["name"]] = fid
            self.created.append(body)
            return {"id": fid}
        return _Request(run)

    def update(self, fileId, media_body):
        def run():
            self.by_id[fileId] = self._upload(media_body)
            self.updated.append(fileId)
            return {"id": fileId}
        return _Request(run)


class FakeDrive:
    def __init__(self, fail_uploads=False):
        self._files = FakeFiles(fail_uploads)

    def files(self):
        return self._files


def make_store(folder_id=None, **kwargs):
    drive = FakeDrive(**kwargs)
    store = GoogleDriveMemoryStore(GoogleDriveConfig(credentials_path="unused.json", folder_id=folder_id), service=drive)
    return store, drive.files()


def test_missing_record_is_none():
    store, files = make_store()
    assert store.get("book") is None
    assert files.queries == ["name='text_refinery_memory_book.json' and trashed=false"]


def test_first_put_creates_then_updates():
    store, files = make_store(folder_id="folder-1")
    memory = Memory()

    assert persist_memory(store, "book", memory)
    assert files.created == [{
        "name": "text_refinery_memory_book.json",
        "mimeType": "application/json",
        "parents": ["folder-1"],
    }]
    assert "'folder-1' in parents" in files.queries[0]

    assert persist_memory(store, "book", memory)
    assert files.updated == ["file-1"]
    assert len(files.created) == 1

    stored = json.loads(files.by_id["file-1"].decode("utf-8"))
    assert stored["version"] == 3


def test_get_parses_stored_record():
    store, files = make_store()
    memory = Memory()
    memory.set_tail("Closing line.")
    store.put("book", memory)

    loaded = store.get("book")
    assert loaded.last_edited_tail.text == "Closing line."
    assert loaded.version == 1


def test_corrupt_record_raises():
    store, files = make_store()
    files.names["text_refinery_memory_book.json"] = "bad"
    files.by_id["bad"] = b"{not json"
    with pytest.raises(TransportError):
        store.get("book")


def test_failed_download_never_overwrites_stored_record():
    store, files = make_store()
    stored = Memory(version=5)
    stored.set_tail("Kept tail.")
    store.put("book", stored)

    def broken_get_media(fileId):
        raise ConnectionError("connection reset")
    files.get_media = broken_get_media

    with pytest.raises(TransportError):
        load_memory(store, "book")
    assert files.updated == []
    assert json.loads(files.by_id["file-1"].decode("utf-8"))["version"] == 5


def test_failed_lookup_raises():
    store, files = make_store()

    def broken_list(q, fields):
        raise ConnectionError("dns failure")
    files.list = broken_list

    with pytest.raises(TransportError):
        store.get("book")


def test_upload_failure_returns_false():
    store, _ = make_store(fail_uploads=True)
    memory = Memory()
    assert persist_memory(store, "book", memory) is False
    assert memory.version == 1
