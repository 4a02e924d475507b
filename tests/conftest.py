"""Общие фикстуры: фейковые S3-клиенты и дерево файлов во временном каталоге."""

import threading

import pytest
from botocore.exceptions import EndpointConnectionError

from s3bulk.config import ENV_NAMES, UploadSettings


class FakeS3Client:
    """Записывает PUT'ы в общий store: {endpoint: {key: bytes}}."""

    def __init__(self, worker, store, fail_keys=(), lock=None):
        self.worker = worker
        self.store = store
        self.fail_keys = set(fail_keys)
        self.lock = lock or threading.Lock()
        self.calls = []

    def put_object(self, Bucket, Key, Body):
        self.calls.append((Bucket, Key))
        if Key in self.fail_keys:
            raise EndpointConnectionError(endpoint_url=f"http://{self.worker.endpoint}")
        data = Body.read()
        with self.lock:
            self.store.setdefault(self.worker.endpoint, {})[Key] = data
        return {"ETag": '"d41d8cd98f00b204e9800998ecf8427e"', "VersionId": f"v-{self.worker.index}"}


class FakeStorage:
    """Фабрика клиентов для BulkUploader: по клиенту на воркер."""

    def __init__(self, fail_keys=()):
        self.store = {}
        self.fail_keys = fail_keys
        self.clients = []
        self._lock = threading.Lock()

    def __call__(self, worker):
        client = FakeS3Client(worker, self.store, self.fail_keys, self._lock)
        self.clients.append(client)
        return client

    def keys(self):
        return sorted(key for objects in self.store.values() for key in objects)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES.values():
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides):
        values = {
            "root_dir": f"{tmp_path}/data/",
            "max_workers": 2,
            "endpoints": ["10.0.0.1:9000", "10.0.0.2:9000"],
            "access_key_id": "minioadmin",
            "secret_access_key": "minioadmin",
            "bucket": "test",
            "timer_interval": 0,
        }
        values.update(overrides)
        return UploadSettings(**values)

    return _make


@pytest.fixture
def make_files(tmp_path):
    """Создаёт файлы под tmp_path/data и возвращает список относительных путей."""

    def _make(paths, size=16):
        root = tmp_path / "data"
        for rel in paths:
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"x" * size)
        return list(paths)

    return _make
