import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

# Ensure project root is importable during pytest collection
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Settings are read at import time, so defaults must be in place before app modules load
os.environ.setdefault('AZURE_STORAGE_CONNECTION_STRING', 'UseDevelopmentStorage=true')
os.environ.setdefault('AZURE_STORAGE_CONTAINER_NAME', 'test-container')
os.environ.setdefault('MAX_UPLOAD_SIZE', str(1024 * 1024))


class FakeDownloader:
    def __init__(self, data: bytes, fail_midway: bool = False):
        self._data = data
        self._fail_midway = fail_midway

    def readall(self) -> bytes:
        return self._data

    def readinto(self, stream) -> int:
        if self._fail_midway:
            stream.write(self._data[:len(self._data) // 2])
            raise HttpResponseError(message='connection reset during download')
        stream.write(self._data)
        return len(self._data)


class FakeBlobClient:
    def __init__(self, container, name):
        self.container = container
        self.blob_name = name
        self.url = f'https://fakeaccount.blob.core.windows.net/{container.container_name}/{name}'

    def _check(self):
        if self.container.fail:
            raise HttpResponseError(message='backend unavailable')

    def upload_blob(self, data, overwrite=False, content_settings=None):
        self._check()
        if hasattr(data, 'read'):
            data = data.read()
        if not overwrite and self.blob_name in self.container.blobs:
            raise HttpResponseError(message='blob already exists')
        self.container.blobs[self.blob_name] = bytes(data)
        self.container.content_types[self.blob_name] = content_settings.content_type if content_settings else None

    def exists(self) -> bool:
        self._check()
        return self.blob_name in self.container.blobs

    def delete_blob(self):
        self._check()
        if self.blob_name not in self.container.blobs:
            raise ResourceNotFoundError(message='blob not found')
        del self.container.blobs[self.blob_name]
        self.container.content_types.pop(self.blob_name, None)

    def download_blob(self):
        self._check()
        if self.blob_name not in self.container.blobs:
            raise ResourceNotFoundError(message='blob not found')
        return FakeDownloader(self.container.blobs[self.blob_name], fail_midway=self.container.fail_download)


class FakeContainerClient:
    """In-memory stand-in for azure.storage.blob.ContainerClient."""

    def __init__(self, container_name='test-container', exists=True):
        self.container_name = container_name
        self.blobs = {}
        self.content_types = {}
        self.fail = False
        self.fail_download = False
        self.created = exists
        self.create_calls = 0
        self.closed = False

    def get_blob_client(self, blob):
        return FakeBlobClient(self, blob)

    def list_blobs(self):
        if self.fail:
            raise HttpResponseError(message='backend unavailable')
        return iter([SimpleNamespace(name=name) for name in self.blobs])

    def exists(self) -> bool:
        if self.fail:
            raise HttpResponseError(message='backend unavailable')
        return self.created

    def create_container(self):
        self.create_calls += 1
        self.created = True

    def close(self):
        self.closed = True


@pytest.fixture
def container():
    return FakeContainerClient()


@pytest.fixture
def service(container):
    from apps.uploader.services import BlobService
    return BlobService(container)


@pytest.fixture
def client(container):
    from fastapi.testclient import TestClient

    from apps.uploader.services import BlobService, get_blob_service
    from main import app

    app.dependency_overrides[get_blob_service] = lambda: BlobService(container)
    # no context manager: lifespan would connect to a real account
    yield TestClient(app)
    app.dependency_overrides.clear()
