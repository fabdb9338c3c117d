"""Shared pytest fixtures for ossresource tests.

Resources run against an in-memory object store pre-populated with the
``aliyun-test-bucket`` bucket and a 4096-byte ``myfilekey`` object. Each
test gets a fresh store and a fresh upload executor, which is drained on
teardown so no worker thread outlives its test.
"""

import io
import os

import pytest

from ossresource.executor import UploadExecutor
from ossresource.resource import OssStorageResource
from ossresource.storage.memory import MemoryObjectStore

TEST_BUCKET = "aliyun-test-bucket"
TEST_KEY = "myfilekey"
TEST_OBJECT_SIZE = 4096


def random_bytes(n: int) -> bytes:
    """Return n random bytes."""
    return os.urandom(n)


@pytest.fixture
def seed_data() -> bytes:
    """Content of the pre-populated test object."""
    return random_bytes(TEST_OBJECT_SIZE)


@pytest.fixture
def store(seed_data) -> MemoryObjectStore:
    """In-memory store holding aliyun-test-bucket/myfilekey."""
    s = MemoryObjectStore()
    s.create_bucket(TEST_BUCKET)
    s.put_object(TEST_BUCKET, TEST_KEY, io.BytesIO(seed_data))
    return s


@pytest.fixture
def executor():
    """Upload executor with a few workers, shut down after the test."""
    ex = UploadExecutor(max_workers=4)
    yield ex
    ex.shutdown(wait=True)


@pytest.fixture
def make_resource(store, executor):
    """Factory building resources bound to the test store and executor."""

    def _make(location: str, **kwargs) -> OssStorageResource:
        return OssStorageResource(store, location, executor, **kwargs)

    return _make
