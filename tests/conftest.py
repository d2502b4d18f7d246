"""Shared test fixtures for task board tests."""

from datetime import date

import pytest

from taskboard.blobstore import MemoryBlobStore, PersistenceError
from taskboard.store import TaskStore

TODAY = date(2024, 6, 15)


class FlakyBlobStore(MemoryBlobStore):
    """Memory store whose reads and/or writes can be switched to fail."""

    def __init__(self, initial=None, fail_reads=False, fail_writes=False):
        super().__init__(initial)
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get(self, key):
        if self.fail_reads:
            raise PersistenceError("disk unreadable")
        return super().get(key)

    def set(self, key, blob):
        if self.fail_writes:
            raise PersistenceError("disk full")
        super().set(key, blob)


@pytest.fixture
def blobs():
    return MemoryBlobStore()


@pytest.fixture
def store(blobs):
    return TaskStore(blobs, today=lambda: TODAY)
