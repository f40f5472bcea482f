"""Pluggable storage backends for test history."""

from testhistory.storage.base import StorageBackend
from testhistory.storage.snapshot import SnapshotStorageBackend

__all__ = ["StorageBackend", "SnapshotStorageBackend"]
