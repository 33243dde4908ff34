"""Storage services package.

This package provides storage-related services including:
- LocalBlobStore: filesystem-backed object storage with atomic writes
- StorageHandle: lifecycle handle provisioning the storage container

The blob store handles concurrent access from request threads.
"""

from .blob_store import LocalBlobStore
from .storage_handle import StorageHandle

__all__ = ["LocalBlobStore", "StorageHandle"]
