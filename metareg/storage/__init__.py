"""Blob stores — the byte-level backing for a registry.

A blob store lists directories, reads and writes files by relative POSIX
path. Two backends are provided:
- FilesystemBlobStore: a directory on the local filesystem
- MemoryBlobStore: an in-memory tree (tests, immutable Git checkouts)
"""

from metareg.storage.base import BlobInfo, BlobStore
from metareg.storage.filesystem import FilesystemBlobStore
from metareg.storage.memory import MemoryBlobStore

__all__ = [
    "BlobInfo",
    "BlobStore",
    "FilesystemBlobStore",
    "MemoryBlobStore",
]
