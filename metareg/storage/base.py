"""Blob store interface."""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class BlobInfo:
    """A single directory entry."""

    name: str
    size: int = 0
    is_dir: bool = False


class BlobStore(ABC):
    """Minimal file API a registry needs from its backing storage.

    Paths are relative POSIX paths (``registry/entity/<id>.json``).
    ``read`` raises ``FileNotFoundError`` for absent files; every other
    failure surfaces as ``OSError`` or ``StorageError``.
    """

    @abstractmethod
    def list_dir(self, path: str) -> list[BlobInfo]:
        """List the entries of a directory."""

    @abstractmethod
    def read(self, path: str, max_size: int | None = None) -> bytes:
        """Read a file.

        When ``max_size`` is given at most ``max_size + 1`` bytes are read,
        which is enough for the caller to detect an oversized file.
        """

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        """Atomically create or replace a file."""

    @abstractmethod
    def mkdir_all(self, path: str) -> None:
        """Create a directory and all missing parents."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Whether a file or directory exists at ``path``."""

    @staticmethod
    def join(*parts: str) -> str:
        return posixpath.join(*parts)
