"""In-memory blob store."""

from __future__ import annotations

from metareg.errors import StorageError
from metareg.storage.base import BlobInfo, BlobStore


class MemoryBlobStore(BlobStore):
    """Blob store holding every file in a dict keyed by path.

    Directories are implicit (any prefix of a file path) or created with
    ``mkdir_all``. A read-only store rejects all writes, which is how the
    Git provider exposes its immutable checkout.
    """

    def __init__(self, files: dict[str, bytes] | None = None, read_only: bool = False):
        self._files: dict[str, bytes] = dict(files or {})
        self._dirs: set[str] = set()
        self.read_only = read_only
        for path in self._files:
            self._add_parents(path)

    def _add_parents(self, path: str) -> None:
        parts = path.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            self._dirs.add("/".join(parts[:i]))

    def _check_writable(self) -> None:
        if self.read_only:
            raise StorageError("blob store is read-only")

    def list_dir(self, path: str) -> list[BlobInfo]:
        path = path.strip("/")
        if path and path not in self._dirs:
            if path in self._files:
                raise NotADirectoryError(path)
            raise FileNotFoundError(path)

        prefix = f"{path}/" if path else ""
        entries: dict[str, BlobInfo] = {}
        for name, data in self._files.items():
            if name.startswith(prefix) and "/" not in name[len(prefix):]:
                child = name[len(prefix):]
                entries[child] = BlobInfo(name=child, size=len(data))
        for d in self._dirs:
            if d.startswith(prefix) and d != path and "/" not in d[len(prefix):]:
                child = d[len(prefix):]
                entries[child] = BlobInfo(name=child, is_dir=True)
        return [entries[k] for k in sorted(entries)]

    def read(self, path: str, max_size: int | None = None) -> bytes:
        try:
            data = self._files[path.strip("/")]
        except KeyError:
            raise FileNotFoundError(path) from None
        if max_size is not None:
            return data[: max_size + 1]
        return data

    def write(self, path: str, data: bytes) -> None:
        self._check_writable()
        path = path.strip("/")
        parent = path.rpartition("/")[0]
        if parent and parent not in self._dirs:
            raise FileNotFoundError(parent)
        self._files[path] = bytes(data)

    def mkdir_all(self, path: str) -> None:
        self._check_writable()
        path = path.strip("/")
        if path in self._files:
            raise FileExistsError(path)
        self._add_parents(f"{path}/_")

    def exists(self, path: str) -> bool:
        path = path.strip("/")
        return path in self._files or path in self._dirs
