"""Local filesystem blob store."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

from metareg.storage.base import BlobInfo, BlobStore


class FilesystemBlobStore(BlobStore):
    """Blob store rooted at a local directory."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / Path(*path.split("/")) if path else self.root

    def list_dir(self, path: str) -> list[BlobInfo]:
        entries = []
        for child in sorted(self._resolve(path).iterdir()):
            st = child.stat()
            entries.append(
                BlobInfo(name=child.name, size=st.st_size, is_dir=child.is_dir())
            )
        return entries

    def read(self, path: str, max_size: int | None = None) -> bytes:
        with open(self._resolve(path), "rb") as f:
            if max_size is None:
                return f.read()
            return f.read(max_size + 1)

    def write(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp_", dir=target.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def mkdir_all(self, path: str) -> None:
        self._resolve(path).mkdir(mode=0o755, parents=True, exist_ok=True)

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()
