"""Registry — the store of signed entity metadata statements.

The registry provides:
- Providers: read-only (Provider) and mutable (MutableProvider) access
- Filesystem provider: one statement file per entity in a blob store
- Update integrity: checking a snapshot transition is append-only

The Git provider lives in ``metareg.registry.git_provider`` and is imported
only where it is used; GitPython requires a ``git`` executable at import.
"""

from metareg.registry.fs_provider import (
    FilesystemProvider,
    new_filesystem_path_provider,
    new_filesystem_provider,
)
from metareg.registry.integrity import verify_update
from metareg.registry.provider import MutableProvider, Provider

__all__ = [
    "FilesystemProvider",
    "MutableProvider",
    "Provider",
    "new_filesystem_path_provider",
    "new_filesystem_provider",
    "verify_update",
]
