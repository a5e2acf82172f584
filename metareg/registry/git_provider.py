"""Git-backed registry provider: clone a branch into memory and read it.

The clone happens once, when the provider is created. The resulting
provider is read-only and never sees later pushes; create a new provider to
refresh the data.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path

from git import GitCommandError, Repo

from metareg.config import PRODUCTION_BRANCH, TESTING_BRANCH
from metareg.errors import StorageError
from metareg.registry.fs_provider import REGISTRY_DIR, FilesystemProvider
from metareg.registry.provider import Provider
from metareg.storage import MemoryBlobStore

logger = logging.getLogger(__name__)


@dataclass
class GitConfig:
    """Where the registry lives."""

    url: str
    """Repository URL (anything ``git clone`` accepts, including local paths)."""

    branch: str = PRODUCTION_BRANCH
    """Branch holding the registry."""


def default_git_config(url: str) -> GitConfig:
    """Configuration pointing at the production branch of ``url``."""
    return GitConfig(url=url, branch=PRODUCTION_BRANCH)


def testing_git_config(url: str) -> GitConfig:
    """Configuration pointing at the testing branch of ``url``."""
    return GitConfig(url=url, branch=TESTING_BRANCH)


def new_git_provider(cfg: GitConfig, **provider_kwargs) -> Provider:
    """Clone ``cfg`` and return a read-only provider over the checkout.

    Extra keyword arguments (signature context, limits) are passed on to
    ``FilesystemProvider``.

    Raises:
        StorageError: If the repository cannot be cloned or read.
    """
    if not cfg.url:
        raise StorageError("registry/git: no repository URL configured")

    files = _clone_registry_tree(cfg)
    store = MemoryBlobStore(files, read_only=True)
    return FilesystemProvider(store, **provider_kwargs)


def _clone_registry_tree(cfg: GitConfig) -> dict[str, bytes]:
    """Shallow-clone one branch and return the registry files of its head."""
    clone_dir = Path(tempfile.mkdtemp(prefix="metareg_"))
    logger.info("Cloning registry %s (branch %s)", cfg.url, cfg.branch)
    try:
        repo = Repo.clone_from(
            cfg.url,
            clone_dir,
            depth=1,
            branch=cfg.branch,
            single_branch=True,
            no_tags=True,
            no_checkout=True,
            env={"GIT_TERMINAL_PROMPT": "0"},
        )
        try:
            files = _read_tree(repo)
        finally:
            repo.close()
    except (GitCommandError, ValueError) as e:
        raise StorageError(f"registry/git: failed to clone repository: {e}") from e
    finally:
        shutil.rmtree(clone_dir, ignore_errors=True)

    logger.debug("Loaded %d registry files from %s", len(files), cfg.url)
    return files


def _read_tree(repo: Repo) -> dict[str, bytes]:
    files: dict[str, bytes] = {}
    prefix = f"{REGISTRY_DIR}/"
    for item in repo.head.commit.tree.traverse():
        if item.type != "blob" or not item.path.startswith(prefix):
            continue
        files[item.path] = item.data_stream.read()
    return files
