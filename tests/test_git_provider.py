"""Tests for the Git-backed registry provider, using local repositories."""

import tempfile
from pathlib import Path

import pytest
from git import Actor, Repo

from metareg.errors import NoSuchEntityError, StorageError
from metareg.metadata import EntityMetadata
from metareg.registry import new_filesystem_path_provider
from metareg.registry.git_provider import (
    GitConfig,
    default_git_config,
    new_git_provider,
    testing_git_config,
)
from metareg.signature import Ed25519Signer
from metareg.statement import sign_entity_metadata

AUTHOR = Actor("Registry Tests", "tests@metareg.invalid")
SIGNER = Ed25519Signer.test_signer("git provider entity")


def _commit_all(repo: Repo, workdir: Path, message: str) -> None:
    paths = [str(p.relative_to(workdir)) for p in workdir.rglob("*") if p.is_file() and ".git" not in p.parts]
    repo.index.add(paths)
    repo.index.commit(message, author=AUTHOR, committer=AUTHOR)


def _make_remote(tmpdir: str, branch: str = "testing") -> tuple[Repo, Path]:
    workdir = Path(tmpdir) / "remote"
    repo = Repo.init(workdir)

    p = new_filesystem_path_provider(workdir)
    p.init()
    p.update_entity(sign_entity_metadata(SIGNER, EntityMetadata(serial=1, name="from git")))
    (workdir / "README.md").write_text("registry repository\n")

    _commit_all(repo, workdir, "Initialize registry")
    repo.create_head(branch)
    return repo, workdir


def test_git_configs():
    assert default_git_config("url").branch == "production"
    assert testing_git_config("url").branch == "testing"
    assert GitConfig(url="url").branch == "production"


def test_clone_and_read():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo, workdir = _make_remote(tmpdir)
        p = new_git_provider(testing_git_config(str(workdir)))
        repo.close()

        p.verify()
        entities = p.get_entities()
        assert list(entities) == [SIGNER.public()]
        assert p.get_entity(SIGNER.public()).name == "from git"

        with pytest.raises(NoSuchEntityError):
            p.get_entity(Ed25519Signer.test_signer("absent").public())


def test_git_provider_is_read_only():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo, workdir = _make_remote(tmpdir)
        p = new_git_provider(testing_git_config(str(workdir)))
        repo.close()

        signed = sign_entity_metadata(SIGNER, EntityMetadata(serial=2, name="changed"))
        with pytest.raises(StorageError):
            p.update_entity(signed)
        assert p.get_entity(SIGNER.public()).serial == 1


def test_git_provider_is_a_snapshot():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo, workdir = _make_remote(tmpdir)
        p = new_git_provider(GitConfig(url=str(workdir), branch=repo.active_branch.name))

        other = Ed25519Signer.test_signer("late arrival")
        fs = new_filesystem_path_provider(workdir)
        fs.update_entity(sign_entity_metadata(other, EntityMetadata(serial=1, name="late")))
        _commit_all(repo, workdir, "Add another entity")
        repo.close()

        assert list(p.get_entities()) == [SIGNER.public()]


def test_missing_branch():
    with tempfile.TemporaryDirectory() as tmpdir:
        repo, workdir = _make_remote(tmpdir)
        repo.close()
        with pytest.raises(StorageError):
            new_git_provider(default_git_config(str(workdir)))


def test_bad_url():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(StorageError):
            new_git_provider(testing_git_config(str(Path(tmpdir) / "does-not-exist")))


def test_empty_url():
    with pytest.raises(StorageError):
        new_git_provider(GitConfig(url=""))
