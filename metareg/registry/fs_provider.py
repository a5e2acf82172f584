"""Blob-store-backed registry implementation.

Layout::

    registry/.placeholder
    registry/entity/.placeholder
    registry/entity/<lowercase hex public key>.json

Each entity file holds one signed entity metadata statement. Nothing is
cached: every read goes back to the blob store.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from metareg.errors import (
    AlreadyInitializedError,
    CorruptedRegistryError,
    InvalidMetadataError,
    NoSuchEntityError,
    SerialNotIncreasedError,
    StorageError,
)
from metareg.metadata import DEFAULT_LIMITS, MAX_STATEMENT_SIZE, EntityMetadata, MetadataLimits
from metareg.registry.provider import MutableProvider
from metareg.signature import PublicKey
from metareg.statement import ENTITY_METADATA_SIGNATURE_CONTEXT, SignedEntityMetadata
from metareg.storage import BlobStore, FilesystemBlobStore

logger = logging.getLogger(__name__)

REGISTRY_DIR = "registry"
ENTITY_DIR = "entity"
PLACEHOLDER_FILENAME = ".placeholder"
STATEMENT_EXT = ".json"


class FilesystemProvider(MutableProvider):
    """Registry stored as one statement file per entity in a blob store."""

    def __init__(
        self,
        store: BlobStore,
        base_dir: str = "",
        context: str = ENTITY_METADATA_SIGNATURE_CONTEXT,
        max_statement_size: int = MAX_STATEMENT_SIZE,
        limits: MetadataLimits = DEFAULT_LIMITS,
    ):
        self.store = store
        self._base_dir = base_dir
        self.context = context
        self.max_statement_size = max_statement_size
        self.limits = limits
        # update_entity is a get-compare-write sequence.
        self._update_lock = threading.Lock()

    @property
    def base_dir(self) -> str:
        return self._base_dir

    @property
    def entity_dir(self) -> str:
        return self.store.join(REGISTRY_DIR, ENTITY_DIR)

    def entity_path(self, entity_id: PublicKey) -> str:
        return self.store.join(self.entity_dir, _entity_filename(entity_id))

    def init(self) -> None:
        for path in (REGISTRY_DIR, self.entity_dir):
            if self.store.exists(path):
                raise AlreadyInitializedError(path)

            placeholder = self.store.join(path, PLACEHOLDER_FILENAME)
            try:
                self.store.mkdir_all(path)
                self.store.write(placeholder, b"")
            except OSError as e:
                raise StorageError(f"failed to create path {path}: {e}") from e

        logger.info("Initialized metadata registry in %s", self._base_dir or "<memory>")

    def get_entity(self, entity_id: PublicKey) -> EntityMetadata:
        try:
            data = self.store.read(
                self.entity_path(entity_id), max_size=self.max_statement_size
            )
        except FileNotFoundError:
            raise NoSuchEntityError(entity_id) from None
        except (OSError, StorageError) as e:
            raise CorruptedRegistryError(f"failed to open entity metadata: {e}") from e

        signed = SignedEntityMetadata.load(data, max_size=self.max_statement_size)
        try:
            return signed.open(entity_id, context=self.context, limits=self.limits)
        except InvalidMetadataError as e:
            raise CorruptedRegistryError(f"failed to verify signed entity metadata: {e}") from e

    def get_entities(self) -> dict[PublicKey, EntityMetadata]:
        try:
            entries = self.store.list_dir(self.entity_dir)
        except (OSError, StorageError) as e:
            raise CorruptedRegistryError(f"failed to read entity directory: {e}") from e

        results: dict[PublicKey, EntityMetadata] = {}
        for fi in entries:
            if fi.is_dir or not fi.name.endswith(STATEMENT_EXT):
                continue

            try:
                entity_id = _filename_to_entity(fi.name)
            except ValueError as e:
                raise CorruptedRegistryError(
                    f"entity: bad statement filename '{fi.name}': {e}"
                ) from e

            if fi.size > self.max_statement_size:
                raise CorruptedRegistryError(
                    f"entity: statement too big (size: {fi.size} max: "
                    f"{self.max_statement_size}): {fi.name}"
                )

            try:
                results[entity_id] = self.get_entity(entity_id)
            except (NoSuchEntityError, CorruptedRegistryError) as e:
                raise CorruptedRegistryError(
                    f"entity: bad statement '{fi.name}': {e}"
                ) from e
            logger.debug("Loaded entity statement %s", fi.name)

        return results

    def update_entity(self, entity: SignedEntityMetadata) -> None:
        entity_id = entity.signer
        with self._update_lock:
            try:
                inner = entity.open(entity_id, context=self.context, limits=self.limits)
            except InvalidMetadataError:
                logger.warning("Rejected bad signed entity metadata for %s", entity_id)
                raise

            try:
                existing = self.get_entity(entity_id)
            except NoSuchEntityError:
                existing = None

            if existing is not None and inner.serial <= existing.serial:
                logger.warning(
                    "Rejected update for %s: serial %d does not exceed %d",
                    entity_id,
                    inner.serial,
                    existing.serial,
                )
                raise SerialNotIncreasedError(entity_id, existing.serial, inner.serial)

            data = entity.save()
            if len(data) > self.max_statement_size:
                raise InvalidMetadataError(
                    f"statement too big (size: {len(data)} max: {self.max_statement_size})"
                )

            try:
                self.store.write(self.entity_path(entity_id), data)
            except OSError as e:
                raise StorageError(f"failed to write entity metadata file: {e}") from e

        logger.info("Updated entity %s (serial %d)", entity_id, inner.serial)


def new_filesystem_provider(store: BlobStore, **provider_kwargs) -> FilesystemProvider:
    """Create a registry provider over an arbitrary blob store."""
    return FilesystemProvider(store, **provider_kwargs)


def new_filesystem_path_provider(path: str | Path, **provider_kwargs) -> FilesystemProvider:
    """Create a registry provider for the registry rooted at ``path``."""
    return FilesystemProvider(FilesystemBlobStore(path), base_dir=str(path), **provider_kwargs)


def _entity_filename(entity_id: PublicKey) -> str:
    return entity_id.hex() + STATEMENT_EXT


def _filename_to_entity(filename: str) -> PublicKey:
    stem = filename[: -len(STATEMENT_EXT)]
    entity_id = PublicKey.from_hex(stem)
    if entity_id.hex() != stem:
        raise ValueError("filename is not the canonical lowercase hex encoding")
    return entity_id
