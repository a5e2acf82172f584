"""Registry provider interfaces.

Read-only consumers (listing tools, the Git-backed provider) are typed
against ``Provider``; only ``MutableProvider`` can initialize a registry or
submit updates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from metareg.metadata import EntityMetadata
from metareg.signature import PublicKey
from metareg.statement import SignedEntityMetadata


class Provider(ABC):
    """Read-only registry provider."""

    @abstractmethod
    def get_entities(self) -> dict[PublicKey, EntityMetadata]:
        """Return every entity in the registry.

        Raises ``CorruptedRegistryError`` if any single statement fails; no
        partial results are returned.
        """

    @abstractmethod
    def get_entity(self, entity_id: PublicKey) -> EntityMetadata:
        """Return metadata for a specific entity.

        Raises ``NoSuchEntityError`` when absent and ``CorruptedRegistryError``
        when the stored statement cannot be read or verified.
        """

    def verify(self) -> None:
        """Verify the integrity of the whole registry."""
        self.get_entities()

    def verify_update(self, src: Provider) -> None:
        """Verify that this registry is a valid update of ``src``."""
        from metareg.registry.integrity import verify_update

        verify_update(self, src)


class MutableProvider(Provider):
    """Registry provider that can be initialized and updated."""

    @property
    @abstractmethod
    def base_dir(self) -> str:
        """The base registry directory (empty when not backed by a path)."""

    @abstractmethod
    def init(self) -> None:
        """Create a new, empty registry layout."""

    @abstractmethod
    def update_entity(self, entity: SignedEntityMetadata) -> None:
        """Add or replace an entity's signed metadata statement."""
