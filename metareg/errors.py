"""Error taxonomy for the metadata registry.

Every error raised by the library derives from ``RegistryError`` so callers
(and the CLI) can catch the whole family at once.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for all registry errors."""


class NoSuchEntityError(RegistryError):
    """The requested entity does not exist in the registry."""

    def __init__(self, entity_id: object = None):
        self.entity_id = entity_id
        msg = "registry: no such entity"
        if entity_id is not None:
            msg += f" ({entity_id})"
        super().__init__(msg)


class CorruptedRegistryError(RegistryError):
    """The registry does not conform to the layout or fails verification."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"registry: corrupted registry: {reason}")


class StorageError(RegistryError):
    """The underlying blob store failed."""


class AlreadyInitializedError(RegistryError):
    """``init`` was called on a registry that already exists."""

    def __init__(self, path: str = ""):
        self.path = path
        super().__init__(f"registry already initialized (or corrupted): {path}")


# --- Statement / metadata validation ---


class InvalidMetadataError(RegistryError):
    """A statement or its metadata record failed validation."""


class InvalidVersionError(InvalidMetadataError):
    def __init__(self, version: int):
        self.version = version
        super().__init__(f"unsupported entity metadata version: {version}")


class FieldTooLongError(InvalidMetadataError):
    def __init__(self, field: str, length: int, max_length: int):
        self.field = field
        self.length = length
        self.max_length = max_length
        super().__init__(
            f"entity {field} too long (length: {length} max: {max_length})"
        )


class MalformedFieldError(InvalidMetadataError):
    def __init__(self, field: str, reason: str = ""):
        self.field = field
        self.reason = reason
        msg = f"entity {field} is malformed"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class SignatureMismatchError(InvalidMetadataError):
    """Signer does not match the expected entity or the signature is bad."""


class CorruptPayloadError(InvalidMetadataError):
    """The signed payload could not be decoded into a metadata record."""


# --- Update protocol ---


class SerialNotIncreasedError(RegistryError):
    """An updated record did not bump its serial number."""

    def __init__(self, entity_id: object, existing: int, provided: int):
        self.entity_id = entity_id
        self.existing = existing
        self.provided = provided
        super().__init__(
            f"updated entity '{entity_id}' metadata must increase serial number "
            f"(existing: {existing} provided: {provided})"
        )


class EntityRemovedError(RegistryError):
    """An update removed an entity statement."""

    def __init__(self, entity_id: object):
        self.entity_id = entity_id
        super().__init__(f"entity statement has been removed: {entity_id}")
