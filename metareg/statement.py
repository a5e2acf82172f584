"""Signed entity metadata statements.

A statement carries the canonical encoding of an ``EntityMetadata`` record
(the "untrusted raw value") together with the entity's signature over it.
The raw value must never be trusted before ``open`` has verified it.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import IO

from metareg.errors import (
    CorruptedRegistryError,
    SignatureMismatchError,
)
from metareg.metadata import DEFAULT_LIMITS, MAX_STATEMENT_SIZE, EntityMetadata, MetadataLimits
from metareg.signature import PublicKey, Signature, Signer, verify

# Domain separation context for entity metadata statements. Distinct from
# any other kind of signed statement.
ENTITY_METADATA_SIGNATURE_CONTEXT = "metareg/v1: entity metadata"


@dataclass(frozen=True)
class SignedEntityMetadata:
    """A signed entity metadata statement."""

    untrusted_raw_value: bytes
    signature: Signature

    @property
    def signer(self) -> PublicKey:
        """The entity that claims to have signed this statement."""
        return self.signature.public_key

    def open(
        self,
        expected_id: PublicKey,
        context: str = ENTITY_METADATA_SIGNATURE_CONTEXT,
        limits: MetadataLimits = DEFAULT_LIMITS,
    ) -> EntityMetadata:
        """Verify the statement and return the validated metadata record.

        Checks, in order: the embedded signer matches ``expected_id``, the
        signature verifies under ``context``, the payload decodes, and the
        decoded record passes ``validate_basic``.
        """
        if self.signer != expected_id:
            raise SignatureMismatchError(
                "entity metadata signer does not match expected entity "
                f"(expected: {expected_id} got: {self.signer})"
            )
        if not verify(
            context,
            self.untrusted_raw_value,
            self.signature.signature,
            self.signature.public_key,
        ):
            raise SignatureMismatchError("entity metadata signature verification failed")

        meta = EntityMetadata.from_canonical_bytes(self.untrusted_raw_value)
        meta.validate_basic(limits)
        return meta

    def to_dict(self) -> dict:
        return {
            "untrusted_raw_value": base64.b64encode(self.untrusted_raw_value).decode("ascii"),
            "signature": self.signature.to_dict(),
        }

    def save(self) -> bytes:
        """Serialize the statement into its storage encoding."""
        return json.dumps(self.to_dict(), indent=2).encode("utf-8") + b"\n"

    def write(self, fp: IO[bytes]) -> None:
        fp.write(self.save())

    @classmethod
    def load(cls, data: bytes, max_size: int = MAX_STATEMENT_SIZE) -> SignedEntityMetadata:
        """Parse a statement from its storage encoding.

        Oversized input is rejected before any decoding is attempted.
        """
        if len(data) > max_size:
            raise CorruptedRegistryError(
                f"statement too big (size: {len(data)} max: {max_size})"
            )
        try:
            doc = json.loads(data.decode("utf-8"))
            raw = base64.b64decode(doc["untrusted_raw_value"].encode("ascii"), validate=True)
            signature = Signature.from_dict(doc["signature"])
        except (
            UnicodeError,
            ValueError,
            KeyError,
            TypeError,
            AttributeError,
            binascii.Error,
        ) as e:
            raise CorruptedRegistryError(
                f"failed to unmarshal signed entity metadata: {e}"
            ) from e
        return cls(untrusted_raw_value=raw, signature=signature)


def sign_entity_metadata(
    signer: Signer,
    meta: EntityMetadata,
    context: str = ENTITY_METADATA_SIGNATURE_CONTEXT,
) -> SignedEntityMetadata:
    """Serialize ``meta`` canonically and sign the result."""
    raw = meta.canonical_bytes()
    sig = signer.sign(context, raw)
    return SignedEntityMetadata(
        untrusted_raw_value=raw,
        signature=Signature(public_key=signer.public(), signature=sig),
    )
