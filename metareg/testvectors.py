"""Signed test vectors for entity metadata statements.

Each vector pairs a metadata record with the statement a deterministic
test signer produces for it, plus the expected validity. Binary values are
base64-encoded so the whole set can be dumped as JSON.
"""

from __future__ import annotations

import base64
import json

from metareg import testcases
from metareg.metadata import EntityMetadata
from metareg.signature import Ed25519Signer, Signer
from metareg.statement import ENTITY_METADATA_SIGNATURE_CONTEXT, sign_entity_metadata

KEY_SEED_PREFIX = "metareg test vectors: "


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def make_test_vector(
    kind: str,
    meta: EntityMetadata,
    valid: bool,
    signer: Signer | None = None,
    context: str = ENTITY_METADATA_SIGNATURE_CONTEXT,
) -> dict:
    """Build one test vector. Without a signer a per-kind test signer is used."""
    if signer is None:
        signer = Ed25519Signer.test_signer(KEY_SEED_PREFIX + kind)
    signed = sign_entity_metadata(signer, meta, context=context)

    vector = {
        "kind": kind,
        "signature_context": context,
        "entity_meta": meta.to_dict(),
        "signed_entity_meta": signed.to_dict(),
        "encoded_entity_meta": _b64(meta.canonical_bytes()),
        "encoded_signed_entity_meta": _b64(signed.save()),
        "valid": valid,
        "signer_public_key": signer.public().base64(),
    }
    if isinstance(signer, Ed25519Signer):
        vector["signer_private_key"] = _b64(signer.seed())
    return vector


def generate_vectors() -> list[dict]:
    """Test vectors for the basic and extended version/size cases."""
    vectors = []
    for tc in testcases.BASIC_VERSION_AND_SIZE:
        vectors.append(make_test_vector("EntityMetadataBasicVersionAndSize", tc.meta, tc.valid))
    for tc in testcases.extended_version_and_size():
        vectors.append(make_test_vector("EntityMetadataExtendedVersionAndSize", tc.meta, tc.valid))
    return vectors


def dump_vectors(vectors: list[dict]) -> str:
    return json.dumps(vectors, indent=2)
