"""Ed25519 signing with domain separation.

Every signature is made over ``SHA-512/256(context || message)`` so that a
signature produced for one kind of statement can never be replayed as
another kind. The context is always passed explicitly.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

PUBLIC_KEY_SIZE = 32
SIGNATURE_SIZE = 64
SEED_SIZE = 32


@dataclass(frozen=True)
class PublicKey:
    """An Ed25519 public key; doubles as the entity identifier."""

    raw: bytes

    def __post_init__(self):
        if not isinstance(self.raw, bytes) or len(self.raw) != PUBLIC_KEY_SIZE:
            raise ValueError(
                f"public key must be {PUBLIC_KEY_SIZE} bytes"
            )

    @classmethod
    def from_hex(cls, text: str) -> PublicKey:
        try:
            raw = bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"malformed public key hex: {text!r}") from e
        return cls(raw)

    @classmethod
    def from_base64(cls, text: str) -> PublicKey:
        try:
            raw = base64.b64decode(text.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise ValueError(f"malformed public key base64: {text!r}") from e
        return cls(raw)

    @classmethod
    def parse(cls, text: str) -> PublicKey:
        """Accept either the hex or the base64 text form."""
        if len(text) == PUBLIC_KEY_SIZE * 2:
            try:
                return cls.from_hex(text)
            except ValueError:
                pass
        return cls.from_base64(text)

    def hex(self) -> str:
        return self.raw.hex()

    def base64(self) -> str:
        return base64.b64encode(self.raw).decode("ascii")

    def __str__(self) -> str:
        return self.base64()


@dataclass(frozen=True)
class Signature:
    """A raw signature together with the key that produced it."""

    public_key: PublicKey
    signature: bytes

    def to_dict(self) -> dict:
        return {
            "public_key": self.public_key.base64(),
            "signature": base64.b64encode(self.signature).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Signature:
        sig = base64.b64decode(data["signature"].encode("ascii"), validate=True)
        return cls(public_key=PublicKey.from_base64(data["public_key"]), signature=sig)


def prepare_message(context: str, message: bytes) -> bytes:
    """Return the digest actually signed for ``message`` under ``context``."""
    if not context:
        raise ValueError("signature context must not be empty")
    h = hashes.Hash(hashes.SHA512_256())
    h.update(context.encode("utf-8"))
    h.update(message)
    return h.finalize()


class Signer(Protocol):
    """Anything that can sign on behalf of an entity."""

    def public(self) -> PublicKey:
        ...

    def sign(self, context: str, message: bytes) -> bytes:
        ...


class Ed25519Signer:
    """In-process Ed25519 signer backed by ``cryptography``."""

    def __init__(self, private_key: Ed25519PrivateKey):
        self._key = private_key
        self._public = PublicKey(private_key.public_key().public_bytes_raw())

    @classmethod
    def generate(cls) -> Ed25519Signer:
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> Ed25519Signer:
        if len(seed) != SEED_SIZE:
            raise ValueError(f"ed25519 seed must be {SEED_SIZE} bytes")
        return cls(Ed25519PrivateKey.from_private_bytes(seed))

    @classmethod
    def test_signer(cls, seed_text: str) -> Ed25519Signer:
        """Deterministic signer for tests and test vectors. Never use for real keys."""
        h = hashes.Hash(hashes.SHA512_256())
        h.update(seed_text.encode("utf-8"))
        return cls.from_seed(h.finalize())

    @classmethod
    def load(cls, path: str | Path) -> Ed25519Signer:
        """Load a PKCS8 PEM-encoded Ed25519 private key."""
        data = Path(path).read_bytes()
        try:
            key = serialization.load_pem_private_key(data, password=None)
        except (TypeError, UnsupportedAlgorithm) as e:
            raise ValueError(f"{path}: unusable private key: {e}") from e
        if not isinstance(key, Ed25519PrivateKey):
            raise ValueError(f"{path}: not an Ed25519 private key")
        return cls(key)

    def save(self, path: str | Path) -> None:
        path = Path(path)
        if path.exists():
            raise FileExistsError(f"refusing to overwrite existing key: {path}")
        pem = self._key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(pem)
        path.chmod(0o600)

    def seed(self) -> bytes:
        return self._key.private_bytes_raw()

    def public(self) -> PublicKey:
        return self._public

    def sign(self, context: str, message: bytes) -> bytes:
        return self._key.sign(prepare_message(context, message))


def verify(context: str, message: bytes, signature: bytes, public_key: PublicKey) -> bool:
    """Check ``signature`` over ``message`` under ``context``."""
    if len(signature) != SIGNATURE_SIZE:
        return False
    try:
        Ed25519PublicKey.from_public_bytes(public_key.raw).verify(
            signature, prepare_message(context, message)
        )
    except (InvalidSignature, ValueError):
        return False
    return True
