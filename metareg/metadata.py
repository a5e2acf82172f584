"""Entity metadata records and their field-level validation rules.

A record is "basically valid" when its version is supported and every
present field satisfies its own length bound and syntax rule. Fields are
checked independently and in a fixed order; the first failure is raised.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlsplit

import yaml

from metareg.errors import (
    CorruptPayloadError,
    FieldTooLongError,
    InvalidVersionError,
    MalformedFieldError,
)

# Maximum encoded signed statement size in bytes.
MAX_STATEMENT_SIZE = 16 * 1024

MAX_ENTITY_NAME_LENGTH = 50
MAX_ENTITY_URL_LENGTH = 64
MAX_ENTITY_EMAIL_LENGTH = 32
MAX_ENTITY_KEYBASE_LENGTH = 32
MAX_ENTITY_TWITTER_LENGTH = 32

MIN_SUPPORTED_VERSION = 1
MAX_SUPPORTED_VERSION = 1

MAX_VERSION = 2**16 - 1
MAX_SERIAL = 2**64 - 1

KEYBASE_HANDLE_RE = re.compile(r"[A-Za-z0-9_]+")
TWITTER_HANDLE_RE = re.compile(r"[A-Za-z0-9_]+")

# RFC 5322 addr-spec: dot-atom or quoted local part, dot-atom or literal domain.
_ATEXT = r"[^\s\x00-\x1f\x7f()<>\[\]:;@\\,.\"]+"
_DOT_ATOM = rf"{_ATEXT}(?:\.{_ATEXT})*"
_QUOTED_STRING = r'"(?:[^"\\\r\n]|\\.)*"'
_DOMAIN_LITERAL = r"\[[^\[\]\\\s]*\]"
ADDR_SPEC_RE = re.compile(
    rf"(?:{_DOT_ATOM}|{_QUOTED_STRING})@(?:{_DOT_ATOM}|{_DOMAIN_LITERAL})"
)
_PHRASE_RE = re.compile(rf"(?:{_QUOTED_STRING}|[^\s\"<>@,;:\\\[\]()]+)(?:\s+(?:{_QUOTED_STRING}|[^\s\"<>@,;:\\\[\]()]+))*")

_WIRE_FIELDS = ("v", "serial", "name", "url", "email", "keybase", "twitter")


@dataclass(frozen=True)
class MetadataLimits:
    """Version range and per-field length bounds (in UTF-8 bytes)."""

    min_version: int = MIN_SUPPORTED_VERSION
    max_version: int = MAX_SUPPORTED_VERSION
    name: int = MAX_ENTITY_NAME_LENGTH
    url: int = MAX_ENTITY_URL_LENGTH
    email: int = MAX_ENTITY_EMAIL_LENGTH
    keybase: int = MAX_ENTITY_KEYBASE_LENGTH
    twitter: int = MAX_ENTITY_TWITTER_LENGTH


DEFAULT_LIMITS = MetadataLimits()


@dataclass
class EntityMetadata:
    """Metadata about an entity, as published in the registry."""

    version: int = MAX_SUPPORTED_VERSION
    serial: int = 0  # Must strictly increase across updates

    name: str = ""
    url: str = ""
    email: str = ""
    keybase: str = ""  # keybase.io handle
    twitter: str = ""

    def validate_basic(self, limits: MetadataLimits = DEFAULT_LIMITS) -> None:
        """Perform basic validity checks, raising the first failure found."""
        if self.version < limits.min_version or self.version > limits.max_version:
            raise InvalidVersionError(self.version)

        _check_length("name", self.name, limits.name)

        _check_length("url", self.url, limits.url)
        if self.url:
            _check_url(self.url)

        _check_length("email", self.email, limits.email)
        if self.email:
            name, _ = _parse_mailbox(self.email)
            if name:
                raise MalformedFieldError("email", "must not contain a name")

        _check_length("keybase", self.keybase, limits.keybase)
        if self.keybase and not KEYBASE_HANDLE_RE.fullmatch(self.keybase):
            raise MalformedFieldError("keybase")

        _check_length("twitter", self.twitter, limits.twitter)
        if self.twitter and not TWITTER_HANDLE_RE.fullmatch(self.twitter):
            raise MalformedFieldError("twitter")

    def to_dict(self) -> dict:
        data: dict = {"v": self.version, "serial": self.serial}
        for key in ("name", "url", "email", "keybase", "twitter"):
            value = getattr(self, key)
            if value:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: object) -> EntityMetadata:
        """Strictly decode a wire dict. Unknown keys and wrong types are rejected."""
        if not isinstance(data, dict):
            raise CorruptPayloadError("entity metadata must be an object")

        unknown = sorted(str(k) for k in data if k not in _WIRE_FIELDS)
        if unknown:
            raise CorruptPayloadError(f"unknown entity metadata fields: {', '.join(unknown)}")

        version = _decode_uint("v", data.get("v", 0), MAX_VERSION)
        serial = _decode_uint("serial", data.get("serial", 0), MAX_SERIAL)

        strings = {}
        for key in ("name", "url", "email", "keybase", "twitter"):
            value = data.get(key, "")
            if value is None:
                value = ""
            if not isinstance(value, str):
                raise CorruptPayloadError(f"entity metadata field '{key}' must be a string")
            strings[key] = value

        return cls(version=version, serial=serial, **strings)

    def canonical_bytes(self) -> bytes:
        """Deterministic encoding used as the signed message."""
        return _canonical_json(self.to_dict())

    @classmethod
    def from_canonical_bytes(cls, raw: bytes) -> EntityMetadata:
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CorruptPayloadError(f"failed to decode entity metadata: {e}") from e
        return cls.from_dict(data)

    def equal(self, other: EntityMetadata | None) -> bool:
        """Compare by canonical encoding rather than field by field."""
        if other is None:
            return False
        return self.canonical_bytes() == other.canonical_bytes()

    def pretty_print(self, prefix: str = "") -> str:
        return "\n".join(
            [
                f"{prefix}Version: {self.version}",
                f"{prefix}Serial:  {self.serial}",
                f"{prefix}Name:    {self.name}",
                f"{prefix}URL:     {self.url}",
                f"{prefix}Email:   {self.email}",
                f"{prefix}Keybase: {self.keybase}",
                f"{prefix}Twitter: {self.twitter}",
            ]
        )


def load_metadata_file(path: str | Path) -> EntityMetadata:
    """Load an entity metadata descriptor from a YAML (or JSON) file."""
    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise CorruptPayloadError(f"failed to parse entity metadata descriptor: {e}") from e
    return EntityMetadata.from_dict(data)


def _canonical_json(obj: dict) -> bytes:
    return json.dumps(
        obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False
    ).encode("utf-8")


def _decode_uint(key: str, value: object, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise CorruptPayloadError(f"entity metadata field '{key}' must be an integer")
    if value < 0 or value > maximum:
        raise CorruptPayloadError(f"entity metadata field '{key}' out of range: {value}")
    return value


def _check_length(field: str, value: str, max_length: int) -> None:
    length = len(value.encode("utf-8"))
    if length > max_length:
        raise FieldTooLongError(field, length, max_length)


def _check_url(value: str) -> None:
    if any(c.isspace() or ord(c) < 0x20 or ord(c) == 0x7F for c in value):
        raise MalformedFieldError("url", "contains whitespace or control characters")
    try:
        parsed = urlsplit(value)
        port = parsed.port
    except ValueError as e:
        raise MalformedFieldError("url", str(e)) from e

    if parsed.scheme != "https":
        raise MalformedFieldError(
            "url", f"must use the https scheme (scheme: {parsed.scheme})"
        )
    if not parsed.hostname:
        raise MalformedFieldError("url", "must be an absolute URL with a host")
    if port is not None:
        raise MalformedFieldError("url", f"must use the default port (port: {port})")
    # urlsplit drops empty-but-present components, so look at the raw string.
    if "?" in value or "#" in value:
        raise MalformedFieldError("url", "must not contain query values or fragments")


def _parse_mailbox(value: str) -> tuple[str, str]:
    """Split a single mailbox into (display name, addr-spec)."""
    s = value.strip()
    name = ""
    addr = s
    if s.endswith(">"):
        idx = s.rfind("<")
        if idx < 0:
            raise MalformedFieldError("email", "unbalanced angle brackets")
        name = s[:idx].strip()
        addr = s[idx + 1 : -1].strip()
        if name:
            if not _PHRASE_RE.fullmatch(name):
                raise MalformedFieldError("email", "malformed display name")
            if name.startswith('"') and name.endswith('"'):
                name = name[1:-1]
                if not name:
                    raise MalformedFieldError("email", "empty quoted display name")
    if not ADDR_SPEC_RE.fullmatch(addr):
        raise MalformedFieldError("email", "missing or invalid address")
    return name, addr
