"""Tests for entity metadata records and their validation rules."""

import tempfile
from pathlib import Path

import pytest
import yaml

from metareg import testcases
from metareg.errors import (
    CorruptPayloadError,
    FieldTooLongError,
    InvalidVersionError,
    MalformedFieldError,
)
from metareg.metadata import EntityMetadata, MetadataLimits, load_metadata_file


def _all_cases():
    return testcases.BASIC_VERSION_AND_SIZE + testcases.FIELD_SEMANTICS


@pytest.mark.parametrize("tc", _all_cases(), ids=lambda tc: tc.name)
def test_validate_basic_cases(tc):
    if tc.valid:
        tc.meta.validate_basic()
    else:
        with pytest.raises(Exception):
            tc.meta.validate_basic()


def test_validate_basic_extended_cases():
    cases = testcases.extended_version_and_size()
    assert len(cases) == 3 * 8 * 2**5
    for tc in cases:
        try:
            tc.meta.validate_basic()
            ok = True
        except (InvalidVersionError, FieldTooLongError):
            ok = False
        assert ok == tc.valid, tc.name


@pytest.mark.parametrize("version", [0, 2, 100])
def test_unsupported_version(version):
    meta = EntityMetadata(version=version, name="fine")
    with pytest.raises(InvalidVersionError):
        meta.validate_basic()


def test_empty_record_is_valid():
    EntityMetadata(version=1).validate_basic()


@pytest.mark.parametrize(
    "url",
    [
        "https://hello.world/bar/goo",
        "https://hello.world",
        "HTTPS://hello.world/",
        "https://hello.world:/bar",
    ],
)
def test_valid_urls(url):
    EntityMetadata(url=url).validate_basic()


@pytest.mark.parametrize(
    "url",
    [
        "http://hello.world/bar/goo",
        "https://hello.world:123/bar",
        "https://hello.world:443/bar",
        "https://hello.world/bar?goo=1",
        "https://hello.world/bar#goo",
        "https://hello.world/bar?",
        "https://hello.world/bar#",
        "hello.world",
        "127.0.0.1:1234",
        "https:///nohost",
        "https://hello world/",
        "https://hello.world:abc/",
    ],
)
def test_invalid_urls(url):
    with pytest.raises(MalformedFieldError) as exc:
        EntityMetadata(url=url).validate_basic()
    assert exc.value.field == "url"


@pytest.mark.parametrize(
    "email",
    ["hello@world.org", "<hello@world.org>", "first.last+tag@sub.world.org"],
)
def test_valid_emails(email):
    EntityMetadata(email=email).validate_basic()


@pytest.mark.parametrize(
    "email",
    [
        "Hello World <hello@world.org>",
        '"Hello" <hello@world.org>',
        '"" <hello@world.org>',
        "hello world.org",
        "@world.org",
        "hello@.org",
        "hello@world.org.",
        "hello@@world.org",
        "hello@world.org, other@world.org",
    ],
)
def test_invalid_emails(email):
    with pytest.raises(MalformedFieldError) as exc:
        EntityMetadata(email=email).validate_basic()
    assert exc.value.field == "email"


@pytest.mark.parametrize("field", ["keybase", "twitter"])
def test_handles(field):
    EntityMetadata(**{field: "Hello_world42"}).validate_basic()
    for bad in ["helloworld-", "foo:bar", "hello\n", "héllo"]:
        with pytest.raises(MalformedFieldError) as exc:
            EntityMetadata(**{field: bad}).validate_basic()
        assert exc.value.field == field


def test_length_is_measured_in_bytes():
    # 26 two-byte characters: 26 characters but 52 bytes.
    meta = EntityMetadata(name="é" * 26)
    with pytest.raises(FieldTooLongError) as exc:
        meta.validate_basic()
    assert exc.value.field == "name"
    assert exc.value.length == 52
    assert exc.value.max_length == 50


def test_first_failure_wins():
    meta = EntityMetadata(
        version=1,
        name=testcases.TOO_LONG_NAME,
        url="http://bad.scheme/",
        twitter="foo:bar",
    )
    with pytest.raises(FieldTooLongError) as exc:
        meta.validate_basic()
    assert exc.value.field == "name"

    meta.name = ""
    with pytest.raises(MalformedFieldError) as exc:
        meta.validate_basic()
    assert exc.value.field == "url"

    meta.version = 2
    with pytest.raises(InvalidVersionError):
        meta.validate_basic()


def test_custom_limits():
    limits = MetadataLimits(name=5)
    with pytest.raises(FieldTooLongError):
        EntityMetadata(name="toolong").validate_basic(limits)
    EntityMetadata(name="short").validate_basic(limits)


def test_canonical_bytes_omit_empty_fields():
    meta = EntityMetadata(version=1, serial=3, name="hello", twitter="hi")
    assert meta.canonical_bytes() == b'{"name":"hello","serial":3,"twitter":"hi","v":1}'


def test_equal_uses_canonical_encoding():
    a = EntityMetadata(serial=1, name="hello")
    b = EntityMetadata(serial=1, name="hello")
    assert a.equal(b)
    assert a == b

    b.serial = 2
    assert not a.equal(b)
    assert not a.equal(None)


def test_from_dict_roundtrip():
    meta = EntityMetadata(
        version=1,
        serial=7,
        name="hello world",
        url="https://helloworld.io",
        email="hello@world.org",
        keybase="helloworld",
        twitter="helloworld",
    )
    assert EntityMetadata.from_dict(meta.to_dict()) == meta
    assert EntityMetadata.from_canonical_bytes(meta.canonical_bytes()) == meta


def test_from_dict_missing_version_is_zero():
    meta = EntityMetadata.from_dict({"serial": 1})
    assert meta.version == 0
    with pytest.raises(InvalidVersionError):
        meta.validate_basic()


@pytest.mark.parametrize(
    "data",
    [
        [],
        "text",
        {"v": 1, "serial": 1, "extra": "field"},
        {"v": "1", "serial": 1},
        {"v": True, "serial": 1},
        {"v": 1, "serial": -1},
        {"v": 1, "serial": 2**64},
        {"v": 1, "serial": 1.5},
        {"v": 1, "serial": 1, "name": 42},
    ],
)
def test_from_dict_rejects_bad_payloads(data):
    with pytest.raises(CorruptPayloadError):
        EntityMetadata.from_dict(data)


def test_from_canonical_bytes_rejects_garbage():
    with pytest.raises(CorruptPayloadError):
        EntityMetadata.from_canonical_bytes(b"\xff\xfe not json")


def test_pretty_print():
    meta = EntityMetadata(serial=2, name="hello", url="https://hello.world")
    text = meta.pretty_print("  ")
    lines = text.splitlines()
    assert lines[0] == "  Version: 1"
    assert lines[1] == "  Serial:  2"
    assert "  Name:    hello" in lines
    assert "  URL:     https://hello.world" in lines
    assert len(lines) == 7


def test_load_metadata_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "entity.yaml"
        with open(path, "w") as f:
            yaml.dump({"v": 1, "serial": 4, "name": "from yaml"}, f)
        meta = load_metadata_file(path)
        assert meta.serial == 4
        assert meta.name == "from yaml"

        json_path = Path(tmpdir) / "entity.json"
        json_path.write_text('{"v": 1, "serial": 5, "twitter": "hello"}')
        assert load_metadata_file(json_path).twitter == "hello"

        bad_path = Path(tmpdir) / "bad.yaml"
        bad_path.write_text("v: [1, 2\n")
        with pytest.raises(CorruptPayloadError):
            load_metadata_file(bad_path)


def test_load_metadata_file_rejects_invalid_utf8():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "entity.yaml"
        path.write_bytes(b"v: 1\nname: \xff\xfe\n")
        with pytest.raises(CorruptPayloadError):
            load_metadata_file(path)


def test_load_metadata_file_is_utf8():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "entity.yaml"
        path.write_bytes("v: 1\nname: héllo wörld\n".encode("utf-8"))
        assert load_metadata_file(path).name == "héllo wörld"
