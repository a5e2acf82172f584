"""Shared entity metadata validation cases.

Used by the test suite and by the test vector generator so that other
implementations of the registry format can check they agree on validity.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass

from metareg.metadata import (
    MAX_ENTITY_EMAIL_LENGTH,
    MAX_ENTITY_KEYBASE_LENGTH,
    MAX_ENTITY_NAME_LENGTH,
    MAX_ENTITY_TWITTER_LENGTH,
    MAX_ENTITY_URL_LENGTH,
    MAX_SERIAL,
    MAX_SUPPORTED_VERSION,
    MIN_SUPPORTED_VERSION,
    EntityMetadata,
)

VALID_NAME = "this is a name"
TOO_LONG_NAME = "this is a name but it is soooooooooooooooooooo long"
VALID_URL = "https://hello.world/bar/goo"
TOO_LONG_URL = "https://too.too.too.too.too.too.too.too.too.too.too.too.too.too.long"
VALID_EMAIL = "hello@world.org"
TOO_LONG_EMAIL = "too@too.too.too.too.too.too.too.long"
VALID_KEYBASE = "Hello_world42"
TOO_LONG_KEYBASE = "tootootootootootootootootootoolong"
VALID_TWITTER = "Hello_world42"
TOO_LONG_TWITTER = "tootootootootootootootootootoolong"


@dataclass(frozen=True)
class MetadataTestCase:
    """An entity metadata record and whether it should validate."""

    name: str
    meta: EntityMetadata
    valid: bool


def _v1(**fields) -> EntityMetadata:
    return EntityMetadata(version=1, **fields)


BASIC_VERSION_AND_SIZE: list[MetadataTestCase] = [
    MetadataTestCase("InvalidVersion1", EntityMetadata(version=0), False),
    MetadataTestCase("InvalidVersion2", EntityMetadata(version=2), False),
    MetadataTestCase("ValidName", _v1(name=VALID_NAME), True),
    MetadataTestCase("TooLongName", _v1(name=TOO_LONG_NAME), False),
    MetadataTestCase("ValidURL", _v1(url=VALID_URL), True),
    MetadataTestCase("TooLongURL", _v1(url=TOO_LONG_URL), False),
    MetadataTestCase("ValidEmail", _v1(email=VALID_EMAIL), True),
    MetadataTestCase("TooLongEmail", _v1(email=TOO_LONG_EMAIL), False),
    MetadataTestCase("ValidKeybase", _v1(keybase=VALID_KEYBASE), True),
    MetadataTestCase("TooLongKeybase", _v1(keybase=TOO_LONG_KEYBASE), False),
    MetadataTestCase("ValidTwitter", _v1(twitter=VALID_TWITTER), True),
    MetadataTestCase("TooLongTwitter", _v1(twitter=TOO_LONG_TWITTER), False),
]

FIELD_SEMANTICS: list[MetadataTestCase] = [
    MetadataTestCase("ValidURL", _v1(url=VALID_URL), True),
    MetadataTestCase("BadSchemeURL", _v1(url="http://hello.world/bar/goo"), False),
    MetadataTestCase("BadQueryURL", _v1(url="https://hello.world/bar?goo=1"), False),
    MetadataTestCase("BadFragmentURL", _v1(url="https://hello.world/bar#goo"), False),
    MetadataTestCase("BadPortURL", _v1(url="https://hello.world:123/bar"), False),
    MetadataTestCase("BadURL1", _v1(url="hello.world"), False),
    MetadataTestCase("BadURL2", _v1(url="127.0.0.1:1234"), False),
    MetadataTestCase("ValidEmail", _v1(email=VALID_EMAIL), True),
    MetadataTestCase("BadEmail1", _v1(email="hello world.org"), False),
    MetadataTestCase("BadEmail2", _v1(email="Hello World <hello@world.org>"), False),
    MetadataTestCase("BadEmail3", _v1(email="@world.org"), False),
    MetadataTestCase("BadEmail4", _v1(email="hello@.org"), False),
    MetadataTestCase("ValidKeybase", _v1(keybase=VALID_KEYBASE), True),
    MetadataTestCase("BadKeybase1", _v1(keybase="helloworld-"), False),
    MetadataTestCase("BadKeybase2", _v1(keybase="https://keybase.io/hello"), False),
    MetadataTestCase("BadKeybase3", _v1(keybase="foo-bar"), False),
    MetadataTestCase("BadKeybase4", _v1(keybase="foo:bar"), False),
    MetadataTestCase("ValidTwitter", _v1(twitter=VALID_TWITTER), True),
    MetadataTestCase("BadTwitter1", _v1(twitter="helloworld-"), False),
    MetadataTestCase("BadTwitter2", _v1(twitter="https://twitter.com/hello"), False),
    MetadataTestCase("BadTwitter3", _v1(twitter="foo-bar"), False),
    MetadataTestCase("BadTwitter4", _v1(twitter="foo:bar"), False),
]


def _valid_bounds(meta: EntityMetadata) -> bool:
    return (
        MIN_SUPPORTED_VERSION <= meta.version <= MAX_SUPPORTED_VERSION
        and len(meta.name) <= MAX_ENTITY_NAME_LENGTH
        and len(meta.url) <= MAX_ENTITY_URL_LENGTH
        and len(meta.email) <= MAX_ENTITY_EMAIL_LENGTH
        and len(meta.keybase) <= MAX_ENTITY_KEYBASE_LENGTH
        and len(meta.twitter) <= MAX_ENTITY_TWITTER_LENGTH
    )


def extended_version_and_size() -> list[MetadataTestCase]:
    """Every combination of version, serial and valid/too-long field values.

    All generated records have every field set.
    """
    versions = [0, 1, 2]
    serials = [0, 1, 10, 42, 1000, 1_000_000, 10_000_000, MAX_SERIAL]
    names = [VALID_NAME, TOO_LONG_NAME]
    urls = [VALID_URL, TOO_LONG_URL]
    emails = [VALID_EMAIL, TOO_LONG_EMAIL]
    keybase_handles = [VALID_KEYBASE, TOO_LONG_KEYBASE]
    twitter_handles = [VALID_TWITTER, TOO_LONG_TWITTER]

    cases = []
    product = itertools.product(
        versions, serials, names, urls, emails, keybase_handles, twitter_handles
    )
    for count, (v, s, name, url, email, keybase, twitter) in enumerate(product):
        meta = EntityMetadata(
            version=v,
            serial=s,
            name=name,
            url=url,
            email=email,
            keybase=keybase,
            twitter=twitter,
        )
        cases.append(
            MetadataTestCase(
                f"ExtendedVersionAndSizeChecks: {count}", meta, _valid_bounds(meta)
            )
        )
    return cases
