"""Check whether one registry snapshot is a valid successor of another.

Entities may be added or updated but never removed, and an updated entity
must carry a strictly higher serial number. Records are compared by their
canonical encoding, so re-submitting an identical record needs no bump.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from metareg.errors import CorruptedRegistryError, EntityRemovedError, SerialNotIncreasedError

if TYPE_CHECKING:
    from metareg.registry.provider import Provider

logger = logging.getLogger(__name__)


def verify_update(candidate: Provider, prior: Provider) -> None:
    """Check that ``candidate`` is a valid update of ``prior``.

    Raises:
        CorruptedRegistryError: Either snapshot fails to load.
        EntityRemovedError: An entity of ``prior`` is missing from ``candidate``.
        SerialNotIncreasedError: A changed record did not bump its serial.
    """
    try:
        dst_entities = candidate.get_entities()
    except CorruptedRegistryError as e:
        raise CorruptedRegistryError(f"destination registry is corrupted: {e.reason}") from e

    try:
        src_entities = prior.get_entities()
    except CorruptedRegistryError as e:
        raise CorruptedRegistryError(f"source registry is corrupted: {e.reason}") from e

    for entity_id in sorted(src_entities, key=lambda k: k.raw):
        if entity_id not in dst_entities:
            raise EntityRemovedError(entity_id)

    added = 0
    updated = 0
    for entity_id in sorted(dst_entities, key=lambda k: k.raw):
        dst = dst_entities[entity_id]
        src = src_entities.get(entity_id)
        if src is None:
            added += 1
            continue
        if src.equal(dst):
            continue
        if dst.serial <= src.serial:
            raise SerialNotIncreasedError(entity_id, src.serial, dst.serial)
        updated += 1

    logger.info(
        "Registry update verified: %d added, %d updated, %d unchanged",
        added,
        updated,
        len(dst_entities) - added - updated,
    )
