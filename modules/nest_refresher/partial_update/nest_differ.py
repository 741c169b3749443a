"""Partial-Update Differ

Compares a stored nest with the attributes it should have and writes only what
changed. A nest that leaves the active state loses its dominant identifier in
the same write, and every non-empty write carries a fresh ``updated`` stamp.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from ..exceptions import PersistenceError
from ..interfaces import NestStore
from ..models import Nest, NestAttributes, NestPartialUpdate

logger = logging.getLogger(__name__)

DIFFED_FIELDS = ("discarded", "m2", "spawnpoints", "active")


class NestDiffResult(BaseModel):
    """Outcome of diffing (and possibly writing) one nest."""

    nest: Nest = Field(..., description="Nest as it is after the call")
    partial_update: Optional[NestPartialUpdate] = Field(None, description="Update that was (or would be) written")
    written: bool = Field(False, description="Whether storage was called")

    def changed_fields(self) -> List[str]:
        if self.partial_update is None:
            return []
        return self.partial_update.changed_fields()


def _diff(nest: Nest, target: NestAttributes) -> Dict[str, Any]:
    changes = {}
    for field_name in DIFFED_FIELDS:
        new_value = getattr(target, field_name)
        if new_value != getattr(nest, field_name):
            changes[field_name] = new_value

    if not target.is_active() and nest.pokemon_id is not None:
        changes["pokemon_id"] = None

    return changes


class NestDiffer:
    """Builds and applies minimal nest updates."""

    def __init__(self, nests_store: NestStore, clock: Callable[[], float] = time.time):
        """Initialize the differ.

        Args:
            nests_store: Storage the updates are written to
            clock: Source of the current epoch time for ``updated`` stamps
        """
        self.nests_store = nests_store
        self.clock = clock

    @staticmethod
    def build_partial_update(nest: Nest, target: NestAttributes,
                             updated: Optional[int] = None) -> Optional[NestPartialUpdate]:
        """Build the sparse update turning ``nest`` into ``target``.

        Args:
            nest: Stored nest snapshot
            target: Attributes the nest should have
            updated: Stamp to include when the update is not empty

        Returns:
            NestPartialUpdate with only the changed fields, or None if nothing changed
        """
        changes = _diff(nest, target)
        if not changes:
            return None
        if updated is not None:
            changes["updated"] = updated
        return NestPartialUpdate(**changes)

    def apply(self, nest: Nest, target: NestAttributes, dry_run: bool = False) -> NestDiffResult:
        """Write the difference between ``nest`` and ``target``.

        Args:
            nest: Stored nest snapshot
            target: Attributes the nest should have
            dry_run: Compute the update without writing it

        Returns:
            NestDiffResult; the original nest when nothing changed

        Raises:
            PersistenceError: If the write fails; the original nest stays untouched
        """
        partial_update = self.build_partial_update(nest, target, updated=int(self.clock()))
        if partial_update is None:
            return NestDiffResult(nest=nest)

        new_nest = nest.model_copy(update=partial_update.model_dump(exclude_unset=True))

        if dry_run:
            logger.info(f"Nest {nest.label()}: dry run, would update {partial_update.changed_fields()}")
            return NestDiffResult(nest=new_nest, partial_update=partial_update)

        try:
            self.nests_store.update_nest_partial(nest.nest_id, partial_update)
        except PersistenceError as e:
            discarded = target.discarded.value if target.discarded is not None else "<nil>"
            logger.error(
                f"Nest {nest.label()}: failed to update nest to active={target.active}, "
                f"discarded={discarded}: {e}"
            )
            raise

        return NestDiffResult(nest=new_nest, partial_update=partial_update, written=True)
