"""Entry validation and exit filtering."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Set

from wiptrack.domain.entry import MalformedEntryError, TaskEntry
from wiptrack.domain.stages import DEFAULT_TAXONOMY, StageTaxonomy

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    entries: List[TaskEntry] = field(default_factory=list)
    dropped: int = 0


def parse_entries(records: Iterable[Any]) -> ParseResult:
    """Turn feed records into entries, silently dropping malformed ones."""

    result = ParseResult()
    for index, record in enumerate(records):
        if isinstance(record, TaskEntry):
            result.entries.append(record)
            continue
        if not isinstance(record, Mapping):
            logger.debug("Dropping record #%d: not a mapping", index)
            result.dropped += 1
            continue
        try:
            result.entries.append(TaskEntry.from_record(record))
        except MalformedEntryError as exc:
            logger.debug("Dropping record #%d: %s", index, exc)
            result.dropped += 1
    return result


def exited_batches(entries: Iterable[TaskEntry], taxonomy: StageTaxonomy = DEFAULT_TAXONOMY) -> Set[str]:
    """Batches whose terminal step has finished; they are no longer WIP anywhere."""

    return {
        entry.batch_no
        for entry in entries
        if entry.step_name in taxonomy.exit_steps and entry.end_date is not None
    }


def tracked_entries(entries: Iterable[TaskEntry], taxonomy: StageTaxonomy = DEFAULT_TAXONOMY) -> List[TaskEntry]:
    """Drop entries without a batch, outside the tracked flow, or of exited batches.

    The exit set is computed over the whole collection before anything else is
    filtered, so an exit recorded under one department or stage removes the
    batch everywhere.
    """

    entries = list(entries)
    exited = exited_batches(entries, taxonomy)
    kept = [
        entry
        for entry in entries
        if entry.batch_no
        and entry.stage_group != taxonomy.other_stage
        and entry.batch_no not in exited
    ]
    if exited:
        logger.debug("Excluded %d exited batches", len(exited))
    return kept
