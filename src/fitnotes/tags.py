"""
Tag normalization and matching.

Tag names compare case-insensitively with surrounding whitespace ignored.
Duplicate tags on a note collapse to one logical tag.
"""

import logging
from typing import FrozenSet, Iterable, List, Optional, Sequence
from urllib.parse import unquote

from .exceptions import EmptyQuery, MalformedNote
from .models import Note, QueryMode, TagEntry, TagQuery

logger = logging.getLogger(__name__)

FITNESS_TAGS: FrozenSet[str] = frozenset({
    "fitness", "workout", "exercise", "training", "gym", "cardio", "strength",
    "yoga", "running", "jogging", "walking", "swimming", "cycling",
})


def normalize_tag(name: str) -> str:
    return name.strip().casefold()


def note_tag_set(note_tags: Optional[Iterable[TagEntry]]) -> FrozenSet[str]:
    """Normalized tag names of a note; empty for a missing tag list."""
    if note_tags is None:
        return frozenset()
    return frozenset(
        normalized
        for normalized in (normalize_tag(entry.name) for entry in note_tags)
        if normalized
    )


def parse_tag_query(raw: Optional[str], mode: Optional[str] = None) -> TagQuery:
    """
    Build a TagQuery from a comma-joined, URL-encoded tag parameter.

    Examples:
        "Cardio, Strength"      → {"cardio", "strength"}
        "Cardio%2C%20Strength"  → {"cardio", "strength"}
        "yoga,,YOGA"            → {"yoga"}

    Raises:
        EmptyQuery: If no tag survives decoding and trimming
        InvalidQueryMode: If mode is not 'any' or 'all'
    """
    decoded = unquote(raw or "")
    tags = frozenset(
        normalized
        for normalized in (normalize_tag(part) for part in decoded.split(","))
        if normalized
    )

    if not tags:
        raise EmptyQuery("No valid tags specified")

    return TagQuery(tags=tags, mode=QueryMode.parse(mode))


def matches(
    note_tags: Optional[Iterable[TagEntry]],
    query_tags: Iterable[str],
    mode: QueryMode = QueryMode.ANY,
) -> bool:
    """
    Check a note's tags against a set of query tags.

    ALL requires every query tag on the note, ANY requires at least one.
    Query tags are normalized here too, so raw user casing is fine.
    """
    wanted = {normalize_tag(tag) for tag in query_tags}
    wanted.discard("")
    have = note_tag_set(note_tags)

    if mode == QueryMode.ALL:
        return bool(wanted) and wanted <= have
    return not have.isdisjoint(wanted)


def select_notes(notes: Sequence[Note], query: TagQuery) -> List[Note]:
    """Notes matching the query, in corpus order. Malformed notes never match."""
    selected = []
    for note in notes:
        try:
            note_tags = note.require_tags()
        except MalformedNote as e:
            logger.debug(f"{e}, skipping")
            continue
        if matches(note_tags, query.tags, query.mode):
            selected.append(note)

    logger.debug(
        f"Found {len(selected)} notes matching {query.mode.value} of {sorted(query.tags)}"
    )
    return selected


def select_fitness_notes(notes: Sequence[Note]) -> List[Note]:
    return select_notes(notes, TagQuery(tags=FITNESS_TAGS, mode=QueryMode.ANY))
