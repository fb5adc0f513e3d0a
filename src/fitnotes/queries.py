"""
Transport-independent note operations.

Each function validates its input first, then reads the repository, and
returns a JSON-ready dict. The MCP server and the CLI are thin wrappers.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from .exceptions import InvalidPagination, InvalidPeriod
from .repository import NoteRepository
from .tags import parse_tag_query, select_notes
from .workouts import WorkoutAggregator

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_PERIOD_DAYS = 30

SEARCH_FIELDS = ("name", "raw", "summary", "content")


def _to_int(name: str, value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidPagination(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidPagination(f"{name} must be an integer, got {value!r}")


def parse_pagination(limit: Any = None, offset: Any = None) -> Tuple[int, int]:
    """
    Resolve limit/offset with defaults (10, 0).

    Raises:
        InvalidPagination: If limit is outside 1..100 or offset is negative
    """
    limit = _to_int("limit", limit, DEFAULT_LIMIT)
    offset = _to_int("offset", offset, 0)

    if not 1 <= limit <= MAX_LIMIT:
        raise InvalidPagination(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")
    if offset < 0:
        raise InvalidPagination(f"offset must be >= 0, got {offset}")
    return limit, offset


def parse_days(days: Any, default: int = DEFAULT_PERIOD_DAYS) -> int:
    if days is None:
        return default
    if isinstance(days, float) and days.is_integer():
        days = int(days)
    elif isinstance(days, str):
        try:
            days = int(days.strip())
        except ValueError:
            raise InvalidPeriod(f"days must be a positive integer, got {days!r}") from None
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise InvalidPeriod(f"days must be a positive integer, got {days!r}")
    return days


def _page(notes: list, limit: int, offset: int) -> list:
    return [note.to_dict() for note in notes[offset:offset + limit]]


def list_notes(
    repo: NoteRepository,
    search: Optional[str] = None,
    limit: Any = None,
    offset: Any = None,
) -> Dict[str, Any]:
    """All notes, optionally filtered by a case-insensitive substring."""
    limit, offset = parse_pagination(limit, offset)
    notes = repo.get_all()

    if search:
        needle = search.lower()
        notes = [
            note for note in notes
            if any(
                needle in value.lower()
                for value in (getattr(note, field) for field in SEARCH_FIELDS)
                if value
            )
        ]

    data = _page(notes, limit, offset)
    return {
        "data": data,
        "meta": {
            "total": len(notes),
            "count": len(data),
            "search": search or None,
            "limit": limit,
            "offset": offset,
        },
    }


def get_note(repo: NoteRepository, note_id: str) -> Dict[str, Any]:
    return {"data": repo.get_by_id(note_id).to_dict()}


def notes_by_tag(
    repo: NoteRepository,
    tag: Optional[str],
    limit: Any = None,
    offset: Any = None,
    mode: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Notes carrying any (or all) of the comma-joined tags.

    Raises:
        EmptyQuery: If the tag parameter has no usable tags
        InvalidPagination: If limit/offset are out of bounds
    """
    query = parse_tag_query(tag, mode)
    limit, offset = parse_pagination(limit, offset)

    matching = select_notes(repo.get_all(), query)
    data = _page(matching, limit, offset)
    logger.info(f"Tag query {sorted(query.tags)} ({query.mode.value}) matched {len(matching)} notes")

    return {
        "data": data,
        "meta": {
            "total": len(matching),
            "count": len(data),
            "tags": sorted(query.tags),
            "mode": query.mode.value,
            "limit": limit,
            "offset": offset,
        },
    }


async def calculate_workout_hours(
    repo: NoteRepository,
    aggregator: WorkoutAggregator,
    days: Any = None,
    default_days: int = DEFAULT_PERIOD_DAYS,
) -> Dict[str, Any]:
    period_days = parse_days(days, default_days)
    notes = await asyncio.to_thread(repo.get_all)
    summary = await aggregator.summarize(notes, period_days)
    return summary.to_dict()


def create_note(
    repo: NoteRepository,
    title: str,
    content: str,
    note_type: str = "general",
    tags: Optional[Iterable[Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    note = repo.create(title, content, note_type=note_type, tags=tags, metadata=metadata)
    return {
        "success": True,
        "note": note.to_dict(),
        "message": "Note created successfully",
    }
