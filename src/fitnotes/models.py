"""
Core data types for the notes corpus and workout summaries.

Tags are resolved into TagEntry values once, when a note is loaded:
- WeightedTag for the stored ["name", weight] pair
- LegacyTag for older notes that stored a bare "name" string
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

from .exceptions import InvalidQueryMode, MalformedNote


class QueryMode(str, Enum):
    """How a multi-tag query combines its tags."""

    ANY = "any"
    ALL = "all"

    @classmethod
    def parse(cls, value: Optional[str]) -> "QueryMode":
        if value is None or value == "":
            return cls.ANY
        if isinstance(value, QueryMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidQueryMode(f"Unknown tag query mode: {value!r} (expected 'any' or 'all')") from None


class DurationSource(str, Enum):
    LLM = "llm"
    REGEX = "regex"


@dataclass(frozen=True)
class WeightedTag:
    name: str
    weight: float = 0

    def to_json(self) -> List[Any]:
        return [self.name, self.weight]


@dataclass(frozen=True)
class LegacyTag:
    name: str

    def to_json(self) -> str:
        return self.name


TagEntry = Union[WeightedTag, LegacyTag]


def parse_tag_entry(raw: Any) -> Optional[TagEntry]:
    """
    Resolve one stored tag value into a TagEntry.

    Examples:
        ["cardio", 5] → WeightedTag("cardio", 5)
        ["cardio"]    → WeightedTag("cardio", 0)
        "cardio"      → LegacyTag("cardio")
        42            → None
    """
    if isinstance(raw, str):
        return LegacyTag(raw)

    if isinstance(raw, (list, tuple)) and raw and isinstance(raw[0], str):
        weight = raw[1] if len(raw) > 1 else 0
        # bool is an int subclass; a True weight is junk, not 1
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            weight = 0
        return WeightedTag(raw[0], weight)

    return None


def parse_tags(raw: Any) -> Optional[Tuple[TagEntry, ...]]:
    """
    Resolve a note's stored tags field.

    Returns None when the field is missing or not a list (a malformed note),
    otherwise the entries that could be resolved, in stored order.
    """
    if not isinstance(raw, list):
        return None

    entries = []
    for item in raw:
        entry = parse_tag_entry(item)
        if entry is not None:
            entries.append(entry)
    return tuple(entries)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass
class Note:
    """A single note record as stored in the notes file."""

    id: str
    name: str = ""
    content: str = ""
    tags: Optional[Tuple[TagEntry, ...]] = ()
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    raw: Optional[str] = None
    summary: Optional[str] = None
    type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    # Original record, so unknown keys survive a write-back
    source: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def has_valid_tags(self) -> bool:
        return self.tags is not None

    @property
    def tag_names(self) -> List[str]:
        return [entry.name for entry in self.tags or ()]

    def require_tags(self) -> Tuple[TagEntry, ...]:
        if self.tags is None:
            raise MalformedNote(f"Note {self.id} has no tags array")
        return self.tags

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        name = _text(data.get("title")) or _text(data.get("name")) or ""

        metadata = data.get("metadata")

        return cls(
            id=str(data.get("id", "")),
            name=name,
            content=_text(data.get("content")) or "",
            tags=parse_tags(data.get("tags")),
            created_at=_text(data.get("createdAt")),
            updated_at=_text(data.get("updatedAt")),
            raw=_text(data.get("raw")),
            summary=_text(data.get("summary")),
            type=_text(data.get("type")),
            metadata=metadata if isinstance(metadata, dict) else {},
            source=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.source)
        data["id"] = self.id

        # Write the name back under whichever key the record used
        if "name" in self.source and "title" not in self.source:
            data["name"] = self.name
        else:
            data["title"] = self.name

        data["content"] = self.content
        if self.tags is not None:
            data["tags"] = [entry.to_json() for entry in self.tags]

        optional = {
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "raw": self.raw,
            "summary": self.summary,
            "type": self.type,
        }
        for key, value in optional.items():
            if value is not None:
                data[key] = value

        if self.metadata:
            data["metadata"] = self.metadata

        return data


@dataclass(frozen=True)
class TagQuery:
    tags: FrozenSet[str]
    mode: QueryMode = QueryMode.ANY


@dataclass(frozen=True)
class DurationEstimate:
    note_id: str
    minutes: int
    source: DurationSource


@dataclass(frozen=True)
class WorkoutEntry:
    name: str
    minutes: int
    raw: Optional[str] = None
    source: DurationSource = DurationSource.REGEX

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "duration": self.minutes}
        if self.raw is not None:
            data["raw"] = self.raw
        return data


@dataclass(frozen=True)
class WorkoutSummary:
    """Workout totals over a period. Computed per request, never stored."""

    total_minutes: int
    total_hours: float
    workout_count: int
    average_minutes_per_day: float
    average_hours_per_week: float
    period_days: int
    period_start: date
    period_end: date
    notes_analyzed: int
    fitness_notes_found: int
    entries: Tuple[WorkoutEntry, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": {
                "minutes": self.total_minutes,
                "hours": round(self.total_hours, 2),
                "workouts": self.workout_count,
            },
            "average": {
                "minutesPerDay": round(self.average_minutes_per_day, 1),
                "hoursPerWeek": round(self.average_hours_per_week, 1),
            },
            "period": {
                "days": self.period_days,
                "startDate": self.period_start.isoformat(),
                "endDate": self.period_end.isoformat(),
            },
            "notesAnalyzed": self.notes_analyzed,
            "fitnessNotesFound": self.fitness_notes_found,
            "workouts": [entry.to_dict() for entry in self.entries],
        }
