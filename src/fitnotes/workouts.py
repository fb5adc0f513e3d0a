"""
Workout hours aggregation over fitness-tagged notes.

Notes carry no reliable workout date, so the period only scales the
averages and labels the window. Every fitness note is counted.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

from .duration import DurationExtractor
from .exceptions import InvalidPeriod
from .models import Note, WorkoutEntry, WorkoutSummary
from .tags import select_fitness_notes

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def note_text(note: Note) -> str:
    """First non-empty of raw, content, summary, name."""
    for candidate in (note.raw, note.content, note.summary, note.name):
        if candidate and candidate.strip():
            return candidate
    return ""


def validate_period_days(days) -> int:
    # bool passes isinstance(int)
    if isinstance(days, bool) or not isinstance(days, int) or days < 1:
        raise InvalidPeriod(f"days must be a positive integer, got {days!r}")
    return days


class WorkoutAggregator:
    """Selects fitness notes, estimates each one's minutes, and totals them."""

    def __init__(
        self,
        extractor: DurationExtractor,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            extractor: Duration strategy chain
            clock: Returns the current time (UTC); injectable for tests
        """
        self.extractor = extractor
        self.clock = clock or _utc_now

    async def summarize(self, notes: Sequence[Note], period_days: int) -> WorkoutSummary:
        """
        Summarize workout time across the corpus.

        Args:
            notes: Full note corpus
            period_days: Length of the reporting window in days

        Returns:
            WorkoutSummary; all zeros when no fitness notes exist

        Raises:
            InvalidPeriod: If period_days is not a positive integer
        """
        period_days = validate_period_days(period_days)

        fitness_notes = select_fitness_notes(notes)
        # Date filtering would narrow this list; none yet
        analyzed = fitness_notes

        estimates = await asyncio.gather(
            *(self.extractor.estimate(note.id, note_text(note)) for note in analyzed)
        )

        entries = tuple(
            WorkoutEntry(name=note.name, minutes=estimate.minutes, raw=note.raw, source=estimate.source)
            for note, estimate in zip(analyzed, estimates)
        )

        total_minutes = sum(entry.minutes for entry in entries)
        total_hours = total_minutes / 60

        end = self.clock()
        start = end - timedelta(days=period_days)

        logger.info(
            f"Workout summary: {len(analyzed)} of {len(notes)} notes, "
            f"{total_minutes} min over {period_days} days"
        )

        return WorkoutSummary(
            total_minutes=total_minutes,
            total_hours=total_hours,
            workout_count=len(analyzed),
            average_minutes_per_day=total_minutes / period_days,
            average_hours_per_week=total_hours * 7 / period_days,
            period_days=period_days,
            period_start=start.date(),
            period_end=end.date(),
            notes_analyzed=len(analyzed),
            fitness_notes_found=len(fitness_notes),
            entries=entries,
        )
