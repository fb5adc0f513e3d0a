"""
fitnotes: tag retrieval and workout totals over a personal notes corpus.

This package contains:
- NoteRepository over the notes JSON file
- Tag matching (any/all) with case-insensitive names
- Workout duration extraction (chat model with regex fallback)
- Workout hours aggregation
"""

from .duration import DurationExtractor, OpenAIDurationStrategy, RegexDurationStrategy, build_extractor
from .models import Note, QueryMode, TagQuery, WorkoutSummary
from .repository import NoteRepository
from .tags import FITNESS_TAGS, matches, parse_tag_query
from .workouts import WorkoutAggregator

__all__ = [
    'DurationExtractor',
    'OpenAIDurationStrategy',
    'RegexDurationStrategy',
    'build_extractor',
    'Note',
    'QueryMode',
    'TagQuery',
    'WorkoutSummary',
    'NoteRepository',
    'FITNESS_TAGS',
    'matches',
    'parse_tag_query',
    'WorkoutAggregator',
]
