#!/usr/bin/env python3
"""
fitnotes CLI

Command-line access to the notes corpus and workout totals.

Usage:
    fitnotes hours [--days DAYS]
    fitnotes tagged TAGS [--all] [--limit N] [--offset N]
    fitnotes show NOTE_ID
    fitnotes add TITLE --content TEXT [--type TYPE] [--tag TAG ...]
"""

import asyncio
import json
from pathlib import Path
from typing import Optional, Tuple

import click

from .config import Settings, configure_logging, load_settings
from .duration import build_extractor
from .exceptions import FitnotesError
from .queries import calculate_workout_hours, create_note, get_note, notes_by_tag
from .repository import NOTE_TYPES, NoteRepository
from .workouts import WorkoutAggregator


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@click.group()
@click.option('--notes', 'notes_path', type=click.Path(dir_okay=False), help='Notes JSON file (overrides NOTES_PATH)')
@click.pass_context
def cli(ctx: click.Context, notes_path: Optional[str]):
    """
    fitnotes - notes retrieval and workout totals
    """
    try:
        settings = load_settings()
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    if notes_path:
        settings.notes_path = Path(notes_path)
    configure_logging(settings)

    ctx.obj = {
        'settings': settings,
        'repo': NoteRepository(settings.notes_path),
    }


@cli.command()
@click.option('--days', type=int, default=None, help='Averaging window in days (default: 30)')
@click.pass_obj
def hours(obj, days: Optional[int]):
    """Total workout time across fitness-tagged notes."""
    settings: Settings = obj['settings']
    aggregator = WorkoutAggregator(build_extractor(settings))

    try:
        summary = asyncio.run(
            calculate_workout_hours(
                obj['repo'], aggregator, days=days, default_days=settings.default_period_days
            )
        )
    except FitnotesError as e:
        raise click.ClickException(str(e))

    _echo_json(summary)


@cli.command()
@click.argument('tags')
@click.option('--all', 'match_all', is_flag=True, help='Require every tag (default: any tag)')
@click.option('--limit', type=int, default=None, help='Page size (default: 10)')
@click.option('--offset', type=int, default=None, help='Page offset (default: 0)')
@click.pass_obj
def tagged(obj, tags: str, match_all: bool, limit: Optional[int], offset: Optional[int]):
    """List notes carrying TAGS (comma-separated)."""
    try:
        result = notes_by_tag(obj['repo'], tags, limit, offset, 'all' if match_all else 'any')
    except FitnotesError as e:
        raise click.ClickException(str(e))

    _echo_json(result)


@cli.command()
@click.argument('note_id')
@click.pass_obj
def show(obj, note_id: str):
    """Show a single note."""
    try:
        _echo_json(get_note(obj['repo'], note_id))
    except FitnotesError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument('title')
@click.option('--content', required=True, help='Note body')
@click.option('--type', 'note_type', type=click.Choice(NOTE_TYPES), default='general', help='Note type')
@click.option('--tag', 'tags', multiple=True, help='Tag name (repeatable)')
@click.pass_obj
def add(obj, title: str, content: str, note_type: str, tags: Tuple[str, ...]):
    """Create a note."""
    try:
        result = create_note(obj['repo'], title, content, note_type=note_type, tags=list(tags))
    except FitnotesError as e:
        raise click.ClickException(str(e))

    _echo_json(result)


if __name__ == '__main__':
    cli()
