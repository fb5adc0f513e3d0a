"""Note storage backed by a single JSON file."""

import json
import logging
import os
import random
import string
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .exceptions import InvalidNote, NoteNotFound, RepositoryUnavailable
from .models import Note, WeightedTag, parse_tag_entry

logger = logging.getLogger(__name__)

NOTE_TYPES = ("workout", "nutrition", "general")

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_note_id() -> str:
    """note_<epoch ms>_<9 random base36 chars>"""
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(9))
    return f"note_{int(time.time() * 1000)}_{suffix}"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class NoteRepository:
    """
    Loads and appends notes in the notes JSON file.

    Reads never raise: a missing or unreadable file is an empty corpus.
    create() is read-all / append / write-all with no locking, so two
    concurrent writers can lose a note.
    """

    def __init__(self, notes_path: Union[str, Path]):
        self.notes_path = Path(notes_path)

    def _load_records(self) -> List[Dict[str, Any]]:
        """Read raw records, raising RepositoryUnavailable on any failure."""
        if not self.notes_path.exists():
            raise RepositoryUnavailable(f"Notes file does not exist at path: {self.notes_path}")

        try:
            with open(self.notes_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RepositoryUnavailable(f"Failed to read notes at {self.notes_path}: {e}") from e

        if not isinstance(data, list):
            raise RepositoryUnavailable(
                f"Notes file {self.notes_path} must hold a JSON array, got {type(data).__name__}"
            )

        return [record for record in data if isinstance(record, dict)]

    def get_all(self) -> List[Note]:
        """
        Load every note in stored order.

        Returns:
            List of notes, empty if the store is missing or unreadable
        """
        try:
            records = self._load_records()
        except RepositoryUnavailable as e:
            logger.warning(str(e))
            return []

        notes = [Note.from_dict(record) for record in records]
        logger.info(f"Successfully loaded {len(notes)} notes")
        return notes

    def get_by_id(self, note_id: str) -> Note:
        """
        Find a single note.

        Raises:
            NoteNotFound: If no note has this id
        """
        for note in self.get_all():
            if note.id == note_id:
                return note
        raise NoteNotFound(note_id)

    def create(
        self,
        title: str,
        content: str,
        note_type: str = "general",
        tags: Optional[Iterable[Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Note:
        """
        Append a new note and save the file.

        Args:
            title: Note title
            content: Note body
            note_type: workout, nutrition or general
            tags: Tag names or [name, weight] pairs
            metadata: Free-form key/value data

        Returns:
            The stored note with id and timestamps assigned

        Raises:
            InvalidNote: If title/content are empty or the type is unknown
            RepositoryUnavailable: If the existing file cannot be read
        """
        if not isinstance(title, str) or not title.strip():
            raise InvalidNote("title is required")
        if not isinstance(content, str) or not content.strip():
            raise InvalidNote("content is required")
        if note_type not in NOTE_TYPES:
            raise InvalidNote(f"type must be one of {', '.join(NOTE_TYPES)}, got {note_type!r}")

        now = _utc_now_iso()
        note = Note(
            id=generate_note_id(),
            name=title.strip(),
            content=content,
            tags=tuple(self._format_tags(tags or [])),
            created_at=now,
            updated_at=now,
            type=note_type,
            metadata=dict(metadata or {}),
        )

        # Never overwrite a file we could not parse
        if self.notes_path.exists():
            records = self._load_records()
        else:
            records = []

        records.append(note.to_dict())
        self._write_records(records)

        logger.info(f"Created note {note.id} ({note_type}) with {len(note.tags)} tags")
        return note

    @staticmethod
    def _format_tags(tags: Iterable[Any]) -> List[WeightedTag]:
        """Store every tag as a [name, weight] pair, bare names get weight 0."""
        formatted = []
        for tag in tags:
            entry = parse_tag_entry(tag)
            if entry is None or not entry.name.strip():
                raise InvalidNote(f"Invalid tag: {tag!r}")
            weight = entry.weight if isinstance(entry, WeightedTag) else 0
            formatted.append(WeightedTag(entry.name.strip(), weight))
        return formatted

    def _write_records(self, records: Sequence[Dict[str, Any]]) -> None:
        self.notes_path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=self.notes_path.parent, prefix=".notes-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(list(records), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.notes_path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
