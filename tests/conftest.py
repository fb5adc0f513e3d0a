"""
Pytest fixtures for the fitnotes test suite.

No test touches the network: the model strategy is driven by a fake
async chat client, and OPENAI_API_KEY is cleared for every test.
"""

import asyncio
import json
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, List, Optional

import pytest

from fitnotes.models import Note
from fitnotes.repository import NoteRepository

SAMPLE_NOTES = [
    {
        "id": "note_1",
        "name": "Morning run",
        "raw": "45 min easy run along the river",
        "summary": "Easy run",
        "tags": [["running", 8], ["Cardio", 5]],
    },
    {
        "id": "note_2",
        "name": "Leg day",
        "raw": "30 min cardio + 20 min strength",
        "tags": [["gym", 3], ["strength", 9]],
    },
    {
        "id": "note_3",
        "name": "Yoga",
        "summary": "1.5h yoga session",
        "tags": ["yoga"],
    },
    {
        "id": "note_4",
        "name": "Groceries",
        "raw": "eggs, oats, 2 bananas",
        "tags": [["shopping", 1]],
    },
    {
        "id": "note_5",
        "name": "Untagged thought",
        "raw": "walked 20 min",
        "tags": "walking",
    },
    {
        "id": "note_6",
        "title": "Meal prep",
        "content": "Chicken and rice for the week",
        "tags": [["nutrition", 4], ["cooking", 2]],
        "createdAt": "2025-01-05T10:00:00.000Z",
        "updatedAt": "2025-01-05T10:00:00.000Z",
        "type": "nutrition",
        "mood": "organized",
    },
]

# 45 + (30 + 20) + 90; note_5 has a malformed tag list
SAMPLE_FITNESS_MINUTES = 185

FIXED_NOW = datetime(2025, 3, 31, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for var in (
        "OPENAI_API_KEY",
        "NOTES_PATH",
        "FITNOTES_CONFIG",
        "FITNOTES_LLM_MODEL",
        "FITNOTES_LLM_TIMEOUT",
        "FITNOTES_LOG_FILE",
        "FITNOTES_LOG_LEVEL",
        "FITNOTES_DEFAULT_DAYS",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def notes_file(tmp_path):
    path = tmp_path / "notes.json"
    path.write_text(json.dumps(SAMPLE_NOTES, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def repo(notes_file) -> NoteRepository:
    return NoteRepository(notes_file)


@pytest.fixture
def sample_notes() -> List[Note]:
    return [Note.from_dict(record) for record in SAMPLE_NOTES]


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


class FakeCompletions:
    """Stands in for client.chat.completions."""

    def __init__(
        self,
        reply: Optional[str] = None,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
        response: Any = None,
    ):
        self.reply = reply
        self.error = error
        self.delay = delay
        self.response = response
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeChatClient:
    def __init__(self, **kwargs):
        self.completions = FakeCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)


class FixedStrategy:
    """Duration strategy returning a canned result and recording its inputs."""

    def __init__(self, result):
        self.result = result
        self.source = result.source
        self.texts = []

    async def estimate(self, text):
        self.texts.append(text)
        return self.result

