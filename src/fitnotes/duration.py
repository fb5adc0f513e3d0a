"""
Workout duration extraction from free-text notes.

Two strategies, tried in order:
1. OpenAIDurationStrategy - asks a chat model to total every duration it finds
2. RegexDurationStrategy - deterministic minute/hour pattern scan

Strategies return a StrategyResult instead of raising, so the chain in
DurationExtractor is plain control flow and each strategy can be tested alone.
"""

import asyncio
import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from .config import Settings
from .exceptions import ExtractionDegraded
from .models import DurationEstimate, DurationSource

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a helpful assistant that extracts workout durations from text. "
    "Scan the entire text for any mention of workout, exercise, or physical activity durations. "
    "Look for patterns like 'X min', 'X minutes', 'X hour', 'X hrs', 'Xh', etc. "
    "Return only the total duration in minutes as a number. If no duration is found, return 0. "
    "For example, '30 min cardio + 20 min strength' should return 50, "
    "'1.5h yoga session' should return 90."
)

# Hours first so "1.5h" is read once as hours, never again as minutes
DURATION_PATTERN = re.compile(
    r"""
    (?P<hours>\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\b
    |
    (?P<minutes>\d+)\s*(?:minutes?|mins?|m)\b
    """,
    re.VERBOSE,
)

_LEADING_INT = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class StrategyResult:
    source: DurationSource
    minutes: Optional[int] = None
    error: Optional[ExtractionDegraded] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.minutes is not None

    @classmethod
    def success(cls, source: DurationSource, minutes: int) -> "StrategyResult":
        return cls(source=source, minutes=minutes)

    @classmethod
    def failure(cls, source: DurationSource, reason: str) -> "StrategyResult":
        return cls(source=source, error=ExtractionDegraded(reason))


class DurationStrategy(ABC):
    """Estimates total workout minutes mentioned in a piece of text."""

    source: DurationSource

    @abstractmethod
    async def estimate(self, text: str) -> StrategyResult:
        ...


def hours_to_minutes(hours: float) -> int:
    """Convert to whole minutes, rounding half up (not half to even)."""
    return int(math.floor(hours * 60 + 0.5))


class RegexDurationStrategy(DurationStrategy):
    """
    Sum every "<n> min" / "<n> h" style mention in the text.

    Examples:
        "30 min cardio + 20 min strength" → 50
        "1.5h yoga session"               → 90
        "2 hrs hike, 15m stretch"         → 135
        "felt great"                      → 0
    """

    source = DurationSource.REGEX

    def extract(self, text: str) -> int:
        if not isinstance(text, str) or not text:
            return 0

        total = 0
        for match in DURATION_PATTERN.finditer(text.lower()):
            try:
                if match.group("hours") is not None:
                    hours = float(match.group("hours"))
                    if not math.isfinite(hours):
                        continue
                    total += hours_to_minutes(hours)
                else:
                    total += int(match.group("minutes"))
            except (ValueError, OverflowError):
                continue
        return total

    async def estimate(self, text: str) -> StrategyResult:
        return StrategyResult.success(self.source, self.extract(text))


def parse_minutes_reply(reply: Optional[str]) -> Optional[int]:
    """Leading non-negative integer of a model reply, None if there isn't one."""
    if not isinstance(reply, str) or not reply:
        return None
    match = _LEADING_INT.match(reply)
    return int(match.group(1)) if match else None


class OpenAIDurationStrategy(DurationStrategy):
    """Chat-model duration estimate. Any failure becomes a failed result."""

    source = DurationSource.LLM

    def __init__(
        self,
        client: Any,
        model: str = "gpt-4o-mini",
        temperature: float = 0.1,
        timeout_seconds: float = 15.0,
    ):
        """
        Args:
            client: AsyncOpenAI (or anything with the same chat.completions API)
            model: Chat model name
            temperature: Sampling temperature
            timeout_seconds: Hard limit on one completion call
        """
        self.client = client
        self.model = model
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds

    async def estimate(self, text: str) -> StrategyResult:
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": text},
                    ],
                    temperature=self.temperature,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            return StrategyResult.failure(
                self.source, f"Model call timed out after {self.timeout_seconds}s"
            )
        except OpenAIError as e:
            return StrategyResult.failure(self.source, f"Model call failed: {e}")
        except Exception as e:
            logger.error(f"Unexpected model client error: {e}", exc_info=True)
            return StrategyResult.failure(self.source, f"Model call failed: {e}")

        try:
            reply = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            return StrategyResult.failure(self.source, f"Malformed model response: {e}")

        minutes = parse_minutes_reply(reply)
        if minutes is None:
            return StrategyResult.failure(self.source, f"Non-numeric model reply: {reply!r}")

        return StrategyResult.success(self.source, minutes)


class DurationExtractor:
    """
    Primary strategy with a regex fallback.

    The fallback answers whenever the primary is missing or fails, so
    extraction always produces a number.
    """

    def __init__(
        self,
        primary: Optional[DurationStrategy] = None,
        fallback: Optional[DurationStrategy] = None,
    ):
        self.primary = primary
        self.fallback = fallback or RegexDurationStrategy()

    async def estimate(self, note_id: str, text: str) -> DurationEstimate:
        if not isinstance(text, str):
            text = ""

        if self.primary is not None and text.strip():
            result = await self.primary.estimate(text)
            if result.ok:
                return DurationEstimate(note_id, result.minutes, result.source)
            logger.warning(f"Duration extraction degraded for note {note_id}: {result.error}")

        result = await self.fallback.estimate(text)
        if not result.ok:
            logger.error(f"Fallback duration extraction failed for note {note_id}: {result.error}")
            return DurationEstimate(note_id, 0, result.source)

        return DurationEstimate(note_id, result.minutes, result.source)

    async def extract_minutes(self, text: str) -> int:
        estimate = await self.estimate("", text)
        return estimate.minutes


def build_extractor(settings: Settings) -> DurationExtractor:
    """Wire the strategy chain; the model strategy needs OPENAI_API_KEY."""
    if not settings.llm_enabled:
        logger.info("OPENAI_API_KEY not set, using regex duration extraction only")
        return DurationExtractor()

    client = AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.llm_timeout_seconds,
        max_retries=1,
    )
    primary = OpenAIDurationStrategy(
        client,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        timeout_seconds=settings.llm_timeout_seconds,
    )
    logger.info(f"Duration extraction using {settings.llm_model} with regex fallback")
    return DurationExtractor(primary=primary)
