"""
report_writer.py — Monthly report content
Asks the AI provider for a structured JSON report. Any failure, including an
unparsable reply, falls back to a deterministic local synthesis, so callers
always get a ReportContent back.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field, asdict

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from config import GEMINI_API_KEY, AI_TIMEOUT_SECONDS
from exceptions import ExternalServiceError
from providers.base import BaseProvider
from providers.gemini_provider import GeminiProvider

logger = logging.getLogger(__name__)

MAX_FALLBACK_SKILLS = 5
MAX_FALLBACK_IMPROVEMENTS = 3
MAX_FALLBACK_AREAS = 2
MAX_FALLBACK_REVISIONS = 2
STRONG_COMPLETION = 70
WEAK_COMPLETION = 50


@dataclass
class HabitCompletionData:
    habit_id: str
    habit_title: str
    category: str
    completion_rate: float
    streak: int
    learning_notes: list[str] = field(default_factory=list)


@dataclass
class ReportGenerationInput:
    user_id: str
    month: str  # YYYY-MM
    habits: list[HabitCompletionData]
    total_habits: int
    overall_completion: float


class RevisionSuggestion(BaseModel):
    skill: str
    reason: str = ""
    suggested_duration_days: int = Field(7, ge=1)
    daily_minutes: int = Field(30, ge=1)


class ReportContent(BaseModel):
    summary: str
    improvements: list[str] = Field(default_factory=list)
    skills_learned: list[str] = Field(default_factory=list)
    areas_to_improve: list[str] = Field(default_factory=list)
    revision_suggestions: list[RevisionSuggestion] = Field(default_factory=list)
    motivational_note: str = ""


def build_prompt(data: ReportGenerationInput) -> str:
    habits_json = json.dumps([asdict(h) for h in data.habits], indent=2)
    return (
        "You write monthly progress reports for a habit tracking app.\n\n"
        f"Habit data for {data.month}:\n{habits_json}\n\n"
        f"Habits tracked: {data.total_habits}\n"
        f"Overall completion rate: {data.overall_completion:.1f}%\n\n"
        "Reply with a single JSON object shaped exactly like this:\n"
        "{\n"
        '  "summary": "2-3 sentence summary of the month",\n'
        '  "improvements": ["2-4 concrete things that went well"],\n'
        '  "skills_learned": ["skills or topics taken from the learning_notes"],\n'
        '  "areas_to_improve": ["1-3 areas to work on"],\n'
        '  "revision_suggestions": [\n'
        '    {"skill": "skill to revisit", "reason": "why", "suggested_duration_days": 7, "daily_minutes": 30}\n'
        "  ],\n"
        '  "motivational_note": "one short encouraging line"\n'
        "}\n\n"
        "Be honest and encouraging. Base skills_learned only on the learning notes. "
        "Suggest revising skills that were learned 2-4 weeks ago. "
        "Output JSON only, with no surrounding text."
    )


def extract_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span in ``text``, if any."""
    start = None
    depth = 0
    for i, c in enumerate(text):
        if c == "{":
            if start is None:
                start = i
            depth += 1
        elif c == "}" and start is not None:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_report_text(text: str | None) -> ReportContent | None:
    """Strict parse first, then the first embedded object. None if neither fits."""
    if not text:
        return None
    for candidate in (text.strip(), extract_json_object(text)):
        if not candidate:
            continue
        try:
            data = json.loads(candidate)
        except ValueError:
            continue
        if not isinstance(data, dict):
            continue
        try:
            return ReportContent.model_validate(data)
        except PydanticValidationError:
            continue
    return None


def build_fallback_report(data: ReportGenerationInput) -> ReportContent:
    skills = []
    for habit in data.habits:
        for note in habit.learning_notes:
            if note and note.strip() and note not in skills:
                skills.append(note)
    skills = skills[:MAX_FALLBACK_SKILLS] or ["Consistent practice", "Building good habits"]

    improvements = [
        f"Great consistency with {h.habit_title} ({h.completion_rate:.0f}% completion)"
        for h in data.habits if h.completion_rate >= STRONG_COMPLETION
    ][:MAX_FALLBACK_IMPROVEMENTS] or [
        "Started tracking habits consistently",
        "Building awareness of daily routines",
    ]

    areas = [
        f"Consider adjusting {h.habit_title} - currently at {h.completion_rate:.0f}% completion"
        for h in data.habits if h.completion_rate < WEAK_COMPLETION
    ][:MAX_FALLBACK_AREAS] or ["Keep pushing for higher completion rates"]

    revisions = [
        RevisionSuggestion(
            skill=skill,
            reason="Learned recently - reinforce through revision",
            suggested_duration_days=7,
            daily_minutes=30,
        )
        for skill in skills[:MAX_FALLBACK_REVISIONS]
    ]

    return ReportContent(
        summary=(
            f"You tracked {data.total_habits} habits this month with an overall completion rate of "
            f"{data.overall_completion:.1f}%. Keep up the great work building consistent routines!"
        ),
        improvements=improvements,
        skills_learned=skills,
        areas_to_improve=areas,
        revision_suggestions=revisions,
        motivational_note="Every day you show up is a win. Keep building those positive habits!",
    )


class ReportWriter:
    """Turns aggregated month data into report content, AI first."""

    def __init__(self, provider: BaseProvider | None = None, timeout: float = AI_TIMEOUT_SECONDS):
        self.provider = provider
        self.timeout = timeout

    @classmethod
    def from_config(cls) -> "ReportWriter":
        return cls(GeminiProvider(api_key=GEMINI_API_KEY) if GEMINI_API_KEY else None)

    async def _ask(self, prompt: str) -> str:
        try:
            result = await asyncio.wait_for(
                self.provider.chat([{"role": "user", "content": prompt}]),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ExternalServiceError(self.provider.name, "timed out") from e
        except Exception as e:
            raise ExternalServiceError(self.provider.name, str(e)) from e

        if result.get("status") != "success" or not result.get("text"):
            raise ExternalServiceError(self.provider.name, result.get("error") or "empty response")
        return result["text"]

    async def write(self, data: ReportGenerationInput) -> ReportContent:
        if self.provider is None:
            logger.info(f"No AI provider configured, using local report for user {data.user_id} {data.month}")
            return build_fallback_report(data)

        try:
            text = await self._ask(build_prompt(data))
        except ExternalServiceError as e:
            logger.warning(f"AI report failed for user {data.user_id} {data.month}, using local report: {e.message}")
            return build_fallback_report(data)

        content = parse_report_text(text)
        if content is None:
            logger.warning(f"Unparsable AI report for user {data.user_id} {data.month}, using local report")
            return build_fallback_report(data)
        return content
