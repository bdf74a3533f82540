"""
Workout Plan Generation

Turns a prompt into a suggested WorkoutPlan.

GeminiWorkoutGenerator calls Gemini through google-genai's async client and
parses the JSON it returns. Every failure surfaces as a GenerationError with
one of four kinds (network, quota, malformed_response, unknown) and a message
that can be shown to the user. There are no retries here; a retry is the user
asking again.

MockWorkoutGenerator returns a fixed plan for development without an API key.
"""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from datetime import date, timedelta
from typing import List, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types
from pydantic import BaseModel, ValidationError as PydanticValidationError

from services.challenge.constants import PLAN_LENGTH_DAYS, ExerciseUnit, PlanStatus
from services.challenge.errors import GenerationError, GenerationErrorKind
from services.challenge.models import Day, Exercise, WorkoutPlan
from services.challenge.prompts import ALLOWED_UNITS, SYSTEM_PROMPT

logger = logging.getLogger(__name__)


INCOMPLETE_RESPONSE_MESSAGE = (
    "The AI response was cut off unexpectedly. This usually means the workout plan "
    "was too complex. Please try simplifying your goals and try again."
)
API_KEY_MESSAGE = (
    "Unable to connect to AI service. Please check your internet connection and try again."
)


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------

class GeneratedExercise(BaseModel):
    name: str
    sets: int
    quantity: int
    unit: str
    instructions: Optional[str] = None


class GeneratedDay(BaseModel):
    dayNumber: int
    focus: Optional[str] = None
    exercises: List[GeneratedExercise]


class GeneratedPlan(BaseModel):
    summary: Optional[str] = None
    days: List[GeneratedDay]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

# Spellings models use instead of the allowed unit names
UNIT_ALIASES = {
    "sec": "seconds", "secs": "seconds", "second": "seconds", "s": "seconds",
    "min": "minutes", "mins": "minutes", "minute": "minutes",
    "hr": "hours", "hrs": "hours", "hour": "hours",
    "m": "meters", "meter": "meters", "metre": "meters", "metres": "meters",
    "km": "kilometers", "kilometer": "kilometers", "kilometre": "kilometers", "kilometres": "kilometers",
    "mi": "miles", "mile": "miles",
    "yd": "yards", "yds": "yards", "yard": "yards",
    "ft": "feet", "foot": "feet",
    "rep": "reps", "repetitions": "reps", "repetition": "reps",
    "step": "steps",
    "lap": "laps",
}

# Text placeholders models put where a number belongs
QUANTITY_PLACEHOLDERS = {
    "asmanyaspossible": 10,
    "aslongaspossible": 30,
    "max": 12,
    "maximum": 12,
    "amrap": 10,
}
SETS_PLACEHOLDERS = {"max": 3}

REST_DAY_EXERCISES = (
    '"exercises": [{"name": "Rest Day", "sets": 1, "quantity": 30, "unit": "minutes", '
    '"instructions": "Take a rest day to allow your body to recover"}]'
)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_UNIT_RE = re.compile(r'("unit"\s*:\s*")([^"]*)(")')
_QUANTITY_RE = re.compile(r'("quantity"\s*:\s*)"?([A-Za-z]+)"?')
_SETS_RE = re.compile(r'("sets"\s*:\s*)"?([A-Za-z]+)"?')
_EMPTY_EXERCISES_RE = re.compile(r'"exercises"\s*:\s*\[\s*\]')


def strip_markdown(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def clean_json_response(text: str) -> str:
    """Normalize unit spellings, textual quantities and empty days."""

    def unit(match: re.Match) -> str:
        raw = match.group(2).strip().lower()
        return f"{match.group(1)}{UNIT_ALIASES.get(raw, raw)}{match.group(3)}"

    def quantity(match: re.Match) -> str:
        value = QUANTITY_PLACEHOLDERS.get(match.group(2).lower())
        return match.group(0) if value is None else f"{match.group(1)}{value}"

    def sets(match: re.Match) -> str:
        value = SETS_PLACEHOLDERS.get(match.group(2).lower())
        return match.group(0) if value is None else f"{match.group(1)}{value}"

    cleaned = _UNIT_RE.sub(unit, text)
    cleaned = _QUANTITY_RE.sub(quantity, cleaned)
    cleaned = _SETS_RE.sub(sets, cleaned)
    cleaned = _EMPTY_EXERCISES_RE.sub(REST_DAY_EXERCISES, cleaned)
    return cleaned


def _malformed(details: str) -> GenerationError:
    return GenerationError(GenerationErrorKind.MALFORMED_RESPONSE, details=details)


def validate_generated_plan(generated: GeneratedPlan) -> None:
    """Raise GenerationError(malformed_response) on the first structural problem."""
    if len(generated.days) != PLAN_LENGTH_DAYS:
        raise _malformed(f"Expected {PLAN_LENGTH_DAYS} days, got {len(generated.days)} days")

    for index, day in enumerate(generated.days):
        if day.dayNumber != index + 1:
            raise _malformed(f"Day {index + 1} has incorrect dayNumber: {day.dayNumber}")
        if not day.exercises:
            raise _malformed(f"Day {day.dayNumber} has no exercises")
        for exercise in day.exercises:
            if not exercise.name.strip():
                raise _malformed(f"Exercise has empty name on day {day.dayNumber}")
            if exercise.sets <= 0:
                raise _malformed(f"Exercise '{exercise.name}' has invalid sets: {exercise.sets}")
            if exercise.quantity <= 0:
                raise _malformed(f"Exercise '{exercise.name}' has invalid quantity: {exercise.quantity}")
            if exercise.unit.lower() not in ALLOWED_UNITS:
                raise _malformed(
                    f"Exercise '{exercise.name}' has invalid unit: '{exercise.unit}'. "
                    f"Allowed units: {', '.join(ALLOWED_UNITS)}"
                )


def _to_exercise(generated: GeneratedExercise) -> Exercise:
    unit = ExerciseUnit(generated.unit.lower())
    quantity = generated.quantity
    if not unit.is_valid_quantity(quantity):
        clamped = unit.clamp_to_suggested(quantity)
        logger.warning(
            f"Quantity {quantity} out of range for {unit.value} in '{generated.name}', using {clamped}"
        )
        quantity = clamped
    return Exercise(name=generated.name.strip(), sets=generated.sets, quantity=quantity, unit=unit)


def parse_workout_response(text: str, user_goals: str, start_date: date) -> WorkoutPlan:
    """Parse model output into a suggested plan starting on start_date."""
    cleaned = strip_markdown(text)
    if not cleaned.endswith("}"):
        raise GenerationError(
            GenerationErrorKind.MALFORMED_RESPONSE,
            message=INCOMPLETE_RESPONSE_MESSAGE,
            details="response does not end with '}'",
        )

    cleaned = clean_json_response(cleaned)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise _malformed(f"Invalid JSON: {e.msg} at line {e.lineno}") from e

    try:
        generated = GeneratedPlan.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        path = " -> ".join(str(p) for p in first["loc"])
        raise _malformed(f"{first['msg']} at path: {path}") from e

    validate_generated_plan(generated)

    days = [
        Day(
            day_number=g.dayNumber,
            date=start_date + timedelta(days=g.dayNumber - 1),
            focus=g.focus,
            exercises=[_to_exercise(e) for e in g.exercises],
        )
        for g in generated.days
    ]
    return WorkoutPlan(
        user_goals=user_goals,
        summary=generated.summary,
        status=PlanStatus.SUGGESTED,
        created_date=start_date,
        days=days,
    )


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------

class WorkoutGenerator(ABC):
    @abstractmethod
    async def generate_workout_plan(self, prompt: str, user_goals: str, start_date: date) -> WorkoutPlan:
        """Return a suggested plan or raise GenerationError."""
        pass


class GeminiWorkoutGenerator(WorkoutGenerator):
    """
    Gemini-backed generator.

    Args:
        client: google.genai.Client (a MagicMock in tests)
    """

    def __init__(
        self,
        client,
        model: str = "gemini-2.5-flash",
        temperature: float = 0.7,
        max_output_tokens: int = 8192,
        timeout_s: float = 45,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.timeout_s = timeout_s
        self.top_k = top_k
        self.top_p = top_p

    async def _call_llm(self, prompt: str):
        contents = [
            genai_types.Content(
                role="user",
                parts=[genai_types.Part(text=prompt)],
            ),
        ]
        config = genai_types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            max_output_tokens=self.max_output_tokens,
            temperature=self.temperature,
            top_k=self.top_k,
            top_p=self.top_p,
        )
        return await asyncio.wait_for(
            self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            ),
            timeout=self.timeout_s,
        )

    async def generate_workout_plan(self, prompt: str, user_goals: str, start_date: date) -> WorkoutPlan:
        logger.info(f"Requesting {PLAN_LENGTH_DAYS}-day plan from {self.model}")
        try:
            response = await self._call_llm(prompt)
        except asyncio.TimeoutError as e:
            logger.warning(f"Gemini request timed out after {self.timeout_s}s")
            raise GenerationError(GenerationErrorKind.NETWORK, details="request timed out") from e
        except genai_errors.APIError as e:
            raise self._map_api_error(e) from e
        except httpx.HTTPError as e:
            logger.warning(f"Gemini transport error: {e}")
            raise GenerationError(GenerationErrorKind.NETWORK, details=str(e)) from e

        text = self._extract_text(response)
        plan = parse_workout_response(text, user_goals=user_goals, start_date=start_date)
        logger.info(f"Generated plan {plan.id} with {plan.total_days} days")
        return plan

    @staticmethod
    def _map_api_error(error: "genai_errors.APIError") -> GenerationError:
        code = getattr(error, "code", None) or 0
        logger.warning(f"Gemini API error {code}: {error}")
        if code == 429:
            return GenerationError(GenerationErrorKind.QUOTA)
        if code >= 500:
            return GenerationError(
                GenerationErrorKind.NETWORK,
                details=f"Server error (Code: {code})",
            )
        if code in (401, 403):
            return GenerationError(GenerationErrorKind.UNKNOWN, message=API_KEY_MESSAGE)
        return GenerationError(GenerationErrorKind.UNKNOWN, details=str(error))

    @staticmethod
    def _extract_text(response) -> str:
        if not getattr(response, "candidates", None):
            raise _malformed("No candidates in response")

        candidate = response.candidates[0]
        if candidate.finish_reason == "MAX_TOKENS":
            logger.warning("Gemini response truncated at token limit")
            raise GenerationError(
                GenerationErrorKind.MALFORMED_RESPONSE,
                message=INCOMPLETE_RESPONSE_MESSAGE,
                details="finish reason MAX_TOKENS",
            )

        if not candidate.content or not candidate.content.parts:
            raise _malformed("No text content in response")
        text = candidate.content.parts[0].text or ""
        if not text.strip():
            raise _malformed("No text content in response")
        return text


# Fixed development plan: (focus, [(name, sets, quantity, unit)])
_MOCK_WORKOUT_DAY = ("Full Body", [
    ("Bodyweight Squats", 3, 15, ExerciseUnit.REPS),
    ("Push-ups", 3, 10, ExerciseUnit.REPS),
    ("Plank Hold", 3, 30, ExerciseUnit.SECONDS),
    ("Jumping Jacks", 3, 45, ExerciseUnit.SECONDS),
])
_MOCK_CARDIO_DAY = ("Cardio", [
    ("Brisk Walk", 1, 20, ExerciseUnit.MINUTES),
    ("High Knees", 3, 30, ExerciseUnit.SECONDS),
    ("Reverse Lunges", 3, 12, ExerciseUnit.REPS),
    ("Mountain Climbers", 3, 20, ExerciseUnit.REPS),
])
_MOCK_REST_DAY = ("Active Recovery", [
    ("Light Walking", 1, 2000, ExerciseUnit.STEPS),
    ("Full Body Stretching", 1, 15, ExerciseUnit.MINUTES),
])


class MockWorkoutGenerator(WorkoutGenerator):
    """Deterministic offline generator."""

    def __init__(self, delay_s: float = 0.0):
        self.delay_s = delay_s
        self.calls = 0

    async def generate_workout_plan(self, prompt: str, user_goals: str, start_date: date) -> WorkoutPlan:
        self.calls += 1
        await asyncio.sleep(self.delay_s)

        days = []
        for number in range(1, PLAN_LENGTH_DAYS + 1):
            if number % 7 == 0:
                focus, exercises = _MOCK_REST_DAY
            elif number % 2 == 0:
                focus, exercises = _MOCK_CARDIO_DAY
            else:
                focus, exercises = _MOCK_WORKOUT_DAY
            days.append(Day(
                day_number=number,
                date=start_date + timedelta(days=number - 1),
                focus=focus,
                exercises=[
                    Exercise(name=name, sets=sets, quantity=quantity, unit=unit)
                    for name, sets, quantity, unit in exercises
                ],
            ))

        logger.info(f"Mock generator built plan for goals: {user_goals[:60]}")
        return WorkoutPlan(
            user_goals=user_goals,
            summary="A balanced two-week starter plan mixing strength, cardio and recovery.",
            status=PlanStatus.SUGGESTED,
            created_date=start_date,
            days=days,
        )


def build_generator(settings) -> WorkoutGenerator:
    """Pick the generator for the configured environment."""
    if settings.USE_MOCK_GENERATOR:
        logger.info("Using mock workout generator")
        return MockWorkoutGenerator()
    if not settings.GOOGLE_API_KEY:
        logger.warning("GOOGLE_API_KEY not set, falling back to mock workout generator")
        return MockWorkoutGenerator()

    client = genai.Client(api_key=settings.GOOGLE_API_KEY)
    return GeminiWorkoutGenerator(
        client,
        model=settings.GEMINI_MODEL,
        temperature=settings.GEMINI_TEMPERATURE,
        max_output_tokens=settings.GEMINI_MAX_OUTPUT_TOKENS,
        timeout_s=settings.GEMINI_TIMEOUT_S,
        top_k=settings.GEMINI_TOP_K,
        top_p=settings.GEMINI_TOP_P,
    )
