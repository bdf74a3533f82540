"""
Workout Generation Tests

Deterministic: the Gemini client is a MagicMock whose async
generate_content returns canned responses. These tests verify:
1. Response cleanup (fences, unit aliases, text placeholders, empty days)
2. Structural validation of the 14-day plan
3. Out-of-range quantities pulled back into the unit's suggested range
4. API/transport failures mapped onto the four generation error kinds
5. build_generator falls back to the mock without an API key
"""

import asyncio
import json
import pytest
import sys
import os
from datetime import date, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from google.genai import errors as genai_errors

from services.challenge import (
    ExerciseUnit,
    GenerationError,
    GenerationErrorKind,
    MockWorkoutGenerator,
)
from services.challenge.generation import (
    GeminiWorkoutGenerator,
    INCOMPLETE_RESPONSE_MESSAGE,
    API_KEY_MESSAGE,
    build_generator,
    clean_json_response,
    parse_workout_response,
    strip_markdown,
)

START = date(2026, 3, 2)


# ===========================================================================
# Fixtures
# ===========================================================================

def _plan_json(days=14, **overrides):
    plan = {
        "summary": "Bodyweight basics",
        "days": [
            {
                "dayNumber": n,
                "focus": "Full body",
                "exercises": [
                    {"name": "Push-ups", "sets": 3, "quantity": 12, "unit": "reps"},
                    {"name": "Plank", "sets": 3, "quantity": 30, "unit": "seconds"},
                ],
            }
            for n in range(1, days + 1)
        ],
    }
    plan.update(overrides)
    return json.dumps(plan)


def _response(text, finish_reason="STOP"):
    part = SimpleNamespace(text=text)
    candidate = SimpleNamespace(
        finish_reason=finish_reason,
        content=SimpleNamespace(parts=[part]),
    )
    return SimpleNamespace(candidates=[candidate])


@pytest.fixture
def gemini_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=_response(_plan_json()))
    return client


@pytest.fixture
def gemini(gemini_client):
    return GeminiWorkoutGenerator(gemini_client, timeout_s=5)


# ===========================================================================
# Parsing
# ===========================================================================

class TestCleanup:
    def test_strip_markdown_fences(self):
        assert strip_markdown('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_unit_aliases(self):
        cleaned = clean_json_response('{"unit": "Secs"}, {"unit": "km"}, {"unit": "reps"}')
        assert '"unit": "seconds"' in cleaned
        assert '"unit": "kilometers"' in cleaned
        assert '"unit": "reps"' in cleaned

    def test_text_placeholders(self):
        cleaned = clean_json_response('{"sets": "max", "quantity": "AMRAP"}')
        assert json.loads(cleaned) == {"sets": 3, "quantity": 10}

    def test_empty_exercise_list_becomes_rest(self):
        cleaned = clean_json_response('{"exercises": []}')
        assert json.loads(cleaned)["exercises"][0]["name"] == "Rest Day"


class TestParseWorkoutResponse:
    def test_parses_plan(self):
        plan = parse_workout_response(_plan_json(), user_goals="Get fit", start_date=START)

        assert plan.is_suggested
        assert plan.total_days == 14
        assert plan.summary == "Bodyweight basics"
        assert plan.days[0].date == START
        assert plan.days[13].date == START + timedelta(days=13)
        assert plan.days[0].exercises[1].unit == ExerciseUnit.SECONDS
        assert plan.is_valid

    def test_truncated_response(self):
        with pytest.raises(GenerationError) as exc:
            parse_workout_response(_plan_json()[:-20], user_goals="Get fit", start_date=START)
        assert exc.value.kind == GenerationErrorKind.MALFORMED_RESPONSE
        assert exc.value.message == INCOMPLETE_RESPONSE_MESSAGE

    def test_invalid_json(self):
        with pytest.raises(GenerationError) as exc:
            parse_workout_response('{"days": [,]}', user_goals="Get fit", start_date=START)
        assert exc.value.kind == GenerationErrorKind.MALFORMED_RESPONSE
        assert "Invalid JSON" in exc.value.details

    def test_wrong_day_count(self):
        with pytest.raises(GenerationError, match="Expected 14 days, got 10 days"):
            parse_workout_response(_plan_json(days=10), user_goals="Get fit", start_date=START)

    def test_wrong_day_numbering(self):
        data = json.loads(_plan_json())
        data["days"][4]["dayNumber"] = 9
        with pytest.raises(GenerationError, match="Day 5 has incorrect dayNumber: 9"):
            parse_workout_response(json.dumps(data), user_goals="Get fit", start_date=START)

    def test_unknown_unit(self):
        data = json.loads(_plan_json())
        data["days"][0]["exercises"][0]["unit"] = "furlongs"
        with pytest.raises(GenerationError, match="invalid unit"):
            parse_workout_response(json.dumps(data), user_goals="Get fit", start_date=START)

    def test_missing_field(self):
        data = json.loads(_plan_json())
        del data["days"][2]["exercises"][0]["sets"]
        with pytest.raises(GenerationError) as exc:
            parse_workout_response(json.dumps(data), user_goals="Get fit", start_date=START)
        assert "days -> 2 -> exercises -> 0 -> sets" in exc.value.details

    def test_out_of_range_quantity_clamped(self):
        data = json.loads(_plan_json())
        data["days"][0]["exercises"][1]["quantity"] = 7200
        plan = parse_workout_response(json.dumps(data), user_goals="Get fit", start_date=START)
        assert plan.days[0].exercises[1].quantity == 300


# ===========================================================================
# Gemini client
# ===========================================================================

class TestGeminiGenerator:
    @pytest.mark.asyncio
    async def test_success(self, gemini, gemini_client):
        plan = await gemini.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)

        assert plan.total_days == 14
        call = gemini_client.aio.models.generate_content.call_args
        assert call.kwargs["model"] == "gemini-2.5-flash"
        assert call.kwargs["contents"][0].parts[0].text == "prompt"
        assert "RESPONSE FORMAT" in call.kwargs["config"].system_instruction

    @pytest.mark.asyncio
    async def test_fenced_response(self, gemini, gemini_client):
        gemini_client.aio.models.generate_content.return_value = _response(f"```json\n{_plan_json()}\n```")
        plan = await gemini.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)
        assert plan.total_days == 14

    @pytest.mark.asyncio
    async def test_max_tokens(self, gemini, gemini_client):
        gemini_client.aio.models.generate_content.return_value = _response("{", finish_reason="MAX_TOKENS")
        with pytest.raises(GenerationError) as exc:
            await gemini.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)
        assert exc.value.message == INCOMPLETE_RESPONSE_MESSAGE

    @pytest.mark.asyncio
    async def test_no_candidates(self, gemini, gemini_client):
        gemini_client.aio.models.generate_content.return_value = SimpleNamespace(candidates=[])
        with pytest.raises(GenerationError) as exc:
            await gemini.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)
        assert exc.value.kind == GenerationErrorKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code,kind", [
        (429, GenerationErrorKind.QUOTA),
        (500, GenerationErrorKind.NETWORK),
        (503, GenerationErrorKind.NETWORK),
        (400, GenerationErrorKind.UNKNOWN),
    ])
    async def test_api_errors(self, gemini, gemini_client, code, kind):
        error_cls = genai_errors.ServerError if code >= 500 else genai_errors.ClientError
        gemini_client.aio.models.generate_content.side_effect = error_cls(
            code, {"error": {"code": code, "message": "failure", "status": "ERROR"}}
        )
        with pytest.raises(GenerationError) as exc:
            await gemini.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)
        assert exc.value.kind == kind

    @pytest.mark.asyncio
    async def test_auth_error_message(self, gemini, gemini_client):
        gemini_client.aio.models.generate_content.side_effect = genai_errors.ClientError(
            403, {"error": {"code": 403, "message": "denied", "status": "PERMISSION_DENIED"}}
        )
        with pytest.raises(GenerationError) as exc:
            await gemini.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)
        assert exc.value.kind == GenerationErrorKind.UNKNOWN
        assert exc.value.message == API_KEY_MESSAGE

    @pytest.mark.asyncio
    async def test_transport_error(self, gemini, gemini_client):
        gemini_client.aio.models.generate_content.side_effect = httpx.ConnectError("no route")
        with pytest.raises(GenerationError) as exc:
            await gemini.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)
        assert exc.value.kind == GenerationErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_timeout(self, gemini_client):
        async def slow(**kwargs):
            await asyncio.sleep(1)

        gemini_client.aio.models.generate_content = slow
        generator = GeminiWorkoutGenerator(gemini_client, timeout_s=0.01)
        with pytest.raises(GenerationError) as exc:
            await generator.generate_workout_plan("prompt", user_goals="Get fit", start_date=START)
        assert exc.value.kind == GenerationErrorKind.NETWORK
        assert exc.value.details == "request timed out"


class TestGenerationErrors:
    def test_help_available_kinds(self):
        assert GenerationError(GenerationErrorKind.QUOTA).help_available
        assert GenerationError(GenerationErrorKind.MALFORMED_RESPONSE).help_available
        assert not GenerationError(GenerationErrorKind.NETWORK).help_available


class TestBuildGenerator:
    def test_mock_without_api_key(self):
        settings = SimpleNamespace(USE_MOCK_GENERATOR=False, GOOGLE_API_KEY=None)
        assert isinstance(build_generator(settings), MockWorkoutGenerator)

    def test_mock_when_forced(self):
        settings = SimpleNamespace(USE_MOCK_GENERATOR=True, GOOGLE_API_KEY="key")
        assert isinstance(build_generator(settings), MockWorkoutGenerator)

    @pytest.mark.asyncio
    async def test_mock_plan_shape(self):
        plan = await MockWorkoutGenerator().generate_workout_plan("p", user_goals="Get fit", start_date=START)
        assert plan.total_days == 14
        assert plan.days[6].focus == "Active Recovery"
        assert plan.days[1].focus == "Cardio"
        assert plan.is_valid
