"""
API Endpoint Tests

Drives the routers through TestClient with the engine dependency swapped
for an in-memory engine (no database, mock generator, fixed clock).
"""

import pytest
import sys
import os
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from main import app
from core.dependencies import get_engine
from services.challenge import GenerationError, GenerationErrorKind, PlanStatus, WorkoutGenerator


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def _fill_required_chips(client):
    assert client.put("/v1/goals/chips/fitness_level", json={"value": "beginner"}).status_code == 200
    assert client.put("/v1/goals/chips/time_available", json={"value": "30-45 minutes"}).status_code == 200


class TestHealth:
    def test_ping(self, client):
        assert client.get("/ping").json() == {"pong": True}


class TestGoals:
    def test_chip_catalog(self, client):
        chips = client.get("/v1/goals/chips").json()
        assert len(chips) == 12
        assert chips[0]["type"] == "fitness_level"
        assert chips[0]["is_required"] is True

    def test_select_and_clear_chip(self, client):
        response = client.put("/v1/goals/chips/fitness_level", json={"value": "beginner"})
        assert response.json()["selections"]["fitness_level"]["display_text"] == "Beginner"

        response = client.delete("/v1/goals/chips/fitness_level")
        assert "fitness_level" not in response.json()["selections"]

    def test_invalid_option(self, client):
        response = client.put("/v1/goals/chips/fitness_level", json={"value": "elite"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR_FITNESS_LEVEL"

    def test_unknown_chip_type(self, client):
        assert client.put("/v1/goals/chips/shoe_size", json={"value": "10"}).status_code == 422

    def test_goal_text_suggests_chips(self, client):
        response = client.put("/v1/goals/text", json={"text": "My knee hurts"})
        assert "limitations" in response.json()["suggested_chip_types"]

    def test_start_date(self, client, clock):
        future = (clock.today + timedelta(days=2)).isoformat()
        assert client.put("/v1/goals/start-date", json={"start_date": future}).json()["effective_start_date"] == future

        past = (clock.today - timedelta(days=1)).isoformat()
        assert client.put("/v1/goals/start-date", json={"start_date": past}).status_code == 422

        cleared = client.delete("/v1/goals/start-date").json()
        assert cleared["effective_start_date"] == clock.today.isoformat()

    def test_goal_changes_blocked_while_generating(self, client, engine):
        engine.state.is_generating = True
        response = client.put("/v1/goals/text", json={"text": "anything"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "GENERATION_IN_PROGRESS"


class TestPlanFlow:
    def test_empty_state(self, client):
        body = client.get("/v1/plan").json()
        assert body["current_plan"] is None
        assert body["suggested_plan"] is None
        assert body["is_generating"] is False

    def test_generate_requires_goals(self, client):
        response = client.post("/v1/plan/generate")
        assert response.status_code == 422
        assert response.json()["detail"] == "Please select your fitness level"

    def test_generate_edit_accept_toggle(self, client):
        _fill_required_chips(client)

        generated = client.post("/v1/plan/generate")
        assert generated.status_code == 201
        plan = generated.json()
        assert plan["status"] == "suggested"
        assert len(plan["days"]) == 14

        day = plan["days"][0]
        added = client.post(
            f"/v1/plan/suggested/days/{day['id']}/exercises",
            json={"name": "Burpees", "sets": 2, "quantity": 8},
        )
        assert added.status_code == 201
        assert added.json()["days"][0]["is_modified"] is True

        reset = client.post(f"/v1/plan/suggested/days/{day['id']}/reset")
        assert reset.json()["days"][0]["is_modified"] is False

        accepted = client.post("/v1/plan/suggested/accept")
        assert accepted.status_code == 200
        active = accepted.json()
        assert active["status"] == "active"

        exercise = active["days"][0]["exercises"][0]
        toggled = client.post(f"/v1/plan/days/{day['id']}/exercises/{exercise['id']}/toggle")
        assert toggled.status_code == 200
        assert toggled.json()["is_completed"] is True

        state = client.get("/v1/plan").json()
        assert state["current_plan"]["days"][0]["exercises"][0]["is_completed"] is True
        assert state["suggested_plan"] is None

    def test_accept_without_suggestion(self, client):
        assert client.post("/v1/plan/suggested/accept").status_code == 404

    def test_accept_with_plan_in_progress(self, client, engine, plan_factory):
        engine.state.current_plan = plan_factory(completed_days=2)
        engine.state.suggested_plan = plan_factory(status=PlanStatus.SUGGESTED)
        response = client.post("/v1/plan/suggested/accept")
        assert response.status_code == 409
        assert response.json()["error_code"] == "ACTIVE_PLAN_EXISTS"

    def test_reject(self, client, engine, plan_factory):
        engine.state.suggested_plan = plan_factory(status=PlanStatus.SUGGESTED)
        assert client.post("/v1/plan/suggested/reject").status_code == 204
        assert engine.state.suggested_plan is None

    def test_delete_last_exercise_rejected(self, client, engine, plan_factory):
        plan = plan_factory(status=PlanStatus.SUGGESTED, exercises_per_day=1)
        engine.state.suggested_plan = plan
        day = plan.days[0]
        response = client.delete(f"/v1/plan/suggested/days/{day.id}/exercises/{day.exercises[0].id}")
        assert response.status_code == 422
        assert "last exercise" in response.json()["detail"]

    def test_update_suggested_day(self, client, engine, plan_factory):
        plan = plan_factory(status=PlanStatus.SUGGESTED)
        engine.state.suggested_plan = plan
        engine.state.original_plan = plan
        day = plan.days[1]
        response = client.put(
            f"/v1/plan/suggested/days/{day.id}",
            json={"focus": "Legs", "exercises": [{"name": "Squats", "sets": 5, "quantity": 5}]},
        )
        assert response.status_code == 200
        updated = response.json()["days"][1]
        assert updated["id"] == str(day.id)
        assert updated["focus"] == "Legs"
        assert updated["exercises"][0]["formatted_description"] == "5 sets × 5 reps"

    def test_unknown_suggested_day(self, client, engine, plan_factory):
        engine.state.suggested_plan = plan_factory(status=PlanStatus.SUGGESTED)
        response = client.post(f"/v1/plan/suggested/days/{uuid4()}/exercises",
                               json={"name": "Burpees", "sets": 2, "quantity": 8})
        assert response.status_code == 404

    def test_exercise_request_validation(self, client, engine, plan_factory):
        plan = plan_factory(status=PlanStatus.SUGGESTED)
        engine.state.suggested_plan = plan
        response = client.post(f"/v1/plan/suggested/days/{plan.days[0].id}/exercises",
                               json={"name": "Burpees", "sets": 0, "quantity": 8})
        assert response.status_code == 422

    def test_out_of_range_quantity_rejected(self, client, engine, plan_factory):
        plan = plan_factory(status=PlanStatus.SUGGESTED)
        engine.state.suggested_plan = plan
        response = client.post(f"/v1/plan/suggested/days/{plan.days[0].id}/exercises",
                               json={"name": "Walk", "sets": 1, "quantity": 100000, "unit": "minutes"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Quantity seems too high for minutes"
        assert engine.state.suggested_plan == plan

    def test_toggle_without_active_plan(self, client):
        response = client.post(f"/v1/plan/days/{uuid4()}/exercises/{uuid4()}/toggle")
        assert response.status_code == 409

    def test_toggle_unknown_exercise(self, client, engine, plan_factory):
        plan = plan_factory()
        engine.state.current_plan = plan
        response = client.post(f"/v1/plan/days/{plan.days[0].id}/exercises/{uuid4()}/toggle")
        assert response.status_code == 404


class TestGenerationErrors:
    def test_quota_maps_to_429(self, client, engine):
        failing = MagicMock(spec=WorkoutGenerator)
        failing.generate_workout_plan = AsyncMock(side_effect=GenerationError(GenerationErrorKind.QUOTA))
        engine.generator = failing
        _fill_required_chips(client)

        response = client.post("/v1/plan/generate")

        assert response.status_code == 429
        assert response.json()["error_code"] == "GENERATION_QUOTA"
        assert client.get("/v1/plan").json()["help_available"] is True

    def test_network_maps_to_502(self, client, engine):
        failing = MagicMock(spec=WorkoutGenerator)
        failing.generate_workout_plan = AsyncMock(side_effect=GenerationError(GenerationErrorKind.NETWORK))
        engine.generator = failing
        _fill_required_chips(client)

        response = client.post("/v1/plan/generate")

        assert response.status_code == 502
        assert response.json()["error_code"] == "GENERATION_NETWORK"

    def test_cancel_when_idle(self, client):
        assert client.post("/v1/plan/generate/cancel").json() == {"cancelled": False}


class TestArchiveAndHistory:
    def test_complete_requires_all_days(self, client, engine, plan_factory):
        engine.state.current_plan = plan_factory(completed_days=5)
        assert client.post("/v1/plan/complete").status_code == 422

    def test_complete(self, client, engine, plan_factory):
        engine.state.current_plan = plan_factory(completed_days=14)
        response = client.post("/v1/plan/complete")
        assert response.status_code == 200
        body = response.json()
        assert body["success_rate"] == 100.0
        assert body["completion_message"] == "Perfect! You completed all 14 days of your challenge!"

        badges = client.get("/v1/badges", params={"previous_count": 0}).json()
        assert badges["earned_count"] == 1
        assert [b["id"] for b in badges["newly_earned"]] == ["first_steps"]
        assert badges["motivational_message"] == "Just 1 more challenge to unlock Building Momentum!"

    def test_abandon_then_delete_history(self, client, engine, plan_factory):
        engine.state.current_plan = plan_factory(completed_days=3)
        abandoned = client.post("/v1/plan/abandon").json()

        listing = client.get("/v1/history").json()
        assert [c["id"] for c in listing] == [abandoned["challenge_id"]]
        assert listing[0]["completed_days"] == 3

        detail = client.get(f"/v1/history/{abandoned['challenge_id']}").json()
        assert len(detail["days"]) == 14

        assert client.delete(f"/v1/history/{abandoned['challenge_id']}").status_code == 204
        assert client.delete(f"/v1/history/{abandoned['challenge_id']}").status_code == 404

    def test_archive_storage_failure(self, client, engine, storage, plan_factory):
        engine.state.current_plan = plan_factory(completed_days=3)
        storage.fail_challenge_writes = True
        response = client.post("/v1/plan/abandon")
        assert response.status_code == 503
        assert response.json()["error_code"] == "STORAGE_FAILED"
        assert engine.state.current_plan is not None

    def test_delete_storage_failure(self, client, engine, history, storage, plan_factory):
        challenge = history.force_archive(plan_factory())
        storage.fail_challenge_writes = True
        assert client.delete(f"/v1/history/{challenge.id}").status_code == 503
        assert history.get(challenge.id) is not None

    def test_finished_plan_archived_on_read(self, client, engine, history, plan_factory, clock):
        engine.state.current_plan = plan_factory(start=clock.today - timedelta(days=14), completed_days=8)
        body = client.get("/v1/plan").json()
        assert body["current_plan"] is None
        assert body["archived_challenge_id"] == str(history.completed_challenges[0].id)

    def test_history_stats(self, client, history, plan_factory):
        history.force_archive(plan_factory(completed_days=14))
        stats = client.get("/v1/history/stats").json()
        assert stats["completion_count"] == 1
        assert stats["best_success_rate"] == 100.0
        assert len(stats["next_challenge_suggestions"]) == 3

    def test_missed_days(self, client, engine, plan_factory, clock):
        engine.state.current_plan = plan_factory(start=clock.today - timedelta(days=3))
        body = client.get("/v1/plan/missed-days").json()
        assert body["missed_day_count"] == 3
        assert body["health_status"] == "behind_but_recoverable"

    def test_start_over(self, client, engine, plan_factory):
        engine.state.current_plan = plan_factory()
        assert client.post("/v1/plan/start-over").status_code == 204
        assert engine.state.current_plan is None
