"""
Challenge Plan API Router

Endpoints for the plan lifecycle: generating a suggestion from the current
goal input, editing and accepting it, tracking exercise completion on the
active plan, and archiving it.

All state lives in the PlanLifecycleEngine on app.state. Engine operations
report user-recoverable failures through state.error_message; this router
turns those into HTTP errors.
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from core.dependencies import get_engine, get_today, require_not_generating
from core.exceptions import (
    APIException,
    ConflictError,
    NotFoundError,
    StorageUnavailableError,
    UpstreamError,
    ValidationError,
)
from services.challenge import (
    Day,
    Exercise,
    ExerciseUnit,
    GenerationErrorKind,
    MissedDayTracker,
    PlanLifecycleEngine,
    WorkoutPlan,
)
from services.challenge.constants import MAX_SETS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/plan", tags=["Challenge"])


# ============ Request Models ============

class ExerciseRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    sets: int = Field(..., ge=1, le=MAX_SETS)
    quantity: int = Field(..., ge=1)
    unit: ExerciseUnit = ExerciseUnit.REPS

    def to_exercise(self) -> Exercise:
        return Exercise(name=self.name.strip(), sets=self.sets, quantity=self.quantity, unit=self.unit)


class DayUpdateRequest(BaseModel):
    """Replacement content for a suggested day. Id, number and date are kept."""
    focus: Optional[str] = Field(None, max_length=100)
    exercises: List[ExerciseRequest] = Field(default_factory=list)


# ============ Response Models ============

class ExerciseResponse(BaseModel):
    id: UUID
    name: str
    sets: int
    quantity: int
    unit: ExerciseUnit
    is_completed: bool
    formatted_description: str


class DayResponse(BaseModel):
    id: UUID
    day_number: int
    date: date
    focus: Optional[str]
    exercises: List[ExerciseResponse]
    is_completed: bool
    completion_percentage: float
    is_past_due: bool
    is_missed: bool
    is_modified: bool = False


class PlanResponse(BaseModel):
    id: UUID
    user_goals: str
    plan_title: Optional[str]
    summary: Optional[str]
    display_title: str
    status: str
    created_date: date
    end_date: Optional[date]
    days: List[DayResponse]
    completed_days: int
    total_days: int
    progress_percentage: float
    exercise_completion_percentage: float
    is_completed: bool
    is_finished: bool


class PlanStateResponse(BaseModel):
    current_plan: Optional[PlanResponse] = None
    suggested_plan: Optional[PlanResponse] = None
    is_generating: bool
    error_message: Optional[str] = None
    help_available: bool = False
    should_show_completion_prompt: bool = False
    archived_challenge_id: Optional[UUID] = None


class ArchiveResponse(BaseModel):
    challenge_id: UUID
    challenge_title: str
    success_rate: float
    completion_message: str


# ============ Serialization ============

def _exercise_response(exercise: Exercise) -> ExerciseResponse:
    return ExerciseResponse(
        id=exercise.id,
        name=exercise.name,
        sets=exercise.sets,
        quantity=exercise.quantity,
        unit=exercise.unit,
        is_completed=exercise.is_completed,
        formatted_description=exercise.formatted_description,
    )


def _day_response(day: Day, today: date, modified: bool = False) -> DayResponse:
    return DayResponse(
        id=day.id,
        day_number=day.day_number,
        date=day.date,
        focus=day.focus,
        exercises=[_exercise_response(e) for e in day.exercises],
        is_completed=day.is_completed,
        completion_percentage=day.completion_percentage,
        is_past_due=day.is_past_due(today),
        is_missed=day.is_missed(today),
        is_modified=modified,
    )


def _plan_response(plan: WorkoutPlan, today: date, modified_ids: Optional[List[UUID]] = None) -> PlanResponse:
    modified = set(modified_ids or [])
    return PlanResponse(
        id=plan.id,
        user_goals=plan.user_goals,
        plan_title=plan.plan_title,
        summary=plan.summary,
        display_title=plan.display_title,
        status=plan.status.value,
        created_date=plan.created_date,
        end_date=plan.end_date,
        days=[_day_response(d, today, d.id in modified) for d in plan.days],
        completed_days=plan.completed_days,
        total_days=plan.total_days,
        progress_percentage=plan.progress_percentage,
        exercise_completion_percentage=plan.exercise_completion_percentage,
        is_completed=plan.is_completed,
        is_finished=plan.is_finished(today),
    )


def _state_response(engine: PlanLifecycleEngine, today: date, archived_id: Optional[UUID] = None) -> PlanStateResponse:
    state = engine.state
    return PlanStateResponse(
        current_plan=_plan_response(state.current_plan, today) if state.current_plan else None,
        suggested_plan=(
            _plan_response(state.suggested_plan, today, engine.modified_suggested_day_ids)
            if state.suggested_plan else None
        ),
        is_generating=state.is_generating,
        error_message=state.error_message,
        help_available=state.help_available,
        should_show_completion_prompt=engine.should_show_completion_prompt,
        archived_challenge_id=archived_id,
    )


def _archive_failed(engine: PlanLifecycleEngine) -> APIException:
    message = engine.state.error_message or "Could not save challenge history"
    logger.error(f"Archive failed: {message}")
    return StorageUnavailableError(message)


def _require_suggested_day(engine: PlanLifecycleEngine, day_id: UUID) -> Day:
    if engine.state.suggested_plan is None:
        raise NotFoundError("Suggested plan", "current")
    day = engine.get_suggested_day(day_id)
    if day is None:
        raise NotFoundError("Day", str(day_id))
    return day


def _require_suggested_exercise(engine: PlanLifecycleEngine, day_id: UUID, exercise_id: UUID) -> Exercise:
    exercise = _require_suggested_day(engine, day_id).find_exercise(exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise", str(exercise_id))
    return exercise


def _edit_result(engine: PlanLifecycleEngine, plan: Optional[WorkoutPlan], today: date) -> PlanResponse:
    if plan is None:
        raise ValidationError(engine.state.error_message or "Edit rejected")
    return _plan_response(plan, today, engine.modified_suggested_day_ids)


# ============ Endpoints ============

@router.get("", response_model=PlanStateResponse)
async def get_plan_state(
    engine: PlanLifecycleEngine = Depends(get_engine),
    today: date = Depends(get_today),
):
    """
    Current plan slots.

    Reading the state is also when a finished active plan gets archived.
    """
    archived = engine.check_for_finished_plan()
    return _state_response(engine, today, archived.id if archived else None)


@router.post("/generate", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def generate_plan(
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    """Generate a suggested plan from the current goal input."""
    goal_data = engine.state.goal_data
    if not goal_data.is_sufficient_for_ai:
        raise ValidationError(goal_data.validation_issues[0], field="goals")

    plan = await engine.generate_plan_from_goals()
    if plan is not None:
        return _plan_response(plan, today)

    state = engine.state
    if state.error_message is None:
        raise ConflictError("Generation was cancelled", error_code="GENERATION_CANCELLED")
    if state.error_kind == GenerationErrorKind.QUOTA:
        raise APIException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=state.error_message,
            error_code="GENERATION_QUOTA",
        )
    if state.error_kind is None:
        raise UpstreamError(state.error_message, error_code="GENERATION_UNAVAILABLE")
    raise UpstreamError(state.error_message, error_code=f"GENERATION_{state.error_kind.value.upper()}")


@router.post("/generate/cancel")
async def cancel_generation(engine: PlanLifecycleEngine = Depends(get_engine)):
    return {"cancelled": engine.cancel_generation()}


@router.post("/suggested/accept", response_model=PlanResponse)
async def accept_suggested_plan(
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    if engine.state.suggested_plan is None:
        raise NotFoundError("Suggested plan", "current")
    plan = engine.accept_suggested_plan()
    if plan is None:
        if engine.state.current_plan is not None and not engine.state.current_plan.is_finished(today) \
                and not engine.state.current_plan.is_completed:
            raise ConflictError(engine.state.error_message, error_code="ACTIVE_PLAN_EXISTS")
        raise _archive_failed(engine)
    return _plan_response(plan, today)


@router.post("/suggested/reject", status_code=status.HTTP_204_NO_CONTENT)
async def reject_suggested_plan(engine: PlanLifecycleEngine = Depends(require_not_generating)):
    engine.reject_suggested_plan()


@router.put("/suggested/days/{day_id}", response_model=PlanResponse)
async def update_suggested_day(
    day_id: UUID,
    request: DayUpdateRequest,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    day = _require_suggested_day(engine, day_id)
    new_day = day.model_copy(update={
        "focus": request.focus,
        "exercises": [e.to_exercise() for e in request.exercises],
    })
    return _edit_result(engine, engine.update_suggested_day(day_id, new_day), today)


@router.post("/suggested/days/{day_id}/exercises", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def add_suggested_exercise(
    day_id: UUID,
    request: ExerciseRequest,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    _require_suggested_day(engine, day_id)
    plan = engine.add_exercise_to_suggested_day(day_id, request.to_exercise())
    return _edit_result(engine, plan, today)


@router.put("/suggested/days/{day_id}/exercises/{exercise_id}", response_model=PlanResponse)
async def update_suggested_exercise(
    day_id: UUID,
    exercise_id: UUID,
    request: ExerciseRequest,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    _require_suggested_exercise(engine, day_id, exercise_id)
    plan = engine.update_exercise_in_suggested_day(day_id, exercise_id, request.to_exercise())
    return _edit_result(engine, plan, today)


@router.delete("/suggested/days/{day_id}/exercises/{exercise_id}", response_model=PlanResponse)
async def delete_suggested_exercise(
    day_id: UUID,
    exercise_id: UUID,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    _require_suggested_exercise(engine, day_id, exercise_id)
    plan = engine.delete_exercise_from_suggested_day(day_id, exercise_id)
    return _edit_result(engine, plan, today)


@router.post("/suggested/days/{day_id}/reset", response_model=PlanResponse)
async def reset_suggested_day(
    day_id: UUID,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    """Restore a day's exercises from the plan as first generated."""
    _require_suggested_day(engine, day_id)
    return _edit_result(engine, engine.reset_suggested_day_to_original(day_id), today)


@router.post("/days/{day_id}/exercises/{exercise_id}/toggle", response_model=ExerciseResponse)
async def toggle_exercise(
    day_id: UUID,
    exercise_id: UUID,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
):
    if not engine.has_active_plan:
        raise ConflictError("No active plan", error_code="NO_ACTIVE_PLAN")
    exercise = engine.toggle_exercise_completion(day_id, exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise", str(exercise_id))
    return _exercise_response(exercise)


@router.post("/complete", response_model=ArchiveResponse)
async def complete_plan(engine: PlanLifecycleEngine = Depends(require_not_generating)):
    """Archive a fully completed active plan."""
    plan = engine.state.current_plan
    if not engine.has_active_plan:
        raise ConflictError("No active plan to complete", error_code="NO_ACTIVE_PLAN")
    if not plan.is_completed:
        raise ValidationError("Complete every exercise before finishing the challenge")

    message = engine.history.contextual_completion_message(plan)
    challenge = engine.complete_current_plan()
    if challenge is None:
        raise _archive_failed(engine)
    return ArchiveResponse(
        challenge_id=challenge.id,
        challenge_title=challenge.challenge_title,
        success_rate=challenge.success_rate,
        completion_message=message,
    )


@router.post("/abandon", response_model=ArchiveResponse)
async def abandon_plan(engine: PlanLifecycleEngine = Depends(require_not_generating)):
    """Archive the active plan with whatever progress it has."""
    plan = engine.state.current_plan
    if not engine.has_active_plan:
        raise ConflictError("No active plan to abandon", error_code="NO_ACTIVE_PLAN")

    message = engine.history.contextual_completion_message(plan)
    challenge = engine.abandon_current_plan()
    if challenge is None:
        raise _archive_failed(engine)
    return ArchiveResponse(
        challenge_id=challenge.id,
        challenge_title=challenge.challenge_title,
        success_rate=challenge.success_rate,
        completion_message=message,
    )


@router.post("/start-over", status_code=status.HTTP_204_NO_CONTENT)
async def start_over(engine: PlanLifecycleEngine = Depends(get_engine)):
    """Drop every plan slot and the goal input. History is untouched."""
    engine.start_over()


@router.get("/progress")
async def get_progress(engine: PlanLifecycleEngine = Depends(get_engine)):
    return engine.progress_info


@router.get("/missed-days")
async def get_missed_days(
    engine: PlanLifecycleEngine = Depends(get_engine),
    today: date = Depends(get_today),
):
    return MissedDayTracker(engine.state.current_plan, today).to_dict()
