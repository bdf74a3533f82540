"""
Goal Input API Router

The free-form goal text, chip answers and start date that feed plan
generation. Goal input lives on the engine state and is reset once a plan
is accepted.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from core.dependencies import get_engine, get_today, require_not_generating
from core.exceptions import ValidationError
from services.challenge import ChipType, PlanLifecycleEngine

router = APIRouter(prefix="/v1/goals", tags=["Goals"])


class GoalTextRequest(BaseModel):
    text: str = Field("", max_length=2000)


class ChipSelectionRequest(BaseModel):
    value: str
    custom_value: Optional[str] = Field(None, max_length=200)


class StartDateRequest(BaseModel):
    start_date: date


@router.get("")
async def get_goals(
    engine: PlanLifecycleEngine = Depends(get_engine),
    today: date = Depends(get_today),
):
    return engine.state.goal_data.to_dict(today)


@router.get("/chips")
async def list_chips():
    """The chip catalog in display order."""
    return [
        {
            "type": chip.value,
            "title": chip.display_title,
            "category": chip.category.value,
            "importance": chip.importance.value,
            "is_required": chip.is_required,
            "allows_custom": chip.allows_custom,
            "options": [option.to_dict() for option in chip.options],
        }
        for chip in ChipType
    ]


@router.put("/text")
async def update_goal_text(
    request: GoalTextRequest,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    engine.state.goal_data.update_free_form_text(request.text)
    return engine.state.goal_data.to_dict(today)


@router.put("/chips/{chip_type}")
async def select_chip(
    chip_type: ChipType,
    request: ChipSelectionRequest,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    issues = engine.state.goal_data.select(chip_type, request.value, request.custom_value)
    if issues:
        raise ValidationError(issues[0], field=chip_type.value)
    return engine.state.goal_data.to_dict(today)


@router.delete("/chips/{chip_type}")
async def clear_chip(
    chip_type: ChipType,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    engine.state.goal_data.clear_selection(chip_type)
    return engine.state.goal_data.to_dict(today)


@router.put("/start-date")
async def set_start_date(
    request: StartDateRequest,
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    if request.start_date < today:
        raise ValidationError("Start date cannot be in the past", field="start_date")
    engine.state.goal_data.set_start_date(request.start_date)
    return engine.state.goal_data.to_dict(today)


@router.delete("/start-date")
async def clear_start_date(
    engine: PlanLifecycleEngine = Depends(require_not_generating),
    today: date = Depends(get_today),
):
    engine.state.goal_data.set_start_date(None)
    return engine.state.goal_data.to_dict(today)
