"""
Challenge History API Router

Archived challenges, aggregate statistics and the badge collection.
"""

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from core.config import settings
from core.dependencies import get_history, require_not_generating
from core.exceptions import NotFoundError, StorageUnavailableError
from services.challenge import ArchiveError, ChallengeHistoryManager, CompletedChallenge
from services.challenge.badges import (
    ALL_BADGES,
    get_motivational_message,
    newly_earned_badges,
    upcoming_badges,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["History"])


class ChallengeSummary(BaseModel):
    id: UUID
    original_plan_id: UUID
    challenge_title: str
    start_date: date
    completion_date: date
    total_days: int
    completed_days: int
    success_rate: float
    exercise_completion_percentage: float
    is_fully_completed: bool
    perfect_days: int
    partial_days: int
    missed_days: int
    longest_streak: int
    challenge_duration: int


class BadgeResponse(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    unlock_count: int
    rarity: str
    is_earned: bool
    progress: float
    remaining_to_unlock: int


def _summary(challenge: CompletedChallenge) -> ChallengeSummary:
    return ChallengeSummary(
        id=challenge.id,
        original_plan_id=challenge.original_plan_id,
        challenge_title=challenge.challenge_title,
        start_date=challenge.start_date,
        completion_date=challenge.completion_date,
        total_days=challenge.total_days,
        completed_days=challenge.completed_days,
        success_rate=challenge.success_rate,
        exercise_completion_percentage=challenge.exercise_completion_percentage,
        is_fully_completed=challenge.is_fully_completed,
        perfect_days=challenge.perfect_days,
        partial_days=challenge.partial_days,
        missed_days=challenge.missed_days,
        longest_streak=challenge.longest_streak,
        challenge_duration=challenge.challenge_duration,
    )


def _badge_response(badge, completion_count: int) -> BadgeResponse:
    return BadgeResponse(
        id=badge.id,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        unlock_count=badge.unlock_count,
        rarity=badge.rarity.value,
        is_earned=badge.is_earned(completion_count),
        progress=badge.progress(completion_count),
        remaining_to_unlock=badge.remaining_to_unlock(completion_count),
    )


@router.get("/v1/history", response_model=List[ChallengeSummary])
async def list_history(
    recent: bool = Query(False, description="Only the most recent challenges"),
    history: ChallengeHistoryManager = Depends(get_history),
):
    """Archived challenges, newest first."""
    challenges = (
        history.recent_challenges(settings.RECENT_CHALLENGES_LIMIT)
        if recent else history.completed_challenges
    )
    return [_summary(c) for c in challenges]


@router.get("/v1/history/stats")
async def get_history_stats(history: ChallengeHistoryManager = Depends(get_history)):
    return {
        "completion_count": history.completion_count,
        **asdict(history.history_stats),
        "next_challenge_suggestions": history.next_challenge_suggestions(),
    }


@router.get("/v1/history/{challenge_id}")
async def get_challenge(challenge_id: UUID, history: ChallengeHistoryManager = Depends(get_history)):
    """One archived challenge with its per-day record."""
    challenge = history.get(challenge_id)
    if challenge is None:
        raise NotFoundError("Challenge", str(challenge_id))
    return {
        **_summary(challenge).model_dump(),
        "user_goals": challenge.user_goals,
        "most_consistent_week": challenge.most_consistent_week,
        "days": [
            {
                "day_number": record.day_number,
                "date": record.date,
                "focus": record.focus,
                "completed_exercises": record.completed_exercises,
                "total_exercises": record.total_exercises,
                "completion_percentage": record.completion_percentage,
                "exercises": [e.display_string for e in record.exercise_completion_record],
            }
            for record in challenge.daily_completion_record
        ],
    }


@router.delete("/v1/history/{challenge_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_challenge(
    challenge_id: UUID,
    _engine=Depends(require_not_generating),
    history: ChallengeHistoryManager = Depends(get_history),
):
    if history.get(challenge_id) is None:
        raise NotFoundError("Challenge", str(challenge_id))
    try:
        history.delete(challenge_id)
    except ArchiveError as e:
        raise StorageUnavailableError(str(e))


@router.get("/v1/badges")
async def get_badges(
    previous_count: Optional[int] = Query(None, ge=0, description="Completion count the client last saw"),
    history: ChallengeHistoryManager = Depends(get_history),
):
    """
    The badge collection for the current completion count.

    Passing previous_count returns the badges unlocked since then, for the
    unlock celebration.
    """
    count = history.completion_count
    stats = history.badge_stats
    response = {
        "completion_count": count,
        "badges": [_badge_response(b, count) for b in ALL_BADGES],
        "earned_count": stats.earned_count,
        "total_badges": stats.total_badges,
        "completion_percentage": stats.completion_percentage,
        "overall_progress": stats.overall_progress,
        "highest_rarity": stats.highest_rarity.value if stats.highest_rarity else None,
        "rarity_breakdown": {r.value: n for r, n in stats.rarity_breakdown.items()},
        "next_badge": _badge_response(stats.next_badge, count) if stats.next_badge else None,
        "upcoming": [b.id for b in upcoming_badges(count)],
        "motivational_message": get_motivational_message(count),
    }
    if previous_count is not None:
        response["newly_earned"] = [_badge_response(b, count) for b in newly_earned_badges(previous_count, count)]
    return response
