"""
Challenge History Service

Turns finished or completed plans into immutable CompletedChallenge records
and keeps the history list (most recent first).

Writes are optimistic with compensation: the in-memory list changes first,
and a storage failure puts it back exactly as it was before raising
ArchiveError. Aggregate statistics are recomputed on every read.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, List, Optional
from uuid import UUID

from services.challenge.badges import BadgeStats, get_badge_stats
from services.challenge.errors import ArchiveError, StorageError
from services.challenge.models import CompletedChallenge, WorkoutPlan
from services.challenge.storage import PlanStorage

logger = logging.getLogger(__name__)


@dataclass
class HistoryStats:
    """Aggregates across all archived challenges"""
    total_challenges: int
    fully_completed_challenges: int
    average_success_rate: float
    total_days_completed: int
    total_exercises_completed: int
    best_success_rate: float
    longest_streak: int
    total_perfect_days: int


class ChallengeHistoryManager:
    def __init__(self, storage: PlanStorage, clock: Callable[[], date] = date.today):
        self.storage = storage
        self.clock = clock
        self.completed_challenges: List[CompletedChallenge] = []

    def load_challenge_history(self) -> None:
        challenges = self.storage.load_completed_challenges()
        self.completed_challenges = sorted(
            challenges, key=lambda c: c.completion_date, reverse=True
        )
        logger.info(f"Loaded {len(self.completed_challenges)} completed challenges")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def archive(self, plan: WorkoutPlan) -> CompletedChallenge:
        """Archive a plan the user finished at 100%."""
        if not plan.is_completed:
            raise ArchiveError(
                f"Plan {plan.id} is not complete ({plan.completed_days}/{plan.total_days} days)"
            )
        return self._archive(plan)

    def force_archive(self, plan: WorkoutPlan) -> CompletedChallenge:
        """Archive regardless of completion (window elapsed or abandoned)."""
        return self._archive(plan)

    def _archive(self, plan: WorkoutPlan) -> CompletedChallenge:
        challenge = CompletedChallenge.from_plan(plan, completion_date=self.clock())
        self.completed_challenges.insert(0, challenge)
        try:
            self.storage.save_completed_challenge(challenge)
        except StorageError as e:
            del self.completed_challenges[0]
            logger.error(f"Archiving plan {plan.id} failed, history restored: {e}")
            raise ArchiveError("Could not save your completed challenge. Please try again.") from e

        logger.info(
            f"Archived plan {plan.id} as challenge {challenge.id} "
            f"({challenge.completed_days}/{challenge.total_days} days)"
        )
        return challenge

    def delete(self, challenge_id: UUID) -> None:
        index = next(
            (i for i, c in enumerate(self.completed_challenges) if c.id == challenge_id),
            None,
        )
        if index is None:
            raise ArchiveError(f"Challenge not found: {challenge_id}")

        removed = self.completed_challenges.pop(index)
        try:
            self.storage.delete_completed_challenge(challenge_id)
        except StorageError as e:
            self.completed_challenges.insert(index, removed)
            logger.error(f"Deleting challenge {challenge_id} failed, history restored: {e}")
            raise ArchiveError("Could not delete the challenge. Please try again.") from e

        logger.info(f"Deleted challenge {challenge_id}")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, challenge_id: UUID) -> Optional[CompletedChallenge]:
        return next((c for c in self.completed_challenges if c.id == challenge_id), None)

    @property
    def completion_count(self) -> int:
        return len(self.completed_challenges)

    def recent_challenges(self, limit: int = 3) -> List[CompletedChallenge]:
        return self.completed_challenges[:limit]

    @property
    def history_stats(self) -> HistoryStats:
        challenges = self.completed_challenges
        if not challenges:
            return HistoryStats(0, 0, 0.0, 0, 0, 0.0, 0, 0)

        rates = [c.success_rate for c in challenges]
        return HistoryStats(
            total_challenges=len(challenges),
            fully_completed_challenges=sum(1 for c in challenges if c.is_fully_completed),
            average_success_rate=sum(rates) / len(rates),
            total_days_completed=sum(c.completed_days for c in challenges),
            total_exercises_completed=sum(c.completed_exercises for c in challenges),
            best_success_rate=max(rates),
            longest_streak=max(c.longest_streak for c in challenges),
            total_perfect_days=sum(c.perfect_days for c in challenges),
        )

    @property
    def badge_stats(self) -> BadgeStats:
        return get_badge_stats(self.completion_count)

    def next_challenge_suggestions(self) -> List[str]:
        """Ideas for the next challenge, keyed off the most recent result."""
        if not self.completed_challenges:
            return [
                "Start with a goal you can fit into your current schedule",
                "Pick a beginner-friendly focus like daily walking or bodyweight basics",
                "Choose a consistent time of day for your workouts",
            ]

        last = self.completed_challenges[0]
        if last.success_rate >= 90:
            return [
                "Level up with a more advanced version of your last challenge",
                "Add a new focus area like flexibility or endurance",
                "Increase intensity with shorter rest periods",
            ]
        if last.success_rate >= 60:
            return [
                f"Repeat your last challenge and beat your {last.longest_streak}-day streak",
                "Keep the same goals with slightly more volume",
                "Plan your workouts around your busiest days",
            ]
        return [
            "Try shorter daily sessions to build the habit",
            "Choose a goal that fits your current schedule",
            "Focus on consistency before intensity",
        ]

    def contextual_completion_message(self, plan: WorkoutPlan) -> str:
        percentage = int(plan.progress_percentage)
        if plan.is_completed:
            return f"Perfect! You completed all {plan.total_days} days of your challenge!"
        if percentage >= 80:
            return f"Great work! You completed {percentage}% of your challenge."
        if percentage >= 50:
            return f"Solid effort! You completed {percentage}% of your challenge."
        return f"Every step counts! You completed {percentage}% of your challenge."
