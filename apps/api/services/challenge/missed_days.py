"""
Missed Day / Catch-Up Service

Classifies the days of the active plan against "today": missed days,
catch-up eligibility, the current streak and an overall health tier.

A missed day can be caught up until the plan window closes. After that,
nothing is offered, even for days that were missed earlier.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from services.challenge.constants import PLAN_LENGTH_DAYS, ChallengeHealth
from services.challenge.models import Day, WorkoutPlan


# Suggest at most this many catch-up workouts in one day
MAX_CATCH_UP_PER_DAY = 2

# Absolute missed-day count beyond which a restart is offered
RESTART_MISSED_THRESHOLD = 7


@dataclass
class StreakInfo:
    """Current completion streak"""
    days: int
    is_active: bool  # streak ends today or yesterday
    last_completed_date: Optional[date] = None


class MissedDayTracker:
    """Read-only view over one plan for one calendar day."""

    def __init__(self, plan: Optional[WorkoutPlan], today: date):
        self.plan = plan
        self.today = today

    @property
    def _active_plan(self) -> Optional[WorkoutPlan]:
        if self.plan is not None and self.plan.is_active:
            return self.plan
        return None

    @property
    def _is_finished(self) -> bool:
        return self.plan is not None and self.plan.is_finished(self.today)

    @property
    def _total_days(self) -> int:
        return self.plan.total_days if self.plan is not None else PLAN_LENGTH_DAYS

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    @property
    def missed_days(self) -> List[Day]:
        plan = self._active_plan
        if plan is None:
            return []
        return [d for d in plan.days if d.is_missed(self.today)]

    @property
    def missed_day_count(self) -> int:
        return len(self.missed_days)

    @property
    def past_due_day_count(self) -> int:
        plan = self._active_plan
        if plan is None:
            return 0
        return sum(1 for d in plan.days if d.is_past_due(self.today))

    @property
    def past_day_success_rate(self) -> float:
        """Percentage of past-due days that were completed."""
        plan = self._active_plan
        past_due = self.past_due_day_count
        if plan is None or past_due == 0:
            return 0.0
        completed = sum(1 for d in plan.days if d.is_past_due(self.today) and d.is_completed)
        return completed / past_due * 100.0

    @property
    def catch_up_available_days(self) -> List[Day]:
        if self._active_plan is None or self._is_finished:
            return []
        return self.missed_days

    @property
    def has_missed_days(self) -> bool:
        return bool(self.catch_up_available_days)

    @property
    def is_on_track(self) -> bool:
        return not self.has_missed_days

    # -------------------------------------------------------------------------
    # Streak and health
    # -------------------------------------------------------------------------

    @property
    def current_streak(self) -> StreakInfo:
        """
        Consecutive completed days ending at the most recent completed day
        on or before today.
        """
        plan = self._active_plan
        if plan is None:
            return StreakInfo(days=0, is_active=False)

        elapsed = [d for d in sorted(plan.days, key=lambda d: d.day_number) if d.date <= self.today]
        last_index = next(
            (i for i in range(len(elapsed) - 1, -1, -1) if elapsed[i].is_completed),
            None,
        )
        if last_index is None:
            return StreakInfo(days=0, is_active=False)

        streak = 0
        for day in reversed(elapsed[: last_index + 1]):
            if not day.is_completed:
                break
            streak += 1

        last_date = elapsed[last_index].date
        return StreakInfo(
            days=streak,
            is_active=last_date >= self.today - timedelta(days=1),
            last_completed_date=last_date,
        )

    @property
    def challenge_health_status(self) -> ChallengeHealth:
        missed = self.missed_day_count
        total = self._total_days
        completed = self.plan.completed_days if self.plan is not None else 0

        if missed > total / 2:
            return ChallengeHealth.NEEDS_SUPPORT
        if missed > RESTART_MISSED_THRESHOLD:
            return ChallengeHealth.STRUGGLING
        if missed >= 3:
            return ChallengeHealth.BEHIND_BUT_RECOVERABLE
        if missed > 0:
            return ChallengeHealth.SLIGHTLY_BEHIND
        if completed > total / 2:
            return ChallengeHealth.EXCELLENT
        return ChallengeHealth.ON_TRACK

    @property
    def should_offer_restart(self) -> bool:
        """Offered, never forced."""
        missed = self.missed_day_count
        return missed > self._total_days // 2 or missed > RESTART_MISSED_THRESHOLD

    # -------------------------------------------------------------------------
    # Catch-up helpers
    # -------------------------------------------------------------------------

    @property
    def suggested_catch_up_days(self) -> int:
        return min(len(self.catch_up_available_days), MAX_CATCH_UP_PER_DAY)

    @property
    def oldest_missed_day(self) -> Optional[Day]:
        return min(self.missed_days, key=lambda d: d.date, default=None)

    @property
    def most_recent_missed_day(self) -> Optional[Day]:
        return max(self.missed_days, key=lambda d: d.date, default=None)

    @property
    def days_since_oldest_missed(self) -> int:
        oldest = self.oldest_missed_day
        if oldest is None:
            return 0
        return max(0, oldest.days_from_today(self.today))

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    @property
    def missed_days_message(self) -> str:
        if self.plan is None:
            return ""
        if self._is_finished:
            return "Challenge period has ended"

        count = self.missed_day_count
        if count == 0:
            return ""
        if count == 1:
            return "You have 1 missed day available to complete"
        if count <= 3:
            return f"You have {count} missed days available to complete"
        if count <= 6:
            return f"Don't give up! You have {count} days to catch up on"
        return "Ready for a fresh start? You can still complete your challenge"

    @property
    def motivational_message(self) -> str:
        if self.plan is None:
            return ""
        if self._is_finished:
            return f"You completed {int(self.plan.progress_percentage)}% of your challenge!"

        count = self.missed_day_count
        if count == 0:
            if self.past_day_success_rate >= 90:
                return "Amazing consistency! Keep it up!"
            return "You're doing great! Stay on track!"
        if count == 1:
            return "Life happens! One makeup day and you're back on track!"
        if count <= 3:
            return "You've got this! A few catch-up sessions and you'll be done!"
        if count <= 6:
            return "Don't stop now! You've come too far to quit!"
        return "Every step counts! Ready to finish strong?"

    def to_dict(self) -> dict:
        streak = self.current_streak
        return {
            "missed_day_count": self.missed_day_count,
            "missed_day_ids": [str(d.id) for d in self.missed_days],
            "catch_up_available_day_ids": [str(d.id) for d in self.catch_up_available_days],
            "past_due_day_count": self.past_due_day_count,
            "past_day_success_rate": self.past_day_success_rate,
            "has_missed_days": self.has_missed_days,
            "is_on_track": self.is_on_track,
            "current_streak": {
                "days": streak.days,
                "is_active": streak.is_active,
                "last_completed_date": streak.last_completed_date,
            },
            "health_status": self.challenge_health_status.value,
            "health_description": self.challenge_health_status.description,
            "should_offer_restart": self.should_offer_restart,
            "suggested_catch_up_days": self.suggested_catch_up_days,
            "days_since_oldest_missed": self.days_since_oldest_missed,
            "missed_days_message": self.missed_days_message,
            "motivational_message": self.motivational_message,
        }
