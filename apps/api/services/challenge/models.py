"""
Challenge domain entities.

Exercises, days and plans are frozen pydantic models: every change produces
a new value via `model_copy`. Completed/finished plan state is always derived
from stored fields (dates and per-exercise flags), never stored.
"""

import datetime as dt
from typing import Callable, List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from services.challenge.constants import (
    MAX_SETS,
    MIN_SETS,
    BadgeRarity,
    ExerciseUnit,
    PlanStatus,
)
from services.challenge.errors import PlanEditError


def _percentage(part: int, whole: int) -> float:
    """part/whole as 0..100, 0 when whole is 0."""
    if whole <= 0:
        return 0.0
    return min(max(part / whole * 100.0, 0.0), 100.0)


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _require_valid(exercise: "Exercise") -> None:
    issues = exercise.validation_issues
    if issues:
        raise PlanEditError(issues[0])


class Exercise(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    name: str
    sets: int
    quantity: int
    unit: ExerciseUnit = ExerciseUnit.REPS
    is_completed: bool = False

    def updated(self, **changes) -> "Exercise":
        """Copy with fields changed; the id always survives."""
        changes.pop("id", None)
        return self.model_copy(update=changes)

    def toggled(self) -> "Exercise":
        return self.model_copy(update={"is_completed": not self.is_completed})

    @property
    def formatted_description(self) -> str:
        return f"{self.sets} sets × {self.quantity} {self.unit.short_name}"

    @property
    def detailed_description(self) -> str:
        unit_name = self.unit.display_name_for(self.quantity)
        if self.sets == 1:
            return f"{self.quantity} {unit_name}"
        return f"{self.sets} sets × {self.quantity} {unit_name}"

    @property
    def validation_issues(self) -> List[str]:
        issues = []
        if not self.name.strip():
            issues.append("Exercise name cannot be empty")
        if self.sets < MIN_SETS:
            issues.append("Sets must be greater than 0")
        elif self.sets > MAX_SETS:
            issues.append(f"Sets should be {MAX_SETS} or fewer")
        if self.quantity <= 0:
            issues.append("Quantity must be greater than 0")
        elif not self.unit.is_valid_quantity(self.quantity):
            issues.append(f"Quantity seems too high for {self.unit.value}")
        return issues

    @property
    def is_valid(self) -> bool:
        return not self.validation_issues


class Day(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    day_number: int = Field(ge=1)
    date: dt.date
    focus: Optional[str] = None
    exercises: List[Exercise] = Field(default_factory=list)

    @property
    def is_completed(self) -> bool:
        return bool(self.exercises) and all(e.is_completed for e in self.exercises)

    @property
    def completed_exercises(self) -> int:
        return sum(1 for e in self.exercises if e.is_completed)

    @property
    def total_exercises(self) -> int:
        return len(self.exercises)

    @property
    def completion_percentage(self) -> float:
        return _percentage(self.completed_exercises, self.total_exercises)

    def is_past_due(self, today: dt.date) -> bool:
        return self.date < today

    def is_missed(self, today: dt.date) -> bool:
        return self.is_past_due(today) and not self.is_completed

    def days_from_today(self, today: dt.date) -> int:
        """Positive for past days, negative for upcoming ones."""
        return (today - self.date).days

    def find_exercise(self, exercise_id: UUID) -> Optional[Exercise]:
        for exercise in self.exercises:
            if exercise.id == exercise_id:
                return exercise
        return None

    def with_exercises(self, exercises: List[Exercise]) -> "Day":
        return self.model_copy(update={"exercises": list(exercises)})

    def adding_exercise(self, exercise: Exercise) -> "Day":
        return self.with_exercises([*self.exercises, exercise])

    def removing_exercise(self, exercise_id: UUID) -> "Day":
        return self.with_exercises([e for e in self.exercises if e.id != exercise_id])

    def updating_exercise(self, exercise_id: UUID, transform: Callable[[Exercise], Exercise]) -> "Day":
        return self.with_exercises(
            [transform(e) if e.id == exercise_id else e for e in self.exercises]
        )


class WorkoutPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    user_goals: str
    plan_title: Optional[str] = None
    summary: Optional[str] = None
    status: PlanStatus = PlanStatus.SUGGESTED
    created_date: dt.date = Field(default_factory=dt.date.today)
    days: List[Day] = Field(default_factory=list)

    # -------------------------------------------------------------------------
    # Progress
    # -------------------------------------------------------------------------

    @property
    def completed_days(self) -> int:
        return sum(1 for d in self.days if d.is_completed)

    @property
    def total_days(self) -> int:
        return len(self.days)

    @property
    def remaining_days(self) -> int:
        return self.total_days - self.completed_days

    @property
    def progress_percentage(self) -> float:
        return _percentage(self.completed_days, self.total_days)

    @property
    def total_exercises(self) -> int:
        return sum(d.total_exercises for d in self.days)

    @property
    def completed_exercises(self) -> int:
        return sum(d.completed_exercises for d in self.days)

    @property
    def exercise_completion_percentage(self) -> float:
        return _percentage(self.completed_exercises, self.total_exercises)

    @property
    def is_completed(self) -> bool:
        return self.total_days > 0 and self.completed_days >= self.total_days

    @property
    def is_active(self) -> bool:
        return self.status == PlanStatus.ACTIVE

    @property
    def is_suggested(self) -> bool:
        return self.status == PlanStatus.SUGGESTED

    @property
    def end_date(self) -> Optional[dt.date]:
        """Last calendar day of the plan window."""
        if not self.days:
            return None
        return max(d.date for d in self.days)

    def is_finished(self, today: dt.date) -> bool:
        """True once the day after the last plan day has arrived."""
        end = self.end_date
        if end is None:
            return False
        return today >= end + dt.timedelta(days=1)

    @property
    def is_valid(self) -> bool:
        if not self.user_goals.strip() or not self.days:
            return False
        if [d.day_number for d in self.days] != list(range(1, len(self.days) + 1)):
            return False
        if any(not d.exercises for d in self.days):
            return False
        day_ids = [d.id for d in self.days]
        exercise_ids = [e.id for d in self.days for e in d.exercises]
        return len(set(day_ids)) == len(day_ids) and len(set(exercise_ids)) == len(exercise_ids)

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    @property
    def display_title(self) -> str:
        return self.plan_title or self.summary or self.user_goals

    @property
    def display_description(self) -> str:
        return self.summary or self.user_goals

    @property
    def compact_title(self) -> str:
        return _truncate(self.display_title, 50)

    @property
    def compact_description(self) -> str:
        return _truncate(self.display_description, 100)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_day(self, day_id: UUID) -> Optional[Day]:
        for day in self.days:
            if day.id == day_id:
                return day
        return None

    def current_day(self, today: dt.date) -> Optional[Day]:
        return next((d for d in self.days if d.date == today), None)

    def next_incomplete_day(self) -> Optional[Day]:
        return next((d for d in self.days if not d.is_completed), None)

    def days_by_completion(self, completed: bool) -> List[Day]:
        return [d for d in self.days if d.is_completed == completed]

    # -------------------------------------------------------------------------
    # Copies
    # -------------------------------------------------------------------------

    def make_active(self) -> "WorkoutPlan":
        return self.model_copy(update={"status": PlanStatus.ACTIVE})

    def with_modified_days(self, days: List[Day]) -> "WorkoutPlan":
        return self.model_copy(update={"days": list(days)})

    def with_start_date(self, start: dt.date) -> "WorkoutPlan":
        """Re-date every day so day N falls on start + N - 1."""
        days = [
            d.model_copy(update={"date": start + dt.timedelta(days=d.day_number - 1)})
            for d in self.days
        ]
        return self.model_copy(update={"created_date": start, "days": days})

    def _replace_day(self, day_id: UUID, build: Callable[[Day], Day]) -> "WorkoutPlan":
        for index, day in enumerate(self.days):
            if day.id == day_id:
                days = list(self.days)
                days[index] = build(day)
                return self.with_modified_days(days)
        raise PlanEditError(f"Day not found: {day_id}")

    def with_modified_day(self, day_id: UUID, new_day: Day) -> "WorkoutPlan":
        """Replace a day's content; its id, number and date are kept."""
        if not new_day.exercises:
            raise PlanEditError("Each day must have at least one exercise")
        for exercise in new_day.exercises:
            _require_valid(exercise)
        return self._replace_day(
            day_id,
            lambda old: new_day.model_copy(
                update={"id": old.id, "day_number": old.day_number, "date": old.date}
            ),
        )

    def with_exercise_added(self, day_id: UUID, exercise: Exercise) -> "WorkoutPlan":
        _require_valid(exercise)
        return self._replace_day(day_id, lambda day: day.adding_exercise(exercise))

    def with_exercise_removed(self, day_id: UUID, exercise_id: UUID) -> "WorkoutPlan":
        def remove(day: Day) -> Day:
            if day.find_exercise(exercise_id) is None:
                raise PlanEditError(f"Exercise not found: {exercise_id}")
            if len(day.exercises) <= 1:
                raise PlanEditError("Cannot delete the last exercise. Each day must have at least one exercise.")
            return day.removing_exercise(exercise_id)

        return self._replace_day(day_id, remove)

    def with_exercise_updated(self, day_id: UUID, exercise_id: UUID, exercise: Exercise) -> "WorkoutPlan":
        _require_valid(exercise)

        def update(day: Day) -> Day:
            if day.find_exercise(exercise_id) is None:
                raise PlanEditError(f"Exercise not found: {exercise_id}")
            replacement = exercise.model_copy(update={"id": exercise_id})
            return day.updating_exercise(exercise_id, lambda _: replacement)

        return self._replace_day(day_id, update)


# =============================================================================
# ARCHIVE SNAPSHOTS
# =============================================================================

class ExerciseCompletionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    exercise_name: str
    sets: int
    quantity: int
    unit: ExerciseUnit
    is_completed: bool

    @classmethod
    def from_exercise(cls, exercise: Exercise) -> "ExerciseCompletionRecord":
        return cls(
            exercise_name=exercise.name,
            sets=exercise.sets,
            quantity=exercise.quantity,
            unit=exercise.unit,
            is_completed=exercise.is_completed,
        )

    @property
    def display_string(self) -> str:
        return f"{self.sets} x {self.quantity} {self.unit.value} {self.exercise_name}"


class DayCompletionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    day_number: int
    date: dt.date
    focus: Optional[str] = None
    total_exercises: int
    completed_exercises: int
    exercise_completion_record: List[ExerciseCompletionRecord] = Field(default_factory=list)

    @classmethod
    def from_day(cls, day: Day) -> "DayCompletionRecord":
        return cls(
            day_number=day.day_number,
            date=day.date,
            focus=day.focus,
            total_exercises=day.total_exercises,
            completed_exercises=day.completed_exercises,
            exercise_completion_record=[
                ExerciseCompletionRecord.from_exercise(e) for e in day.exercises
            ],
        )

    @property
    def is_completed(self) -> bool:
        return self.total_exercises > 0 and self.completed_exercises == self.total_exercises

    @property
    def is_missed_day(self) -> bool:
        return self.completed_exercises == 0

    @property
    def is_partial_day(self) -> bool:
        return 0 < self.completed_exercises < self.total_exercises

    @property
    def is_perfect_day(self) -> bool:
        return self.is_completed

    @property
    def completion_percentage(self) -> float:
        return _percentage(self.completed_exercises, self.total_exercises)


class CompletedChallenge(BaseModel):
    """Immutable archive of a plan at the moment it was archived."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    original_plan_id: UUID
    challenge_title: str
    user_goals: str
    start_date: dt.date
    completion_date: dt.date
    created_date: dt.date
    total_days: int
    completed_days: int
    total_exercises: int
    completed_exercises: int
    daily_completion_record: List[DayCompletionRecord] = Field(default_factory=list)

    @classmethod
    def from_plan(cls, plan: WorkoutPlan, completion_date: dt.date) -> "CompletedChallenge":
        """
        Snapshot a plan.

        Every day and exercise is flattened into new record values, so later
        changes to the plan cannot reach the archive.
        """
        start_date = min((d.date for d in plan.days), default=plan.created_date)
        return cls(
            original_plan_id=plan.id,
            challenge_title=plan.summary or plan.plan_title or plan.user_goals,
            user_goals=plan.user_goals,
            start_date=start_date,
            completion_date=completion_date,
            created_date=plan.created_date,
            total_days=plan.total_days,
            completed_days=plan.completed_days,
            total_exercises=plan.total_exercises,
            completed_exercises=plan.completed_exercises,
            daily_completion_record=[DayCompletionRecord.from_day(d) for d in plan.days],
        )

    @property
    def success_rate(self) -> float:
        return _percentage(self.completed_days, self.total_days)

    @property
    def exercise_completion_percentage(self) -> float:
        return _percentage(self.completed_exercises, self.total_exercises)

    @property
    def is_fully_completed(self) -> bool:
        return self.total_days > 0 and self.completed_days == self.total_days

    @property
    def perfect_days(self) -> int:
        return sum(1 for r in self.daily_completion_record if r.is_perfect_day)

    @property
    def partial_days(self) -> int:
        return sum(1 for r in self.daily_completion_record if r.is_partial_day)

    @property
    def missed_days(self) -> int:
        return sum(1 for r in self.daily_completion_record if r.is_missed_day)

    @property
    def longest_streak(self) -> int:
        """Longest run of consecutive fully completed days, by day number."""
        longest = current = 0
        for record in sorted(self.daily_completion_record, key=lambda r: r.day_number):
            if record.is_completed:
                current += 1
                longest = max(longest, current)
            else:
                current = 0
        return longest

    @property
    def most_consistent_week(self) -> int:
        """1 or 2; ties go to week 1."""
        def rate(records: List[DayCompletionRecord]) -> float:
            if not records:
                return 0.0
            return sum(1 for r in records if r.is_completed) / len(records)

        week1 = [r for r in self.daily_completion_record if r.day_number <= 7]
        week2 = [r for r in self.daily_completion_record if r.day_number > 7]
        return 1 if rate(week1) >= rate(week2) else 2

    @property
    def challenge_duration(self) -> int:
        return max((self.completion_date - self.start_date).days, 0)


# =============================================================================
# BADGES
# =============================================================================

class Badge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str
    unlock_count: int
    rarity: BadgeRarity

    def is_earned(self, completion_count: int) -> bool:
        return completion_count >= self.unlock_count

    def progress(self, completion_count: int) -> float:
        """0.0 to 1.0 toward unlocking."""
        if self.unlock_count <= 0:
            return 1.0
        return min(max(completion_count, 0) / self.unlock_count, 1.0)

    def remaining_to_unlock(self, completion_count: int) -> int:
        return max(self.unlock_count - completion_count, 0)
