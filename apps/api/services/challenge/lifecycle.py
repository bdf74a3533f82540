"""
Plan Lifecycle Engine

Owns the plan slots in AppState and every transition between them:

    suggested --accept--> active --(finished | completed)--> archived
    suggested --reject--> discarded

At most one plan is active. Finished/completed are derived from dates and
exercise flags. Archival of a finished plan happens the next time the plan
is accessed (load_saved_plan / check_for_finished_plan); there is no
background timer.

Operations that fail for user-recoverable reasons record a message in
`state.error_message` and return None instead of raising.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Set
from uuid import UUID

from services.challenge.errors import (
    ArchiveError,
    GenerationError,
    GenerationErrorKind,
    PlanEditError,
)
from services.challenge.generation import WorkoutGenerator
from services.challenge.goal_input import UserGoalData
from services.challenge.history import ChallengeHistoryManager
from services.challenge.models import CompletedChallenge, Day, Exercise, WorkoutPlan
from services.challenge.prompts import build_workout_prompt
from services.challenge.storage import PlanStorage

logger = logging.getLogger(__name__)

RESET_MESSAGE = "Saved plan could not be loaded and was reset"
NO_SUGGESTED_PLAN_MESSAGE = "No suggested plan to accept"
ACTIVE_PLAN_EXISTS_MESSAGE = "Finish or abandon your current challenge before starting a new one"


@dataclass
class AppState:
    """All mutable plan state for one user. Mutate only through the engine."""
    current_plan: Optional[WorkoutPlan] = None
    suggested_plan: Optional[WorkoutPlan] = None
    original_plan: Optional[WorkoutPlan] = None
    goal_data: UserGoalData = field(default_factory=UserGoalData)
    is_generating: bool = False
    error_message: Optional[str] = None
    help_available: bool = False
    error_kind: Optional[GenerationErrorKind] = None
    generation_id: int = 0


class PlanLifecycleEngine:
    def __init__(
        self,
        state: AppState,
        storage: PlanStorage,
        history: ChallengeHistoryManager,
        generator: Optional[WorkoutGenerator] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.state = state
        self.storage = storage
        self.history = history
        self.generator = generator
        self.clock = clock
        self._archived_plan_ids: Set[UUID] = set()

    def _fail(self, message: str) -> None:
        self.state.error_message = message
        self.state.help_available = False
        self.state.error_kind = None

    def clear_error(self) -> None:
        self.state.error_message = None
        self.state.help_available = False
        self.state.error_kind = None

    # -------------------------------------------------------------------------
    # Loading and archival
    # -------------------------------------------------------------------------

    def load_saved_plan(self) -> Optional[WorkoutPlan]:
        plan = self.storage.load_workout_plan()
        if self.storage.last_load_was_reset:
            logger.warning("Stored plan was corrupted and has been reset")
            self._fail(RESET_MESSAGE)
        self.state.current_plan = plan
        self.check_for_finished_plan()
        return self.state.current_plan

    def _already_archived(self, plan: WorkoutPlan) -> bool:
        if plan.id in self._archived_plan_ids:
            return True
        return any(c.original_plan_id == plan.id for c in self.history.completed_challenges)

    def _clear_current(self) -> None:
        self.state.current_plan = None
        self.storage.clear_workout_plan()

    def check_for_finished_plan(self) -> Optional[CompletedChallenge]:
        """Archive the active plan once its window has elapsed, whatever its completion."""
        plan = self.state.current_plan
        if plan is None or not plan.is_active or not plan.is_finished(self.clock()):
            return None

        if self._already_archived(plan):
            logger.info(f"Plan {plan.id} already archived, clearing current slot")
            self._clear_current()
            return None

        try:
            challenge = self.history.force_archive(plan)
        except ArchiveError as e:
            self._fail(str(e))
            return None

        self._archived_plan_ids.add(plan.id)
        self._clear_current()
        logger.info(f"Auto-archived finished plan {plan.id} at {plan.progress_percentage:.0f}%")
        return challenge

    def complete_current_plan(self) -> Optional[CompletedChallenge]:
        """User-confirmed archival of a fully completed plan."""
        plan = self.state.current_plan
        if plan is None or not plan.is_active:
            self._fail("No active plan to complete")
            return None
        try:
            challenge = self.history.archive(plan)
        except ArchiveError as e:
            self._fail(str(e))
            return None
        self._archived_plan_ids.add(plan.id)
        self._clear_current()
        return challenge

    def abandon_current_plan(self) -> Optional[CompletedChallenge]:
        """Archive the active plan as-is and free the active slot."""
        plan = self.state.current_plan
        if plan is None or not plan.is_active:
            self._fail("No active plan to abandon")
            return None
        try:
            challenge = self.history.force_archive(plan)
        except ArchiveError as e:
            self._fail(str(e))
            return None
        self._archived_plan_ids.add(plan.id)
        self._clear_current()
        logger.info(f"Abandoned plan {plan.id} at {plan.progress_percentage:.0f}%")
        return challenge

    # -------------------------------------------------------------------------
    # Suggested plan
    # -------------------------------------------------------------------------

    def accept_suggested_plan(self) -> Optional[WorkoutPlan]:
        suggested = self.state.suggested_plan
        if suggested is None:
            self._fail(NO_SUGGESTED_PLAN_MESSAGE)
            return None

        current = self.state.current_plan
        if current is not None and current.is_active:
            if current.is_finished(self.clock()):
                self.check_for_finished_plan()
            elif current.is_completed:
                self.complete_current_plan()
            else:
                self._fail(ACTIVE_PLAN_EXISTS_MESSAGE)
                return None
            if self.state.current_plan is not None:
                # Archiving the previous plan failed; error already recorded
                return None

        active = suggested.make_active()
        self.state.current_plan = active
        self.state.suggested_plan = None
        self.state.original_plan = None
        self.state.goal_data = UserGoalData()
        self.clear_error()
        self.storage.save_workout_plan(active)
        logger.info(f"Accepted plan {active.id} starting {active.created_date}")
        return active

    def reject_suggested_plan(self) -> None:
        """Discard the suggestion; goal input is kept for another try."""
        self.state.suggested_plan = None
        self.state.original_plan = None

    def _edit_suggested(self, edit: Callable[[WorkoutPlan], WorkoutPlan]) -> Optional[WorkoutPlan]:
        plan = self.state.suggested_plan
        if plan is None:
            self._fail("No suggested plan to edit")
            return None
        try:
            edited = edit(plan)
        except PlanEditError as e:
            self._fail(str(e))
            return None
        self.state.suggested_plan = edited
        return edited

    def update_suggested_day(self, day_id: UUID, new_day: Day) -> Optional[WorkoutPlan]:
        return self._edit_suggested(lambda p: p.with_modified_day(day_id, new_day))

    def add_exercise_to_suggested_day(self, day_id: UUID, exercise: Exercise) -> Optional[WorkoutPlan]:
        return self._edit_suggested(lambda p: p.with_exercise_added(day_id, exercise))

    def delete_exercise_from_suggested_day(self, day_id: UUID, exercise_id: UUID) -> Optional[WorkoutPlan]:
        return self._edit_suggested(lambda p: p.with_exercise_removed(day_id, exercise_id))

    def update_exercise_in_suggested_day(
        self, day_id: UUID, exercise_id: UUID, exercise: Exercise
    ) -> Optional[WorkoutPlan]:
        return self._edit_suggested(lambda p: p.with_exercise_updated(day_id, exercise_id, exercise))

    def reset_suggested_day_to_original(self, day_id: UUID) -> Optional[WorkoutPlan]:
        """Restore a day's exercises from the original suggestion; identity, date and focus stay."""
        suggested, original = self.state.suggested_plan, self.state.original_plan
        if suggested is None or original is None:
            self._fail("No original plan to reset from")
            return None

        index = next((i for i, d in enumerate(suggested.days) if d.id == day_id), None)
        if index is None or index >= len(original.days):
            self._fail(f"Day not found: {day_id}")
            return None

        days = list(suggested.days)
        days[index] = days[index].with_exercises(original.days[index].exercises)
        self.state.suggested_plan = suggested.with_modified_days(days)
        return self.state.suggested_plan

    @property
    def modified_suggested_day_ids(self) -> List[UUID]:
        """Days whose exercises differ from the original suggestion."""
        suggested, original = self.state.suggested_plan, self.state.original_plan
        if suggested is None or original is None:
            return []
        return [
            day.id
            for day, before in zip(suggested.days, original.days)
            if day.exercises != before.exercises
        ]

    # -------------------------------------------------------------------------
    # Active plan
    # -------------------------------------------------------------------------

    def toggle_exercise_completion(self, day_id: UUID, exercise_id: UUID) -> Optional[Exercise]:
        plan = self.state.current_plan
        if plan is None or not plan.is_active:
            logger.warning("Toggle ignored: no active plan")
            return None

        for day_index, day in enumerate(plan.days):
            if day.id != day_id:
                continue
            for exercise_index, exercise in enumerate(day.exercises):
                if exercise.id != exercise_id:
                    continue
                toggled = exercise.toggled()
                exercises = list(day.exercises)
                exercises[exercise_index] = toggled
                days = list(plan.days)
                days[day_index] = day.with_exercises(exercises)
                self.state.current_plan = plan.with_modified_days(days)
                self.storage.save_workout_plan(self.state.current_plan)
                return toggled

        logger.warning(f"Toggle ignored: exercise {exercise_id} not found in day {day_id}")
        return None

    def start_over(self) -> None:
        self.cancel_generation()
        self.state.current_plan = None
        self.state.suggested_plan = None
        self.state.original_plan = None
        self.state.goal_data = UserGoalData()
        self.clear_error()
        self.storage.clear_workout_plan()
        logger.info("Started over: all plan slots cleared")

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    async def generate_plan_from_goals(self) -> Optional[WorkoutPlan]:
        state = self.state
        if state.is_generating:
            self._fail("A plan is already being generated")
            return None

        goal_data = state.goal_data
        if not goal_data.is_sufficient_for_ai:
            self._fail(goal_data.validation_issues[0])
            return None
        if self.generator is None:
            self._fail("Plan generation is not configured")
            return None

        prompt = build_workout_prompt(goal_data)
        start = goal_data.effective_start_date(self.clock())

        state.generation_id += 1
        token = state.generation_id
        state.is_generating = True
        self.clear_error()

        try:
            plan = await self.generator.generate_workout_plan(
                prompt, user_goals=goal_data.complete_goal_text, start_date=start
            )
        except asyncio.CancelledError:
            # Request task torn down (client disconnect, shutdown)
            if token == state.generation_id:
                state.is_generating = False
                logger.info(f"Plan generation {token} interrupted")
            raise
        except GenerationError as e:
            self._finish_generation(token, error=e)
            return None
        except Exception as e:
            logger.exception(f"Unexpected error during plan generation: {e}")
            self._finish_generation(token, error=GenerationError(GenerationErrorKind.UNKNOWN, details=str(e)))
            return None

        if not self._finish_generation(token):
            logger.warning(f"Discarding stale generation result {plan.id} (request {token} was cancelled)")
            return None

        plan = plan.with_start_date(start)
        state.suggested_plan = plan
        state.original_plan = plan.model_copy(deep=True)
        return plan

    def _finish_generation(self, token: int, error: Optional[GenerationError] = None) -> bool:
        """Close out request `token`; False when it was cancelled meanwhile."""
        if token != self.state.generation_id:
            if error is not None:
                logger.warning(f"Ignoring failure of cancelled generation {token}: {error}")
            return False
        self.state.is_generating = False
        if error is not None:
            logger.warning(f"Plan generation failed ({error.kind.value}): {error}")
            self.state.error_message = error.message
            self.state.help_available = error.help_available
            self.state.error_kind = error.kind
        return True

    def cancel_generation(self) -> bool:
        if not self.state.is_generating:
            return False
        self.state.generation_id += 1
        self.state.is_generating = False
        logger.info("Plan generation cancelled")
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def has_active_plan(self) -> bool:
        return self.state.current_plan is not None and self.state.current_plan.is_active

    @property
    def should_show_completion_prompt(self) -> bool:
        return self.has_active_plan and self.state.current_plan.is_completed

    @property
    def progress_info(self) -> Dict[str, float]:
        plan = self.state.current_plan
        if plan is None:
            return {
                "completed_days": 0,
                "total_days": 0,
                "remaining_days": 0,
                "progress_percentage": 0.0,
                "completed_exercises": 0,
                "total_exercises": 0,
                "exercise_completion_percentage": 0.0,
            }
        return {
            "completed_days": plan.completed_days,
            "total_days": plan.total_days,
            "remaining_days": plan.remaining_days,
            "progress_percentage": plan.progress_percentage,
            "completed_exercises": plan.completed_exercises,
            "total_exercises": plan.total_exercises,
            "exercise_completion_percentage": plan.exercise_completion_percentage,
        }

    def get_day(self, day_id: UUID) -> Optional[Day]:
        plan = self.state.current_plan
        return plan.find_day(day_id) if plan is not None else None

    def get_exercise(self, day_id: UUID, exercise_id: UUID) -> Optional[Exercise]:
        day = self.get_day(day_id)
        return day.find_exercise(exercise_id) if day is not None else None

    def get_suggested_day(self, day_id: UUID) -> Optional[Day]:
        plan = self.state.suggested_plan
        return plan.find_day(day_id) if plan is not None else None
