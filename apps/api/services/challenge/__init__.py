# 14-Day Challenge Core
#
# Plan lifecycle (suggested -> active -> archived), completion history,
# missed-day policy, badges and goal input for the Fit14 challenge.
#
# Architecture:
# - Frozen pydantic entities; edits return new values
# - AppState holds the plan slots; PlanLifecycleEngine is the only writer
# - ChallengeHistoryManager archives with rollback on storage failure
# - PlanStorage abstracts persistence (SQLAlchemy or in-memory)
# - WorkoutGenerator abstracts plan generation (Gemini or mock)

from .constants import (
    PLAN_LENGTH_DAYS,
    BadgeRarity,
    ChallengeHealth,
    ChipCategory,
    ChipImportance,
    ChipOption,
    ChipType,
    ExerciseUnit,
    PlanStatus,
)
from .errors import (
    ArchiveError,
    ChallengeError,
    GenerationError,
    GenerationErrorKind,
    PlanEditError,
    StorageError,
)
from .generation import (
    GeminiWorkoutGenerator,
    MockWorkoutGenerator,
    WorkoutGenerator,
    build_generator,
)
from .goal_input import ChipSelection, UserGoalData
from .history import ChallengeHistoryManager, HistoryStats
from .lifecycle import AppState, PlanLifecycleEngine
from .missed_days import MissedDayTracker, StreakInfo
from .models import (
    Badge,
    CompletedChallenge,
    Day,
    DayCompletionRecord,
    Exercise,
    ExerciseCompletionRecord,
    WorkoutPlan,
)
from .storage import InMemoryPlanStorage, PlanStorage, SqlAlchemyPlanStorage

__all__ = [
    # Constants
    'ExerciseUnit',
    'PlanStatus',
    'ChallengeHealth',
    'BadgeRarity',
    'ChipType',
    'ChipImportance',
    'ChipCategory',
    'ChipOption',
    'PLAN_LENGTH_DAYS',

    # Errors
    'ChallengeError',
    'PlanEditError',
    'StorageError',
    'ArchiveError',
    'GenerationError',
    'GenerationErrorKind',

    # Entities
    'Exercise',
    'Day',
    'WorkoutPlan',
    'CompletedChallenge',
    'DayCompletionRecord',
    'ExerciseCompletionRecord',
    'Badge',

    # Services
    'UserGoalData',
    'ChipSelection',
    'MissedDayTracker',
    'StreakInfo',
    'ChallengeHistoryManager',
    'HistoryStats',
    'PlanStorage',
    'SqlAlchemyPlanStorage',
    'InMemoryPlanStorage',
    'WorkoutGenerator',
    'GeminiWorkoutGenerator',
    'MockWorkoutGenerator',
    'build_generator',
    'AppState',
    'PlanLifecycleEngine',
]
