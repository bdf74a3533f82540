"""
Pytest configuration and fixtures

Engine tests run against InMemoryPlanStorage with a controllable clock.
Storage tests get a private in-memory SQLite database per test, so nothing
touches the application database file.
"""
import pytest
import sys
import os
from datetime import date, timedelta

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import init_db
from services.challenge import (
    AppState,
    ChallengeHistoryManager,
    ChipType,
    Day,
    Exercise,
    InMemoryPlanStorage,
    MockWorkoutGenerator,
    PlanLifecycleEngine,
    PlanStatus,
    WorkoutPlan,
)

TODAY = date(2026, 3, 2)


class FakeClock:
    """Callable clock whose date the test moves by hand."""

    def __init__(self, today: date = TODAY):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> None:
        self.today += timedelta(days=days)


def build_plan(
    start: date = TODAY,
    status: PlanStatus = PlanStatus.ACTIVE,
    completed_days: int = 0,
    days: int = 14,
    exercises_per_day: int = 2,
    goals: str = "Build strength at home",
) -> WorkoutPlan:
    """Plan whose first `completed_days` days are fully done."""
    day_list = []
    for number in range(1, days + 1):
        done = number <= completed_days
        day_list.append(Day(
            day_number=number,
            date=start + timedelta(days=number - 1),
            focus=f"Workout {number}",
            exercises=[
                Exercise(name=f"Exercise {number}.{i}", sets=3, quantity=10, is_completed=done)
                for i in range(1, exercises_per_day + 1)
            ],
        ))
    return WorkoutPlan(
        user_goals=goals,
        summary="Two-week strength builder",
        status=status,
        created_date=start,
        days=day_list,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def plan_factory():
    return build_plan


@pytest.fixture
def storage():
    return InMemoryPlanStorage()


@pytest.fixture
def history(storage, clock):
    return ChallengeHistoryManager(storage, clock=clock)


@pytest.fixture
def generator():
    return MockWorkoutGenerator()


@pytest.fixture
def engine(storage, history, generator, clock):
    """Lifecycle engine with in-memory storage and the mock generator."""
    return PlanLifecycleEngine(AppState(), storage, history, generator=generator, clock=clock)


@pytest.fixture
def ready_goals(engine):
    """Fill in the two required chips plus some goal text."""
    goals = engine.state.goal_data
    goals.update_free_form_text("Get stronger and build a habit")
    goals.select(ChipType.FITNESS_LEVEL, "beginner")
    goals.select(ChipType.TIME_AVAILABLE, "30-45 minutes")
    return goals


@pytest.fixture
def session_factory():
    """
    Session factory on a fresh in-memory SQLite database.

    StaticPool keeps the single connection alive so every session sees
    the same database.
    """
    db_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=db_engine)
    factory = sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)
    yield factory
    db_engine.dispose()
