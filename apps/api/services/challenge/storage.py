"""
Challenge Persistence

The lifecycle engine and history manager talk to an abstract `PlanStorage`.

Contract:
- save/clear of the current plan are fire-and-forget: failures are logged,
  never raised.
- load never raises. Unreadable or structurally broken plan data is cleared
  and reported as absent; `last_load_was_reset` tells the caller it happened.
- save/delete of completed challenges raise StorageError so callers can
  roll back their in-memory state.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import (
    CURRENT_PLAN_SLOT,
    SCHEMA_VERSION_KEY,
    CompletedChallengeRecord,
    StorageMeta,
    StoredPlan,
)
from services.challenge.errors import StorageError
from services.challenge.models import CompletedChallenge, WorkoutPlan

logger = logging.getLogger(__name__)


def is_loadable_plan(plan: WorkoutPlan) -> bool:
    """Minimal structural check for a stored plan."""
    if not plan.days:
        return False
    return all(e.sets > 0 and e.quantity > 0 for d in plan.days for e in d.exercises)


class PlanStorage(ABC):
    """Opaque durable store for the current plan and the challenge history."""

    def __init__(self):
        self.last_load_was_reset = False

    @abstractmethod
    def save_workout_plan(self, plan: WorkoutPlan) -> None:
        pass

    @abstractmethod
    def load_workout_plan(self) -> Optional[WorkoutPlan]:
        pass

    @abstractmethod
    def clear_workout_plan(self) -> None:
        pass

    @abstractmethod
    def save_completed_challenge(self, challenge: CompletedChallenge) -> None:
        """Raises StorageError."""
        pass

    @abstractmethod
    def load_completed_challenges(self) -> List[CompletedChallenge]:
        pass

    @abstractmethod
    def delete_completed_challenge(self, challenge_id: UUID) -> None:
        """Raises StorageError."""
        pass


class InMemoryPlanStorage(PlanStorage):
    """Process-local storage for tests and dry runs."""

    def __init__(self):
        super().__init__()
        self.plan_payload: Optional[dict] = None
        self.challenges: Dict[UUID, CompletedChallenge] = {}
        self.fail_challenge_writes = False

    def save_workout_plan(self, plan: WorkoutPlan) -> None:
        self.plan_payload = plan.model_dump(mode="json")

    def load_workout_plan(self) -> Optional[WorkoutPlan]:
        self.last_load_was_reset = False
        if self.plan_payload is None:
            return None
        try:
            plan = WorkoutPlan.model_validate(self.plan_payload)
        except PydanticValidationError as e:
            logger.warning(f"Stored plan could not be decoded, clearing: {e.error_count()} errors")
            return self._reset()
        if not is_loadable_plan(plan):
            logger.warning("Stored plan failed validation, clearing")
            return self._reset()
        return plan

    def _reset(self) -> None:
        self.plan_payload = None
        self.last_load_was_reset = True
        return None

    def clear_workout_plan(self) -> None:
        self.plan_payload = None

    def save_completed_challenge(self, challenge: CompletedChallenge) -> None:
        if self.fail_challenge_writes:
            raise StorageError("Simulated storage failure")
        self.challenges[challenge.id] = challenge

    def load_completed_challenges(self) -> List[CompletedChallenge]:
        return list(self.challenges.values())

    def delete_completed_challenge(self, challenge_id: UUID) -> None:
        if self.fail_challenge_writes:
            raise StorageError("Simulated storage failure")
        self.challenges.pop(challenge_id, None)


class SqlAlchemyPlanStorage(PlanStorage):
    """
    PlanStorage on the SQLAlchemy rows in models.py.

    Each call opens its own short session from the factory.
    """

    def __init__(self, session_factory: Callable[[], Session], schema_version: int):
        super().__init__()
        self._session_factory = session_factory
        self.schema_version = schema_version

    def check_schema_version(self) -> None:
        """
        Clear stored plan data written under a different schema version.

        Challenge history is kept; only the current plan format changes
        between versions.
        """
        with self._session_factory() as db:
            meta = db.get(StorageMeta, SCHEMA_VERSION_KEY)
            stored = int(meta.value) if meta is not None else None
            if stored == self.schema_version:
                return

            if stored is None:
                logger.info(f"Initializing data schema version {self.schema_version}")
            else:
                logger.warning(
                    f"Data schema changed from v{stored} to v{self.schema_version}, clearing stored plan"
                )
            db.query(StoredPlan).delete()
            if meta is None:
                db.add(StorageMeta(key=SCHEMA_VERSION_KEY, value=str(self.schema_version)))
            else:
                meta.value = str(self.schema_version)
            db.commit()

    # -------------------------------------------------------------------------
    # Current plan
    # -------------------------------------------------------------------------

    def save_workout_plan(self, plan: WorkoutPlan) -> None:
        try:
            with self._session_factory() as db:
                row = db.get(StoredPlan, CURRENT_PLAN_SLOT)
                payload = plan.model_dump(mode="json")
                if row is None:
                    db.add(StoredPlan(slot=CURRENT_PLAN_SLOT, plan_id=plan.id, payload=payload))
                else:
                    row.plan_id = plan.id
                    row.payload = payload
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save workout plan {plan.id}: {e}")

    def load_workout_plan(self) -> Optional[WorkoutPlan]:
        self.last_load_was_reset = False
        try:
            with self._session_factory() as db:
                row = db.get(StoredPlan, CURRENT_PLAN_SLOT)
                payload = row.payload if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read stored plan: {e}")
            return None

        if payload is None:
            return None

        try:
            plan = WorkoutPlan.model_validate(payload)
        except PydanticValidationError as e:
            logger.warning(f"Stored plan could not be decoded, clearing: {e.error_count()} errors")
            return self._reset()

        if not is_loadable_plan(plan):
            logger.warning("Stored plan failed validation, clearing")
            return self._reset()

        return plan

    def _reset(self) -> None:
        self.clear_workout_plan()
        self.last_load_was_reset = True
        return None

    def clear_workout_plan(self) -> None:
        try:
            with self._session_factory() as db:
                db.query(StoredPlan).filter(StoredPlan.slot == CURRENT_PLAN_SLOT).delete()
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to clear stored plan: {e}")

    # -------------------------------------------------------------------------
    # Completed challenges
    # -------------------------------------------------------------------------

    def save_completed_challenge(self, challenge: CompletedChallenge) -> None:
        try:
            with self._session_factory() as db:
                db.merge(CompletedChallengeRecord(
                    id=challenge.id,
                    original_plan_id=challenge.original_plan_id,
                    challenge_title=challenge.challenge_title,
                    completion_date=challenge.completion_date,
                    payload=challenge.model_dump(mode="json"),
                ))
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save completed challenge {challenge.id}: {e}")
            raise StorageError(f"Could not save challenge: {e}") from e

    def load_completed_challenges(self) -> List[CompletedChallenge]:
        try:
            with self._session_factory() as db:
                rows = (
                    db.query(CompletedChallengeRecord)
                    .order_by(CompletedChallengeRecord.completion_date.desc())
                    .all()
                )
                payloads = [(row.id, row.payload) for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load completed challenges: {e}")
            return []

        challenges = []
        for row_id, payload in payloads:
            try:
                challenges.append(CompletedChallenge.model_validate(payload))
            except PydanticValidationError:
                logger.warning(f"Skipping unreadable completed challenge {row_id}")
        return challenges

    def delete_completed_challenge(self, challenge_id: UUID) -> None:
        try:
            with self._session_factory() as db:
                db.query(CompletedChallengeRecord).filter(
                    CompletedChallengeRecord.id == challenge_id
                ).delete()
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete completed challenge {challenge_id}: {e}")
            raise StorageError(f"Could not delete challenge: {e}") from e
