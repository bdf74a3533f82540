import uuid

from sqlalchemy import JSON, Column, Date, DateTime, Index, String, Text, Uuid
from sqlalchemy.sql import func

from core.database import Base


class StoredPlan(Base):
    """
    One row per plan slot.

    The local store only persists the current (active) plan; the slot key
    leaves room for keeping a suggested plan across restarts.
    """
    __tablename__ = "stored_plan"

    slot = Column(String(32), primary_key=True)  # 'current'
    plan_id = Column(Uuid(as_uuid=True), nullable=False)
    payload = Column(JSON, nullable=False)  # WorkoutPlan.model_dump(mode="json")
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class CompletedChallengeRecord(Base):
    """Archived challenge; the full snapshot lives in payload."""
    __tablename__ = "completed_challenge"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    original_plan_id = Column(Uuid(as_uuid=True), nullable=False)
    challenge_title = Column(Text, nullable=False)
    completion_date = Column(Date, nullable=False)
    payload = Column(JSON, nullable=False)  # CompletedChallenge.model_dump(mode="json")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_completed_challenge_completion_date", "completion_date"),
    )


class StorageMeta(Base):
    """Key/value metadata, e.g. the stored data schema version."""
    __tablename__ = "storage_meta"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


SCHEMA_VERSION_KEY = "data_schema_version"
CURRENT_PLAN_SLOT = "current"

