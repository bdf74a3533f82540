"""
FastAPI dependencies for the challenge routers.

The engine is built once at startup and stored on app.state; tests swap it
through app.dependency_overrides[get_engine].
"""
from datetime import date

from fastapi import Depends, Request

from core.exceptions import ConflictError
from services.challenge import ChallengeHistoryManager, PlanLifecycleEngine


def get_engine(request: Request) -> PlanLifecycleEngine:
    return request.app.state.engine


def get_history(engine: PlanLifecycleEngine = Depends(get_engine)) -> ChallengeHistoryManager:
    return engine.history


def get_today(engine: PlanLifecycleEngine = Depends(get_engine)) -> date:
    return engine.clock()


def require_not_generating(engine: PlanLifecycleEngine = Depends(get_engine)) -> PlanLifecycleEngine:
    """Reject state changes while a generation request is in flight."""
    if engine.state.is_generating:
        raise ConflictError("A plan is being generated. Wait for it or cancel it first.", error_code="GENERATION_IN_PROGRESS")
    return engine
