"""
Domain exceptions for the challenge core.

These never reach HTTP directly; routers map them onto core.exceptions.
"""

from enum import Enum


class ChallengeError(Exception):
    """Base class for challenge-domain failures."""


class PlanEditError(ChallengeError):
    """An edit would break a plan invariant or referenced an unknown id."""


class StorageError(ChallengeError):
    """Persisting or deleting a record failed."""


class ArchiveError(ChallengeError):
    """Archiving or deleting a completed challenge failed; history was restored."""


class GenerationErrorKind(str, Enum):
    NETWORK = "network"
    QUOTA = "quota"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


_DEFAULT_MESSAGES = {
    GenerationErrorKind.NETWORK: "Network connection failed. Please check your internet and try again.",
    GenerationErrorKind.QUOTA: "You've reached the daily limit for AI-generated workout plans. Please try again tomorrow.",
    GenerationErrorKind.MALFORMED_RESPONSE: "The AI generated an invalid workout plan format. Please try again with slightly different wording.",
    GenerationErrorKind.UNKNOWN: "Something went wrong while creating your plan. Please try again.",
}


class GenerationError(ChallengeError):
    """Plan generation failed. `message` is safe to show to the user."""

    def __init__(self, kind: GenerationErrorKind, message: str = None, details: str = None):
        self.kind = kind
        self.message = message or _DEFAULT_MESSAGES[kind]
        self.details = details
        super().__init__(self.message if not details else f"{self.message} ({details})")

    @property
    def help_available(self) -> bool:
        """Quota and malformed output usually mean the goal text needs rework."""
        return self.kind in (GenerationErrorKind.QUOTA, GenerationErrorKind.MALFORMED_RESPONSE)
