"""
Exception hierarchy for the study engine.
"""

from datetime import datetime
from typing import Optional


class StudyEngineError(Exception):
    """Base exception for all study engine errors."""
    pass


class SessionUnavailableError(StudyEngineError):
    """A session could not be started. Informational, not a failure."""
    pass


class LimitReachedError(SessionUnavailableError):
    """Raised when a usage gate denies a session start."""

    def __init__(self, mode: str, next_eligible_date: Optional[datetime]):
        self.mode = mode
        self.next_eligible_date = next_eligible_date
        when = next_eligible_date.isoformat() if next_eligible_date else "later"
        super().__init__(f"{mode} study limit reached, next available {when}")


class NoReviewableConceptsError(SessionUnavailableError):
    """Raised when a smart session finds nothing new or due."""
    pass


class EmptyNotebookError(SessionUnavailableError):
    """Raised when a notebook has no concepts to study."""
    pass


class StoreUnavailableError(StudyEngineError):
    """Raised when an underlying store call fails."""
    pass


class PersistenceFailedError(StudyEngineError):
    """Raised when a session outcome could not be written. Safe to retry."""
    pass


class InvalidTransitionError(StudyEngineError):
    """Raised when an operation is not allowed in the current session state."""
    pass
