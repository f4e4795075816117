"""
Error taxonomy for the moderation core.

Content-safety failures (``AnalysisFailure``) are recovered inside the decision
engine and turned into a review decision. Data-integrity failures
(``NotFoundError``, ``InvalidTransitionError``) and rejected input
(``InvalidInputError``) propagate to the caller. ``PersistenceFailure`` wraps
store errors; the engine logs it during decision execution and still returns
the verdict it computed.
"""

from __future__ import annotations


class ModerationError(Exception):
    """Base class for every error raised by ChatWarden."""


class InvalidInputError(ModerationError, ValueError):
    """Text submitted for analysis is empty, blank, or not a string."""


class AnalysisFailure(ModerationError):
    """Scoring raised unexpectedly or did not finish within its time budget."""


class NotFoundError(ModerationError, LookupError):
    """A referenced entity (action, queue item) does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id!r} not found")
        self.entity = entity
        self.entity_id = entity_id


class PersistenceFailure(ModerationError):
    """The store could not read or write a record."""


class InvalidTransitionError(ModerationError):
    """A review-queue item was moved along an edge its state machine forbids."""

    def __init__(self, item_id: str, current: str, requested: str) -> None:
        super().__init__(f"queue item {item_id!r} cannot move from {current} to {requested}")
        self.item_id = item_id
        self.current = current
        self.requested = requested
