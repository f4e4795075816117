"""
Human review queue types.

A `ModerationQueueItem` moves pending -> in_review -> resolved. Any other
move is rejected by ``chatwarden.engine.review_queue``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List

from chatwarden.datatypes.action_datatypes import Severity
from chatwarden.util.time_utils import new_id, utcnow


class QueuePriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_severity(cls, severity: Severity) -> "QueuePriority":
        """critical -> urgent, high -> high, everything else -> medium."""
        if severity is Severity.CRITICAL:
            return cls.URGENT
        if severity is Severity.HIGH:
            return cls.HIGH
        return cls.MEDIUM


class QueueType(Enum):
    AUTO_FLAGGED = "auto_flagged"
    USER_REPORTED = "user_reported"
    APPEAL = "appeal"
    ESCALATION = "escalation"

    def __str__(self) -> str:
        return self.value


class QueueStatus(Enum):
    PENDING = "pending"
    IN_REVIEW = "in_review"
    RESOLVED = "resolved"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class ModerationQueueItem:
    """A ticket asking a human moderator to look at a piece of content.

    Attributes:
        content_id: Message (or action, for appeals) under review.
        priority: Derived from the decision severity.
        queue_type: Why the item was queued.
        analysis_id: Linked analysis, if any.
        flagged_reasons: Short reasons shown to the reviewer.
        status: pending, in_review or resolved.
        assigned_to / assigned_at: Set when a moderator picks the item up.
        reviewed_by / reviewed_at / action_taken / review_notes: Set on resolution.
    """

    content_id: str
    priority: QueuePriority
    queue_type: QueueType
    content_type: str = "message"
    analysis_id: str | None = None
    flagged_reasons: List[str] = field(default_factory=list)
    report_count: int = 0
    status: QueueStatus = QueueStatus.PENDING
    assigned_to: str | None = None
    assigned_at: datetime | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    action_taken: str | None = None
    review_notes: str | None = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
