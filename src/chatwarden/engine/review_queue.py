"""
Human review queue.

Items move ``pending -> in_review -> resolved`` and nowhere else. The queue
holds no state of its own; every item lives in the store.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, FrozenSet, List, Sequence
from datetime import datetime

from chatwarden.database.store import ModerationStore
from chatwarden.datatypes.action_datatypes import Severity
from chatwarden.datatypes.queue_datatypes import ModerationQueueItem, QueuePriority, QueueStatus, QueueType
from chatwarden.errors import InvalidTransitionError, NotFoundError
from chatwarden.util.logger import get_logger
from chatwarden.util.time_utils import utcnow

logger = get_logger("review_queue")

ALLOWED_TRANSITIONS: Dict[QueueStatus, FrozenSet[QueueStatus]] = {
    QueueStatus.PENDING: frozenset({QueueStatus.IN_REVIEW}),
    QueueStatus.IN_REVIEW: frozenset({QueueStatus.RESOLVED}),
    QueueStatus.RESOLVED: frozenset(),
}


def check_transition(item: ModerationQueueItem, requested: QueueStatus) -> None:
    if requested not in ALLOWED_TRANSITIONS[item.status]:
        raise InvalidTransitionError(item.id, str(item.status), str(requested))


class ReviewQueue:
    """Creates, lists and moves review items through their lifecycle."""

    def __init__(self, store: ModerationStore, clock: Callable[[], datetime] = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def enqueue(
        self,
        content_id: str,
        severity: Severity,
        queue_type: QueueType = QueueType.AUTO_FLAGGED,
        analysis_id: str | None = None,
        flagged_reasons: Sequence[str] = (),
        content_type: str = "message",
    ) -> ModerationQueueItem:
        item = ModerationQueueItem(
            content_id=content_id,
            priority=QueuePriority.from_severity(severity),
            queue_type=queue_type,
            content_type=content_type,
            analysis_id=analysis_id,
            flagged_reasons=list(flagged_reasons),
        )
        item = await self._store.create_moderation_queue_item(item)
        logger.info("[REVIEW QUEUE] Queued %s %s as %s (%s)", content_type, content_id, item.id, item.priority)
        return item

    async def get(self, item_id: str) -> ModerationQueueItem:
        item = await self._store.get_moderation_queue_item(item_id)
        if item is None:
            raise NotFoundError("queue item", item_id)
        return item

    async def list(
        self,
        status: QueueStatus | Sequence[QueueStatus] | None = None,
        priority: QueuePriority | None = None,
        limit: int = 50,
    ) -> List[ModerationQueueItem]:
        """List items, most urgent first. ``status`` defaults to every open status."""
        if status is None:
            statuses: Sequence[QueueStatus] = (QueueStatus.PENDING, QueueStatus.IN_REVIEW)
        elif isinstance(status, QueueStatus):
            statuses = (status,)
        else:
            statuses = tuple(status)
        return await self._store.list_moderation_queue(statuses=statuses, priority=priority, limit=limit)

    async def assign(self, item_id: str, moderator_id: str) -> ModerationQueueItem:
        item = await self.get(item_id)
        check_transition(item, QueueStatus.IN_REVIEW)

        now = self._clock()
        updated = replace(
            item,
            status=QueueStatus.IN_REVIEW,
            assigned_to=moderator_id,
            assigned_at=now,
            updated_at=now,
        )
        updated = await self._store.update_moderation_queue_item(updated)
        logger.info("[REVIEW QUEUE] Item %s assigned to %s", item_id, moderator_id)
        return updated

    async def resolve(
        self,
        item_id: str,
        action_taken: str,
        reviewer_id: str,
        notes: str | None = None,
    ) -> ModerationQueueItem:
        item = await self.get(item_id)
        check_transition(item, QueueStatus.RESOLVED)

        now = self._clock()
        updated = replace(
            item,
            status=QueueStatus.RESOLVED,
            reviewed_by=reviewer_id,
            reviewed_at=now,
            action_taken=action_taken,
            review_notes=notes,
            updated_at=now,
        )
        updated = await self._store.update_moderation_queue_item(updated)
        logger.info("[REVIEW QUEUE] Item %s resolved by %s: %s", item_id, reviewer_id, action_taken)
        return updated
