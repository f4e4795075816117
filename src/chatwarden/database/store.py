"""
Persistence contract the moderation core depends on.

Any object with these coroutines can back the engine; ChatWarden ships
:class:`chatwarden.database.sqlite_store.SQLiteModerationStore`. Implementations
raise :class:`chatwarden.errors.PersistenceFailure` when the backend fails and
return ``None`` (never raise) for a missing record.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Protocol, Sequence

from chatwarden.datatypes.action_datatypes import ContentReport, ModerationAction, ModerationAppeal
from chatwarden.datatypes.analysis_datatypes import ContentSimilarityRecord, ModerationAnalysisRecord
from chatwarden.datatypes.queue_datatypes import ModerationQueueItem, QueuePriority, QueueStatus
from chatwarden.datatypes.trust_datatypes import UserTrustScore


class ModerationStore(Protocol):
    # Analyses (append-only)
    async def create_moderation_analysis(self, record: ModerationAnalysisRecord) -> ModerationAnalysisRecord: ...

    async def get_moderation_analysis(self, analysis_id: str) -> ModerationAnalysisRecord | None: ...

    async def get_analyses_for_author(
        self, author_id: str, since: datetime | None = None, limit: int | None = None
    ) -> List[ModerationAnalysisRecord]: ...

    # Fingerprints
    async def create_content_similarity(self, record: ContentSimilarityRecord) -> ContentSimilarityRecord: ...

    async def get_content_similarity(self, content_id: str) -> ContentSimilarityRecord | None: ...

    async def get_content_similarities_for_author(
        self, author_id: str, limit: int | None = None
    ) -> List[ContentSimilarityRecord]: ...

    # Actions
    async def create_moderation_action(self, action: ModerationAction) -> ModerationAction: ...

    async def get_moderation_action(self, action_id: str) -> ModerationAction | None: ...

    async def get_moderation_actions_for_user(self, human_id: str) -> List[ModerationAction]: ...

    async def get_active_moderation_actions(self, human_id: str) -> List[ModerationAction]: ...

    async def expire_moderation_actions(self, now: datetime | None = None) -> int: ...

    # Trust
    async def get_user_trust_score(self, human_id: str) -> UserTrustScore | None: ...

    async def save_user_trust_score(self, score: UserTrustScore) -> UserTrustScore: ...

    # Review queue
    async def create_moderation_queue_item(self, item: ModerationQueueItem) -> ModerationQueueItem: ...

    async def get_moderation_queue_item(self, item_id: str) -> ModerationQueueItem | None: ...

    async def list_moderation_queue(
        self,
        statuses: Sequence[QueueStatus] | None = None,
        priority: QueuePriority | None = None,
        limit: int = 50,
    ) -> List[ModerationQueueItem]: ...

    async def update_moderation_queue_item(self, item: ModerationQueueItem) -> ModerationQueueItem: ...

    # Appeals
    async def create_moderation_appeal(self, appeal: ModerationAppeal) -> ModerationAppeal: ...

    async def get_appeals_for_action(self, action_id: str) -> List[ModerationAppeal]: ...

    # Reports
    async def create_report(self, report: ContentReport) -> ContentReport: ...

    async def get_reports_by_reporter(self, reporter_id: str) -> List[ContentReport]: ...

    # Content visibility
    async def hide_message(self, content_id: str, reason: str | None = None) -> None: ...

    async def restore_message(self, content_id: str) -> bool: ...

    async def is_message_hidden(self, content_id: str) -> bool: ...
