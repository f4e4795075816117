"""
SQLite-backed implementation of :class:`chatwarden.database.store.ModerationStore`.

Every record type maps onto one table created by
:class:`chatwarden.database.db_schema.SchemaManager`. Enums are stored by
value, datetimes as ISO-8601 UTC text, and sequences or dicts as JSON. Any
SQLite error surfaces as :class:`chatwarden.errors.PersistenceFailure`.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Sequence

import aiosqlite

from chatwarden.database.db_connection import ConnectionManager
from chatwarden.database.db_schema import SchemaManager
from chatwarden.datatypes.action_datatypes import (
    ActionType,
    AppealStatus,
    ContentReport,
    ModerationAction,
    ModerationAppeal,
    ModeratorType,
    Severity,
    TargetType,
)
from chatwarden.datatypes.analysis_datatypes import (
    ContentAnalysisResult,
    ContentSimilarity,
    ContentSimilarityRecord,
    ExtractedUrl,
    ModerationAnalysisRecord,
    RecommendedAction,
    RiskLevel,
    SemanticCategory,
    UrlReputation,
)
from chatwarden.datatypes.queue_datatypes import ModerationQueueItem, QueuePriority, QueueStatus, QueueType
from chatwarden.datatypes.trust_datatypes import TrustLevel, UserTrustScore
from chatwarden.errors import NotFoundError, PersistenceFailure
from chatwarden.util.logger import get_logger
from chatwarden.util.time_utils import from_iso, to_iso, utcnow

logger = get_logger("sqlite_store")

_PRIORITY_RANK = {
    QueuePriority.LOW: 0,
    QueuePriority.MEDIUM: 1,
    QueuePriority.HIGH: 2,
    QueuePriority.URGENT: 3,
}


class SQLiteModerationStore:
    """
    Moderation store over one long-lived aiosqlite connection.

    Lifecycle:
        1. ``await store.open()`` creates the file and schema
        2. Use the store
        3. ``await store.close()`` checkpoints and closes
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = db_path
        self._db = ConnectionManager()

    async def open(self) -> None:
        try:
            await self._db.open(self.db_path)
            async with self._db.transaction() as conn:
                await SchemaManager.initialize_schema(conn)
        except aiosqlite.Error as exc:
            raise PersistenceFailure(f"could not open store at {self.db_path}: {exc}") from exc
        logger.info("[STORE] Moderation store ready at %s", self.db_path)

    async def close(self) -> None:
        await self._db.close()

    async def __aenter__(self) -> "SQLiteModerationStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @asynccontextmanager
    async def _write(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with self._db.transaction() as conn:
                yield conn
        except aiosqlite.Error as exc:
            logger.error("[STORE] %s failed: %s", operation, exc)
            raise PersistenceFailure(f"{operation} failed: {exc}") from exc

    async def _fetch_all(self, operation: str, sql: str, params: Sequence[Any] = ()) -> List[aiosqlite.Row]:
        try:
            async with self._db.read() as conn:
                cursor = await conn.execute(sql, params)
                rows = await cursor.fetchall()
                await cursor.close()
                return list(rows)
        except aiosqlite.Error as exc:
            logger.error("[STORE] %s failed: %s", operation, exc)
            raise PersistenceFailure(f"{operation} failed: {exc}") from exc

    async def _fetch_one(self, operation: str, sql: str, params: Sequence[Any] = ()) -> aiosqlite.Row | None:
        rows = await self._fetch_all(operation, sql, params)
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    async def create_moderation_analysis(self, record: ModerationAnalysisRecord) -> ModerationAnalysisRecord:
        result = record.result
        async with self._write("create_moderation_analysis") as conn:
            await conn.execute(
                """
                INSERT INTO moderation_analysis (
                    id, content_id, content_type, author_id, content_text, language,
                    toxicity_score, sentiment_score, spam_score, scam_score, promotional_score,
                    detected_languages, flagged_patterns, extracted_urls, semantic_categories,
                    risk_level, recommended_action, analysis_version, processing_time_ms, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id, record.content_id, record.content_type, record.author_id,
                    record.content_text, record.language,
                    result.toxicity_score, result.sentiment_score, result.spam_score,
                    result.scam_score, result.promotional_score,
                    json.dumps(list(result.detected_languages)),
                    json.dumps(list(result.flagged_patterns)),
                    json.dumps([_url_to_dict(url) for url in result.extracted_urls]),
                    json.dumps([asdict(category) for category in result.semantic_categories]),
                    result.risk_level.value, result.recommended_action.value,
                    result.analysis_version, result.processing_time_ms, to_iso(record.created_at),
                ),
            )
        return record

    async def get_moderation_analysis(self, analysis_id: str) -> ModerationAnalysisRecord | None:
        row = await self._fetch_one(
            "get_moderation_analysis", "SELECT * FROM moderation_analysis WHERE id = ?", (analysis_id,)
        )
        return _row_to_analysis(row) if row else None

    async def get_analyses_for_author(
        self, author_id: str, since: datetime | None = None, limit: int | None = None
    ) -> List[ModerationAnalysisRecord]:
        """Analyses of ``author_id``'s messages, newest first."""
        sql = "SELECT * FROM moderation_analysis WHERE author_id = ?"
        params: List[Any] = [author_id]
        if since is not None:
            sql += " AND created_at >= ?"
            params.append(to_iso(since))
        sql += " ORDER BY created_at DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows = await self._fetch_all("get_analyses_for_author", sql, params)
        return [_row_to_analysis(row) for row in rows]

    # ------------------------------------------------------------------
    # Fingerprints
    # ------------------------------------------------------------------

    async def create_content_similarity(self, record: ContentSimilarityRecord) -> ContentSimilarityRecord:
        similarity = record.similarity
        async with self._write("create_content_similarity") as conn:
            await conn.execute(
                """
                INSERT INTO content_similarity (
                    id, content_id, content_type, author_id, content_hash, semantic_hash,
                    word_count, unique_word_ratio, uppercase_ratio, url_count,
                    similarity_score, is_spam_cluster, duplicate_group, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id, record.content_id, record.content_type, record.author_id,
                    similarity.content_hash, similarity.semantic_hash, similarity.word_count,
                    similarity.unique_word_ratio, similarity.uppercase_ratio, similarity.url_count,
                    similarity.similarity_score, int(similarity.is_spam_cluster),
                    similarity.duplicate_group, to_iso(record.created_at),
                ),
            )
        return record

    async def get_content_similarity(self, content_id: str) -> ContentSimilarityRecord | None:
        """Latest fingerprint stored for ``content_id``."""
        row = await self._fetch_one(
            "get_content_similarity",
            "SELECT * FROM content_similarity WHERE content_id = ? ORDER BY created_at DESC LIMIT 1",
            (content_id,),
        )
        return _row_to_similarity(row) if row else None

    async def get_content_similarities_for_author(
        self, author_id: str, limit: int | None = None
    ) -> List[ContentSimilarityRecord]:
        sql = "SELECT * FROM content_similarity WHERE author_id = ? ORDER BY created_at DESC"
        params: List[Any] = [author_id]
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows = await self._fetch_all("get_content_similarities_for_author", sql, params)
        return [_row_to_similarity(row) for row in rows]

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def create_moderation_action(self, action: ModerationAction) -> ModerationAction:
        async with self._write("create_moderation_action") as conn:
            await conn.execute(
                """
                INSERT INTO moderation_actions (
                    id, target_id, target_type, subject_id, moderator_type, moderator_id,
                    action_type, severity, reason, duration_hours, expires_at, evidence,
                    analysis_id, is_appeal, is_override, overridden_action_id, is_active, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    action.id, action.target_id, action.target_type.value, action.subject_id,
                    action.moderator_type.value, action.moderator_id, action.action_type.value,
                    action.severity.value, action.reason, action.duration_hours,
                    to_iso(action.expires_at), json.dumps(action.evidence, default=str),
                    action.analysis_id, int(action.is_appeal), int(action.is_override),
                    action.overridden_action_id, int(action.is_active), to_iso(action.created_at),
                ),
            )
        logger.debug("[STORE] Recorded %s action %s on %s", action.action_type, action.id, action.target_id)
        return action

    async def get_moderation_action(self, action_id: str) -> ModerationAction | None:
        row = await self._fetch_one(
            "get_moderation_action", "SELECT * FROM moderation_actions WHERE id = ?", (action_id,)
        )
        return _row_to_action(row) if row else None

    async def get_moderation_actions_for_user(self, human_id: str) -> List[ModerationAction]:
        """Every action held against ``human_id``, newest first."""
        rows = await self._fetch_all(
            "get_moderation_actions_for_user",
            "SELECT * FROM moderation_actions WHERE subject_id = ? ORDER BY created_at DESC",
            (human_id,),
        )
        return [_row_to_action(row) for row in rows]

    async def get_active_moderation_actions(self, human_id: str) -> List[ModerationAction]:
        """Actions against ``human_id`` that are active, unexpired and not overridden by a restore."""
        rows = await self._fetch_all(
            "get_active_moderation_actions",
            """
            SELECT * FROM moderation_actions AS a
            WHERE a.subject_id = ?
              AND a.is_active = 1
              AND a.action_type != ?
              AND (a.expires_at IS NULL OR a.expires_at > ?)
              AND NOT EXISTS (
                  SELECT 1 FROM moderation_actions AS r
                  WHERE r.overridden_action_id = a.id AND r.action_type = ?
              )
            ORDER BY a.created_at DESC
            """,
            (human_id, ActionType.RESTORE.value, to_iso(utcnow()), ActionType.RESTORE.value),
        )
        return [_row_to_action(row) for row in rows]

    async def expire_moderation_actions(self, now: datetime | None = None) -> int:
        """Deactivate every timed action whose expiry has passed. Returns the number expired."""
        async with self._write("expire_moderation_actions") as conn:
            cursor = await conn.execute(
                "UPDATE moderation_actions SET is_active = 0 "
                "WHERE is_active = 1 AND expires_at IS NOT NULL AND expires_at <= ?",
                (to_iso(now or utcnow()),),
            )
            expired = cursor.rowcount
            await cursor.close()
        return max(0, expired)

    # ------------------------------------------------------------------
    # Trust
    # ------------------------------------------------------------------

    async def get_user_trust_score(self, human_id: str) -> UserTrustScore | None:
        row = await self._fetch_one(
            "get_user_trust_score", "SELECT * FROM user_trust_scores WHERE human_id = ?", (human_id,)
        )
        return _row_to_trust(row) if row else None

    async def save_user_trust_score(self, score: UserTrustScore) -> UserTrustScore:
        async with self._write("save_user_trust_score") as conn:
            await conn.execute(
                """
                INSERT INTO user_trust_scores (
                    human_id, overall_trust_score, content_quality_score, community_engagement_score,
                    report_accuracy_score, total_messages, total_reports_received, total_reports_made,
                    warnings_count, temp_bans_count, days_without_violation, last_violation_at,
                    trust_level, requires_review, max_daily_messages, can_report_users,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(human_id) DO UPDATE SET
                    overall_trust_score = excluded.overall_trust_score,
                    content_quality_score = excluded.content_quality_score,
                    community_engagement_score = excluded.community_engagement_score,
                    report_accuracy_score = excluded.report_accuracy_score,
                    total_messages = excluded.total_messages,
                    total_reports_received = excluded.total_reports_received,
                    total_reports_made = excluded.total_reports_made,
                    warnings_count = excluded.warnings_count,
                    temp_bans_count = excluded.temp_bans_count,
                    days_without_violation = excluded.days_without_violation,
                    last_violation_at = excluded.last_violation_at,
                    trust_level = excluded.trust_level,
                    requires_review = excluded.requires_review,
                    max_daily_messages = excluded.max_daily_messages,
                    can_report_users = excluded.can_report_users,
                    updated_at = excluded.updated_at
                """,
                (
                    score.human_id, score.overall_trust_score, score.content_quality_score,
                    score.community_engagement_score, score.report_accuracy_score,
                    score.total_messages, score.total_reports_received, score.total_reports_made,
                    score.warnings_count, score.temp_bans_count, score.days_without_violation,
                    to_iso(score.last_violation_at), score.trust_level.value, int(score.requires_review),
                    score.max_daily_messages, int(score.can_report_users),
                    to_iso(score.created_at), to_iso(score.updated_at),
                ),
            )
        return score

    # ------------------------------------------------------------------
    # Review queue
    # ------------------------------------------------------------------

    async def create_moderation_queue_item(self, item: ModerationQueueItem) -> ModerationQueueItem:
        async with self._write("create_moderation_queue_item") as conn:
            await conn.execute(
                """
                INSERT INTO moderation_queue (
                    id, content_id, content_type, priority, priority_rank, queue_type, analysis_id,
                    flagged_reasons, report_count, status, assigned_to, assigned_at, reviewed_by,
                    reviewed_at, action_taken, review_notes, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id, item.content_id, item.content_type, item.priority.value,
                    _PRIORITY_RANK[item.priority], item.queue_type.value, item.analysis_id,
                    json.dumps(item.flagged_reasons), item.report_count, item.status.value,
                    item.assigned_to, to_iso(item.assigned_at), item.reviewed_by,
                    to_iso(item.reviewed_at), item.action_taken, item.review_notes,
                    to_iso(item.created_at), to_iso(item.updated_at),
                ),
            )
        return item

    async def get_moderation_queue_item(self, item_id: str) -> ModerationQueueItem | None:
        row = await self._fetch_one(
            "get_moderation_queue_item", "SELECT * FROM moderation_queue WHERE id = ?", (item_id,)
        )
        return _row_to_queue_item(row) if row else None

    async def list_moderation_queue(
        self,
        statuses: Sequence[QueueStatus] | None = None,
        priority: QueuePriority | None = None,
        limit: int = 50,
    ) -> List[ModerationQueueItem]:
        """Queue items, most urgent first and oldest first within a priority."""
        sql = "SELECT * FROM moderation_queue"
        clauses: List[str] = []
        params: List[Any] = []
        if statuses:
            clauses.append(f"status IN ({', '.join('?' for _ in statuses)})")
            params.extend(status.value for status in statuses)
        if priority is not None:
            clauses.append("priority = ?")
            params.append(priority.value)
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY priority_rank DESC, created_at ASC LIMIT ?"
        params.append(limit)
        rows = await self._fetch_all("list_moderation_queue", sql, params)
        return [_row_to_queue_item(row) for row in rows]

    async def update_moderation_queue_item(self, item: ModerationQueueItem) -> ModerationQueueItem:
        async with self._write("update_moderation_queue_item") as conn:
            cursor = await conn.execute(
                """
                UPDATE moderation_queue SET
                    priority = ?, priority_rank = ?, flagged_reasons = ?, report_count = ?,
                    status = ?, assigned_to = ?, assigned_at = ?, reviewed_by = ?, reviewed_at = ?,
                    action_taken = ?, review_notes = ?, updated_at = ?
                WHERE id = ?
                """,
                (
                    item.priority.value, _PRIORITY_RANK[item.priority], json.dumps(item.flagged_reasons),
                    item.report_count, item.status.value, item.assigned_to, to_iso(item.assigned_at),
                    item.reviewed_by, to_iso(item.reviewed_at), item.action_taken, item.review_notes,
                    to_iso(item.updated_at), item.id,
                ),
            )
            updated = cursor.rowcount
            await cursor.close()
        if updated == 0:
            raise NotFoundError("queue item", item.id)
        return item

    # ------------------------------------------------------------------
    # Appeals
    # ------------------------------------------------------------------

    async def create_moderation_appeal(self, appeal: ModerationAppeal) -> ModerationAppeal:
        async with self._write("create_moderation_appeal") as conn:
            await conn.execute(
                """
                INSERT INTO moderation_appeals (
                    id, original_action_id, appellant_id, reason, additional_context,
                    status, new_action_id, queue_item_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    appeal.id, appeal.original_action_id, appeal.appellant_id, appeal.reason,
                    appeal.additional_context, appeal.status.value, appeal.new_action_id,
                    appeal.queue_item_id, to_iso(appeal.created_at),
                ),
            )
        return appeal

    async def get_appeals_for_action(self, action_id: str) -> List[ModerationAppeal]:
        rows = await self._fetch_all(
            "get_appeals_for_action",
            "SELECT * FROM moderation_appeals WHERE original_action_id = ? ORDER BY created_at",
            (action_id,),
        )
        return [
            ModerationAppeal(
                original_action_id=row["original_action_id"],
                appellant_id=row["appellant_id"],
                reason=row["reason"],
                status=AppealStatus(row["status"]),
                additional_context=row["additional_context"],
                new_action_id=row["new_action_id"],
                queue_item_id=row["queue_item_id"],
                id=row["id"],
                created_at=from_iso(row["created_at"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    async def create_report(self, report: ContentReport) -> ContentReport:
        async with self._write("create_report") as conn:
            await conn.execute(
                "INSERT INTO reports (id, content_id, reporter_id, reported_user_id, category, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (
                    report.id, report.content_id, report.reporter_id, report.reported_user_id,
                    report.category, to_iso(report.created_at),
                ),
            )
        return report

    async def get_reports_by_reporter(self, reporter_id: str) -> List[ContentReport]:
        rows = await self._fetch_all(
            "get_reports_by_reporter",
            "SELECT * FROM reports WHERE reporter_id = ? ORDER BY created_at DESC",
            (reporter_id,),
        )
        return [
            ContentReport(
                content_id=row["content_id"],
                reporter_id=row["reporter_id"],
                reported_user_id=row["reported_user_id"],
                category=row["category"],
                id=row["id"],
                created_at=from_iso(row["created_at"]),
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Content visibility
    # ------------------------------------------------------------------

    async def hide_message(self, content_id: str, reason: str | None = None) -> None:
        async with self._write("hide_message") as conn:
            await conn.execute(
                "INSERT OR REPLACE INTO hidden_content (content_id, reason, hidden_at) VALUES (?, ?, ?)",
                (content_id, reason, to_iso(utcnow())),
            )
        logger.debug("[STORE] Hid content %s", content_id)

    async def restore_message(self, content_id: str) -> bool:
        """Un-hide ``content_id``. Returns False if it was not hidden."""
        async with self._write("restore_message") as conn:
            cursor = await conn.execute("DELETE FROM hidden_content WHERE content_id = ?", (content_id,))
            restored = cursor.rowcount > 0
            await cursor.close()
        return restored

    async def is_message_hidden(self, content_id: str) -> bool:
        row = await self._fetch_one(
            "is_message_hidden", "SELECT 1 FROM hidden_content WHERE content_id = ?", (content_id,)
        )
        return row is not None


# ----------------------------------------------------------------------
# Row mapping
# ----------------------------------------------------------------------

def _url_to_dict(url: ExtractedUrl) -> Dict[str, Any]:
    return {
        "url": url.url,
        "domain": url.domain,
        "reputation": url.reputation.value,
        "reputation_score": url.reputation_score,
    }


def _row_to_analysis(row: aiosqlite.Row) -> ModerationAnalysisRecord:
    result = ContentAnalysisResult(
        toxicity_score=row["toxicity_score"],
        sentiment_score=row["sentiment_score"],
        spam_score=row["spam_score"],
        scam_score=row["scam_score"],
        promotional_score=row["promotional_score"],
        detected_languages=tuple(json.loads(row["detected_languages"])),
        flagged_patterns=tuple(json.loads(row["flagged_patterns"])),
        extracted_urls=tuple(
            ExtractedUrl(
                url=item["url"],
                domain=item["domain"],
                reputation=UrlReputation(item["reputation"]),
                reputation_score=item["reputation_score"],
            )
            for item in json.loads(row["extracted_urls"])
        ),
        semantic_categories=tuple(SemanticCategory(**item) for item in json.loads(row["semantic_categories"])),
        risk_level=RiskLevel(row["risk_level"]),
        recommended_action=RecommendedAction(row["recommended_action"]),
        analysis_version=row["analysis_version"],
        processing_time_ms=row["processing_time_ms"],
    )
    return ModerationAnalysisRecord(
        content_id=row["content_id"],
        author_id=row["author_id"],
        content_text=row["content_text"],
        result=result,
        language=row["language"],
        content_type=row["content_type"],
        id=row["id"],
        created_at=from_iso(row["created_at"]),
    )


def _row_to_similarity(row: aiosqlite.Row) -> ContentSimilarityRecord:
    return ContentSimilarityRecord(
        content_id=row["content_id"],
        author_id=row["author_id"],
        similarity=ContentSimilarity(
            content_hash=row["content_hash"],
            semantic_hash=row["semantic_hash"],
            word_count=row["word_count"],
            unique_word_ratio=row["unique_word_ratio"],
            uppercase_ratio=row["uppercase_ratio"],
            url_count=row["url_count"],
            similarity_score=row["similarity_score"],
            is_spam_cluster=bool(row["is_spam_cluster"]),
            duplicate_group=row["duplicate_group"],
        ),
        content_type=row["content_type"],
        id=row["id"],
        created_at=from_iso(row["created_at"]),
    )


def _row_to_action(row: aiosqlite.Row) -> ModerationAction:
    return ModerationAction(
        target_id=row["target_id"],
        subject_id=row["subject_id"],
        action_type=ActionType(row["action_type"]),
        severity=Severity(row["severity"]),
        reason=row["reason"],
        target_type=TargetType(row["target_type"]),
        moderator_type=ModeratorType(row["moderator_type"]),
        moderator_id=row["moderator_id"],
        duration_hours=row["duration_hours"],
        expires_at=from_iso(row["expires_at"]),
        evidence=json.loads(row["evidence"]),
        analysis_id=row["analysis_id"],
        is_appeal=bool(row["is_appeal"]),
        is_override=bool(row["is_override"]),
        overridden_action_id=row["overridden_action_id"],
        is_active=bool(row["is_active"]),
        id=row["id"],
        created_at=from_iso(row["created_at"]),
    )


def _row_to_trust(row: aiosqlite.Row) -> UserTrustScore:
    return UserTrustScore(
        human_id=row["human_id"],
        overall_trust_score=row["overall_trust_score"],
        content_quality_score=row["content_quality_score"],
        community_engagement_score=row["community_engagement_score"],
        report_accuracy_score=row["report_accuracy_score"],
        total_messages=row["total_messages"],
        total_reports_received=row["total_reports_received"],
        total_reports_made=row["total_reports_made"],
        warnings_count=row["warnings_count"],
        temp_bans_count=row["temp_bans_count"],
        days_without_violation=row["days_without_violation"],
        last_violation_at=from_iso(row["last_violation_at"]),
        trust_level=TrustLevel(row["trust_level"]),
        requires_review=bool(row["requires_review"]),
        max_daily_messages=row["max_daily_messages"],
        can_report_users=bool(row["can_report_users"]),
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
    )


def _row_to_queue_item(row: aiosqlite.Row) -> ModerationQueueItem:
    return ModerationQueueItem(
        content_id=row["content_id"],
        priority=QueuePriority(row["priority"]),
        queue_type=QueueType(row["queue_type"]),
        content_type=row["content_type"],
        analysis_id=row["analysis_id"],
        flagged_reasons=json.loads(row["flagged_reasons"]),
        report_count=row["report_count"],
        status=QueueStatus(row["status"]),
        assigned_to=row["assigned_to"],
        assigned_at=from_iso(row["assigned_at"]),
        reviewed_by=row["reviewed_by"],
        reviewed_at=from_iso(row["reviewed_at"]),
        action_taken=row["action_taken"],
        review_notes=row["review_notes"],
        id=row["id"],
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
    )
