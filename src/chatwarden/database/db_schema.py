"""
Database schema initialization.

Creates the moderation tables, their indexes and the schema version marker.
Timestamps are stored as ISO-8601 UTC strings and list/dict columns as JSON
text.
"""

import aiosqlite

from chatwarden.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates and versions the moderation schema."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all tables and indexes if they do not exist yet.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized (version %d)", SCHEMA_VERSION)

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        # Append-only analyzer output, one row per moderated message
        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_analysis (
                id TEXT PRIMARY KEY,
                content_id TEXT NOT NULL,
                content_type TEXT NOT NULL DEFAULT 'message',
                author_id TEXT NOT NULL,
                content_text TEXT NOT NULL,
                language TEXT NOT NULL DEFAULT 'en',
                toxicity_score REAL NOT NULL DEFAULT 0,
                sentiment_score REAL NOT NULL DEFAULT 50,
                spam_score REAL NOT NULL DEFAULT 0,
                scam_score REAL NOT NULL DEFAULT 0,
                promotional_score REAL NOT NULL DEFAULT 0,
                detected_languages TEXT NOT NULL DEFAULT '[]',
                flagged_patterns TEXT NOT NULL DEFAULT '[]',
                extracted_urls TEXT NOT NULL DEFAULT '[]',
                semantic_categories TEXT NOT NULL DEFAULT '[]',
                risk_level TEXT NOT NULL,
                recommended_action TEXT NOT NULL,
                analysis_version TEXT NOT NULL,
                processing_time_ms REAL NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS content_similarity (
                id TEXT PRIMARY KEY,
                content_id TEXT NOT NULL,
                content_type TEXT NOT NULL DEFAULT 'message',
                author_id TEXT NOT NULL,
                content_hash TEXT NOT NULL,
                semantic_hash TEXT NOT NULL,
                word_count INTEGER NOT NULL DEFAULT 0,
                unique_word_ratio INTEGER NOT NULL DEFAULT 0,
                uppercase_ratio INTEGER NOT NULL DEFAULT 0,
                url_count INTEGER NOT NULL DEFAULT 0,
                similarity_score REAL NOT NULL DEFAULT 0,
                is_spam_cluster INTEGER NOT NULL DEFAULT 0,
                duplicate_group TEXT,
                created_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_actions (
                id TEXT PRIMARY KEY,
                target_id TEXT NOT NULL,
                target_type TEXT NOT NULL,
                subject_id TEXT NOT NULL,
                moderator_type TEXT NOT NULL,
                moderator_id TEXT,
                action_type TEXT NOT NULL,
                severity TEXT NOT NULL,
                reason TEXT NOT NULL,
                duration_hours INTEGER,
                expires_at TEXT,
                evidence TEXT NOT NULL DEFAULT '{}',
                analysis_id TEXT,
                is_appeal INTEGER NOT NULL DEFAULT 0,
                is_override INTEGER NOT NULL DEFAULT 0,
                overridden_action_id TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS user_trust_scores (
                human_id TEXT PRIMARY KEY,
                overall_trust_score INTEGER NOT NULL DEFAULT 50,
                content_quality_score INTEGER NOT NULL DEFAULT 50,
                community_engagement_score INTEGER NOT NULL DEFAULT 50,
                report_accuracy_score INTEGER NOT NULL DEFAULT 50,
                total_messages INTEGER NOT NULL DEFAULT 0,
                total_reports_received INTEGER NOT NULL DEFAULT 0,
                total_reports_made INTEGER NOT NULL DEFAULT 0,
                warnings_count INTEGER NOT NULL DEFAULT 0,
                temp_bans_count INTEGER NOT NULL DEFAULT 0,
                days_without_violation INTEGER NOT NULL DEFAULT 0,
                last_violation_at TEXT,
                trust_level TEXT NOT NULL,
                requires_review INTEGER NOT NULL DEFAULT 0,
                max_daily_messages INTEGER NOT NULL,
                can_report_users INTEGER NOT NULL DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_queue (
                id TEXT PRIMARY KEY,
                content_id TEXT NOT NULL,
                content_type TEXT NOT NULL DEFAULT 'message',
                priority TEXT NOT NULL,
                priority_rank INTEGER NOT NULL,
                queue_type TEXT NOT NULL,
                analysis_id TEXT,
                flagged_reasons TEXT NOT NULL DEFAULT '[]',
                report_count INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL DEFAULT 'pending',
                assigned_to TEXT,
                assigned_at TEXT,
                reviewed_by TEXT,
                reviewed_at TEXT,
                action_taken TEXT,
                review_notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS moderation_appeals (
                id TEXT PRIMARY KEY,
                original_action_id TEXT NOT NULL,
                appellant_id TEXT NOT NULL,
                reason TEXT NOT NULL,
                additional_context TEXT,
                status TEXT NOT NULL,
                new_action_id TEXT,
                queue_item_id TEXT,
                created_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS reports (
                id TEXT PRIMARY KEY,
                content_id TEXT NOT NULL,
                reporter_id TEXT NOT NULL,
                reported_user_id TEXT NOT NULL,
                category TEXT NOT NULL DEFAULT 'other',
                created_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS hidden_content (
                content_id TEXT PRIMARY KEY,
                reason TEXT,
                hidden_at TEXT NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        await db.execute("CREATE INDEX IF NOT EXISTS idx_analysis_author ON moderation_analysis(author_id, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_similarity_content ON content_similarity(content_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_similarity_author ON content_similarity(author_id, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_actions_subject ON moderation_actions(subject_id, created_at DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_actions_expiry ON moderation_actions(is_active, expires_at)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_actions_overridden ON moderation_actions(overridden_action_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_queue_status ON moderation_queue(status, priority_rank DESC, created_at)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_appeals_action ON moderation_appeals(original_action_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_reports_reporter ON reports(reporter_id)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
