"""
Moderation service wiring and lifecycle.

`ModerationService` builds the store, analyzer, behavioral layer and decision
engine from an :class:`AppConfig`, and runs the three maintenance loops
(behavior sweep, rule maintenance, expired-action cleanup) as supervised
periodic tasks.
"""

from __future__ import annotations

from typing import List

from chatwarden.analyzer.content_analyzer import ContentAnalyzer, HeuristicContentAnalyzer
from chatwarden.behavior.behavioral_layer import AdaptiveBehavioralLayer, BehaviorState
from chatwarden.configuration.app_configuration import AppConfig
from chatwarden.database.sqlite_store import SQLiteModerationStore
from chatwarden.engine.decision_engine import AutomatedDecisionEngine
from chatwarden.scheduler.periodic_task import PeriodicTask
from chatwarden.util.logger import get_logger

logger = get_logger("service")


class ModerationService:
    """
    Owns every long-lived moderation component.

    Lifecycle:
        1. ``await service.start()`` opens the store and starts the periodic tasks
        2. Call ``service.engine`` from the transport
        3. ``await service.shutdown()`` stops the tasks and closes the store
    """

    def __init__(self, config: AppConfig, analyzer: ContentAnalyzer | None = None) -> None:
        self.config = config
        settings = config.moderation

        self.store = SQLiteModerationStore(config.database_path)
        self.analyzer = analyzer or HeuristicContentAnalyzer()
        self.behavior_state = BehaviorState.create(settings)
        self.behavioral_layer = AdaptiveBehavioralLayer(self.store, self.analyzer, self.behavior_state, settings)
        self.engine = AutomatedDecisionEngine(self.store, self.behavioral_layer, settings)

        self.tasks: List[PeriodicTask] = [
            PeriodicTask(
                "BEHAVIOR SWEEP",
                self.behavioral_layer.sweep_behavior_patterns,
                lambda: self.config.behavior_sweep_interval,
            ),
            PeriodicTask(
                "RULE MAINTENANCE",
                self.behavioral_layer.maintain_rules,
                lambda: self.config.rule_maintenance_interval,
            ),
            PeriodicTask(
                "ACTION EXPIRY",
                self.engine.cleanup_expired_actions,
                lambda: self.config.action_expiry_interval,
            ),
        ]
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            logger.debug("[SERVICE] Already started, skipping")
            return

        await self.store.open()
        for task in self.tasks:
            task.start()
        self._started = True
        logger.info("[SERVICE] Moderation service started (database=%s)", self.config.database_path)

    async def shutdown(self) -> None:
        for task in self.tasks:
            await task.shutdown()
        await self.store.close()
        self._started = False
        logger.info("[SERVICE] Moderation service stopped")

    async def __aenter__(self) -> "ModerationService":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.shutdown()
