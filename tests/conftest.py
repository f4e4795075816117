"""
Pytest configuration and fixtures for ChatWarden tests.
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from chatwarden.analyzer.content_analyzer import HeuristicContentAnalyzer  # noqa: E402
from chatwarden.behavior.behavioral_layer import AdaptiveBehavioralLayer, BehaviorState  # noqa: E402
from chatwarden.database.sqlite_store import SQLiteModerationStore  # noqa: E402
from chatwarden.engine.decision_engine import AutomatedDecisionEngine  # noqa: E402


@pytest_asyncio.fixture()
async def store():
    """In-memory SQLite store with the schema applied."""
    moderation_store = SQLiteModerationStore(":memory:")
    await moderation_store.open()
    yield moderation_store
    await moderation_store.close()


@pytest.fixture()
def analyzer() -> HeuristicContentAnalyzer:
    return HeuristicContentAnalyzer()


@pytest.fixture()
def behavior_state() -> BehaviorState:
    return BehaviorState.create()


@pytest.fixture()
def behavioral_layer(store, analyzer, behavior_state) -> AdaptiveBehavioralLayer:
    return AdaptiveBehavioralLayer(store, analyzer, behavior_state)


@pytest.fixture()
def engine(store, behavioral_layer) -> AutomatedDecisionEngine:
    return AutomatedDecisionEngine(store, behavioral_layer)
