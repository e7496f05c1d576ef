"""
Pytest configuration and shared fixtures for the test suite.
"""

import pytest
import asyncio
import tempfile
import os
from typing import Dict, List, Optional

from chatguard.config.settings import ModerationConfig
from chatguard.host import InMemoryHost
from chatguard.moderation.base import Moderator, Verdict
from chatguard.processing.actions import RemoveMessageAction
from chatguard.processing.processor import PostProcessor


class StubModerator(Moderator):
    """Moderator returning canned verdicts and recording every call."""

    name = "stub"

    def __init__(self, verdicts: Optional[Dict[str, Dict[str, float]]] = None,
                 default: Optional[Dict[str, float]] = None,
                 errors: Optional[List[Exception]] = None):
        self.verdicts = verdicts or {}
        self.default = default if default is not None else {"toxicity": 0.0}
        self.errors = list(errors or [])
        self.calls: List[str] = []
        self.closed = False

    async def classify(self, text: str) -> Verdict:
        self.calls.append(text)
        if self.errors:
            raise self.errors.pop(0)
        return Verdict(categories=self.verdicts.get(text, self.default))

    async def close(self) -> None:
        self.closed = True


class HangingModerator(Moderator):
    """Moderator that never answers until cancelled."""

    name = "hanging"

    def __init__(self):
        self.calls: List[str] = []
        self.cancelled = False

    async def classify(self, text: str) -> Verdict:
        self.calls.append(text)
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return Verdict.safe()


class SlowModerator(StubModerator):
    """Stub moderator that takes a fixed time to answer."""

    name = "slow"

    def __init__(self, delay: float, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay

    async def classify(self, text: str) -> Verdict:
        await asyncio.sleep(self.delay)
        return await super().classify(text)


@pytest.fixture
def temp_blocked_words_file():
    """Create a temporary blocked words file for testing."""
    content = """# Test blocked words file
# Comments are ignored
badword1
badword2
inappropriate phrase
# Category: Hate speech
slur1
slur2
"""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
        f.write(content)
        temp_path = f.name
    yield temp_path
    # Cleanup
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def host():
    """Create an in-memory host."""
    return InMemoryHost()


@pytest.fixture
def stub_moderator():
    """Moderator flagging 'violent text' for violence and allowing everything else."""
    return StubModerator(
        verdicts={"violent text": {"violence": 0.95, "toxicity": 0.4}},
        default={"toxicity": 0.1}
    )


@pytest.fixture
async def bot_id(host):
    """Provision the moderation bot on the host."""
    return await host.ensure_bot_user("content-moderator")


def create_test_processor(host: InMemoryHost, moderator: Moderator, bot_id: str = "bot-content-moderator",
                          threshold: float = 0.8, moderate_all_users: bool = True,
                          target_users=frozenset(), **overrides) -> PostProcessor:
    """Create a post processor with test-friendly timings."""
    defaults = {
        'moderation_timeout': 1.0,
        'drain_timeout': 1.0,
        'retry_delay': 0.0,
    }
    defaults.update(overrides)
    return PostProcessor(
        bot_id=bot_id,
        moderator=moderator,
        threshold=threshold,
        moderate_all_users=moderate_all_users,
        target_users=target_users,
        action=RemoveMessageAction(host),
        **defaults
    )


def create_test_config(**overrides) -> ModerationConfig:
    """Create an enabled test configuration with optional overrides."""
    defaults = {
        'enabled': True,
        'bot_username': 'content-moderator',
        'moderate_all_users': True,
        'threshold': '0.8',
        'backend_type': 'keyword',
        'action': 'remove',
    }
    defaults.update(overrides)
    return ModerationConfig(**defaults)
