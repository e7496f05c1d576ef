"""
Unit tests for remedial actions.

Tests bot attribution, author notification and idempotence on
duplicate events.
"""

import pytest
import asyncio
from unittest.mock import AsyncMock

from chatguard.errors import ActionExecutionError, ConfigurationError
from chatguard.processing.actions import (
    FlagMessageAction, RemoveMessageAction, create_action
)
from chatguard.processing.models import Decision, DecisionKind, ModerationRequest


DECISION = Decision(kind=DecisionKind.ACT, category="violence", score=0.95, threshold=0.8)


def request_for(event) -> ModerationRequest:
    return ModerationRequest.from_event(event)


class TestRemoveMessageAction:
    """Test cases for RemoveMessageAction."""

    @pytest.mark.asyncio
    async def test_removes_message_as_bot(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        action = RemoveMessageAction(host)

        applied = await action.act(request_for(event), DECISION, bot_id)

        assert applied is True
        assert host.messages[event.message_id].deleted is True
        assert host.deletions == [(event.message_id, bot_id)]

    @pytest.mark.asyncio
    async def test_notifies_author_from_bot(self, host, bot_id):
        event = host.create_message("user1", "violent text", channel_id="general")
        action = RemoveMessageAction(host, notify_author=True)

        await action.act(request_for(event), DECISION, bot_id)

        assert len(host.direct_messages) == 1
        sender, recipient, content = host.direct_messages[0]
        assert sender == bot_id
        assert recipient == "user1"
        assert "general" in content
        assert "violence" in content

    @pytest.mark.asyncio
    async def test_notification_can_be_disabled(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        action = RemoveMessageAction(host, notify_author=False)

        await action.act(request_for(event), DECISION, bot_id)

        assert host.direct_messages == []

    @pytest.mark.asyncio
    async def test_second_invocation_is_noop(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        action = RemoveMessageAction(host)

        first = await action.act(request_for(event), DECISION, bot_id)
        second = await action.act(request_for(event), DECISION, bot_id)

        assert first is True
        assert second is False
        assert len(host.deletions) == 1
        assert len(host.direct_messages) == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_act_once(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        action = RemoveMessageAction(host)

        results = await asyncio.gather(
            action.act(request_for(event), DECISION, bot_id),
            action.act(request_for(event), DECISION, bot_id),
        )

        assert sorted(results) == [False, True]
        assert len(host.deletions) == 1

    @pytest.mark.asyncio
    async def test_missing_message_is_noop(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        del host.messages[event.message_id]
        action = RemoveMessageAction(host)

        assert await action.act(request_for(event), DECISION, bot_id) is False
        assert host.deletions == []

    @pytest.mark.asyncio
    async def test_host_failure_raises_action_error(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        host.delete_message = AsyncMock(side_effect=RuntimeError("permission denied"))
        action = RemoveMessageAction(host)

        with pytest.raises(ActionExecutionError, match="permission denied"):
            await action.act(request_for(event), DECISION, bot_id)

        # The in-flight guard is released after a failure
        host.delete_message = AsyncMock()
        assert await action.act(request_for(event), DECISION, bot_id) is True

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_action(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        host.send_direct_message = AsyncMock(side_effect=RuntimeError("DMs disabled"))
        action = RemoveMessageAction(host)

        assert await action.act(request_for(event), DECISION, bot_id) is True
        assert host.messages[event.message_id].deleted is True


class TestFlagMessageAction:
    """Test cases for FlagMessageAction."""

    @pytest.mark.asyncio
    async def test_flags_message_as_bot(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        action = FlagMessageAction(host)

        assert await action.act(request_for(event), DECISION, bot_id) is True

        message_id, actor, reason = host.flags[0]
        assert message_id == event.message_id
        assert actor == bot_id
        assert "violence" in reason
        assert host.messages[event.message_id].deleted is False

    @pytest.mark.asyncio
    async def test_already_flagged_is_noop(self, host, bot_id):
        event = host.create_message("user1", "violent text")
        action = FlagMessageAction(host)

        await action.act(request_for(event), DECISION, bot_id)
        assert await action.act(request_for(event), DECISION, bot_id) is False
        assert len(host.flags) == 1


class TestCreateAction:
    """Test cases for the action factory."""

    def test_create_remove(self, host):
        action = create_action("remove", host, notify_author=False)
        assert isinstance(action, RemoveMessageAction)
        assert action.notify_author is False

    def test_create_flag(self, host):
        assert isinstance(create_action("flag", host), FlagMessageAction)

    def test_unknown_action(self, host):
        with pytest.raises(ConfigurationError):
            create_action("ban", host)
