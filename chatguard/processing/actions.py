"""
Remedial actions applied to messages that fail moderation.

Every action is performed as the bot identity and checks the message's
current state first, so a duplicate event never produces a second
visible action.
"""

import logging
from abc import ABC, abstractmethod
from typing import Set

from ..errors import ActionExecutionError, ConfigurationError
from ..host import ChatMessage, HostAPI
from .models import Decision, ModerationRequest

logger = logging.getLogger(__name__)


class RemedialAction(ABC):
    """
    Base class for actions taken on flagged messages.

    Subclasses implement _is_already_handled() and _apply(); act() wraps
    them with the state check and the in-flight guard.
    """

    name = "action"

    def __init__(self, host: HostAPI):
        self.host = host
        self._in_flight: Set[str] = set()

    async def act(self, request: ModerationRequest, decision: Decision, bot_id: str) -> bool:
        """
        Apply the action to a message.

        Args:
            request: The message being moderated
            decision: The decision that triggered the action
            bot_id: User id of the bot performing the action

        Returns:
            True if the action was applied, False if the message was
            already handled (duplicate event or concurrent duplicate)

        Raises:
            ActionExecutionError: If the host failed to apply the action
        """
        message_id = request.message_id
        if message_id in self._in_flight:
            logger.warning("Action already in progress for message", extra={
                "message_id": message_id,
                "action": self.name
            })
            return False

        self._in_flight.add(message_id)
        try:
            try:
                message = await self.host.get_message(message_id)
            except Exception as e:
                raise ActionExecutionError(f"could not load message {message_id}: {e}") from e

            if message is None or self._is_already_handled(message):
                logger.warning("Message already handled, skipping action", extra={
                    "message_id": message_id,
                    "action": self.name
                })
                return False

            try:
                await self._apply(request, decision, bot_id)
            except Exception as e:
                raise ActionExecutionError(
                    f"failed to {self.name} message {message_id}: {e}"
                ) from e
            return True
        finally:
            self._in_flight.discard(message_id)

    @abstractmethod
    def _is_already_handled(self, message: ChatMessage) -> bool:
        """Check whether the message already shows this action's effect."""

    @abstractmethod
    async def _apply(self, request: ModerationRequest, decision: Decision, bot_id: str) -> None:
        """Perform the host mutation."""


class RemoveMessageAction(RemedialAction):
    """Delete the message and optionally tell the author why."""

    name = "remove"

    NOTIFICATION_TEMPLATE = (
        "Your message in {channel} was removed because it was flagged by content "
        "moderation ({category}). Please review the community guidelines."
    )

    def __init__(self, host: HostAPI, notify_author: bool = True):
        super().__init__(host)
        self.notify_author = notify_author

    def _is_already_handled(self, message: ChatMessage) -> bool:
        return message.deleted

    async def _apply(self, request: ModerationRequest, decision: Decision, bot_id: str) -> None:
        await self.host.delete_message(request.message_id, bot_id)

        if not self.notify_author:
            return

        # The removal already happened; a failed notification is not an action failure
        try:
            await self.host.send_direct_message(
                bot_id,
                request.user_id,
                self.NOTIFICATION_TEMPLATE.format(
                    channel=request.channel_id,
                    category=decision.category or "unsafe content"
                )
            )
        except Exception as e:
            logger.warning("Failed to notify author of removed message", extra={
                "message_id": request.message_id,
                "user_id": request.user_id,
                "error": str(e)
            })


class FlagMessageAction(RemedialAction):
    """Flag the message for review without removing it."""

    name = "flag"

    def _is_already_handled(self, message: ChatMessage) -> bool:
        return message.deleted or message.flagged

    async def _apply(self, request: ModerationRequest, decision: Decision, bot_id: str) -> None:
        reason = f"content moderation: {decision.category} scored {decision.score:.2f}"
        await self.host.flag_message(request.message_id, bot_id, reason)


def create_action(name: str, host: HostAPI, notify_author: bool = True) -> RemedialAction:
    """
    Factory function to create the configured remedial action.

    Args:
        name: Action name ('remove' or 'flag')
        host: Host API used to perform the action
        notify_author: Whether 'remove' sends the author a direct message

    Raises:
        ConfigurationError: If the action name is unknown
    """
    if name == "remove":
        return RemoveMessageAction(host, notify_author=notify_author)
    if name == "flag":
        return FlagMessageAction(host)
    raise ConfigurationError(f"Invalid moderation action: {name}")
