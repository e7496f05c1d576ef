"""
Host chat platform interface.

The moderation pipeline only talks to the chat platform through HostAPI:
it receives message-created events and issues bot-attributed actions.
InMemoryHost implements the interface for local runs and tests.
"""

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


@dataclass
class MessageCreatedEvent:
    """Represents a message-created notification from the host."""
    message_id: str
    user_id: str
    channel_id: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class ChatMessage:
    """Current state of a message as the host reports it."""
    message_id: str
    user_id: str
    channel_id: str
    content: str
    deleted: bool = False
    flagged: bool = False


MessageHandler = Callable[[MessageCreatedEvent], Any]


class HostAPI(Protocol):
    """Operations the pipeline needs from the host chat platform."""

    def register_message_handler(self, handler: MessageHandler) -> None: ...

    def unregister_message_handler(self, handler: MessageHandler) -> None: ...

    async def ensure_bot_user(self, username: str) -> str: ...

    async def get_message(self, message_id: str) -> Optional[ChatMessage]: ...

    async def delete_message(self, message_id: str, actor_id: str) -> None: ...

    async def flag_message(self, message_id: str, actor_id: str, reason: str) -> None: ...

    async def send_direct_message(self, sender_id: str, recipient_id: str, content: str) -> None: ...


class InMemoryHost:
    """
    Host implementation that keeps messages and actions in memory.

    Every mutation is recorded with the acting user id so callers can
    check which identity performed it.
    """

    def __init__(self):
        self.messages: Dict[str, ChatMessage] = {}
        self.bots: Dict[str, str] = {}
        self.deletions: List[Tuple[str, str]] = []
        self.flags: List[Tuple[str, str, str]] = []
        self.direct_messages: List[Tuple[str, str, str]] = []
        self._handlers: List[MessageHandler] = []
        self._ids = itertools.count(1)

    def register_message_handler(self, handler: MessageHandler) -> None:
        """Register a callback for message-created events."""
        self._handlers.append(handler)

    def unregister_message_handler(self, handler: MessageHandler) -> None:
        """Remove a previously registered callback."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    async def ensure_bot_user(self, username: str) -> str:
        """Return the bot's user id, creating the account on first use."""
        if not username:
            raise ValueError("bot username must not be empty")
        if username not in self.bots:
            self.bots[username] = f"bot-{username}"
            logger.info("Created bot user", extra={"bot_username": username})
        return self.bots[username]

    async def get_message(self, message_id: str) -> Optional[ChatMessage]:
        return self.messages.get(message_id)

    async def delete_message(self, message_id: str, actor_id: str) -> None:
        message = self.messages.get(message_id)
        if message is None or message.deleted:
            raise LookupError(f"message {message_id} does not exist")
        message.deleted = True
        self.deletions.append((message_id, actor_id))

    async def flag_message(self, message_id: str, actor_id: str, reason: str) -> None:
        message = self.messages.get(message_id)
        if message is None or message.deleted:
            raise LookupError(f"message {message_id} does not exist")
        message.flagged = True
        self.flags.append((message_id, actor_id, reason))

    async def send_direct_message(self, sender_id: str, recipient_id: str, content: str) -> None:
        self.direct_messages.append((sender_id, recipient_id, content))

    def create_message(self, user_id: str, content: str, channel_id: str = "town-square",
                       message_id: Optional[str] = None) -> MessageCreatedEvent:
        """
        Store a new message and build its message-created event.

        The event is not delivered; pass it to publish().
        """
        message_id = message_id or f"msg-{next(self._ids)}"
        self.messages[message_id] = ChatMessage(
            message_id=message_id,
            user_id=user_id,
            channel_id=channel_id,
            content=content
        )
        return MessageCreatedEvent(
            message_id=message_id,
            user_id=user_id,
            channel_id=channel_id,
            content=content
        )

    def publish(self, event: MessageCreatedEvent) -> List[Any]:
        """
        Deliver an event to every registered handler.

        May be called more than once for the same event to simulate
        at-least-once delivery.

        Returns:
            Whatever each handler returned, in registration order
        """
        return [handler(event) for handler in list(self._handlers)]
