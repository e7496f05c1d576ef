"""
Per-message data models for the moderation pipeline.

None of these outlive the handling of a single message-created event.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class ModerationRequest:
    """Per-message input to the pipeline, built from a message-created event."""
    message_id: str
    user_id: str
    channel_id: str
    text: str

    @classmethod
    def from_event(cls, event) -> 'ModerationRequest':
        """Create ModerationRequest from a MessageCreatedEvent."""
        return cls(
            message_id=event.message_id,
            user_id=event.user_id,
            channel_id=event.channel_id,
            text=event.content or ""
        )


class DecisionKind(Enum):
    """Possible policy outcomes."""
    ALLOW = "allow"
    ACT = "act"


@dataclass(frozen=True)
class Decision:
    """Policy outcome plus the category and score that produced it."""
    kind: DecisionKind
    category: Optional[str] = None
    score: float = 0.0
    threshold: float = 0.0

    @classmethod
    def allow(cls, threshold: float = 0.0) -> 'Decision':
        return cls(kind=DecisionKind.ALLOW, threshold=threshold)

    @property
    def should_act(self) -> bool:
        return self.kind is DecisionKind.ACT


class MessageOutcome(Enum):
    """Terminal state of one message's pipeline run."""
    DISCARDED = "discarded"          # not in scope, own message, or empty
    ALLOWED = "allowed"              # classified below threshold
    FAILED = "failed"                # timeout or backend error, left untouched
    ACTED = "acted"
    ALREADY_ACTED = "already_acted"  # duplicate event, no second action
    ACTION_FAILED = "action_failed"
    ABANDONED = "abandoned"          # processor stopped before completion


@dataclass(frozen=True)
class ModerationResult:
    """What happened to one message; failures resolve to an allow decision."""
    outcome: MessageOutcome
    decision: Decision
