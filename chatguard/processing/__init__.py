"""Message moderation pipeline: policy, remedial actions and the post processor."""

from .models import Decision, DecisionKind, MessageOutcome, ModerationRequest, ModerationResult
from .policy import evaluate, in_scope
from .actions import RemedialAction, RemoveMessageAction, FlagMessageAction, create_action
from .processor import PostProcessor, MODERATION_TIMEOUT

__all__ = [
    'Decision',
    'DecisionKind',
    'MessageOutcome',
    'ModerationRequest',
    'ModerationResult',
    'evaluate',
    'in_scope',
    'RemedialAction',
    'RemoveMessageAction',
    'FlagMessageAction',
    'create_action',
    'PostProcessor',
    'MODERATION_TIMEOUT'
]
