"""
Moderation policy decisions.

Pure functions deciding whether an author is in scope and whether a
verdict warrants a remedial action.
"""

from typing import AbstractSet

from ..moderation.base import Verdict
from .models import Decision, DecisionKind


def in_scope(author_id: str, moderate_all_users: bool, target_users: AbstractSet[str]) -> bool:
    """
    Check whether an author's messages are subject to moderation.

    With moderate_all_users off and no target users nobody is in scope.
    """
    return moderate_all_users or author_id in target_users


def evaluate(verdict: Verdict, threshold: float) -> Decision:
    """
    Decide on a verdict.

    Acts when the highest category score is greater than or equal to the
    threshold. A single decision is produced regardless of how many
    categories crossed it; the top one is kept for logging.
    """
    category, score = verdict.max_category()
    kind = DecisionKind.ACT if category is not None and score >= threshold else DecisionKind.ALLOW
    return Decision(kind=kind, category=category, score=score, threshold=threshold)
