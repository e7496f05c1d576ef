"""
Moderator capability contract.

A moderator classifies a piece of text and returns a Verdict mapping risk
categories to normalized scores in the range [0, 1].
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Verdict:
    """Risk assessment returned by a moderator for one piece of text."""
    categories: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def safe(cls) -> 'Verdict':
        """Verdict for content that cannot be unsafe (e.g. empty text)."""
        return cls(categories={})

    def max_category(self) -> Tuple[Optional[str], float]:
        """
        Get the highest scoring category.

        Returns:
            Tuple of (category, score); (None, 0.0) when there are no categories
        """
        if not self.categories:
            return None, 0.0
        category = max(self.categories, key=lambda name: self.categories[name])
        return category, self.categories[category]

    @property
    def max_score(self) -> float:
        return self.max_category()[1]

    def is_flagged(self, threshold: float) -> bool:
        """Check whether any category reaches the threshold."""
        return self.max_score >= threshold


class Moderator(ABC):
    """
    Interface for content classifiers.

    Implementations must return promptly when the awaiting task is
    cancelled and must treat empty or whitespace-only text as safe
    without contacting any backend.

    Raises (from classify):
        TransientBackendError: Network or 5xx-class failure
        BackendAuthError: Credentials were rejected
        ModerationTimeoutError: The backend did not answer in time
    """

    name = "moderator"

    @abstractmethod
    async def classify(self, text: str) -> Verdict:
        """Classify text and return a verdict."""

    async def close(self) -> None:
        """Release any resources held by the moderator."""
        return None
