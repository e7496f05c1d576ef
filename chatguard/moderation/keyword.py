"""
Blocked-term moderator.

Scores messages against a local list of blocked words and phrases. Text is
folded before comparison (lowercased, look-alike digits and symbols mapped
back to letters, everything else dropped) and terms are compared against
runs of consecutive message words, so "b 4 d w o r d" or "bad.word" in the
middle of a sentence still matches the entry "badword".
"""

import re
import logging
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

from ..errors import ConfigurationError
from .base import Moderator, Verdict


logger = logging.getLogger(__name__)

_LOOKALIKES = str.maketrans({
    '0': 'o', '1': 'i', '3': 'e', '4': 'a', '5': 's',
    '7': 't', '8': 'b', '@': 'a', '$': 's', '|': 'l',
})
_NON_LETTERS = re.compile(r'[^a-z]+')


def fold(text: str) -> str:
    """Reduce text to the letters used for comparison, e.g. "$p 4.m" -> "spam"."""
    return _NON_LETTERS.sub('', text.lower().translate(_LOOKALIKES))


def read_terms(path: Path) -> FrozenSet[str]:
    """
    Read a blocked words file.

    One word or phrase per line; blank lines and lines starting with '#'
    are skipped. Entries are returned folded.
    """
    terms = set()
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            entry = line.strip()
            if not entry or entry.startswith('#'):
                continue
            folded = fold(entry)
            if folded:
                terms.add(folded)
    return frozenset(terms)


class KeywordModerator(Moderator):
    """
    Moderator backed by a blocked words file.

    A match scores the ``blocked_terms`` category at 1.0, otherwise 0.0.
    """

    name = "keyword"
    CATEGORY = "blocked_terms"

    def __init__(self, blocked_words_file: str = "blocked_words.txt"):
        """
        Load the blocked words list.

        Raises:
            ConfigurationError: If the file is missing or lists no terms
        """
        path = Path(blocked_words_file)
        if not path.is_file():
            raise ConfigurationError(f"blocked words file not found: {blocked_words_file}")

        self.blocked_words_file = blocked_words_file
        self.blocked_words = read_terms(path)
        if not self.blocked_words:
            raise ConfigurationError(f"blocked words file has no entries: {blocked_words_file}")

        self.longest_term = max(len(term) for term in self.blocked_words)
        logger.info("Loaded blocked words", extra={
            "blocked_words_count": len(self.blocked_words),
            "blocked_words_file": blocked_words_file
        })

    def find_match(self, text: str) -> Optional[str]:
        """
        Find the first blocked term in text.

        Returns:
            The folded term that matched, or None
        """
        words = [folded for folded in (fold(word) for word in text.split()) if folded]

        for start in range(len(words)):
            candidate = ""
            for word in words[start:]:
                candidate += word
                if len(candidate) > self.longest_term:
                    break
                if candidate in self.blocked_words:
                    return candidate
        return None

    async def classify(self, text: str) -> Verdict:
        """
        Classify text against the blocked word list.

        Args:
            text: Raw message body

        Returns:
            Verdict with a single ``blocked_terms`` score
        """
        if not text or not text.strip():
            return Verdict.safe()

        score = 1.0 if self.find_match(text) is not None else 0.0
        return Verdict(categories={self.CATEGORY: score})

    def get_stats(self) -> Dict[str, Any]:
        return {
            "blocked_words_count": len(self.blocked_words),
            "longest_term": self.longest_term,
            "config_file": self.blocked_words_file
        }
