"""Content classifiers and moderator selection."""

import logging

from ..config.settings import ModerationConfig
from ..errors import ConfigurationError
from .base import Moderator, Verdict
from .azure import AzureModerator
from .keyword import KeywordModerator

logger = logging.getLogger(__name__)


def create_moderator(config: ModerationConfig, timeout: float = 10.0) -> Moderator:
    """
    Factory function to create the moderator selected by configuration.

    Args:
        config: Configuration snapshot
        timeout: Per-request timeout for remote backends, in seconds

    Returns:
        Moderator instance

    Raises:
        ConfigurationError: If the backend type is unknown or its settings are invalid
    """
    if config.backend_type == "azure":
        try:
            moderator = AzureModerator(config.endpoint, config.api_key, timeout=timeout)
        except ConfigurationError as e:
            logger.error("failed to create Azure moderator", extra={"error": str(e)})
            raise
        logger.info("Azure AI Content Safety moderator initialized")
        return moderator

    if config.backend_type == "keyword":
        try:
            moderator = KeywordModerator(config.blocked_words_file)
        except ConfigurationError as e:
            logger.error("failed to create keyword moderator", extra={"error": str(e)})
            raise
        logger.info("Keyword moderator initialized", extra=moderator.get_stats())
        return moderator

    raise ConfigurationError(f"unknown moderator type: {config.backend_type}")


__all__ = [
    'Moderator',
    'Verdict',
    'AzureModerator',
    'KeywordModerator',
    'create_moderator'
]
