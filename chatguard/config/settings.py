"""
Configuration management for chat content moderation.

This module loads the moderation settings from environment variables
into an immutable snapshot and validates them before the pipeline starts.
"""

import os
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional, Dict, Any
from dotenv import load_dotenv

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

VALID_BACKENDS = ('azure', 'keyword')
VALID_ACTIONS = ('remove', 'flag')
VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
VALID_LOG_FORMATS = ('console', 'json')


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class ModerationConfig:
    """
    Immutable configuration snapshot handed to the moderation pipeline.

    A configuration change never mutates an existing snapshot; the service
    builds a new one and rebuilds the processor from it.
    """

    enabled: bool = False
    bot_username: str = "content-moderator"
    moderate_all_users: bool = False
    moderation_targets: str = ""
    threshold: str = "0.5"
    backend_type: str = "azure"
    endpoint: str = ""
    api_key: str = ""
    action: str = "remove"
    notify_author: bool = True
    blocked_words_file: str = "./blocked_words.txt"
    log_level: str = "INFO"
    log_format: str = "console"
    log_file: Optional[str] = None

    def moderation_targets_list(self) -> FrozenSet[str]:
        """
        Get the set of user ids whose messages are moderated.

        Returns:
            Frozen set of user ids, empty when none are configured
        """
        return frozenset(
            user.strip() for user in self.moderation_targets.split(',') if user.strip()
        )

    def threshold_value(self) -> float:
        """
        Parse and validate the configured risk threshold.

        Returns:
            float: Threshold in the range (0, 1]

        Raises:
            ConfigurationError: If the threshold text is not a valid score
        """
        text = (self.threshold or "").strip()
        if not text:
            raise ConfigurationError("moderation threshold is not set")

        try:
            value = float(text)
        except ValueError:
            raise ConfigurationError(f"moderation threshold is not a number: {text!r}")

        if value != value or not 0.0 < value <= 1.0:
            raise ConfigurationError(
                f"moderation threshold must be greater than 0 and at most 1, got {text}"
            )
        return value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging, with credentials redacted."""
        return {
            'enabled': self.enabled,
            'bot_username': self.bot_username,
            'moderate_all_users': self.moderate_all_users,
            'moderation_targets': sorted(self.moderation_targets_list()),
            'threshold': self.threshold,
            'backend_type': self.backend_type,
            'endpoint': self.endpoint,
            'api_key': '[REDACTED]' if self.api_key else '',
            'action': self.action,
            'notify_author': self.notify_author,
            'blocked_words_file': self.blocked_words_file,
            'log_level': self.log_level,
            'log_format': self.log_format,
            'log_file': self.log_file,
        }


def load_config() -> ModerationConfig:
    """
    Load moderation configuration from environment variables.

    Returns:
        ModerationConfig: Loaded configuration snapshot
    """
    # Load environment variables from .env file if present
    load_dotenv()

    return ModerationConfig(
        enabled=_env_flag('MODERATION_ENABLED', 'false'),
        bot_username=os.getenv('MODERATION_BOT_USERNAME', 'content-moderator').strip(),
        moderate_all_users=_env_flag('MODERATION_ALL_USERS', 'false'),
        moderation_targets=os.getenv('MODERATION_TARGETS', ''),
        threshold=os.getenv('MODERATION_THRESHOLD', '0.5'),
        backend_type=os.getenv('MODERATION_BACKEND', 'azure').strip().lower(),
        endpoint=os.getenv('MODERATION_ENDPOINT', '').strip(),
        api_key=os.getenv('MODERATION_API_KEY', '').strip(),
        action=os.getenv('MODERATION_ACTION', 'remove').strip().lower(),
        notify_author=_env_flag('MODERATION_NOTIFY_AUTHOR', 'true'),
        blocked_words_file=os.getenv('BLOCKED_WORDS_FILE', './blocked_words.txt'),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        log_format=os.getenv('LOG_FORMAT', 'console'),
        log_file=os.getenv('LOG_FILE') or None,
    )


def validate_config(config: ModerationConfig) -> None:
    """
    Validate configuration values for consistency and correctness.

    Args:
        config: Configuration to validate

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if config.log_level not in VALID_LOG_LEVELS:
        raise ConfigurationError(f"Invalid log level: {config.log_level}")

    if config.log_format not in VALID_LOG_FORMATS:
        raise ConfigurationError(f"Invalid log format: {config.log_format}")

    if config.backend_type not in VALID_BACKENDS:
        raise ConfigurationError(f"unknown moderator type: {config.backend_type}")

    if config.action not in VALID_ACTIONS:
        raise ConfigurationError(f"Invalid moderation action: {config.action}")

    if not config.enabled:
        return

    if not config.bot_username:
        raise ConfigurationError("MODERATION_BOT_USERNAME must not be empty")

    if config.backend_type == 'azure' and not (config.endpoint and config.api_key):
        raise ConfigurationError(
            "Azure configuration incomplete. Required: MODERATION_ENDPOINT, MODERATION_API_KEY"
        )

    # Surface a bad threshold at startup rather than per message
    config.threshold_value()
