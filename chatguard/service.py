"""
Moderation service.

Owns at most one live PostProcessor and rebuilds it from scratch whenever
the configuration changes.
"""

import asyncio
from typing import Callable, Optional

from .config.settings import ModerationConfig
from .errors import ConfigurationError
from .host import HostAPI
from .logging.logger import get_logger
from .moderation import Moderator, create_moderator
from .processing.actions import create_action
from .processing.processor import PostProcessor, MODERATION_TIMEOUT


class ModerationService:
    """
    Supervisor for the moderation pipeline.

    configure() swaps processors under a lock, so handlers never observe
    a half-applied configuration.
    """

    def __init__(self, host: HostAPI,
                 moderator_factory: Callable[[ModerationConfig], Moderator] = create_moderator,
                 moderation_timeout: float = MODERATION_TIMEOUT):
        """
        Initialize the service.

        Args:
            host: Host platform API
            moderator_factory: Builds the moderator for a configuration
            moderation_timeout: Per-message classification deadline (seconds)
        """
        self.host = host
        self.moderator_factory = moderator_factory
        self.moderation_timeout = moderation_timeout
        self.logger = get_logger("chatguard.service")

        self.config: Optional[ModerationConfig] = None
        self._processor: Optional[PostProcessor] = None
        self._moderator: Optional[Moderator] = None
        self._lock = asyncio.Lock()

    @property
    def processor(self) -> Optional[PostProcessor]:
        return self._processor

    @property
    def is_active(self) -> bool:
        return self._processor is not None and self._processor.is_running

    async def configure(self, config: ModerationConfig) -> None:
        """
        Apply a configuration snapshot.

        Any running processor is stopped first. Moderation stays inactive
        when disabled or when no users are targeted.

        Raises:
            ConfigurationError: If the bot cannot be provisioned or the
                configuration is invalid; moderation stays inactive
        """
        async with self._lock:
            await self._teardown()
            self.config = config

            if not config.enabled:
                self.logger.info("Content moderation is disabled")
                return

            try:
                bot_id = await self.host.ensure_bot_user(config.bot_username)
            except Exception as e:
                self.logger.error("could not initialize bot user", bot_username=config.bot_username, error=str(e))
                raise ConfigurationError(f"could not initialize bot user: {e}") from e

            target_users = config.moderation_targets_list()
            if not target_users and not config.moderate_all_users:
                self.logger.info("Content moderation is targeting no users")
                return

            try:
                threshold = config.threshold_value()
            except ConfigurationError as e:
                self.logger.error("failed to load moderation threshold", error=str(e))
                raise

            moderator = self.moderator_factory(config)
            try:
                action = create_action(config.action, self.host, notify_author=config.notify_author)
                processor = PostProcessor(
                    bot_id=bot_id,
                    moderator=moderator,
                    threshold=threshold,
                    moderate_all_users=config.moderate_all_users,
                    target_users=target_users,
                    action=action,
                    moderation_timeout=self.moderation_timeout
                )
            except ConfigurationError as e:
                self.logger.error("failed to create post processor", error=str(e))
                await moderator.close()
                raise

            processor.start(self.host)
            self._processor = processor
            self._moderator = moderator

            self.logger.info(
                "Content moderation enabled",
                backend=config.backend_type,
                threshold=threshold,
                moderate_all_users=config.moderate_all_users,
                target_user_count=len(target_users),
                action=config.action
            )

    async def shutdown(self) -> None:
        """Stop the processor and release the moderator."""
        async with self._lock:
            await self._teardown()
        self.logger.info("Content moderation shut down")

    async def _teardown(self) -> None:
        if self._processor is not None:
            await self._processor.stop()
            self._processor = None

        if self._moderator is not None:
            try:
                await self._moderator.close()
            except Exception as e:
                self.logger.error("Error closing moderator", error=str(e))
            self._moderator = None
