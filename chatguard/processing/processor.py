"""
Post processor.

This module implements the PostProcessor that receives message-created
events from the host, filters them by author, classifies in-scope messages
under a bounded timeout and applies a remedial action when the verdict
reaches the threshold.
"""

import asyncio
import logging
from typing import AbstractSet, Any, Dict, Optional, Set

from ..errors import (
    ActionExecutionError, BackendError, ConfigurationError,
    ModerationTimeoutError, TransientBackendError
)
from ..host import HostAPI, MessageCreatedEvent
from ..moderation.base import Moderator, Verdict
from .actions import RemedialAction
from .models import Decision, MessageOutcome, ModerationRequest, ModerationResult
from .policy import evaluate, in_scope

logger = logging.getLogger(__name__)

MODERATION_TIMEOUT = 10.0     # seconds per message, including retries
DRAIN_TIMEOUT = 15.0          # seconds stop() waits for in-flight messages
CLASSIFY_MAX_ATTEMPTS = 2
RETRY_DELAY = 0.5


class PostProcessor:
    """
    Moderation pipeline for newly created messages.

    Each event is handled in its own task. For one message the steps run
    in order: author filter, classification, policy evaluation, action.
    Configuration is fixed at construction; reconfiguring means stopping
    this processor and building a new one.
    """

    def __init__(self,
                 bot_id: str,
                 moderator: Moderator,
                 threshold: float,
                 moderate_all_users: bool,
                 target_users: AbstractSet[str],
                 action: RemedialAction,
                 moderation_timeout: float = MODERATION_TIMEOUT,
                 drain_timeout: float = DRAIN_TIMEOUT,
                 max_attempts: int = CLASSIFY_MAX_ATTEMPTS,
                 retry_delay: float = RETRY_DELAY):
        """
        Initialize PostProcessor.

        Args:
            bot_id: User id of the bot account that performs actions
            moderator: Content classifier
            threshold: Score at or above which a message is acted on
            moderate_all_users: Moderate every author
            target_users: Author ids to moderate when not moderating everyone
            action: Remedial action to apply to flagged messages
            moderation_timeout: Deadline for classifying one message (seconds)
            drain_timeout: How long stop() waits for in-flight messages (seconds)
            max_attempts: Classification attempts on transient backend errors
            retry_delay: Pause between classification attempts (seconds)

        Raises:
            ConfigurationError: If the bot id or threshold is invalid
        """
        if not bot_id:
            raise ConfigurationError("bot user id is required")
        if not 0.0 < threshold <= 1.0:
            raise ConfigurationError(f"threshold must be in (0, 1], got {threshold}")
        if max_attempts < 1:
            raise ConfigurationError("max_attempts must be at least 1")

        self.bot_id = bot_id
        self.moderator = moderator
        self.threshold = threshold
        self.moderate_all_users = moderate_all_users
        self.target_users = frozenset(target_users)
        self.action = action
        self.moderation_timeout = moderation_timeout
        self.drain_timeout = drain_timeout
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

        self._host: Optional[HostAPI] = None
        self._accepting = False
        self._abandoned = False
        self._tasks: Set[asyncio.Task] = set()
        self._counts: Dict[str, int] = {outcome.value: 0 for outcome in MessageOutcome}

    @property
    def is_running(self) -> bool:
        return self._accepting

    def start(self, host: HostAPI) -> None:
        """
        Register for message-created events.

        Raises:
            RuntimeError: If the processor is already started
        """
        if self._host is not None:
            raise RuntimeError("post processor is already started; call stop() first")

        self._host = host
        self._abandoned = False
        self._accepting = True
        host.register_message_handler(self.on_message_created)

        logger.info("Post processor started", extra={
            "bot_id": self.bot_id,
            "backend": self.moderator.name,
            "threshold": self.threshold,
            "moderate_all_users": self.moderate_all_users,
            "target_user_count": len(self.target_users),
            "action": self.action.name
        })

    async def stop(self) -> None:
        """
        Deregister and wait for in-flight messages to finish.

        Messages still running after drain_timeout are cancelled and never
        acted on. No event is handled once this returns.
        """
        if self._host is None:
            return

        self._accepting = False
        self._host.unregister_message_handler(self.on_message_created)
        self._host = None

        pending = set(self._tasks)
        if pending:
            logger.info("Draining in-flight moderation", extra={"in_flight": len(pending)})
            _, still_pending = await asyncio.wait(pending, timeout=self.drain_timeout)

            if still_pending:
                self._abandoned = True
                for task in still_pending:
                    task.cancel()
                await asyncio.gather(*still_pending, return_exceptions=True)
                logger.error("Abandoned in-flight moderation after drain timeout", extra={
                    "abandoned": len(still_pending),
                    "drain_timeout": self.drain_timeout
                })

        logger.info("Post processor stopped", extra=self.get_stats())

    def on_message_created(self, event: MessageCreatedEvent) -> Optional[asyncio.Task]:
        """
        Host callback for a new message.

        Schedules handle_message() as its own task and returns it, or
        returns None when the processor is not accepting events.
        """
        if not self._accepting:
            logger.debug("Ignoring message event, processor is stopped", extra={
                "message_id": event.message_id
            })
            return None

        task = asyncio.get_running_loop().create_task(self.handle_message(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def handle_message(self, event: MessageCreatedEvent) -> ModerationResult:
        """
        Run the moderation pipeline for one message.

        Never raises for per-message failures; they are logged and the
        message is left untouched.

        Args:
            event: The message-created event

        Returns:
            ModerationResult with the terminal outcome and decision
        """
        request = ModerationRequest.from_event(event)
        try:
            result = await self._process(request)
        except asyncio.CancelledError:
            logger.error("Moderation abandoned, message left untouched", extra={
                "message_id": request.message_id,
                "user_id": request.user_id
            })
            self._counts[MessageOutcome.ABANDONED.value] += 1
            raise

        self._counts[result.outcome.value] += 1
        return result

    async def _process(self, request: ModerationRequest) -> ModerationResult:
        allow = Decision.allow(self.threshold)
        context = {
            "message_id": request.message_id,
            "user_id": request.user_id,
            "channel_id": request.channel_id
        }

        # Step 1: Author filter
        if request.user_id == self.bot_id:
            return ModerationResult(MessageOutcome.DISCARDED, allow)

        if not in_scope(request.user_id, self.moderate_all_users, self.target_users):
            logger.debug("Author not in moderation scope", extra=context)
            return ModerationResult(MessageOutcome.DISCARDED, allow)

        if not request.text.strip():
            logger.debug("Skipping empty message", extra=context)
            return ModerationResult(MessageOutcome.DISCARDED, allow)

        # Step 2: Classification under the moderation deadline, fail-open
        try:
            verdict = await asyncio.wait_for(
                self._classify(request.text), timeout=self.moderation_timeout
            )
        except (asyncio.TimeoutError, ModerationTimeoutError):
            logger.error("Content moderation timed out, message left unmoderated", extra={
                **context, "timeout": self.moderation_timeout
            })
            return ModerationResult(MessageOutcome.FAILED, allow)
        except BackendError as e:
            logger.error("Content moderation failed, message left unmoderated", extra={
                **context, "error": str(e), "error_type": type(e).__name__
            })
            return ModerationResult(MessageOutcome.FAILED, allow)
        except Exception as e:
            logger.exception("Unexpected moderator error, message left unmoderated", extra={
                **context, "error": str(e)
            })
            return ModerationResult(MessageOutcome.FAILED, allow)

        # Step 3: Threshold policy
        decision = evaluate(verdict, self.threshold)
        if not decision.should_act:
            logger.debug("Message allowed", extra={
                **context, "category": decision.category, "score": decision.score
            })
            return ModerationResult(MessageOutcome.ALLOWED, decision)

        if self._abandoned:
            return ModerationResult(MessageOutcome.ABANDONED, decision)

        logger.info("Message flagged by content moderation", extra={
            **context,
            "category": decision.category,
            "score": decision.score,
            "threshold": self.threshold
        })

        # Step 4: Remedial action as the bot
        try:
            applied = await self.action.act(request, decision, self.bot_id)
        except ActionExecutionError as e:
            logger.error("Remedial action failed", extra={
                **context, "action": self.action.name, "error": str(e)
            })
            return ModerationResult(MessageOutcome.ACTION_FAILED, decision)

        if not applied:
            return ModerationResult(MessageOutcome.ALREADY_ACTED, decision)

        logger.info("Remedial action applied", extra={
            **context, "action": self.action.name, "bot_id": self.bot_id
        })
        return ModerationResult(MessageOutcome.ACTED, decision)

    async def _classify(self, text: str) -> Verdict:
        """Classify with a bounded retry on transient backend errors."""
        attempt = 1
        while True:
            try:
                return await self.moderator.classify(text)
            except TransientBackendError as e:
                if attempt >= self.max_attempts:
                    raise
                logger.warning("Transient moderation backend error, retrying", extra={
                    "attempt": attempt,
                    "max_attempts": self.max_attempts,
                    "error": str(e)
                })
                attempt += 1
                await asyncio.sleep(self.retry_delay)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get processing statistics.

        Returns:
            Dictionary with outcome counts and in-flight message count
        """
        return {
            **self._counts,
            "in_flight": len(self._tasks),
            "running": self._accepting
        }
