"""
Command line entry point for chat content moderation.

Provides operator commands to validate the configuration and to run the
configured moderator against a sample text.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from chatguard.config.settings import ModerationConfig, load_config, validate_config
from chatguard.errors import ConfigurationError, ModerationError
from chatguard.logging.logger import get_logger, setup_logging
from chatguard.moderation import create_moderator
from chatguard.processing.policy import evaluate
from chatguard.processing.processor import MODERATION_TIMEOUT


def check_config(config: ModerationConfig) -> int:
    """Validate configuration and print the effective settings."""
    logger = get_logger("chatguard.main")

    validate_config(config)
    settings = config.to_dict()
    if config.enabled:
        settings['threshold_value'] = config.threshold_value()
        if not config.moderate_all_users and not config.moderation_targets_list():
            logger.warning("Moderation is enabled but targets no users")

    print(json.dumps(settings, indent=2))
    logger.info("Configuration is valid", backend=config.backend_type, enabled=config.enabled)
    return 0


async def classify_text(config: ModerationConfig, text: str, timeout: float = MODERATION_TIMEOUT) -> int:
    """Classify one text with the configured moderator and print the result."""
    logger = get_logger("chatguard.main")

    validate_config(config)
    threshold = config.threshold_value()
    moderator = create_moderator(config, timeout=timeout)
    try:
        verdict = await asyncio.wait_for(moderator.classify(text), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("Classification timed out", timeout=timeout)
        return 2
    except ModerationError as e:
        logger.error("Classification failed", error=str(e), error_type=type(e).__name__)
        return 2
    finally:
        await moderator.close()

    decision = evaluate(verdict, threshold)
    print(json.dumps({
        'categories': verdict.categories,
        'decision': decision.kind.value,
        'category': decision.category,
        'score': decision.score,
        'threshold': threshold
    }, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatguard",
        description="Chat content moderation tools"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="Validate configuration from the environment")

    classify_parser = subparsers.add_parser(
        "classify", help="Classify a text with the configured moderator"
    )
    classify_parser.add_argument("text", help="Text to classify")
    classify_parser.add_argument(
        "--timeout", type=float, default=MODERATION_TIMEOUT,
        help=f"Classification timeout in seconds (default: {MODERATION_TIMEOUT})"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = load_config()

    try:
        setup_logging(level=config.log_level, format_type=config.log_format, log_file=config.log_file)
    except (AttributeError, ValueError):
        setup_logging()

    try:
        if args.command == "check":
            return check_config(config)
        return asyncio.run(classify_text(config, args.text, timeout=args.timeout))
    except ConfigurationError as e:
        logging.getLogger("chatguard.main").error(f"Configuration error: {e}")
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
