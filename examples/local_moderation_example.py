#!/usr/bin/env python3
"""
Example running the moderation pipeline against an in-memory host.

Uses the keyword backend with a temporary word list, so no classification
service or credentials are needed.
"""

import asyncio
import os
import sys
import tempfile
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from chatguard.config.settings import ModerationConfig
from chatguard.host import InMemoryHost
from chatguard.logging import setup_logging
from chatguard.service import ModerationService


async def main():
    setup_logging(level="DEBUG")

    with tempfile.NamedTemporaryFile(mode='w', suffix='.txt', delete=False) as f:
        f.write("# Example word list\nbadword\nterrible phrase\n")
        words_path = f.name

    try:
        host = InMemoryHost()
        service = ModerationService(host)
        await service.configure(ModerationConfig(
            enabled=True,
            moderate_all_users=True,
            threshold="0.8",
            backend_type="keyword",
            blocked_words_file=words_path,
            action="remove"
        ))

        test_messages = [
            ("alice", "hello everyone"),
            ("bob", "this is a badword"),
            ("carol", "b 4 d w o r d"),
            ("dave", "what a terrible phrase to use"),
        ]

        for user, content in test_messages:
            print(f"Posting: {user}: {content}")
            host.publish(host.create_message(user, content))

        # Draining on shutdown lets every scheduled message finish
        processor = service.processor
        await service.shutdown()
        stats = processor.get_stats()

        print("\n=== Results ===")
        for message_id, actor in host.deletions:
            message = host.messages[message_id]
            print(f"Removed {message_id} by {actor}: {message.content!r}")
        for sender, recipient, content in host.direct_messages:
            print(f"DM {sender} -> {recipient}: {content}")
        print(f"Stats: {stats}")

    finally:
        if os.path.exists(words_path):
            os.unlink(words_path)


if __name__ == "__main__":
    asyncio.run(main())
