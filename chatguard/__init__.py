"""
Chat Content Moderation

Screens newly posted chat messages with a pluggable content classifier and
applies a remedial action, as a bot account, when a message's risk score
reaches the configured threshold.
"""

__version__ = "1.0.0"
__author__ = "Chat Content Moderation"
