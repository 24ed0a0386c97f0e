"""Command-level drivers (sdchat, code, pr, pick-story)."""

from .sdchat import ChatCommand, ChatOptions, read_message

__all__ = ["ChatCommand", "ChatOptions", "read_message"]
