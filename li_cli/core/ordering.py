"""Deterministic display order for conversations and messages."""

from collections.abc import Iterable

from li_cli.core.types import Conversation, Message


def order_conversations(conversations: Iterable[Conversation]) -> list[Conversation]:
    """Most recent last message first; a conversation without one counts as timestamp 0."""
    # sorted() stays stable with reverse=True, so ties keep response order
    return sorted(conversations, key=lambda c: c.last_activity, reverse=True)


def order_messages(messages: Iterable[Message]) -> list[Message]:
    """Chronological reading order."""
    return sorted(messages, key=lambda m: m.delivered_at)
