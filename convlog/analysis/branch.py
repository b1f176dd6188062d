"""Resolve a single root-to-leaf path through a branching conversation."""
from __future__ import annotations

import logging
from collections import deque
from typing import Optional, Sequence

from convlog.models import AssistantMessage, ParsedConversation, UserMessage

logger = logging.getLogger("convlog.analysis")

_Message = UserMessage | AssistantMessage


def _walk_to_root(by_uuid: dict[str, _Message], leaf_uuid: str) -> list[_Message]:
    branch: deque[_Message] = deque()
    visited: set[str] = set()
    current: Optional[str] = leaf_uuid

    while current is not None:
        message = by_uuid.get(current)
        if message is None:
            break
        if current in visited:
            logger.warning("Parent cycle at message %s; stopping branch walk", current)
            break
        visited.add(current)
        branch.appendleft(message)
        current = message.parentUuid

    return list(branch)


def get_branch(messages: Sequence[_Message], leaf_uuid: str) -> list[_Message]:
    """Return the root-to-leaf path ending at *leaf_uuid* (empty if unknown)."""
    by_uuid = {message.uuid: message for message in messages}
    if leaf_uuid not in by_uuid:
        return []
    return _walk_to_root(by_uuid, leaf_uuid)


def get_active_branch(conversation: ParsedConversation) -> list[_Message]:
    """Get the active conversation branch named by the first summary's leaf.

    When the leaf is not among the messages, every message is returned
    unchanged.
    """
    if not conversation.summaries or not conversation.messages:
        return []

    leaf_uuid = conversation.summaries[0].leafUuid
    by_uuid = {message.uuid: message for message in conversation.messages}
    if leaf_uuid is None or leaf_uuid not in by_uuid:
        return list(conversation.messages)

    return _walk_to_root(by_uuid, leaf_uuid)
