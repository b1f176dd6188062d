"""Build a forest of conversation nodes from flat parent-pointer messages."""
from __future__ import annotations

import logging
from typing import Iterator, Optional, Sequence

from convlog.models import AssistantMessage, ConversationNode, UserMessage

logger = logging.getLogger("convlog.analysis")

_Message = UserMessage | AssistantMessage


def build_conversation_tree(messages: Sequence[_Message]) -> list[ConversationNode]:
    """Build a tree structure from flat messages.

    Roots are messages with no parent; every other message hangs under the
    message whose uuid matches its ``parentUuid``. Children keep file order.
    Messages whose parent is absent are left out of the forest. Each message
    is placed at most once, which also stops cycles made of repeated uuids.
    """
    children_by_parent: dict[Optional[str], list[int]] = {}
    for index, message in enumerate(messages):
        children_by_parent.setdefault(message.parentUuid, []).append(index)

    placed: set[int] = set()
    attached: dict[int, list[int]] = {}
    built: dict[int, ConversationNode] = {}
    root_order: list[int] = []

    # Depth-first with an explicit stack; long transcripts exceed the recursion limit.
    stack: list[tuple[int, Optional[int], bool]] = [
        (index, None, False) for index in reversed(children_by_parent.get(None, []))
    ]
    while stack:
        index, parent_index, expanded = stack.pop()
        if expanded:
            built[index] = ConversationNode(
                message=messages[index],
                children=[built.pop(child) for child in attached.get(index, [])],
            )
            continue

        if index in placed:
            logger.debug("Skipping repeated placement of message %s", messages[index].uuid)
            continue
        placed.add(index)
        if parent_index is None:
            root_order.append(index)
        else:
            attached.setdefault(parent_index, []).append(index)

        stack.append((index, parent_index, True))
        for child in reversed(children_by_parent.get(messages[index].uuid, [])):
            if child not in placed:
                stack.append((child, index, False))

    return [built[index] for index in root_order]


def iter_nodes(forest: Sequence[ConversationNode]) -> Iterator[tuple[int, ConversationNode]]:
    """Walk a forest in pre-order, yielding ``(depth, node)``."""
    stack = [(0, node) for node in reversed(forest)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        stack.extend((depth + 1, child) for child in reversed(node.children))


def count_nodes(forest: Sequence[ConversationNode]) -> int:
    return sum(1 for _ in iter_nodes(forest))


def find_leaves(forest: Sequence[ConversationNode]) -> list[_Message]:
    """Messages with no children, in pre-order (one per branch tip)."""
    return [node.message for _, node in iter_nodes(forest) if not node.children]
