"""Read-only API over conversation logs in the configured data directory."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, HTTPException

from convlog import config
from convlog.analysis.branch import get_active_branch, get_branch
from convlog.analysis.stats import calculate_conversation_stats
from convlog.analysis.tree import build_conversation_tree
from convlog.models import (
    AssistantMessage,
    ConversationListItem,
    ConversationNode,
    ConversationStats,
    ParsedConversation,
    UserMessage,
)
from convlog.parsers.registry import list_conversation_files
from convlog.parsers.validation import parse_and_validate_conversation

logger = logging.getLogger("convlog.api")

_CONVERSATION_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")

conversations_router = APIRouter(prefix="/api/conversations", tags=["conversations"])


def _resolve_path(conversation_id: str) -> Path:
    if not _CONVERSATION_ID_PATTERN.match(conversation_id) or conversation_id.startswith("."):
        raise HTTPException(status_code=400, detail=f"Invalid conversation id {conversation_id!r}")
    path = config.DATA_DIR / f"{conversation_id}.jsonl"
    if not path.is_file():
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not found")
    return path


async def _load(conversation_id: str) -> ParsedConversation:
    path = _resolve_path(conversation_id)
    try:
        return await parse_and_validate_conversation(path)
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        raise HTTPException(status_code=404, detail=f"Conversation {conversation_id} not readable") from exc


@conversations_router.get("", response_model=list[ConversationListItem])
async def list_conversations(limit: int = config.MAX_FILES):
    """List recent conversation logs with parse summaries."""
    items: list[ConversationListItem] = []
    for path in list_conversation_files(config.DATA_DIR, limit):
        try:
            parsed = await parse_and_validate_conversation(path)
        except OSError as exc:
            logger.warning("Skipping unreadable log %s: %s", path, exc)
            continue
        items.append(
            ConversationListItem(
                id=path.stem,
                filePath=parsed.filePath,
                lineCount=parsed.lineCount,
                messageCount=len(parsed.messages),
                parseErrorCount=len(parsed.parseErrors),
            )
        )
    return items


@conversations_router.get("/{conversation_id}", response_model=ParsedConversation)
async def get_conversation(conversation_id: str):
    """Return a validated conversation."""
    return await _load(conversation_id)


@conversations_router.get("/{conversation_id}/stats", response_model=ConversationStats)
async def get_conversation_stats(conversation_id: str):
    return calculate_conversation_stats(await _load(conversation_id))


@conversations_router.get("/{conversation_id}/tree", response_model=list[ConversationNode])
async def get_conversation_tree(conversation_id: str):
    conversation = await _load(conversation_id)
    return build_conversation_tree(conversation.messages)


@conversations_router.get("/{conversation_id}/branch", response_model=list[UserMessage | AssistantMessage])
async def get_conversation_branch(conversation_id: str, leaf: Optional[str] = None):
    """Return the active branch, or the branch ending at ``leaf`` when given."""
    conversation = await _load(conversation_id)
    if leaf:
        branch = get_branch(conversation.messages, leaf)
        if not branch:
            raise HTTPException(status_code=404, detail=f"Message {leaf} not found")
        return branch
    return get_active_branch(conversation)
