"""Guards and helpers for conversation records and content blocks."""
from __future__ import annotations

from typing import Any

from convlog.models import (
    AssistantMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

MESSAGE_TYPES = {"user", "assistant"}


def _record_type(entry: Any) -> Any:
    if isinstance(entry, dict):
        return entry.get("type")
    return getattr(entry, "type", None)


def is_summary_entry(entry: Any) -> bool:
    return _record_type(entry) == "summary"


def is_conversation_message(entry: Any) -> bool:
    """True for user/assistant records that carry an identifier field."""
    if isinstance(entry, dict):
        return "uuid" in entry and entry.get("type") in MESSAGE_TYPES
    return isinstance(entry, (UserMessage, AssistantMessage))


def is_user_message(message: Any) -> bool:
    return _record_type(message) == "user"


def is_assistant_message(message: Any) -> bool:
    return _record_type(message) == "assistant"


def is_tool_use_content(block: Any) -> bool:
    return isinstance(block, ToolUseBlock)


def is_text_content(block: Any) -> bool:
    return isinstance(block, TextBlock)


def is_tool_result_content(block: Any) -> bool:
    return isinstance(block, ToolResultBlock)


def has_tool_result(message: UserMessage) -> bool:
    content = message.message.content
    if isinstance(content, str):
        return False
    return any(is_tool_result_content(block) for block in content)


def tool_use_blocks(message: AssistantMessage) -> list[ToolUseBlock]:
    return [block for block in message.message.content if is_tool_use_content(block)]


def _tool_result_to_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    parts: list[str] = []
    for item in content:
        if isinstance(item, dict) and item.get("type") == "text":
            parts.append(str(item.get("text") or ""))
    return "\n".join(part for part in parts if part)


def message_text(message: UserMessage | AssistantMessage, include_tool_results: bool = False) -> str:
    """Flatten the readable text of a message.

    Text blocks are joined with newlines. Tool-result payloads are only
    included when *include_tool_results* is set; tool invocations and other
    block types never contribute text.
    """
    content = message.message.content
    if isinstance(content, str):
        return content

    parts: list[str] = []
    for block in content:
        if is_text_content(block):
            parts.append(block.text)
        elif include_tool_results and is_tool_result_content(block):
            parts.append(_tool_result_to_text(block.content))
    return "\n".join(part for part in parts if part)
