"""Aggregate statistics over a parsed conversation."""
from __future__ import annotations

from collections import Counter
from typing import Optional

from convlog.content import has_tool_result, tool_use_blocks
from convlog.date_utils import timestamp_to_epoch_ms
from convlog.models import (
    AssistantMessage,
    ConversationStats,
    ParsedConversation,
    TokenTotals,
    UserMessage,
)


def _token_totals(assistant_messages: list[AssistantMessage]) -> TokenTotals:
    totals: Counter[str] = Counter()
    for msg in assistant_messages:
        usage = msg.message.usage
        if usage is None:
            continue
        totals["input"] += usage.input_tokens
        totals["output"] += usage.output_tokens
        totals["cacheCreation"] += usage.cache_creation_input_tokens
        totals["cacheRead"] += usage.cache_read_input_tokens
    return TokenTotals(**totals)


def _duration_ms(timestamps: list[Optional[int]]) -> int:
    parsed = [ts for ts in timestamps if ts is not None]
    if len(parsed) < 2:
        return 0
    return max(parsed) - min(parsed)


def calculate_conversation_stats(conversation: ParsedConversation) -> ConversationStats:
    """Calculate cost, token, timing, tool and branching statistics.

    Only ``messages`` feed the result; summaries and parse errors are ignored.
    """
    messages = conversation.messages
    if not messages:
        return ConversationStats()

    assistant_messages = [m for m in messages if isinstance(m, AssistantMessage)]
    user_messages = [m for m in messages if isinstance(m, UserMessage)]

    models: Counter[str] = Counter(msg.message.model or "unknown" for msg in assistant_messages)
    tool_names: Counter[str] = Counter()
    tool_use_count = 0
    for msg in assistant_messages:
        blocks = tool_use_blocks(msg)
        tool_use_count += len(blocks)
        tool_names.update(block.name for block in blocks)
    tool_result_messages = sum(1 for msg in user_messages if has_tool_result(msg))

    # A parent referenced by more than one message (None included) is a fork point.
    children_count: Counter[Optional[str]] = Counter(msg.parentUuid for msg in messages)
    branches = sum(1 for count in children_count.values() if count > 1)

    average_response_time = 0.0
    if assistant_messages:
        average_response_time = sum(msg.durationMs or 0 for msg in assistant_messages) / len(assistant_messages)

    return ConversationStats(
        messageCount=len(messages),
        userMessageCount=len(user_messages),
        assistantMessageCount=len(assistant_messages),
        totalCostUSD=sum(msg.costUSD or 0 for msg in assistant_messages),
        totalTokens=_token_totals(assistant_messages),
        averageResponseTimeMs=average_response_time,
        conversationDurationMs=_duration_ms([timestamp_to_epoch_ms(m.timestamp) for m in messages]),
        toolUsageCount=tool_use_count + tool_result_messages,
        models=dict(models),
        branches=branches,
        toolNames=dict(tool_names),
    )
