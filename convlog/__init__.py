"""Parse and analyze line-delimited conversation logs."""

from convlog.analysis import (
    build_conversation_tree,
    calculate_conversation_stats,
    count_nodes,
    find_leaves,
    get_active_branch,
    get_branch,
    iter_nodes,
)
from convlog.models import (
    AssistantMessage,
    ConversationNode,
    ConversationStats,
    ParseError,
    ParsedConversation,
    Summary,
    TokenTotals,
    TokenUsage,
    UnrecognizedEntry,
    UserMessage,
)
from convlog.parsers.conversation import classify_entry, parse_conversation
from convlog.parsers.decoder import LineDecodeError, iter_numbered_entries, read_conversation_lines
from convlog.parsers.registry import scan_conversations
from convlog.parsers.validation import parse_and_validate_conversation, validate_conversation

__all__ = [
    "AssistantMessage",
    "ConversationNode",
    "ConversationStats",
    "LineDecodeError",
    "ParseError",
    "ParsedConversation",
    "Summary",
    "TokenTotals",
    "TokenUsage",
    "UnrecognizedEntry",
    "UserMessage",
    "build_conversation_tree",
    "calculate_conversation_stats",
    "classify_entry",
    "count_nodes",
    "find_leaves",
    "get_active_branch",
    "get_branch",
    "iter_nodes",
    "iter_numbered_entries",
    "parse_and_validate_conversation",
    "parse_conversation",
    "read_conversation_lines",
    "scan_conversations",
    "validate_conversation",
]
