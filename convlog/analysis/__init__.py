"""Pure analyses over a parsed conversation."""

from convlog.analysis.branch import get_active_branch, get_branch
from convlog.analysis.stats import calculate_conversation_stats
from convlog.analysis.tree import build_conversation_tree, count_nodes, find_leaves, iter_nodes

__all__ = [
    "build_conversation_tree",
    "calculate_conversation_stats",
    "count_nodes",
    "find_leaves",
    "get_active_branch",
    "get_branch",
    "iter_nodes",
]
