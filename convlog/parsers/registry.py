"""Discover and parse conversation logs in a directory."""
from __future__ import annotations

from pathlib import Path

from convlog import config
from convlog.models import ParsedConversation
from convlog.parsers.validation import parse_and_validate_conversation


def list_conversation_files(directory: Path, max_files: int | None = None) -> list[Path]:
    """Return the most recently modified ``*.jsonl`` files, newest first."""
    if not directory.is_dir():
        return []

    limit = config.MAX_FILES if max_files is None else max_files
    return sorted(
        directory.glob("*.jsonl"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )[:limit]


async def scan_conversations(directory: Path, max_files: int | None = None) -> list[ParsedConversation]:
    """Scan a directory for JSONL conversation logs and parse them.

    To avoid excessive load with large directories, only the *max_files*
    most recently modified files are parsed.
    """
    conversations: list[ParsedConversation] = []
    for path in list_conversation_files(directory, max_files):
        conversations.append(await parse_and_validate_conversation(path))
    return conversations
