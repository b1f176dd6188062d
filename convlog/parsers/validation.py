"""Structural validation of an assembled conversation."""
from __future__ import annotations

import logging

from convlog.models import ParseError, ParsedConversation
from convlog.parsers.conversation import parse_conversation
from convlog.parsers.decoder import LineSource

logger = logging.getLogger("convlog.validation")


def validate_conversation(conversation: ParsedConversation) -> ParsedConversation:
    """Return a copy of *conversation* with duplicate and orphan errors appended.

    Line numbers on these errors are approximate positions (message index
    offset by the summary count), not source line numbers.
    """
    offset = len(conversation.summaries) + 1
    seen: set[str] = set()
    validation_errors: list[ParseError] = []

    for index, message in enumerate(conversation.messages):
        if message.uuid in seen:
            validation_errors.append(
                ParseError(line=index + offset, error=f"Duplicate UUID: {message.uuid}")
            )
        seen.add(message.uuid)

    # Parents may appear after their children, so check once every uuid is known.
    # An empty parentUuid names no message and is reported like any other.
    for index, message in enumerate(conversation.messages):
        parent = message.parentUuid
        if parent is not None and parent not in seen:
            validation_errors.append(
                ParseError(
                    line=index + offset,
                    error=f"Orphaned message: parent UUID {parent} not found",
                )
            )

    if not validation_errors:
        return conversation

    logger.debug("%s: %d structural issues", conversation.filePath, len(validation_errors))
    return conversation.model_copy(
        update={"parseErrors": [*conversation.parseErrors, *validation_errors]}
    )


async def parse_and_validate_conversation(
    source: LineSource,
    *,
    file_path: str | None = None,
    encoding: str | None = None,
) -> ParsedConversation:
    """Parse a conversation log and run structural validation on the result."""
    result = await parse_conversation(source, file_path=file_path, encoding=encoding)
    return validate_conversation(result)
