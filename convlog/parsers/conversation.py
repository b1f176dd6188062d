"""Assemble decoded log records into a ParsedConversation."""
from __future__ import annotations

import json
import logging
from contextlib import aclosing
from typing import Any, Union

from pydantic import ValidationError

from convlog import config
from convlog.content import is_conversation_message, is_summary_entry
from convlog.models import (
    AssistantMessage,
    ParseError,
    ParsedConversation,
    Summary,
    UnrecognizedEntry,
    UserMessage,
)
from convlog.parsers.decoder import LineDecodeError, LineSource, is_path_source, iter_numbered_entries

logger = logging.getLogger("convlog.parser")

ClassifiedEntry = Union[Summary, UserMessage, AssistantMessage, UnrecognizedEntry]

_MESSAGE_MODELS: dict[str, type[UserMessage] | type[AssistantMessage]] = {
    "user": UserMessage,
    "assistant": AssistantMessage,
}


def _serialize_record(record: Any) -> str:
    try:
        return json.dumps(record, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return repr(record)


def _truncate(text: str) -> str:
    limit = max(0, config.ERROR_CONTENT_LIMIT)
    return text if len(text) <= limit else text[:limit]


def _validation_reason(entry_type: str, exc: ValidationError) -> str:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    detail = first.get("msg", str(exc))
    if location:
        return f"Invalid {entry_type} entry: {location}: {detail}"
    return f"Invalid {entry_type} entry: {detail}"


def classify_entry(record: Any) -> ClassifiedEntry:
    """Classify one decoded record into a summary, a message, or unrecognized.

    Message fields are coerced rather than rejected, so a ``user`` or
    ``assistant`` record with a ``uuid`` decoded from JSON is always a message.
    """
    if not isinstance(record, dict):
        return UnrecognizedEntry(record=record, content=_serialize_record(record))

    entry_type = record.get("type")
    try:
        if is_summary_entry(record):
            return Summary.model_validate(record)
        if is_conversation_message(record):
            return _MESSAGE_MODELS[entry_type].model_validate(record)
    except ValidationError as exc:
        return UnrecognizedEntry(
            record=record,
            reason=_validation_reason(str(entry_type), exc),
            content=_serialize_record(record),
        )
    return UnrecognizedEntry(record=record, content=_serialize_record(record))


def _source_label(source: LineSource, file_path: str | None) -> str:
    if file_path:
        return file_path
    if is_path_source(source):
        return str(source)
    return "<stream>"


async def parse_conversation(
    source: LineSource,
    *,
    file_path: str | None = None,
    encoding: str | None = None,
) -> ParsedConversation:
    """Parse an entire conversation log and return structured data.

    A line that fails to decode ends the stream and is recorded as a parse
    error; everything assembled before it is kept. Parse errors carry the
    physical 1-based source line, blank lines included, so decode errors and
    unrecognized entries share one numbering.
    """
    summaries: list[Summary] = []
    messages: list[UserMessage | AssistantMessage] = []
    parse_errors: list[ParseError] = []
    line_count = 0
    label = _source_label(source, file_path)

    try:
        async with aclosing(iter_numbered_entries(source, encoding=encoding)) as entries:
            async for line_number, record in entries:
                line_count += 1
                entry = classify_entry(record)

                if isinstance(entry, Summary):
                    summaries.append(entry)
                elif isinstance(entry, UnrecognizedEntry):
                    logger.debug("%s:%d: %s", label, line_number, entry.reason)
                    parse_errors.append(
                        ParseError(line=line_number, error=entry.reason, content=_truncate(entry.content))
                    )
                else:
                    messages.append(entry)
    except LineDecodeError as exc:
        logger.warning("Stopped reading %s: %s", label, exc)
        parse_errors.append(ParseError(line=exc.line_number, error=str(exc), content=_truncate(exc.raw_line)))

    logger.debug(
        "Parsed %s: %d lines, %d messages, %d summaries, %d errors",
        label,
        line_count,
        len(messages),
        len(summaries),
        len(parse_errors),
    )
    return ParsedConversation(
        summaries=summaries,
        messages=messages,
        filePath=label,
        lineCount=line_count,
        parseErrors=parse_errors,
    )
