"""Streaming JSONL decoder for conversation logs."""
from __future__ import annotations

import json
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Union

import aiofiles

from convlog import config

LineSource = Union[str, "os.PathLike[str]", AsyncIterable[Any], Iterable[Any]]


class LineDecodeError(ValueError):
    """A log line could not be decoded into a JSON record."""

    def __init__(self, line_number: int, message: str, raw_line: str = "") -> None:
        super().__init__(f"Failed to parse line {line_number}: {message}")
        self.line_number = line_number
        self.message = message
        self.raw_line = raw_line


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant {name}")


def is_path_source(source: Any) -> bool:
    return isinstance(source, (str, os.PathLike))


async def _iter_sync_lines(lines: Iterable[Any]) -> AsyncIterator[Any]:
    for line in lines:
        yield line


@asynccontextmanager
async def _open_lines(source: LineSource) -> AsyncIterator[AsyncIterable[Any]]:
    if is_path_source(source):
        # Binary mode so undecodable bytes fail one line, not the whole read.
        async with aiofiles.open(source, mode="rb") as handle:
            yield handle
    elif hasattr(source, "__aiter__"):
        yield source
    elif hasattr(source, "__iter__"):
        yield _iter_sync_lines(source)
    else:
        raise TypeError(f"Unsupported line source: {type(source).__name__}")


async def iter_numbered_entries(
    source: LineSource,
    *,
    encoding: str | None = None,
) -> AsyncIterator[tuple[int, Any]]:
    """Yield ``(line_number, record)`` for every non-blank line of *source*.

    Line numbers are 1-based and count blank lines. The first line that is
    not valid JSON raises :class:`LineDecodeError` and ends the stream;
    ``NaN`` and ``Infinity`` literals count as invalid.
    """
    codec = encoding or config.ENCODING
    line_number = 0
    async with _open_lines(source) as lines:
        async for raw in lines:
            line_number += 1
            if isinstance(raw, (bytes, bytearray)):
                try:
                    line = bytes(raw).decode(codec)
                except UnicodeDecodeError as exc:
                    raise LineDecodeError(line_number, str(exc), bytes(raw).decode(codec, "replace").rstrip("\r\n")) from exc
            else:
                line = str(raw)
            line = line.rstrip("\r\n")
            if line_number == 1:
                line = line.lstrip("\ufeff")

            if not line.strip():
                continue

            try:
                record = json.loads(line, parse_constant=_reject_constant)
            except ValueError as exc:
                raise LineDecodeError(line_number, str(exc), line) from exc
            yield line_number, record


async def read_conversation_lines(
    source: LineSource,
    *,
    encoding: str | None = None,
) -> AsyncIterator[Any]:
    """Asynchronously read and decode a conversation JSONL source.

    Paths are opened here and closed when the stream ends, fails, or is
    closed early by the consumer (wrap in ``contextlib.aclosing`` when
    breaking out of the loop).
    """
    entries = iter_numbered_entries(source, encoding=encoding)
    try:
        async for _, record in entries:
            yield record
    finally:
        await entries.aclose()
