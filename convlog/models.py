"""Pydantic models for conversation log records and analysis results."""
from __future__ import annotations

import math
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    ValidationError,
    field_validator,
    model_validator,
)


class _Record(BaseModel):
    """Base for wire records: immutable, unknown fields preserved."""

    model_config = ConfigDict(frozen=True, extra="allow")


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)


def _coerce_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _coerce_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _coerce_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _coerce_optional_text(value: Any) -> str | None:
    return None if value is None else _coerce_text(value)


# ── Content blocks ──────────────────────────────────────────────────

class TextBlock(_Record):
    type: Literal["text"] = "text"
    text: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _coerce_text(value)


class ToolUseBlock(_Record):
    type: Literal["tool_use"] = "tool_use"
    id: str = ""
    name: str = ""
    input: Any = Field(default_factory=dict)

    @field_validator("id", "name", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _coerce_text(value)


class ToolResultBlock(_Record):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str = ""
    content: Any = None
    is_error: Any = None

    @field_validator("tool_use_id", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return _coerce_text(value)


class OtherBlock(_Record):
    """Any block we do not model explicitly (thinking, image, bare values)."""

    type: str = ""
    value: Any = None

    @model_validator(mode="before")
    @classmethod
    def _wrap_non_objects(cls, data: Any) -> Any:
        if isinstance(data, (dict, BaseModel)):
            return data
        return {"type": "", "value": data}

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value: Any) -> str:
        return _coerce_text(value)


_KNOWN_BLOCK_TYPES = {"text", "tool_use", "tool_result"}


def _block_tag(value: Any) -> str:
    if isinstance(value, dict):
        block_type = value.get("type")
    elif isinstance(value, BaseModel):
        block_type = getattr(value, "type", None)
    else:
        return "other"
    return block_type if block_type in _KNOWN_BLOCK_TYPES else "other"


ContentBlock = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ToolUseBlock, Tag("tool_use")],
        Annotated[ToolResultBlock, Tag("tool_result")],
        Annotated[OtherBlock, Tag("other")],
    ],
    Discriminator(_block_tag),
]


def _as_block_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, str):
        return [{"type": "text", "text": value}]
    if isinstance(value, list):
        return value
    return [value]


# ── Entries ─────────────────────────────────────────────────────────

class TokenUsage(_Record):
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0

    @field_validator(
        "input_tokens",
        "output_tokens",
        "cache_creation_input_tokens",
        "cache_read_input_tokens",
        mode="before",
    )
    @classmethod
    def _count(cls, value: Any) -> int:
        return max(0, _coerce_int(value))


class FileResult(_Record):
    filePath: str = ""
    content: str = ""


class ToolUseResult(_Record):
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    interrupted: Optional[bool] = None
    isImage: Optional[bool] = None
    sandbox: Optional[bool] = None
    type: Optional[str] = None
    file: Optional[FileResult] = None
    oldTodos: Optional[list[dict[str, Any]]] = None
    newTodos: Optional[list[dict[str, Any]]] = None


class Summary(_Record):
    type: Literal["summary"] = "summary"
    summary: str = ""
    leafUuid: Optional[str] = None

    @field_validator("summary", mode="before")
    @classmethod
    def _summary(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("leafUuid", mode="before")
    @classmethod
    def _leaf(cls, value: Any) -> str | None:
        return _coerce_optional_text(value)


class UserPayload(_Record):
    role: Any = "user"
    content: Union[str, list[ContentBlock]] = ""

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (str, list)):
            return value
        return [value]


class AssistantPayload(_Record):
    id: Any = None
    type: Any = None
    role: Any = "assistant"
    model: Optional[str] = None
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: Any = None
    stop_sequence: Any = None
    usage: Optional[TokenUsage] = None

    @field_validator("model", mode="before")
    @classmethod
    def _model(cls, value: Any) -> str | None:
        return _coerce_optional_text(value)

    @field_validator("content", mode="before")
    @classmethod
    def _content(cls, value: Any) -> list[Any]:
        return _as_block_list(value)

    @field_validator("usage", mode="before")
    @classmethod
    def _usage(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, TokenUsage)) else None


def _as_payload(value: Any) -> Any:
    return value if isinstance(value, (dict, BaseModel)) else {}


class _MessageEnvelope(_Record):
    """Fields shared by user and assistant records.

    Every field is coerced rather than rejected: a record tagged as a message
    with a uuid always yields a message, whatever its other fields hold.
    """

    uuid: str
    parentUuid: Optional[str] = None
    # Usually ISO 8601; epoch milliseconds are also seen.
    timestamp: Any = ""
    sessionId: Any = None
    userType: Any = None
    version: Any = None
    cwd: Any = None
    isSidechain: Any = None

    @field_validator("uuid", mode="before")
    @classmethod
    def _uuid(cls, value: Any) -> str:
        return _coerce_text(value)

    @field_validator("parentUuid", mode="before")
    @classmethod
    def _parent(cls, value: Any) -> str | None:
        return _coerce_optional_text(value)


class UserMessage(_MessageEnvelope):
    type: Literal["user"] = "user"
    message: UserPayload = Field(default_factory=UserPayload)
    isMeta: Any = None
    # Usually an object; free-form shapes from other tools are kept as-is.
    toolUseResult: Any = None

    @field_validator("message", mode="before")
    @classmethod
    def _message(cls, value: Any) -> Any:
        return _as_payload(value)

    @field_validator("toolUseResult", mode="before")
    @classmethod
    def _tool_use_result(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        try:
            return ToolUseResult.model_validate(value)
        except ValidationError:
            return value


class AssistantMessage(_MessageEnvelope):
    type: Literal["assistant"] = "assistant"
    message: AssistantPayload = Field(default_factory=AssistantPayload)
    costUSD: Optional[float] = None
    durationMs: Optional[float] = None
    requestId: Any = None

    @field_validator("message", mode="before")
    @classmethod
    def _message(cls, value: Any) -> Any:
        return _as_payload(value)

    @field_validator("costUSD", "durationMs", mode="before")
    @classmethod
    def _number(cls, value: Any) -> float | None:
        return _coerce_float(value)


Message = Annotated[Union[UserMessage, AssistantMessage], Field(discriminator="type")]


class UnrecognizedEntry(_Result):
    """A decoded record that is not a summary or a conversation message."""

    record: Any = None
    reason: str = "Unknown entry type"
    content: str = ""


# ── Parse results ───────────────────────────────────────────────────

class ParseError(_Result):
    line: int
    error: str
    content: str = ""


class ParsedConversation(_Result):
    summaries: list[Summary] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
    filePath: str = ""
    lineCount: int = 0
    parseErrors: list[ParseError] = Field(default_factory=list)


class ConversationNode(_Result):
    message: Message
    children: list[ConversationNode] = Field(default_factory=list)


class TokenTotals(_Result):
    input: int = 0
    output: int = 0
    cacheCreation: int = 0
    cacheRead: int = 0


class ConversationStats(_Result):
    messageCount: int = 0
    userMessageCount: int = 0
    assistantMessageCount: int = 0
    totalCostUSD: float = 0.0
    totalTokens: TokenTotals = Field(default_factory=TokenTotals)
    averageResponseTimeMs: float = 0.0
    conversationDurationMs: int = 0
    toolUsageCount: int = 0
    models: dict[str, int] = Field(default_factory=dict)
    branches: int = 0
    toolNames: dict[str, int] = Field(default_factory=dict)


class ConversationListItem(BaseModel):
    id: str
    filePath: str
    lineCount: int = 0
    messageCount: int = 0
    parseErrorCount: int = 0
