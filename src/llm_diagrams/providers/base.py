"""Chat message contracts shared by model service clients.

Request and response shapes follow the messages API wire format. Tool input
schemas and tool_use inputs are opaque JSON documents: they are carried
through untouched and never interpreted here.
"""

import json
from dataclasses import dataclass, field
from json.decoder import JSONArray, JSONObject
from json.scanner import py_make_scanner
from typing import Any, Literal, Protocol

from llm_diagrams.errors import InvalidInputError, MalformedResponseError

Role = Literal["user", "assistant", "system"]
JSONValue = Any

_ROLES = frozenset({"user", "assistant", "system"})
_TOOL_CHOICE_TYPES = frozenset({"auto", "any", "tool"})


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: Role
    content: str

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise InvalidInputError(f"unsupported message role: {self.role!r}")

    def to_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class ToolDeclaration:
    name: str
    description: str
    input_schema: JSONValue = field(default_factory=dict)

    def to_payload(self) -> dict[str, JSONValue]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


@dataclass(frozen=True, slots=True)
class ToolChoice:
    """Tool selection directive; ``name`` is only meaningful for ``type="tool"``."""

    type: str = "auto"
    name: str = ""

    def __post_init__(self) -> None:
        if self.type not in _TOOL_CHOICE_TYPES:
            raise InvalidInputError(f"unsupported tool_choice type: {self.type!r}")
        if self.type == "tool" and not self.name:
            raise InvalidInputError("tool_choice type 'tool' requires a tool name")

    def to_payload(self) -> dict[str, str]:
        payload = {"type": self.type}
        if self.name:
            payload["name"] = self.name
        return payload


@dataclass(frozen=True, slots=True)
class ChatRequest:
    model: str
    messages: tuple[ChatMessage, ...]
    max_tokens: int
    temperature: float | None = None
    tools: tuple[ToolDeclaration, ...] | None = None
    tool_choice: ToolChoice | None = None

    def __post_init__(self) -> None:
        if not self.messages:
            raise InvalidInputError("chat request requires at least one message")
        if self.max_tokens <= 0:
            raise InvalidInputError("max_tokens must be positive")
        # accept lists from callers but keep the request immutable
        object.__setattr__(self, "messages", tuple(self.messages))
        if self.tools is not None:
            object.__setattr__(self, "tools", tuple(self.tools))

    def to_payload(self) -> dict[str, JSONValue]:
        """Wire body; optional fields are omitted when unset."""
        body: dict[str, JSONValue] = {
            "model": self.model,
            "messages": [message.to_payload() for message in self.messages],
            "max_tokens": self.max_tokens,
        }
        if self.temperature is not None:
            body["temperature"] = self.temperature
        if self.tools:
            body["tools"] = [tool.to_payload() for tool in self.tools]
        if self.tool_choice is not None:
            body["tool_choice"] = self.tool_choice.to_payload()
        return body


@dataclass(frozen=True, slots=True)
class TextBlock:
    text: str
    type: Literal["text"] = "text"

    def to_payload(self) -> dict[str, JSONValue]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True, slots=True)
class ToolUseBlock:
    """Tool invocation requested by the model.

    ``raw_input`` holds the input document exactly as it appeared on the wire
    when the block was decoded from a response body.
    """

    id: str
    name: str
    input: JSONValue
    type: Literal["tool_use"] = "tool_use"
    raw_input: str | None = field(default=None, compare=False, repr=False)

    def input_json(self) -> str:
        if self.raw_input is not None:
            return self.raw_input
        return json.dumps(self.input)

    def to_payload(self) -> dict[str, JSONValue]:
        return {"type": self.type, "id": self.id, "name": self.name, "input": self.input}


@dataclass(frozen=True, slots=True)
class OpaqueBlock:
    """Block of a type this client does not model; kept verbatim."""

    type: str
    data: dict[str, JSONValue]

    def to_payload(self) -> dict[str, JSONValue]:
        return dict(self.data)


ContentBlock = TextBlock | ToolUseBlock | OpaqueBlock


@dataclass(frozen=True, slots=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


def _require_str(payload: dict[str, Any], key: str, where: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MalformedResponseError(f"{where} field {key!r} missing or not a string")
    return value


class _RawSpanDecoder(json.JSONDecoder):
    """JSON decoder that remembers the source text of every object and array."""

    def __init__(self) -> None:
        super().__init__()
        self.spans: dict[int, str] = {}
        self.parse_object = self._object_with_span
        self.parse_array = self._array_with_span
        self.scan_once = py_make_scanner(self)

    def _object_with_span(self, s_and_end, *args):
        text, start = s_and_end
        value, end = JSONObject(s_and_end, *args)
        self.spans[id(value)] = text[start - 1 : end]
        return value, end

    def _array_with_span(self, s_and_end, scan_once):
        text, start = s_and_end
        value, end = JSONArray(s_and_end, scan_once)
        self.spans[id(value)] = text[start - 1 : end]
        return value, end


def _parse_block(raw: object, spans: dict[int, str] | None = None) -> ContentBlock:
    if not isinstance(raw, dict):
        raise MalformedResponseError("content block is not an object")
    block_type = _require_str(raw, "type", "content block")
    if block_type == "text":
        return TextBlock(text=_require_str(raw, "text", "text block"))
    if block_type == "tool_use":
        if "input" not in raw:
            raise MalformedResponseError("tool_use block field 'input' missing")
        return ToolUseBlock(
            id=_require_str(raw, "id", "tool_use block"),
            name=_require_str(raw, "name", "tool_use block"),
            input=raw["input"],
            raw_input=(spans or {}).get(id(raw["input"])),
        )
    return OpaqueBlock(type=block_type, data=dict(raw))


def _parse_usage(raw: object) -> Usage:
    if raw is None:
        return Usage()
    if not isinstance(raw, dict):
        raise MalformedResponseError("usage is not an object")
    try:
        return Usage(
            input_tokens=int(raw.get("input_tokens") or 0),
            output_tokens=int(raw.get("output_tokens") or 0),
        )
    except (TypeError, ValueError) as exc:
        raise MalformedResponseError(f"usage token counts are not integers: {exc}") from exc


@dataclass(frozen=True, slots=True)
class ChatResponse:
    id: str
    role: str
    content: tuple[ContentBlock, ...]
    model: str
    stop_reason: str = ""
    usage: Usage = field(default_factory=Usage)
    type: str = "message"

    @classmethod
    def from_json(cls, body: bytes | str) -> "ChatResponse":
        """Decode a response body, keeping tool_use inputs as received."""
        decoder = _RawSpanDecoder()
        try:
            text = body.decode("utf-8") if isinstance(body, bytes) else body
            payload = decoder.decode(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MalformedResponseError(f"unmarshaling response: {exc}") from exc
        return cls.from_payload(payload, spans=decoder.spans)

    @classmethod
    def from_payload(
        cls, payload: object, *, spans: dict[int, str] | None = None
    ) -> "ChatResponse":
        if not isinstance(payload, dict):
            raise MalformedResponseError("response is not an object")
        content_raw = payload.get("content")
        if not isinstance(content_raw, list):
            raise MalformedResponseError("response field 'content' missing or not a list")
        stop_reason = payload.get("stop_reason")
        return cls(
            id=_require_str(payload, "id", "response"),
            type=str(payload.get("type") or "message"),
            role=_require_str(payload, "role", "response"),
            content=tuple(_parse_block(item, spans) for item in content_raw),
            model=_require_str(payload, "model", "response"),
            stop_reason=stop_reason if isinstance(stop_reason, str) else "",
            usage=_parse_usage(payload.get("usage")),
        )

    def to_payload(self) -> dict[str, JSONValue]:
        return {
            "id": self.id,
            "type": self.type,
            "role": self.role,
            "content": [block.to_payload() for block in self.content],
            "model": self.model,
            "stop_reason": self.stop_reason,
            "usage": {
                "input_tokens": self.usage.input_tokens,
                "output_tokens": self.usage.output_tokens,
            },
        }


class MessageClient(Protocol):
    async def create_message(self, request: ChatRequest) -> ChatResponse: ...

    async def aclose(self) -> None: ...
