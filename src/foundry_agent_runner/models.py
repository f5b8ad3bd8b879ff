"""Data model for agents, threads, messages and runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

logger = logging.getLogger(__name__)


class RunStatus(str, Enum):
    """Remote run status."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    RunStatus.COMPLETED,
    RunStatus.FAILED,
    RunStatus.CANCELLED,
    RunStatus.EXPIRED,
})

FAILURE_STATUSES = TERMINAL_STATUSES - {RunStatus.COMPLETED}


class MessageRole(str, Enum):
    """Author of a thread message."""

    USER = "user"
    AGENT = "agent"

    @classmethod
    def from_wire(cls, value: str) -> MessageRole:
        # The service calls the agent side "assistant".
        if value == "assistant":
            return cls.AGENT
        return cls(value)

    def to_wire(self) -> str:
        return "assistant" if self is MessageRole.AGENT else self.value


def _timestamp(value: Any) -> datetime:
    """Parse a unix-seconds or ISO8601 timestamp into an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass
class ToolDefinition:
    """A function tool declared on an agent."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolDefinition:
        function = data.get("function", data)
        return cls(
            name=function["name"],
            description=function.get("description", ""),
            parameters=function.get("parameters") or {"type": "object", "properties": {}},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass
class AgentSpec:
    """What to create on the remote side for one workflow."""

    model: str
    name: str
    instructions: str
    tools: list[ToolDefinition] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "name": self.name,
            "instructions": self.instructions,
            "tools": [tool.to_dict() for tool in self.tools],
        }


@dataclass
class Agent:
    """Remote agent."""

    id: str
    name: str | None = None
    model: str | None = None
    instructions: str | None = None
    tools: list[ToolDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Agent:
        return cls(
            id=data["id"],
            name=data.get("name"),
            model=data.get("model"),
            instructions=data.get("instructions"),
            tools=[
                ToolDefinition.from_dict(tool)
                for tool in data.get("tools") or []
                if tool.get("type", "function") == "function"
            ],
        )


@dataclass
class Thread:
    """Remote conversation thread."""

    id: str
    created_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Thread:
        created = data.get("created_at")
        return cls(id=data["id"], created_at=_timestamp(created) if created is not None else None)


# ---------------------------------------------------------------------------
# Message content
# ---------------------------------------------------------------------------


class ContentKind(str, Enum):
    TEXT = "text"
    IMAGE_FILE = "image_file"


@dataclass(frozen=True)
class TextContent:
    text: str
    kind: ContentKind = field(default=ContentKind.TEXT, init=False)


@dataclass(frozen=True)
class ImageReference:
    file_id: str
    kind: ContentKind = field(default=ContentKind.IMAGE_FILE, init=False)


MessageContent = Union[TextContent, ImageReference]


def parse_content(data: dict[str, Any]) -> MessageContent | None:
    """Parse one content block; unknown block types return None."""
    block_type = data.get("type")
    if block_type == ContentKind.TEXT.value:
        text = data.get("text")
        if isinstance(text, dict):
            text = text.get("value", "")
        return TextContent(text=text or "")
    if block_type == ContentKind.IMAGE_FILE.value:
        return ImageReference(file_id=(data.get("image_file") or {}).get("file_id", ""))
    logger.debug("Skipping unsupported content block type: %s", block_type)
    return None


@dataclass(frozen=True)
class Message:
    """Thread message. Immutable once created."""

    id: str
    thread_id: str
    role: MessageRole
    created_at: datetime
    content: tuple[MessageContent, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        blocks = (parse_content(block) for block in data.get("content") or [])
        return cls(
            id=data["id"],
            thread_id=data.get("thread_id", ""),
            role=MessageRole.from_wire(data.get("role", "user")),
            created_at=_timestamp(data.get("created_at")),
            content=tuple(block for block in blocks if block is not None),
        )


# ---------------------------------------------------------------------------
# Tool calls and required actions
# ---------------------------------------------------------------------------


class ToolCallKind(str, Enum):
    FUNCTION = "function"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class FunctionCall:
    """Request to run a named local function."""

    id: str
    name: str
    arguments: str = ""
    kind: ToolCallKind = field(default=ToolCallKind.FUNCTION, init=False)


@dataclass(frozen=True)
class UnsupportedToolCall:
    """A tool call of a type this client does not know how to run."""

    id: str
    call_type: str
    kind: ToolCallKind = field(default=ToolCallKind.UNSUPPORTED, init=False)


ToolCall = Union[FunctionCall, UnsupportedToolCall]


def parse_tool_call(data: dict[str, Any]) -> ToolCall:
    call_type = data.get("type", "function")
    if call_type == ToolCallKind.FUNCTION.value:
        function = data.get("function") or {}
        return FunctionCall(
            id=data["id"],
            name=function.get("name", ""),
            arguments=function.get("arguments") or "",
        )
    return UnsupportedToolCall(id=data["id"], call_type=str(call_type))


class ActionKind(str, Enum):
    SUBMIT_TOOL_OUTPUTS = "submit_tool_outputs"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class SubmitToolOutputsAction:
    tool_calls: tuple[ToolCall, ...] = ()
    kind: ActionKind = field(default=ActionKind.SUBMIT_TOOL_OUTPUTS, init=False)


@dataclass(frozen=True)
class UnsupportedAction:
    action_type: str
    payload: dict[str, Any] = field(default_factory=dict, compare=False)
    kind: ActionKind = field(default=ActionKind.UNSUPPORTED, init=False)


RequiredAction = Union[SubmitToolOutputsAction, UnsupportedAction]


def parse_required_action(data: dict[str, Any] | None) -> RequiredAction | None:
    if not data:
        return None
    action_type = data.get("type", "")
    if action_type == ActionKind.SUBMIT_TOOL_OUTPUTS.value:
        calls = (data.get("submit_tool_outputs") or {}).get("tool_calls") or []
        return SubmitToolOutputsAction(tool_calls=tuple(parse_tool_call(call) for call in calls))
    return UnsupportedAction(action_type=str(action_type), payload=data)


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunError:
    code: str | None = None
    message: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> RunError | None:
        if not data:
            return None
        return cls(code=data.get("code"), message=data.get("message"))


@dataclass(frozen=True)
class Run:
    """One execution of an agent against a thread."""

    id: str
    thread_id: str
    agent_id: str
    status: RunStatus
    last_error: RunError | None = None
    required_action: RequiredAction | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Run:
        return cls(
            id=data["id"],
            thread_id=data.get("thread_id", ""),
            agent_id=data.get("assistant_id", data.get("agent_id", "")),
            status=RunStatus(data.get("status", RunStatus.QUEUED.value)),
            last_error=RunError.from_dict(data.get("last_error")),
            required_action=parse_required_action(data.get("required_action")),
        )


@dataclass(frozen=True)
class ToolOutput:
    """Result of one tool call, keyed by the call's id."""

    tool_call_id: str
    output: str

    def to_dict(self) -> dict[str, Any]:
        return {"tool_call_id": self.tool_call_id, "output": self.output}
