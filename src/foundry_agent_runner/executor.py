"""Execute remote-issued tool calls against the local tool registry."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Sequence

from .errors import ToolExecutionError
from .models import FunctionCall, ToolCall, ToolOutput
from .tools.registry import RegisteredTool, ToolRegistry

logger = logging.getLogger(__name__)

UNSUPPORTED_TOOL = "unsupported tool"
UNSUPPORTED_TOOL_CALL_TYPE = "unsupported tool call type"
TRUNCATION_MARKER = "\n... [output truncated]"
DEFAULT_OUTPUT_LIMIT = 8000


class InvalidToolArguments(ValueError):
    """Tool call arguments could not be decoded for the handler."""


def _extract_argument(tool: RegisteredTool, raw: str) -> str:
    """Decode the call's JSON arguments and pull out the field the handler expects."""
    if tool.argument is None:
        return raw

    try:
        parsed: Any = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as e:
        raise InvalidToolArguments(f"arguments are not valid JSON ({e.msg})") from e

    if not isinstance(parsed, dict):
        raise InvalidToolArguments("arguments must be a JSON object")
    if tool.argument not in parsed:
        raise InvalidToolArguments(f"missing required field '{tool.argument}'")

    value = parsed[tool.argument]
    if value is None:
        raise InvalidToolArguments(f"field '{tool.argument}' must not be null")
    return value if isinstance(value, str) else json.dumps(value)


class ToolExecutor:
    """Turns tool calls into tool outputs.

    Every call yields exactly one ``ToolOutput`` carrying the call's id; problems
    with the call or the handler are reported in the output text instead of
    being raised, since the run cannot proceed without an output per call.
    """

    def __init__(self, registry: ToolRegistry, *, output_limit: int = DEFAULT_OUTPUT_LIMIT) -> None:
        self._registry = registry
        self._output_limit = output_limit

    async def execute(self, call: ToolCall) -> ToolOutput:
        if not isinstance(call, FunctionCall):
            logger.warning("Tool call %s has unsupported type %s", call.id, call.call_type)
            return ToolOutput(call.id, f"{UNSUPPORTED_TOOL_CALL_TYPE}: {call.call_type}")

        tool = self._registry.resolve(call.name)
        if tool is None:
            logger.warning("No handler registered for tool %s (call %s)", call.name, call.id)
            return ToolOutput(call.id, f"{UNSUPPORTED_TOOL}: {call.name}")

        try:
            argument = _extract_argument(tool, call.arguments)
        except InvalidToolArguments as e:
            logger.warning("Invalid arguments for tool %s (call %s): %s", call.name, call.id, e)
            return ToolOutput(call.id, f"Error: invalid arguments for tool '{call.name}': {e}")

        try:
            result = await self._invoke(tool, argument)
        except ToolExecutionError as e:
            logger.exception("Tool %s failed for call %s", call.name, call.id)
            return ToolOutput(call.id, f"Error executing tool '{call.name}': {e.message}")

        logger.info("Tool %s completed for call %s", call.name, call.id)
        return ToolOutput(call.id, self._bound(result))

    async def execute_all(self, calls: Sequence[ToolCall]) -> list[ToolOutput]:
        """Execute calls in order; the result has one output per call."""
        outputs = []
        for call in calls:
            outputs.append(await self.execute(call))
        return outputs

    async def _invoke(self, tool: RegisteredTool, argument: str) -> Any:
        try:
            return await asyncio.to_thread(tool.handler, argument)
        except ToolExecutionError:
            raise
        except Exception as e:
            raise ToolExecutionError(tool.name, str(e) or type(e).__name__, cause=e) from e

    def _bound(self, result: Any) -> str:
        if result is None:
            return ""
        text = result if isinstance(result, str) else str(result)
        if len(text) > self._output_limit:
            return text[: self._output_limit] + TRUNCATION_MARKER
        return text
