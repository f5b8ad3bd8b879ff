"""Name-to-handler lookup for locally executed tools."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from ..models import ToolDefinition

logger = logging.getLogger(__name__)

ToolHandler = Callable[[str], str]


@dataclass(frozen=True)
class RegisteredTool:
    """A handler plus the metadata used to declare it to the agent."""

    name: str
    handler: ToolHandler
    argument: str | None = None
    description: str = ""
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
        )


class ToolRegistry:
    """Maps tool names to local handlers.

    Handlers take the tool's argument text and return a textual result. When
    ``argument`` is given at registration, the executor decodes the call's
    JSON arguments and passes only that field; otherwise the handler receives
    the raw argument string.

    Registering a name twice replaces the earlier handler (last registration
    wins) and logs a warning.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(
        self,
        name: str,
        handler: ToolHandler,
        *,
        argument: str | None = None,
        description: str = "",
        parameters: dict[str, Any] | None = None,
    ) -> RegisteredTool:
        if not name:
            raise ValueError("Tool name must not be empty")
        if name in self._tools:
            logger.warning("Tool %s is already registered; replacing previous handler", name)

        entry = RegisteredTool(
            name=name,
            handler=handler,
            argument=argument,
            description=description,
            parameters=parameters or {"type": "object", "properties": {}},
        )
        self._tools[name] = entry
        logger.debug("Registered tool %s", name)
        return entry

    def resolve(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        """Tool declarations to send when creating the agent."""
        return [entry.definition() for entry in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[RegisteredTool]:
        return iter(self._tools.values())
