"""Local tools the agent can call."""

from __future__ import annotations

from ..config import Settings
from .python_runner import (
    PYTHON_CODE_RUNNER,
    PYTHON_CODE_RUNNER_DESCRIPTION,
    PYTHON_CODE_RUNNER_PARAMETERS,
    make_python_code_runner,
    run_python_code,
)
from .registry import RegisteredTool, ToolHandler, ToolRegistry


def build_default_registry(settings: Settings) -> ToolRegistry:
    """Return a registry holding the tools every workflow declares."""

    registry = ToolRegistry()
    registry.register(
        PYTHON_CODE_RUNNER,
        make_python_code_runner(settings.python_executable, settings.tool_timeout_seconds),
        argument="code",
        description=PYTHON_CODE_RUNNER_DESCRIPTION,
        parameters=PYTHON_CODE_RUNNER_PARAMETERS,
    )
    return registry


__all__ = [
    "PYTHON_CODE_RUNNER",
    "RegisteredTool",
    "ToolHandler",
    "ToolRegistry",
    "build_default_registry",
    "run_python_code",
]
