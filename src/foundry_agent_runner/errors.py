"""Error types raised while driving an agent run."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import RunError, RunStatus


class AgentRunnerError(Exception):
    """Base error for the agent runner."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConfigurationError(AgentRunnerError):
    """Required configuration is missing or invalid."""


class RemoteCallError(AgentRunnerError):
    """A call to the remote agents service failed."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(f"{operation} failed: {message}", cause)
        self.operation = operation
        self.status_code = status_code


class RunTerminalFailure(AgentRunnerError):
    """The run reached a terminal state other than completed."""

    def __init__(self, status: RunStatus | str, error: RunError | None = None):
        status_value = getattr(status, "value", status)
        message = f"Run failed with status: {status_value}"
        if error is not None and error.message:
            message += f". Error: {error.message}"
        super().__init__(message)
        self.status = status
        self.error = error


class UnsupportedActionError(RunTerminalFailure):
    """The run asked for a required action this client cannot perform."""

    def __init__(self, kind: str):
        AgentRunnerError.__init__(self, f"Run requires an unsupported action: {kind}")
        self.status = "requires_action"
        self.error = None
        self.kind = kind


class RunTimeout(AgentRunnerError):
    """The run did not reach a terminal state within the attempt cap."""

    def __init__(self, attempts: int, status: RunStatus | str):
        status_value = getattr(status, "value", status)
        super().__init__(
            f"Run did not complete within {attempts} attempts. Status: {status_value}"
        )
        self.attempts = attempts
        self.status = status


class RunCancelled(AgentRunnerError):
    """Polling was interrupted by a cancellation signal."""


class ToolExecutionError(AgentRunnerError):
    """A local tool handler failed."""

    def __init__(self, tool_name: str, message: str, cause: Exception | None = None):
        super().__init__(message, cause)
        self.tool_name = tool_name


class WorkflowError(AgentRunnerError):
    """The agent workflow failed; ``cause`` holds the underlying error."""
