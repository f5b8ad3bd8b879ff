"""Client-side driver for Azure AI Foundry agent runs."""

from .errors import (
    AgentRunnerError,
    ConfigurationError,
    RemoteCallError,
    RunCancelled,
    RunTerminalFailure,
    RunTimeout,
    ToolExecutionError,
    UnsupportedActionError,
    WorkflowError,
)
from .executor import ToolExecutor
from .lifecycle import CleanupReport, ResourceLifecycleManager
from .poller import PollTimer, RunPoller
from .tools import ToolRegistry
from .workflow import AgentWorkflow, WorkflowResult

__all__ = [
    "AgentRunnerError",
    "AgentWorkflow",
    "CleanupReport",
    "ConfigurationError",
    "PollTimer",
    "RemoteCallError",
    "ResourceLifecycleManager",
    "RunCancelled",
    "RunPoller",
    "RunTerminalFailure",
    "RunTimeout",
    "ToolExecutionError",
    "ToolExecutor",
    "ToolRegistry",
    "UnsupportedActionError",
    "WorkflowError",
    "WorkflowResult",
]
