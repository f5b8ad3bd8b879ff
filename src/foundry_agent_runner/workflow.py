"""End-to-end agent workflow: create, converse, poll, render, clean up."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from .client import AgentsService, FoundryAgentsClient
from .config import Settings
from .errors import ConfigurationError, WorkflowError
from .executor import ToolExecutor
from .lifecycle import CleanupReport, ResourceLifecycleManager
from .models import AgentSpec, Message, MessageRole, Run
from .poller import PollTimer, RunPoller
from .rendering import render_conversation
from .tools import ToolRegistry, build_default_registry

logger = logging.getLogger(__name__)

ServiceFactory = Callable[[Settings], AgentsService]


@dataclass
class WorkflowResult:
    """What a successful workflow produced."""

    agent_id: str
    thread_id: str
    run: Run
    messages: list[Message] = field(default_factory=list)
    transcript: list[str] = field(default_factory=list)
    cleanup: CleanupReport | None = None


def validate_settings(settings: Settings) -> None:
    if not settings.has_project_endpoint:
        raise ConfigurationError(
            "PROJECT_ENDPOINT environment variable is required. "
            "Please set it to your Azure AI Foundry project endpoint."
        )


class AgentWorkflow:
    """Runs one agent conversation against the remote service.

    Cleanup of remote resources always runs once the service client exists,
    whether the main sequence succeeded or failed. Failures surface as a single
    ``WorkflowError`` raised after cleanup.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        service_factory: ServiceFactory | None = None,
        registry: ToolRegistry | None = None,
        timer: PollTimer | None = None,
    ) -> None:
        self.settings = settings
        self._service_factory = service_factory or FoundryAgentsClient.from_settings
        self._registry = registry if registry is not None else build_default_registry(settings)
        self.timer = timer or PollTimer()

    def cancel(self) -> None:
        """Stop polling at the next wait."""
        self.timer.cancel()

    async def run(self, message: str | None = None) -> WorkflowResult:
        logger.info("=== Starting Foundry Agent Workflow ===")
        service: AgentsService | None = None
        lifecycle: ResourceLifecycleManager | None = None
        result: WorkflowResult | None = None

        try:
            validate_settings(self.settings)
            service = self._service_factory(self.settings)
            lifecycle = ResourceLifecycleManager(service, scope=self.settings.cleanup_scope)
            result = await self._converse(service, lifecycle, message or self.settings.user_message)
        except Exception as e:
            logger.error("Error in agent workflow: %s", e)
            raise WorkflowError("Agent workflow failed", cause=e) from e
        finally:
            report = await self._cleanup(service, lifecycle)
            if result is not None:
                result.cleanup = report

        logger.info("Agent workflow completed!")
        return result

    async def _converse(
        self,
        service: AgentsService,
        lifecycle: ResourceLifecycleManager,
        text: str,
    ) -> WorkflowResult:
        spec = AgentSpec(
            model=self.settings.model_deployment_name,
            name=self.settings.agent_name,
            instructions=self.settings.instructions,
            tools=self._registry.definitions(),
        )
        agent = await lifecycle.create_agent(spec)
        thread = await lifecycle.create_thread()

        message = await service.create_message(thread.id, MessageRole.USER, text)
        logger.info("Message created successfully: %s", message.id)

        run = await service.create_run(thread.id, agent.id)
        logger.info("Run created successfully: %s", run.id)

        poller = RunPoller(
            service,
            ToolExecutor(self._registry, output_limit=self.settings.tool_output_limit),
            timer=self.timer,
            poll_interval=self.settings.poll_interval_seconds,
            max_attempts=self.settings.poll_max_attempts,
        )
        run = await poller.wait_for_completion(thread.id, run.id)

        messages = await service.list_messages(thread.id)
        transcript = render_conversation(messages)
        for line in transcript:
            logger.info("%s", line)

        return WorkflowResult(
            agent_id=agent.id,
            thread_id=thread.id,
            run=run,
            messages=messages,
            transcript=transcript,
        )

    async def _cleanup(
        self,
        service: AgentsService | None,
        lifecycle: ResourceLifecycleManager | None,
    ) -> CleanupReport | None:
        if service is None:
            return None

        report = None
        try:
            if lifecycle is not None:
                report = await lifecycle.cleanup()
        finally:
            try:
                await service.aclose()
            except Exception as e:
                logger.warning("Error closing agents client: %s", e)
        return report
