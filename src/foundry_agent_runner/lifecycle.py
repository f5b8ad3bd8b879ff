"""Create and tear down the remote agent and thread used by a workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from .client import AgentsService
from .models import Agent, AgentSpec, Thread

logger = logging.getLogger(__name__)

CleanupScope = Literal["all", "created"]


@dataclass
class CleanupFailure:
    """One resource (or listing) that could not be cleaned up."""

    resource: str
    resource_id: str | None
    error: str


@dataclass
class CleanupReport:
    """Outcome of a best-effort cleanup pass."""

    deleted_threads: list[str] = field(default_factory=list)
    deleted_agents: list[str] = field(default_factory=list)
    failures: list[CleanupFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class ResourceLifecycleManager:
    """Owns the agent and thread for one workflow.

    ``cleanup()`` never raises. With scope ``"all"`` it removes every thread and
    agent visible to the credential; with ``"created"`` only the ones created
    through this manager.
    """

    def __init__(self, service: AgentsService, *, scope: CleanupScope = "all") -> None:
        self._service = service
        self._scope = scope
        self._created_agent_ids: list[str] = []
        self._created_thread_ids: list[str] = []

    @property
    def created_agent_ids(self) -> list[str]:
        return list(self._created_agent_ids)

    @property
    def created_thread_ids(self) -> list[str]:
        return list(self._created_thread_ids)

    async def create_agent(self, spec: AgentSpec) -> Agent:
        logger.debug("Creating agent %s with model %s", spec.name, spec.model)
        agent = await self._service.create_agent(spec)
        self._created_agent_ids.append(agent.id)
        logger.info("Agent created successfully: %s", agent.id)
        return agent

    async def create_thread(self) -> Thread:
        thread = await self._service.create_thread()
        self._created_thread_ids.append(thread.id)
        logger.info("Thread created successfully: %s", thread.id)
        return thread

    async def cleanup(self) -> CleanupReport:
        logger.info("Cleaning up remote agent resources (scope=%s)...", self._scope)
        report = CleanupReport()

        thread_ids = await self._thread_ids(report)
        for thread_id in thread_ids:
            try:
                await self._service.delete_thread(thread_id)
            except Exception as e:
                logger.warning("Failed to delete thread %s: %s", thread_id, e)
                report.failures.append(CleanupFailure("thread", thread_id, str(e)))
            else:
                report.deleted_threads.append(thread_id)
                logger.debug("Thread deleted: %s", thread_id)

        agent_ids = await self._agent_ids(report)
        for agent_id in agent_ids:
            try:
                await self._service.delete_agent(agent_id)
            except Exception as e:
                logger.warning("Failed to delete agent %s: %s", agent_id, e)
                report.failures.append(CleanupFailure("agent", agent_id, str(e)))
            else:
                report.deleted_agents.append(agent_id)
                logger.debug("Agent deleted: %s", agent_id)

        logger.info(
            "Cleanup finished: %d thread(s), %d agent(s) deleted, %d failure(s)",
            len(report.deleted_threads),
            len(report.deleted_agents),
            len(report.failures),
        )
        return report

    async def _thread_ids(self, report: CleanupReport) -> list[str]:
        if self._scope == "created":
            return self.created_thread_ids
        try:
            return [thread.id for thread in await self._service.list_threads()]
        except Exception as e:
            logger.warning("Failed to list threads for cleanup: %s", e)
            report.failures.append(CleanupFailure("thread", None, str(e)))
            return self.created_thread_ids

    async def _agent_ids(self, report: CleanupReport) -> list[str]:
        if self._scope == "created":
            return self.created_agent_ids
        try:
            return [agent.id for agent in await self._service.list_agents()]
        except Exception as e:
            logger.warning("Failed to list agents for cleanup: %s", e)
            report.failures.append(CleanupFailure("agent", None, str(e)))
            return self.created_agent_ids
