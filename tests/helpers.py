"""Shared test helpers: scripted runs and an in-memory agents service."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Sequence

from foundry_agent_runner.models import (
    Agent,
    AgentSpec,
    FunctionCall,
    Message,
    MessageRole,
    RequiredAction,
    Run,
    RunError,
    RunStatus,
    SubmitToolOutputsAction,
    TextContent,
    Thread,
    ToolOutput,
)

BASE_TIME = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_run(
    status: RunStatus,
    *,
    run_id: str = "run-1",
    thread_id: str = "thread-1",
    agent_id: str = "agent-1",
    error: str | None = None,
    required_action: RequiredAction | None = None,
) -> Run:
    return Run(
        id=run_id,
        thread_id=thread_id,
        agent_id=agent_id,
        status=status,
        last_error=RunError(code="server_error", message=error) if error else None,
        required_action=required_action,
    )


def tool_action(*calls: FunctionCall) -> SubmitToolOutputsAction:
    return SubmitToolOutputsAction(tool_calls=tuple(calls))


class FakeAgentsService:
    """In-memory ``AgentsService`` that replays scripted run states and records calls."""

    def __init__(
        self,
        *,
        initial_status: RunStatus = RunStatus.QUEUED,
        run_statuses: Sequence[Run | RunStatus] = (),
        agent_replies: Sequence[str] = (),
    ) -> None:
        self.initial_status = initial_status
        self.run_statuses = list(run_statuses)
        self.agent_replies = list(agent_replies)
        self.calls: list[tuple] = []
        self.submitted: list[list[ToolOutput]] = []
        self.agents: dict[str, Agent] = {}
        self.threads: dict[str, Thread] = {}
        self.messages: dict[str, list[Message]] = {}
        self.fail_delete_thread: set[str] = set()
        self.fail_delete_agent: set[str] = set()
        self.fail_on: set[str] = set()
        self.closed = False
        self._counter = 0

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise RuntimeError(f"{name} exploded")

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _run(self, status: Run | RunStatus, thread_id: str, run_id: str) -> Run:
        if isinstance(status, Run):
            return status
        return make_run(status, run_id=run_id, thread_id=thread_id)

    async def create_agent(self, spec: AgentSpec) -> Agent:
        self._record("create_agent", spec)
        agent = Agent(
            id=self._next_id("agent"),
            name=spec.name,
            model=spec.model,
            instructions=spec.instructions,
            tools=list(spec.tools),
        )
        self.agents[agent.id] = agent
        return agent

    async def delete_agent(self, agent_id: str) -> None:
        self._record("delete_agent", agent_id)
        if agent_id in self.fail_delete_agent:
            raise RuntimeError(f"cannot delete {agent_id}")
        self.agents.pop(agent_id, None)

    async def list_agents(self) -> list[Agent]:
        self._record("list_agents")
        return list(self.agents.values())

    async def create_thread(self) -> Thread:
        self._record("create_thread")
        thread = Thread(id=self._next_id("thread"), created_at=BASE_TIME)
        self.threads[thread.id] = thread
        self.messages[thread.id] = []
        return thread

    async def delete_thread(self, thread_id: str) -> None:
        self._record("delete_thread", thread_id)
        if thread_id in self.fail_delete_thread:
            raise RuntimeError(f"cannot delete {thread_id}")
        self.threads.pop(thread_id, None)

    async def list_threads(self) -> list[Thread]:
        self._record("list_threads")
        return list(self.threads.values())

    async def create_message(self, thread_id: str, role: MessageRole, text: str) -> Message:
        self._record("create_message", thread_id, role, text)
        history = self.messages.setdefault(thread_id, [])
        message = Message(
            id=self._next_id("msg"),
            thread_id=thread_id,
            role=role,
            created_at=BASE_TIME + timedelta(seconds=len(history)),
            content=(TextContent(text),),
        )
        history.append(message)
        return message

    async def list_messages(self, thread_id: str) -> list[Message]:
        self._record("list_messages", thread_id)
        return list(self.messages.get(thread_id, []))

    async def create_run(self, thread_id: str, agent_id: str) -> Run:
        self._record("create_run", thread_id, agent_id)
        return make_run(self.initial_status, thread_id=thread_id, agent_id=agent_id)

    async def get_run(self, thread_id: str, run_id: str) -> Run:
        self._record("get_run", thread_id, run_id)
        if not self.run_statuses:
            raise AssertionError("get_run called more times than scripted")
        run = self._run(self.run_statuses.pop(0), thread_id, run_id)
        if run.status == RunStatus.COMPLETED:
            for reply in self.agent_replies:
                await self._append_agent_reply(thread_id, reply)
            self.agent_replies = []
        return run

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: Sequence[ToolOutput]
    ) -> Run:
        self._record("submit_tool_outputs", thread_id, run_id, list(outputs))
        self.submitted.append(list(outputs))
        return make_run(RunStatus.IN_PROGRESS, run_id=run_id, thread_id=thread_id)

    async def aclose(self) -> None:
        self.closed = True

    async def _append_agent_reply(self, thread_id: str, text: str) -> None:
        history = self.messages.setdefault(thread_id, [])
        history.append(
            Message(
                id=self._next_id("msg"),
                thread_id=thread_id,
                role=MessageRole.AGENT,
                created_at=BASE_TIME + timedelta(seconds=len(history)),
                content=(TextContent(text),),
            )
        )
