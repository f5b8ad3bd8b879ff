"""Poll a run to a terminal state, answering tool-call interrupts on the way."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from .errors import RunCancelled, RunTerminalFailure, RunTimeout, UnsupportedActionError
from .executor import ToolExecutor
from .models import FAILURE_STATUSES, Run, RunStatus, SubmitToolOutputsAction, UnsupportedAction

if TYPE_CHECKING:
    from .client import AgentsService

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 2.0
DEFAULT_MAX_ATTEMPTS = 30


class PollDecision(str, Enum):
    """What the poller does with an observed run."""

    SUCCEED = "succeed"
    FAIL = "fail"
    SUBMIT_TOOL_OUTPUTS = "submit_tool_outputs"
    UNSUPPORTED_ACTION = "unsupported_action"
    WAIT = "wait"


def decide(run: Run) -> PollDecision:
    """Transition function of the run state machine."""
    if run.status == RunStatus.COMPLETED:
        return PollDecision.SUCCEED
    if run.status in FAILURE_STATUSES:
        return PollDecision.FAIL
    if run.status == RunStatus.REQUIRES_ACTION:
        if isinstance(run.required_action, SubmitToolOutputsAction):
            return PollDecision.SUBMIT_TOOL_OUTPUTS
        return PollDecision.UNSUPPORTED_ACTION
    return PollDecision.WAIT


class PollTimer:
    """Cancellable wait used between status checks."""

    def __init__(self) -> None:
        self._stop = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    def cancel(self) -> None:
        self._stop.set()

    async def wait(self, seconds: float) -> None:
        """Sleep for ``seconds`` unless cancelled first.

        Raises:
            RunCancelled: If the stop signal is set before or during the wait
        """
        if self._stop.is_set():
            raise RunCancelled("Polling cancelled")
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise RunCancelled("Polling cancelled while waiting for run status")


class RunPoller:
    """Drives one run from submission to a terminal state."""

    def __init__(
        self,
        service: AgentsService,
        executor: ToolExecutor,
        *,
        timer: PollTimer | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._service = service
        self._executor = executor
        self._timer = timer or PollTimer()
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts

    async def wait_for_completion(self, thread_id: str, run_id: str) -> Run:
        """
        Poll until the run completes.

        Returns:
            The completed run

        Raises:
            RunTerminalFailure: Run failed, was cancelled or expired, or asked for an unsupported action
            RunTimeout: Attempt cap reached without a terminal state
            RunCancelled: The poll timer was cancelled
        """
        logger.info("Waiting for run %s to complete...", run_id)
        attempts = 0

        while True:
            await self._timer.wait(self._poll_interval)

            run = await self._service.get_run(thread_id, run_id)
            attempts += 1
            logger.debug("Run %s status: %s (attempt %d)", run_id, run.status.value, attempts)

            match decide(run), run.required_action:
                case PollDecision.SUBMIT_TOOL_OUTPUTS, SubmitToolOutputsAction() as action:
                    run = await self._submit_tool_outputs(thread_id, run_id, action)

            match decide(run), run.required_action:
                case PollDecision.SUCCEED, _:
                    logger.info("Run %s completed successfully after %d attempts", run_id, attempts)
                    return run
                case PollDecision.FAIL, _:
                    logger.error("Run %s ended with status %s", run_id, run.status.value)
                    raise RunTerminalFailure(run.status, run.last_error)
                case PollDecision.UNSUPPORTED_ACTION, UnsupportedAction(action_type=kind):
                    raise UnsupportedActionError(kind)
                case PollDecision.UNSUPPORTED_ACTION, _:
                    raise UnsupportedActionError("none")

            if attempts >= self._max_attempts:
                raise RunTimeout(attempts, run.status)

    async def _submit_tool_outputs(
        self, thread_id: str, run_id: str, action: SubmitToolOutputsAction
    ) -> Run:
        calls = action.tool_calls
        logger.info("Run %s requires %d tool output(s)", run_id, len(calls))
        outputs = await self._executor.execute_all(calls)
        if len(outputs) != len(calls):
            raise RuntimeError(
                f"Executor returned {len(outputs)} outputs for {len(calls)} tool calls"
            )

        updated = await self._service.submit_tool_outputs(thread_id, run_id, outputs)
        logger.debug("Submitted tool outputs for run %s; status now %s", run_id, updated.status.value)
        return updated
