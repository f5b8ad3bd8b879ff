"""Entry point for running the Foundry agent workflow."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from .config import Settings, get_settings
from .errors import WorkflowError
from .workflow import AgentWorkflow

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("foundry_agent_runner").setLevel(level)
    # The agents client logs its own traffic when HTTP logging is enabled
    logging.getLogger("httpx").setLevel(logging.WARNING)


def display_application_info(settings: Settings) -> None:
    logger.info("Agent Name: %s", settings.agent_name)
    logger.info("Model Deployment: %s", settings.model_deployment_name)
    if settings.has_project_endpoint:
        logger.info("Project Endpoint: %s", settings.project_endpoint)
    else:
        logger.warning("Project Endpoint not configured. Please set PROJECT_ENDPOINT environment variable.")
    logger.info("HTTP Logging Enabled: %s", settings.http_logging_enabled)


async def run_workflow(settings: Settings) -> None:
    workflow = AgentWorkflow(settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, workflow.cancel)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on this platform/loop
            pass

    await workflow.run()


def main() -> int:
    """Run the agent workflow once and return a process exit code."""
    try:
        settings = get_settings()
    except ValidationError as e:
        configure_logging("INFO")
        logger.error("Invalid configuration: %s", e)
        return 1
    configure_logging(settings.log_level)

    logger.info("=== Foundry Agent Application Starting ===")
    if settings.skip_execution:
        logger.info("Agent execution skipped due to configuration")
        return 0

    display_application_info(settings)

    try:
        asyncio.run(run_workflow(settings))
    except WorkflowError as e:
        logger.exception("%s: %s", e.message, e.cause)
        return 1

    logger.info("=== Foundry Agent Application Completed ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
