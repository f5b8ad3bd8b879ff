"""Run Python snippets supplied by the agent in a subprocess."""

from __future__ import annotations

import logging
import subprocess
import sys
from functools import partial

from ..errors import ToolExecutionError

logger = logging.getLogger(__name__)

PYTHON_CODE_RUNNER = "pythonCodeRunner"

PYTHON_CODE_RUNNER_DESCRIPTION = "Execute Python code"

PYTHON_CODE_RUNNER_PARAMETERS = {
    "type": "object",
    "properties": {
        "code": {
            "type": "string",
            "description": "The Python code to execute",
        },
    },
    "required": ["code"],
}

DEFAULT_TIMEOUT_SECONDS = 30.0


def run_python_code(
    code: str,
    *,
    interpreter: str = sys.executable,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> str:
    """
    Execute ``code`` with ``interpreter -c`` and return its combined output.

    stderr is merged into stdout so tracebacks reach the agent. A run that
    exceeds ``timeout`` is killed and reported as text.

    Raises:
        ToolExecutionError: If the interpreter cannot be started
    """
    logger.info("Executing Python code (%d chars)", len(code))
    logger.debug("Python code: %s", code)

    try:
        result = subprocess.run(
            [interpreter, "-c", code],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning("Python code timed out after %ss", timeout)
        return f"Error: code execution timed out after {timeout:g}s"
    except OSError as e:
        raise ToolExecutionError(
            PYTHON_CODE_RUNNER,
            f"Could not start Python interpreter {interpreter!r}: {e}",
            cause=e,
        ) from e

    if result.returncode != 0:
        logger.info("Python code exited with status %d", result.returncode)
    return result.stdout or ""


def make_python_code_runner(interpreter: str, timeout: float):
    """Bind interpreter and timeout into a ``str -> str`` handler."""
    return partial(run_python_code, interpreter=interpreter, timeout=timeout)
