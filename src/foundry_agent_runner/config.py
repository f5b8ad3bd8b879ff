"""Runtime configuration for the Foundry agent runner."""

from __future__ import annotations

import sys
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the Foundry agent runner."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Azure AI Foundry project
    project_endpoint: str | None = Field(default=None, alias="PROJECT_ENDPOINT")
    agents_api_version: str = Field(default="v1", alias="AGENTS_API_VERSION")

    # Agent definition
    model_deployment_name: str = Field(default="gpt-4.1", alias="MODEL_DEPLOYMENT_NAME")
    agent_name: str = Field(default="my-agent", alias="AGENT_NAME")
    instructions: str = Field(
        default=(
            "You are a helpful AI assistant that can run math problems and create visualizations."
        ),
        alias="AGENT_INSTRUCTIONS",
    )
    user_message: str = Field(
        default=(
            "Hi, Agent! Draw a graph for a line with a slope of 4 and y-intercept of 9 "
            "using Python code and run the code using the pythonCodeRunner tool."
        ),
        alias="AGENT_USER_MESSAGE",
    )

    # HTTP logging
    http_logging_enabled: bool = Field(default=False, alias="HTTP_LOGGING_ENABLED")
    http_log_request_body: bool = Field(default=False, alias="HTTP_LOG_REQUEST_BODY")
    http_log_response_body: bool = Field(default=False, alias="HTTP_LOG_RESPONSE_BODY")

    # Run polling
    poll_interval_seconds: float = Field(default=2.0, alias="POLL_INTERVAL_SECONDS", ge=0)
    poll_max_attempts: int = Field(default=30, alias="POLL_MAX_ATTEMPTS", ge=1)

    # Local tools
    tool_timeout_seconds: float = Field(default=30.0, alias="TOOL_TIMEOUT_SECONDS", gt=0)
    tool_output_limit: int = Field(default=8000, alias="TOOL_OUTPUT_LIMIT", ge=1)
    python_executable: str = Field(default=sys.executable, alias="PYTHON_EXECUTABLE")

    # Which remote resources are removed after the run
    cleanup_scope: Literal["all", "created"] = Field(default="all", alias="CLEANUP_SCOPE")

    skip_execution: bool = Field(default=False, alias="AGENT_SKIP_EXECUTION")
    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def has_project_endpoint(self) -> bool:
        return bool(self.project_endpoint and self.project_endpoint.strip())


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
