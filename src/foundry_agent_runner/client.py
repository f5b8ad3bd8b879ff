"""Client for the Azure AI Foundry persistent agents REST API.

``AgentsService`` is the surface the rest of the package depends on;
``FoundryAgentsClient`` implements it over httpx.

API Reference: https://learn.microsoft.com/rest/api/aifoundry/aiagents/
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, AsyncGenerator, Callable, Generator, Protocol, Sequence, TypeVar

import httpx
from azure.identity import DefaultAzureCredential

from .config import Settings
from .errors import ConfigurationError, RemoteCallError
from .http_logging import build_event_hooks
from .models import Agent, AgentSpec, Message, MessageRole, Run, Thread, ToolOutput

logger = logging.getLogger(__name__)

T = TypeVar("T")

TOKEN_SCOPE = "https://ai.azure.com/.default"
DEFAULT_TIMEOUT_SECONDS = 30.0
LIST_PAGE_SIZE = 100
# Refresh the bearer token this many seconds before it expires
TOKEN_REFRESH_MARGIN_SECONDS = 300


class AgentsService(Protocol):
    """Remote operations over agents, threads, messages and runs."""

    async def create_agent(self, spec: AgentSpec) -> Agent: ...

    async def delete_agent(self, agent_id: str) -> None: ...

    async def list_agents(self) -> list[Agent]: ...

    async def create_thread(self) -> Thread: ...

    async def delete_thread(self, thread_id: str) -> None: ...

    async def list_threads(self) -> list[Thread]: ...

    async def create_message(self, thread_id: str, role: MessageRole, text: str) -> Message: ...

    async def list_messages(self, thread_id: str) -> list[Message]: ...

    async def create_run(self, thread_id: str, agent_id: str) -> Run: ...

    async def get_run(self, thread_id: str, run_id: str) -> Run: ...

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: Sequence[ToolOutput]
    ) -> Run: ...

    async def aclose(self) -> None: ...


class AzureTokenAuth(httpx.Auth):
    """Attach an Entra ID bearer token, cached until shortly before expiry.

    The credential is synchronous and may try several sources before it
    answers, so the async flow fetches tokens in a worker thread and the
    event loop stays free to deliver cancellation.
    """

    def __init__(self, credential: Any = None, scope: str = TOKEN_SCOPE) -> None:
        self._credential = credential if credential is not None else DefaultAzureCredential()
        self._scope = scope
        self._token: str | None = None
        self._expires_on = 0.0
        self._lock = threading.Lock()
        self._async_lock = asyncio.Lock()

    def _needs_refresh(self) -> bool:
        return self._token is None or time.time() >= self._expires_on - TOKEN_REFRESH_MARGIN_SECONDS

    def _current_token(self) -> str:
        with self._lock:
            if self._needs_refresh():
                access_token = self._credential.get_token(self._scope)
                self._token = access_token.token
                self._expires_on = float(access_token.expires_on)
                logger.debug("Acquired access token for %s", self._scope)
            return self._token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._current_token()}"
        yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        # One refresh at a time; waiters reuse the token it stores.
        async with self._async_lock:
            token = await asyncio.to_thread(self._current_token)
        request.headers["Authorization"] = f"Bearer {token}"
        yield request

    def close(self) -> None:
        close = getattr(self._credential, "close", None)
        if close is not None:
            close()


class FoundryAgentsClient:
    """httpx implementation of ``AgentsService`` for one project endpoint."""

    def __init__(
        self,
        endpoint: str,
        *,
        api_version: str = "v1",
        auth: httpx.Auth | None = None,
        event_hooks: dict[str, list[Any]] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        if not endpoint or not endpoint.strip():
            raise ConfigurationError("A project endpoint is required to build the agents client")

        # A credential built here is closed with the client
        self._owned_auth = AzureTokenAuth() if auth is None else None
        self._http = httpx.AsyncClient(
            base_url=endpoint.strip().rstrip("/"),
            params={"api-version": api_version},
            headers={"Content-Type": "application/json"},
            auth=auth if auth is not None else self._owned_auth,
            event_hooks=event_hooks,
            transport=transport,
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> FoundryAgentsClient:
        event_hooks = None
        if settings.http_logging_enabled:
            event_hooks = build_event_hooks(
                log_request_body=settings.http_log_request_body,
                log_response_body=settings.http_log_response_body,
            )
        logger.debug("Initializing agents client for %s", settings.project_endpoint)
        return cls(
            settings.project_endpoint or "",
            api_version=settings.agents_api_version,
            event_hooks=event_hooks,
        )

    async def aclose(self) -> None:
        try:
            await self._http.aclose()
        finally:
            if self._owned_auth is not None:
                self._owned_auth.close()

    async def __aenter__(self) -> FoundryAgentsClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -- Transport helpers ---------------------------------------------------

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(method, path, json=json, params=params)
        except httpx.HTTPError as e:
            raise RemoteCallError(operation, str(e) or type(e).__name__, cause=e) from e

        if not response.is_success:
            raise RemoteCallError(
                operation,
                f"({response.status_code}) {response.text[:500]}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise RemoteCallError(operation, "response body is not valid JSON", cause=e) from e

    def _parse(self, operation: str, parser: Callable[[dict[str, Any]], T], data: dict[str, Any]) -> T:
        try:
            return parser(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RemoteCallError(operation, f"unexpected response: {e}", cause=e) from e

    async def _list(self, operation: str, path: str, **params: Any) -> list[dict[str, Any]]:
        """Fetch every page of a cursor-paginated list endpoint."""
        items: list[dict[str, Any]] = []
        query: dict[str, Any] = {"limit": LIST_PAGE_SIZE, **params}

        while True:
            page = await self._request(operation, "GET", path, params=query)
            data = page.get("data") or []
            items.extend(data)
            last_id = page.get("last_id") or (data[-1].get("id") if data else None)
            if not page.get("has_more") or not last_id:
                return items
            query["after"] = last_id

    # -- Agents ---------------------------------------------------------------

    async def create_agent(self, spec: AgentSpec) -> Agent:
        data = await self._request("create_agent", "POST", "/assistants", json=spec.to_dict())
        return self._parse("create_agent", Agent.from_dict, data)

    async def delete_agent(self, agent_id: str) -> None:
        await self._request("delete_agent", "DELETE", f"/assistants/{agent_id}")

    async def list_agents(self) -> list[Agent]:
        items = await self._list("list_agents", "/assistants")
        return [self._parse("list_agents", Agent.from_dict, item) for item in items]

    # -- Threads --------------------------------------------------------------

    async def create_thread(self) -> Thread:
        data = await self._request("create_thread", "POST", "/threads", json={})
        return self._parse("create_thread", Thread.from_dict, data)

    async def delete_thread(self, thread_id: str) -> None:
        await self._request("delete_thread", "DELETE", f"/threads/{thread_id}")

    async def list_threads(self) -> list[Thread]:
        items = await self._list("list_threads", "/threads")
        return [self._parse("list_threads", Thread.from_dict, item) for item in items]

    # -- Messages -------------------------------------------------------------

    async def create_message(self, thread_id: str, role: MessageRole, text: str) -> Message:
        data = await self._request(
            "create_message",
            "POST",
            f"/threads/{thread_id}/messages",
            json={"role": role.to_wire(), "content": text},
        )
        return self._parse("create_message", Message.from_dict, data)

    async def list_messages(self, thread_id: str) -> list[Message]:
        items = await self._list("list_messages", f"/threads/{thread_id}/messages", order="asc")
        return [self._parse("list_messages", Message.from_dict, item) for item in items]

    # -- Runs -----------------------------------------------------------------

    async def create_run(self, thread_id: str, agent_id: str) -> Run:
        data = await self._request(
            "create_run",
            "POST",
            f"/threads/{thread_id}/runs",
            json={"assistant_id": agent_id},
        )
        return self._parse("create_run", Run.from_dict, data)

    async def get_run(self, thread_id: str, run_id: str) -> Run:
        data = await self._request("get_run", "GET", f"/threads/{thread_id}/runs/{run_id}")
        return self._parse("get_run", Run.from_dict, data)

    async def submit_tool_outputs(
        self, thread_id: str, run_id: str, outputs: Sequence[ToolOutput]
    ) -> Run:
        data = await self._request(
            "submit_tool_outputs",
            "POST",
            f"/threads/{thread_id}/runs/{run_id}/submit_tool_outputs",
            json={"tool_outputs": [output.to_dict() for output in outputs]},
        )
        return self._parse("submit_tool_outputs", Run.from_dict, data)
