"""Tests for the httpx agents client."""

from __future__ import annotations

import asyncio
import json
import time
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest

from foundry_agent_runner.client import AzureTokenAuth, FoundryAgentsClient
from foundry_agent_runner.errors import ConfigurationError, RemoteCallError
from foundry_agent_runner.models import (
    AgentSpec,
    FunctionCall,
    ImageReference,
    MessageRole,
    RunStatus,
    SubmitToolOutputsAction,
    TextContent,
    ToolDefinition,
    ToolOutput,
)

ENDPOINT = "https://test.services.ai.azure.com/api/projects/test"


class StaticAuth(httpx.Auth):
    def auth_flow(self, request):
        request.headers["Authorization"] = "Bearer test-token"
        yield request


def make_client(handler) -> FoundryAgentsClient:
    return FoundryAgentsClient(
        ENDPOINT,
        auth=StaticAuth(),
        transport=httpx.MockTransport(handler),
    )


class TestFoundryAgentsClient:
    """Tests for FoundryAgentsClient request shapes and parsing."""

    @pytest.mark.asyncio
    async def test_create_agent(self):
        """Posts the agent definition with api-version and bearer token."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(
                200,
                json={"id": "asst_1", "name": "my-agent", "model": "gpt-4.1", "tools": []},
            )

        client = make_client(handler)
        spec = AgentSpec(
            model="gpt-4.1",
            name="my-agent",
            instructions="Be helpful.",
            tools=[ToolDefinition(name="pythonCodeRunner", description="Execute Python code")],
        )

        agent = await client.create_agent(spec)
        await client.aclose()

        request = seen["request"]
        assert request.method == "POST"
        assert request.url.path == "/api/projects/test/assistants"
        assert request.url.params["api-version"] == "v1"
        assert request.headers["Authorization"] == "Bearer test-token"
        body = json.loads(request.content)
        assert body["model"] == "gpt-4.1"
        assert body["tools"][0]["function"]["name"] == "pythonCodeRunner"
        assert agent.id == "asst_1"

    @pytest.mark.asyncio
    async def test_get_run_parses_required_action(self):
        """Tool-call requests are parsed into FunctionCall variants."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path.endswith("/threads/thread_1/runs/run_1")
            return httpx.Response(
                200,
                json={
                    "id": "run_1",
                    "thread_id": "thread_1",
                    "assistant_id": "asst_1",
                    "status": "requires_action",
                    "required_action": {
                        "type": "submit_tool_outputs",
                        "submit_tool_outputs": {
                            "tool_calls": [
                                {
                                    "id": "call_1",
                                    "type": "function",
                                    "function": {"name": "sum", "arguments": '{"code":"1+1"}'},
                                }
                            ]
                        },
                    },
                },
            )

        client = make_client(handler)
        run = await client.get_run("thread_1", "run_1")

        assert run.status == RunStatus.REQUIRES_ACTION
        assert run.agent_id == "asst_1"
        assert isinstance(run.required_action, SubmitToolOutputsAction)
        assert run.required_action.tool_calls == (
            FunctionCall(id="call_1", name="sum", arguments='{"code":"1+1"}'),
        )

    @pytest.mark.asyncio
    async def test_submit_tool_outputs(self):
        """Outputs are posted in order under tool_outputs."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "run_1", "status": "queued"})

        client = make_client(handler)
        run = await client.submit_tool_outputs(
            "thread_1", "run_1", [ToolOutput("a", "1"), ToolOutput("b", "2")]
        )

        assert seen["path"].endswith("/threads/thread_1/runs/run_1/submit_tool_outputs")
        assert seen["body"] == {
            "tool_outputs": [
                {"tool_call_id": "a", "output": "1"},
                {"tool_call_id": "b", "output": "2"},
            ]
        }
        assert run.status == RunStatus.QUEUED

    @pytest.mark.asyncio
    async def test_create_message_uses_wire_role(self):
        """User messages are posted with role and text content."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "id": "msg_1",
                    "thread_id": "thread_1",
                    "role": "user",
                    "created_at": 1700000000,
                    "content": [{"type": "text", "text": {"value": "Hi", "annotations": []}}],
                },
            )

        client = make_client(handler)
        message = await client.create_message("thread_1", MessageRole.USER, "Hi")

        assert seen["body"] == {"role": "user", "content": "Hi"}
        assert message.content == (TextContent("Hi"),)

    @pytest.mark.asyncio
    async def test_list_messages_follows_pagination(self):
        """List calls follow has_more/last_id and request ascending order."""
        requests = []
        pages = [
            {
                "data": [
                    {
                        "id": "msg_1",
                        "role": "user",
                        "created_at": 1700000000,
                        "content": [{"type": "text", "text": {"value": "Hi"}}],
                    }
                ],
                "has_more": True,
                "last_id": "msg_1",
            },
            {
                "data": [
                    {
                        "id": "msg_2",
                        "role": "assistant",
                        "created_at": 1700000005,
                        "content": [{"type": "image_file", "image_file": {"file_id": "file_9"}}],
                    }
                ],
                "has_more": False,
                "last_id": "msg_2",
            },
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=pages[len(requests) - 1])

        client = make_client(handler)
        messages = await client.list_messages("thread_1")

        assert [m.id for m in messages] == ["msg_1", "msg_2"]
        assert messages[1].role == MessageRole.AGENT
        assert messages[1].content == (ImageReference("file_9"),)
        assert requests[0].url.params["order"] == "asc"
        assert "after" not in requests[0].url.params
        assert requests[1].url.params["after"] == "msg_1"

    @pytest.mark.asyncio
    async def test_delete_endpoints(self):
        """Deletes hit the resource paths."""
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append((request.method, request.url.path))
            return httpx.Response(200, json={"id": "x", "deleted": True})

        client = make_client(handler)
        await client.delete_thread("thread_1")
        await client.delete_agent("asst_1")

        assert paths == [
            ("DELETE", "/api/projects/test/threads/thread_1"),
            ("DELETE", "/api/projects/test/assistants/asst_1"),
        ]

    @pytest.mark.asyncio
    async def test_error_status_raises_remote_call_error(self):
        """Non-2xx responses raise RemoteCallError with status and body."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="thread not found")

        client = make_client(handler)
        with pytest.raises(RemoteCallError) as exc_info:
            await client.get_run("thread_1", "run_1")

        assert exc_info.value.status_code == 404
        assert exc_info.value.operation == "get_run"
        assert "thread not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises_remote_call_error(self):
        """Connection failures are wrapped as well."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(RemoteCallError) as exc_info:
            await client.create_thread()

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_requires_endpoint(self):
        """Building a client without an endpoint is a configuration error."""
        with pytest.raises(ConfigurationError):
            FoundryAgentsClient("", auth=StaticAuth())

    @pytest.mark.asyncio
    async def test_unknown_run_status_raises_remote_call_error(self):
        """A status the client does not know is reported as a remote call failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"id": "run_1", "status": "incomplete"})

        client = make_client(handler)
        with pytest.raises(RemoteCallError) as exc_info:
            await client.get_run("thread_1", "run_1")

        assert exc_info.value.operation == "get_run"
        assert isinstance(exc_info.value.cause, ValueError)
        assert "incomplete" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_list_item_raises_remote_call_error(self):
        """A list entry missing its id is wrapped with the list operation name."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [{"name": "no-id"}], "has_more": False})

        client = make_client(handler)
        with pytest.raises(RemoteCallError) as exc_info:
            await client.list_agents()

        assert exc_info.value.operation == "list_agents"

    @pytest.mark.asyncio
    async def test_aclose_closes_default_credential(self):
        """A credential the client creates itself is closed with it."""
        with patch("foundry_agent_runner.client.DefaultAzureCredential") as credential_cls:
            client = FoundryAgentsClient(
                ENDPOINT, transport=httpx.MockTransport(lambda request: httpx.Response(200))
            )
            await client.aclose()

        credential_cls.return_value.close.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_auth_open(self):
        """Auth passed in by the caller stays the caller's to close."""
        credential = MagicMock()
        client = FoundryAgentsClient(
            ENDPOINT,
            auth=AzureTokenAuth(credential),
            transport=httpx.MockTransport(lambda request: httpx.Response(200)),
        )
        await client.aclose()

        credential.close.assert_not_called()


class TestAzureTokenAuth:
    """Tests for AzureTokenAuth."""

    def test_token_is_cached(self):
        """The credential is only asked once while the token is fresh."""
        credential = MagicMock()
        credential.get_token.return_value = SimpleNamespace(token="abc", expires_on=4102444800)
        auth = AzureTokenAuth(credential)

        for _ in range(2):
            request = httpx.Request("GET", ENDPOINT)
            flow = auth.auth_flow(request)
            next(flow)
            assert request.headers["Authorization"] == "Bearer abc"

        credential.get_token.assert_called_once_with("https://ai.azure.com/.default")

    def test_expired_token_is_refreshed(self):
        """An expiring token is fetched again."""
        credential = MagicMock()
        credential.get_token.side_effect = [
            SimpleNamespace(token="old", expires_on=0),
            SimpleNamespace(token="new", expires_on=4102444800),
        ]
        auth = AzureTokenAuth(credential)

        first = httpx.Request("GET", ENDPOINT)
        next(auth.auth_flow(first))
        second = httpx.Request("GET", ENDPOINT)
        next(auth.auth_flow(second))

        assert first.headers["Authorization"] == "Bearer old"
        assert second.headers["Authorization"] == "Bearer new"

    @pytest.mark.asyncio
    async def test_slow_credential_does_not_block_event_loop(self):
        """Other tasks keep running while the credential fetches a token."""

        def slow_get_token(scope):
            time.sleep(0.5)
            return SimpleNamespace(token="slow", expires_on=4102444800)

        credential = MagicMock()
        credential.get_token.side_effect = slow_get_token
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["authorization"] = request.headers["Authorization"]
            return httpx.Response(200, json={"id": "run_1", "status": "completed"})

        client = FoundryAgentsClient(
            ENDPOINT, auth=AzureTokenAuth(credential), transport=httpx.MockTransport(handler)
        )
        ticks = []

        async def ticker():
            while True:
                ticks.append(time.monotonic())
                await asyncio.sleep(0.05)

        ticking = asyncio.create_task(ticker())
        try:
            run = await client.get_run("thread_1", "run_1")
        finally:
            ticking.cancel()
            await client.aclose()

        gaps = [later - earlier for earlier, later in zip(ticks, ticks[1:])]
        assert run.status == RunStatus.COMPLETED
        assert seen["authorization"] == "Bearer slow"
        assert len(ticks) >= 5
        assert max(gaps) < 0.25

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_refresh(self):
        """Requests waiting on a refresh reuse the token it fetched."""
        credential = MagicMock()
        credential.get_token.return_value = SimpleNamespace(token="abc", expires_on=4102444800)
        client = FoundryAgentsClient(
            ENDPOINT,
            auth=AzureTokenAuth(credential),
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"id": "thread_1"})
            ),
        )

        await asyncio.gather(client.create_thread(), client.create_thread())
        await client.aclose()

        credential.get_token.assert_called_once_with("https://ai.azure.com/.default")

    def test_close_closes_credential(self):
        credential = MagicMock()
        AzureTokenAuth(credential).close()

        credential.close.assert_called_once_with()
