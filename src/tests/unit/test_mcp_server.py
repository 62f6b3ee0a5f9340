"""Unit tests for the MCP server protocol handling."""

import json
from typing import Any

import pytest

from todo_tracker.api.mcp_server import PROTOCOL_VERSION, MCPServer
from todo_tracker.core.store import TodoStore

EXPECTED_TOOLS = {
    "todo_login",
    "todo_logout",
    "todo_current_user",
    "todo_list_users",
    "todo_add_user",
    "todo_list_projects",
    "todo_add_project",
    "todo_delete_project",
    "todo_list",
    "todo_add",
    "todo_update",
    "todo_toggle",
    "todo_delete",
    "todo_assign",
    "todo_by_project",
    "todo_by_assignee",
    "todo_by_date",
    "todo_overdue",
    "todo_urgent",
    "todo_pending",
    "todo_completed",
    "todo_summary",
}


def tool_payload(response: dict[str, Any]) -> dict[str, Any]:
    """Decode the JSON text content of a tools/call result."""
    content = response["result"]["content"]
    assert content[0]["type"] == "text"
    return json.loads(content[0]["text"])


class TestMCPServer:
    """Tests for MCPServer construction and the tool registry."""

    @pytest.fixture
    def server(self, store: TodoStore) -> MCPServer:
        return MCPServer(store)

    def test_server_initialization(self, server: MCPServer, store: TodoStore) -> None:
        """Test the server keeps the injected store."""
        assert server.store is store

    def test_all_tools_registered(self, server: MCPServer) -> None:
        """Test every store operation is exposed as a tool."""
        assert set(server._tools) == EXPECTED_TOOLS

    def test_query_tools_are_read_only(self, server: MCPServer) -> None:
        """Test annotations on read-only tools."""
        for name in ("todo_list", "todo_summary", "todo_overdue", "todo_current_user"):
            hints = server._tools[name].annotations.to_dict()
            assert hints["readOnlyHint"] is True, name

    def test_delete_tools_are_destructive(self, server: MCPServer) -> None:
        """Test annotations on destructive tools."""
        for name in ("todo_delete", "todo_delete_project"):
            hints = server._tools[name].annotations.to_dict()
            assert hints["readOnlyHint"] is False, name
            assert hints["destructiveHint"] is True, name


class TestProtocolMessages:
    """Tests for JSON-RPC message handling."""

    @pytest.fixture
    def server(self, store: TodoStore) -> MCPServer:
        return MCPServer(store)

    @pytest.mark.asyncio
    async def test_initialize(self, server: MCPServer) -> None:
        """Test the initialize handshake."""
        response = await server._handle_message(
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"clientInfo": {"name": "pytest"}}}
        )

        assert response["id"] == 1
        result = response["result"]
        assert result["protocolVersion"] == PROTOCOL_VERSION
        assert result["serverInfo"]["name"] == "todo-mcp-server"
        assert "tools" in result["capabilities"]

    @pytest.mark.asyncio
    async def test_notification_has_no_response(self, server: MCPServer) -> None:
        """Test notifications are not answered."""
        response = await server._handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"})

        assert response is None

    @pytest.mark.asyncio
    async def test_tools_list(self, server: MCPServer) -> None:
        """Test tools/list describes each tool with a schema."""
        response = await server._handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})

        tools = {tool["name"]: tool for tool in response["result"]["tools"]}
        assert set(tools) == EXPECTED_TOOLS
        add = tools["todo_add"]
        assert add["inputSchema"]["required"] == ["title"]
        assert "priority" in add["inputSchema"]["properties"]
        assert set(add["annotations"]) == {"readOnlyHint", "destructiveHint", "idempotentHint", "openWorldHint"}

    @pytest.mark.asyncio
    async def test_ping(self, server: MCPServer) -> None:
        """Test ping answers with an empty result."""
        response = await server._handle_message({"jsonrpc": "2.0", "id": 3, "method": "ping"})

        assert response["result"] == {}

    @pytest.mark.asyncio
    async def test_unknown_method(self, server: MCPServer) -> None:
        """Test unknown methods return method-not-found."""
        response = await server._handle_message({"jsonrpc": "2.0", "id": 4, "method": "resources/list"})

        assert response["error"]["code"] == -32601

    @pytest.mark.asyncio
    async def test_invalid_request(self, server: MCPServer) -> None:
        """Test a non-object message is rejected."""
        response = await server._handle_message(["not", "an", "object"])

        assert response["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_non_string_method(self, server: MCPServer) -> None:
        """Test a numeric method is an invalid request, not a crash."""
        response = await server._handle_message({"jsonrpc": "2.0", "id": 1, "method": 5})

        assert response["id"] == 1
        assert response["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_line_with_invalid_utf8(self, server: MCPServer) -> None:
        """Test undecodable bytes yield a parse error."""
        response = await server._handle_line(b'{"method": "\xff\xfe"}\n')

        assert response["error"]["code"] == -32700

    @pytest.mark.asyncio
    async def test_line_with_invalid_json(self, server: MCPServer) -> None:
        response = await server._handle_line(b"{not json\n")

        assert response["error"]["code"] == -32700

    @pytest.mark.asyncio
    async def test_line_dispatches_request(self, server: MCPServer) -> None:
        """Test a well-formed frame reaches the method handlers."""
        response = await server._handle_line(b'{"jsonrpc": "2.0", "id": 9, "method": "ping"}\n')

        assert response == {"jsonrpc": "2.0", "id": 9, "result": {}}


class TestToolCalls:
    """Tests for tools/call dispatch."""

    @pytest.fixture
    def server(self, store: TodoStore) -> MCPServer:
        return MCPServer(store)

    async def call(self, server: MCPServer, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        return await server._handle_message(
            {
                "jsonrpc": "2.0",
                "id": 10,
                "method": "tools/call",
                "params": {"name": name, "arguments": arguments or {}},
            }
        )

    @pytest.mark.asyncio
    async def test_login_and_add(self, server: MCPServer) -> None:
        """Test a successful tool round trip through the protocol."""
        login = tool_payload(await self.call(server, "todo_login", {"user_id": "dev1"}))
        assert login["success"] is True
        assert login["user"]["id"] == "dev1"

        added = tool_payload(await self.call(server, "todo_add", {"title": "Fix bug", "priority": "high"}))
        assert added["success"] is True
        assert added["todo"]["assigneeId"] == "dev1"
        assert added["todo"]["priority"] == "high"

    @pytest.mark.asyncio
    async def test_denial_is_a_payload_not_an_error(self, server: MCPServer) -> None:
        """Test a refused operation returns success false inside the result."""
        response = await self.call(server, "todo_add", {"title": "No session"})

        assert "error" not in response
        payload = tool_payload(response)
        assert payload == {"success": False, "error": "Permission denied or failed to create todo"}

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server: MCPServer) -> None:
        """Test calling an unregistered tool is an invalid-params error."""
        response = await self.call(server, "todo_frobnicate")

        assert response["error"]["code"] == -32602
        assert "Unknown tool" in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_missing_required_argument(self, server: MCPServer) -> None:
        """Test schema violations are rejected before the store is touched."""
        response = await self.call(server, "todo_login", {})

        assert response["error"]["code"] == -32602
        assert list(response["error"]["data"][0]["loc"]) == ["user_id"]

    @pytest.mark.asyncio
    async def test_invalid_enum_argument(self, server: MCPServer, store: TodoStore) -> None:
        """Test an invalid priority never reaches the store."""
        await self.call(server, "todo_login", {"user_id": "admin1"})

        response = await self.call(server, "todo_add", {"title": "x", "priority": "whenever"})

        assert response["error"]["code"] == -32602
        store.reload()
        assert store.get_todos() == []

    @pytest.mark.asyncio
    async def test_unexpected_argument(self, server: MCPServer) -> None:
        """Test unknown keys are rejected."""
        response = await self.call(server, "todo_list", {"limit": 5})

        assert response["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_handler_failure_is_internal_error(self, server: MCPServer, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an unexpected exception in a handler maps to -32603."""

        def explode() -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(server.store, "reload", explode)

        response = await self.call(server, "todo_list")

        assert response["error"]["code"] == -32603
        assert "boom" in response["error"]["message"]
