"""Integration tests: the MCP server and the dashboard sharing one data file.

Each front-end owns its own store, exactly as two separate processes
would, and the only channel between them is the JSON file.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from todo_tracker.api.http_server import create_http_server
from todo_tracker.api.mcp_server import MCPServer
from todo_tracker.config import Settings
from todo_tracker.core.store import TodoStore

pytestmark = pytest.mark.integration


@pytest.fixture
def mcp_server(store_factory: Callable[[], TodoStore]) -> MCPServer:
    return MCPServer(store_factory())


@pytest.fixture
def web(store_factory: Callable[[], TodoStore], test_settings: Settings) -> TestClient:
    return TestClient(create_http_server(store_factory(), settings=test_settings))


async def call_tool(server: MCPServer, name: str, **arguments: Any) -> dict[str, Any]:
    response = await server._handle_message(
        {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": name, "arguments": arguments}}
    )
    return json.loads(response["result"]["content"][0]["text"])


class TestCrossFrontEndVisibility:
    """Writes through one front-end are visible through the other."""

    @pytest.mark.asyncio
    async def test_mcp_write_visible_on_dashboard(self, mcp_server: MCPServer, web: TestClient) -> None:
        await call_tool(mcp_server, "todo_login", user_id="dev1")
        added = await call_tool(mcp_server, "todo_add", title="From the assistant", priority="urgent")

        todos = web.get("/api/todos").json()

        assert [t["id"] for t in todos] == [added["todo"]["id"]]
        assert web.get("/api/current-user").json()["id"] == "dev1"
        assert web.get("/api/summary").json()["global"]["urgent"] == 1

    @pytest.mark.asyncio
    async def test_dashboard_write_visible_to_mcp(self, mcp_server: MCPServer, web: TestClient) -> None:
        web.post("/api/login", json={"user_id": "manager1"})
        project = web.post("/api/projects", json={"name": "Launch", "color": "#123abc"}).json()["project"]
        web.post("/api/todos", json={"title": "Press release", "project_id": project["id"], "assignee_id": "dev2"})

        listed = await call_tool(mcp_server, "todo_by_project", project_id=project["id"])

        assert listed["project"] == "Launch"
        assert [t["title"] for t in listed["todos"]] == ["Press release"]

    @pytest.mark.asyncio
    async def test_session_is_shared(self, mcp_server: MCPServer, web: TestClient) -> None:
        """Test logging out on the dashboard ends the assistant's session."""
        await call_tool(mcp_server, "todo_login", user_id="admin1")

        web.post("/api/logout")

        assert await call_tool(mcp_server, "todo_current_user") == {"error": "Not logged in"}
        denied = await call_tool(mcp_server, "todo_add", title="After logout")
        assert denied["success"] is False

    @pytest.mark.asyncio
    async def test_cascade_delete_seen_by_both(self, mcp_server: MCPServer, web: TestClient, data_file: Path) -> None:
        await call_tool(mcp_server, "todo_login", user_id="admin1")
        for title in ("one", "two"):
            await call_tool(mcp_server, "todo_add", title=title, project_id="proj2")
        await call_tool(mcp_server, "todo_add", title="three", project_id="proj3")

        assert web.delete("/api/projects/proj2").status_code == 200

        remaining = await call_tool(mcp_server, "todo_list")
        assert [t["title"] for t in remaining["todos"]] == ["three"]
        document = json.loads(data_file.read_text(encoding="utf-8"))
        assert [p["id"] for p in document["projects"]] == ["proj1", "proj3", "proj4"]

    @pytest.mark.asyncio
    async def test_ownership_scenario_across_front_ends(self, mcp_server: MCPServer, web: TestClient) -> None:
        """Test creator, unrelated member and admin edits, switching transports."""
        await call_tool(mcp_server, "todo_login", user_id="dev1")
        todo = (await call_tool(mcp_server, "todo_add", title="Fix bug"))["todo"]
        assert todo["assigneeId"] == "dev1"

        web.post("/api/login", json={"user_id": "dev2"})
        assert web.put(f"/api/todos/{todo['id']}", json={"title": "x"}).status_code == 403

        await call_tool(mcp_server, "todo_login", user_id="admin1")
        updated = await call_tool(mcp_server, "todo_update", todo_id=todo["id"], title="x")
        assert updated["todo"]["title"] == "x"
        assert web.get("/api/todos").json()[0]["title"] == "x"
