"""MCP (Model Context Protocol) server implementation."""

import asyncio
import json
import sys
import time
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from todo_tracker import __version__
from todo_tracker.api import schemas
from todo_tracker.core.store import TodoStore
from todo_tracker.utils.logging import get_logger
from todo_tracker.utils.metrics import get_metrics

logger = get_logger(__name__)
metrics = get_metrics()

PROTOCOL_VERSION = "2024-11-05"

# Tool handler type
ToolHandler = Callable[[dict[str, Any]], Coroutine[Any, Any, dict[str, Any]]]


class MCPError(Exception):
    """MCP protocol error."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


@dataclass(frozen=True)
class ToolAnnotations:
    """Behaviour hints advertised with each tool."""

    read_only: bool
    destructive: bool = False
    idempotent: bool = False
    open_world: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "readOnlyHint": self.read_only,
            "destructiveHint": self.destructive,
            "idempotentHint": self.idempotent,
            "openWorldHint": self.open_world,
        }


READ_ONLY = ToolAnnotations(read_only=True, idempotent=True)


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    title: str
    description: str
    handler: ToolHandler
    input_model: type[BaseModel]
    annotations: ToolAnnotations

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "inputSchema": self.input_model.model_json_schema(),
            "annotations": self.annotations.to_dict(),
        }


class MCPServer:
    """MCP server using stdio transport.

    Exposes every store operation as a named tool. Tool results are JSON
    payloads; denial and not-found come back as `{"success": false, ...}`
    rather than protocol errors. Only malformed arguments and unexpected
    failures produce JSON-RPC errors.
    """

    def __init__(self, store: TodoStore) -> None:
        """Initialize MCP server.

        Args:
            store: Shared store every tool calls through
        """
        self.store = store

        # Tool registry
        self._tools: dict[str, RegisteredTool] = {}

        self._register_tools()

        logger.info("mcp_server_initialized", tools=len(self._tools))

    def _register_tools(self) -> None:
        """Register all MCP tools."""
        from todo_tracker.api.tools.auth import todo_current_user, todo_login, todo_logout
        from todo_tracker.api.tools.projects import (
            todo_add_project,
            todo_delete_project,
            todo_list_projects,
        )
        from todo_tracker.api.tools.users import todo_add_user, todo_list_users

        # Session tools
        self._register_tool(
            "todo_login",
            todo_login,
            schemas.UserIdRequest,
            title="Login to Todo System",
            description=(
                "Login as a user to access the todo system. Default users: "
                "admin1 (full access), manager1 (manage projects and assign tasks), "
                "dev1 and dev2 (manage own tasks), viewer1 (read-only)."
            ),
            annotations=ToolAnnotations(read_only=False, idempotent=True),
        )

        self._register_tool(
            "todo_logout",
            todo_logout,
            schemas.NoArguments,
            title="Logout from Todo System",
            description="Logout the current user from the todo system.",
            annotations=ToolAnnotations(read_only=False, idempotent=True),
        )

        self._register_tool(
            "todo_current_user",
            todo_current_user,
            schemas.NoArguments,
            title="Get Current User",
            description="Get the currently logged in user information.",
            annotations=READ_ONLY,
        )

        # User tools
        self._register_tool(
            "todo_list_users",
            todo_list_users,
            schemas.NoArguments,
            title="List All Users",
            description="Get all users in the system with their roles.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_add_user",
            todo_add_user,
            schemas.AddUserRequest,
            title="Add New User",
            description="Add a new user to the system. Requires 'admin' role.",
            annotations=ToolAnnotations(read_only=False),
        )

        # Project tools
        self._register_tool(
            "todo_list_projects",
            todo_list_projects,
            schemas.NoArguments,
            title="List All Projects",
            description="Get all projects in the system.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_add_project",
            todo_add_project,
            schemas.AddProjectRequest,
            title="Add New Project",
            description="Create a new project. Requires 'admin' or 'manager' role.",
            annotations=ToolAnnotations(read_only=False),
        )

        self._register_tool(
            "todo_delete_project",
            todo_delete_project,
            schemas.ProjectIdRequest,
            title="Delete Project",
            description="Delete a project and all its tasks. Requires 'admin' or 'manager' role.",
            annotations=ToolAnnotations(read_only=False, destructive=True),
        )

        # Todo tools
        from todo_tracker.api.tools.todos import (
            todo_add,
            todo_assign,
            todo_delete,
            todo_list,
            todo_toggle,
            todo_update,
        )

        self._register_tool(
            "todo_list",
            todo_list,
            schemas.NoArguments,
            title="List All Todos",
            description="Get all todos in the system.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_add",
            todo_add,
            schemas.AddTodoRequest,
            title="Add New Todo",
            description=(
                "Create a new todo task. admin/manager can assign to any user, "
                "member can only assign to self, viewer cannot create tasks. "
                "Defaults: assignee is the current user, project is the first project, "
                "date is today, priority medium, importance 3."
            ),
            annotations=ToolAnnotations(read_only=False),
        )

        self._register_tool(
            "todo_update",
            todo_update,
            schemas.UpdateTodoRequest,
            title="Update Todo",
            description="Update an existing todo task. Only the supplied fields change.",
            annotations=ToolAnnotations(read_only=False, idempotent=True),
        )

        self._register_tool(
            "todo_toggle",
            todo_toggle,
            schemas.TodoIdRequest,
            title="Toggle Todo Complete",
            description="Mark a todo as complete or incomplete.",
            annotations=ToolAnnotations(read_only=False),
        )

        self._register_tool(
            "todo_delete",
            todo_delete,
            schemas.TodoIdRequest,
            title="Delete Todo",
            description="Delete a todo task.",
            annotations=ToolAnnotations(read_only=False, destructive=True),
        )

        self._register_tool(
            "todo_assign",
            todo_assign,
            schemas.AssignTodoRequest,
            title="Assign Todo to User",
            description="Assign a todo to a different user. Requires 'admin' or 'manager' role.",
            annotations=ToolAnnotations(read_only=False, idempotent=True),
        )

        # Query tools
        from todo_tracker.api.tools.queries import (
            todo_by_assignee,
            todo_by_date,
            todo_by_project,
            todo_completed,
            todo_overdue,
            todo_pending,
            todo_summary,
            todo_urgent,
        )

        self._register_tool(
            "todo_by_project",
            todo_by_project,
            schemas.ProjectIdRequest,
            title="Get Todos by Project",
            description="Get all todos for a specific project.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_by_assignee",
            todo_by_assignee,
            schemas.UserIdRequest,
            title="Get Todos by Assignee",
            description="Get all todos assigned to a specific user.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_by_date",
            todo_by_date,
            schemas.DateRequest,
            title="Get Todos by Date",
            description="Get all todos for a specific date.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_overdue",
            todo_overdue,
            schemas.NoArguments,
            title="Get Overdue Todos",
            description="Get all overdue (past due date) incomplete todos.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_urgent",
            todo_urgent,
            schemas.NoArguments,
            title="Get Urgent Todos",
            description="Get all urgent priority incomplete todos.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_pending",
            todo_pending,
            schemas.NoArguments,
            title="Get Pending Todos",
            description="Get all incomplete todos.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_completed",
            todo_completed,
            schemas.NoArguments,
            title="Get Completed Todos",
            description="Get all completed todos.",
            annotations=READ_ONLY,
        )

        self._register_tool(
            "todo_summary",
            todo_summary,
            schemas.NoArguments,
            title="Get Todo Summary",
            description="Get a summary of todos for the current user including stats and permissions.",
            annotations=READ_ONLY,
        )

    def _register_tool(
        self,
        name: str,
        handler: ToolHandler,
        input_model: type[BaseModel],
        title: str,
        description: str,
        annotations: ToolAnnotations,
    ) -> None:
        """Register a tool with its handler and input schema.

        Args:
            name: Tool name
            handler: Async handler function
            input_model: Pydantic model the arguments must satisfy
            title: Human-readable title
            description: Tool description
            annotations: Read-only / destructive / idempotent hints
        """
        self._tools[name] = RegisteredTool(
            name=name,
            title=title,
            description=description,
            handler=handler,
            input_model=input_model,
            annotations=annotations,
        )
        logger.debug("tool_registered", name=name)

    async def run(self) -> None:
        """Run the MCP server using stdio transport."""
        logger.info("mcp_server_starting")

        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)

        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        writer_transport, writer_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        writer = asyncio.StreamWriter(writer_transport, writer_protocol, reader, loop)

        try:
            while True:
                # Read JSON-RPC message
                line = await reader.readline()
                if not line:
                    break
                if not line.strip():
                    continue

                response = await self._handle_line(line)
                if response:
                    writer.write((json.dumps(response) + "\n").encode())
                    await writer.drain()

        except asyncio.CancelledError:
            logger.info("mcp_server_cancelled")
        finally:
            writer.close()
            logger.info("mcp_server_stopped")

    async def _handle_line(self, line: bytes) -> dict[str, Any] | None:
        """Decode one stdio frame and dispatch it."""
        try:
            message = json.loads(line.decode())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return self._error_response(None, -32700, f"Parse error: {e}")
        return await self._handle_message(message)

    async def _handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        """Handle an incoming JSON-RPC message.

        Args:
            message: JSON-RPC message

        Returns:
            Response message or None for notifications
        """
        if not isinstance(message, dict):
            return self._error_response(None, -32600, "Invalid request")

        msg_id = message.get("id")
        method = message.get("method", "")
        params = message.get("params") or {}

        if not isinstance(method, str):
            return self._error_response(msg_id, -32600, "Invalid request: method must be a string")

        if method.startswith("notifications/"):
            logger.debug("mcp_notification", method=method)
            return None

        try:
            if method == "initialize":
                return self._handle_initialize(msg_id, params)

            elif method == "tools/list":
                return self._handle_tools_list(msg_id)

            elif method == "tools/call":
                return await self._handle_tool_call(msg_id, params)

            elif method in ("ping", "shutdown"):
                return self._success_response(msg_id, {})

            else:
                return self._error_response(msg_id, -32601, f"Method not found: {method}")

        except MCPError as e:
            return self._error_response(msg_id, e.code, e.message, e.data)
        except Exception as e:
            logger.error("mcp_handler_error", method=method, error=str(e))
            return self._error_response(msg_id, -32603, f"Internal error: {e}")

    def _handle_initialize(self, msg_id: Any, params: dict[str, Any]) -> dict[str, Any]:
        """Handle initialize request.

        Args:
            msg_id: Message ID
            params: Initialize parameters

        Returns:
            Initialize response
        """
        logger.info("mcp_client_initialized", client=params.get("clientInfo", {}).get("name"))
        return self._success_response(
            msg_id,
            {
                "protocolVersion": PROTOCOL_VERSION,
                "serverInfo": {
                    "name": "todo-mcp-server",
                    "version": __version__,
                },
                "capabilities": {
                    "tools": {"listChanged": False},
                },
            },
        )

    def _handle_tools_list(self, msg_id: Any) -> dict[str, Any]:
        tools = [tool.describe() for tool in self._tools.values()]
        return self._success_response(msg_id, {"tools": tools})

    async def _handle_tool_call(self, msg_id: Any, params: dict[str, Any]) -> dict[str, Any]:
        """Handle tools/call request.

        Args:
            msg_id: Message ID
            params: Tool call parameters

        Returns:
            Tool call response
        """
        start = time.perf_counter()
        tool_name = params.get("name", "")
        tool_args = params.get("arguments") or {}

        tool = self._tools.get(tool_name)
        if tool is None:
            raise MCPError(-32602, f"Unknown tool: {tool_name}")

        # Validate input against schema
        try:
            validated = self._validate_input(tool, tool_args)
        except ValidationError as e:
            metrics.record_mcp_tool_call(tool_name, "invalid", time.perf_counter() - start)
            raise MCPError(
                -32602,
                f"Invalid parameters: {e.error_count()} validation error(s)",
                e.errors(include_url=False, include_context=False),
            ) from e

        context = {"store": self.store}

        try:
            result = await tool.handler({**validated, "_context": context})
        except Exception as e:
            metrics.record_mcp_tool_call(tool_name, "error", time.perf_counter() - start)
            logger.error("tool_call_failed", tool=tool_name, error=str(e))
            raise MCPError(-32603, f"Tool execution failed: {e}") from e

        metrics.record_mcp_tool_call(tool_name, "success", time.perf_counter() - start)
        logger.debug("tool_called", tool=tool_name, success=result.get("success"))

        return self._success_response(
            msg_id,
            {
                "content": [
                    {
                        "type": "text",
                        "text": json.dumps(result, indent=2, ensure_ascii=False, default=str),
                    }
                ],
            },
        )

    def _validate_input(self, tool: RegisteredTool, args: Any) -> dict[str, Any]:
        """Validate tool input against its model.

        Args:
            tool: Registered tool
            args: Raw arguments

        Returns:
            Validated arguments, containing only the keys the caller supplied

        Raises:
            ValidationError: If validation fails
        """
        model = tool.input_model.model_validate(args)
        return model.model_dump(mode="json", exclude_unset=True)

    def _success_response(self, msg_id: Any, result: Any) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": msg_id,
            "result": result,
        }

    def _error_response(
        self,
        msg_id: Any,
        code: int,
        message: str,
        data: Any = None,
    ) -> dict[str, Any]:
        """Create an error response.

        Args:
            msg_id: Message ID
            code: Error code
            message: Error message
            data: Additional error data

        Returns:
            JSON-RPC error response
        """
        error: dict[str, Any] = {
            "code": code,
            "message": message,
        }
        if data:
            error["data"] = data

        return {
            "jsonrpc": "2.0",
            "id": msg_id,
            "error": error,
        }
