"""Helpers shared by the MCP tool handlers."""

from typing import Any

from todo_tracker.core.store import TodoStore
from todo_tracker.models import Todo


def fresh_store(params: dict[str, Any]) -> TodoStore:
    """Get the injected store, reloaded from its backing file.

    Every tool call starts here so writes made by the other front-end are
    visible.
    """
    store: TodoStore = params["_context"]["store"]
    store.reload()
    return store


def arguments(params: dict[str, Any]) -> dict[str, Any]:
    """Tool arguments without the injected context."""
    return {key: value for key, value in params.items() if key != "_context"}


def todo_list_payload(todos: list[Todo], **extra: Any) -> dict[str, Any]:
    """Standard `{..., todos, count}` payload for list and query tools."""
    return {
        **extra,
        "todos": [todo.to_payload() for todo in todos],
        "count": len(todos),
    }


def denied(message: str) -> dict[str, Any]:
    """Failure payload. Denial and not-found share one message on purpose."""
    return {"success": False, "error": message}
