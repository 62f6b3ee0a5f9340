"""MCP tools for todo CRUD, completion and assignment."""

from typing import Any

from todo_tracker.api.schemas import UpdateTodoFields
from todo_tracker.api.tools.context import arguments, denied, fresh_store, todo_list_payload


async def todo_list(params: dict[str, Any]) -> dict[str, Any]:
    """List every todo."""
    store = fresh_store(params)
    return todo_list_payload(store.get_todos())


async def todo_add(params: dict[str, Any]) -> dict[str, Any]:
    """Create a todo.

    Role rules: admins and managers may assign to anyone, members only to
    themselves, viewers cannot create tasks.

    Args:
        params: Tool parameters including:
            - title: Task title
            - project_id, assignee_id, date, time, priority, importance,
              note: optional, see the input schema
            - _context: Injected service context

    Returns:
        `{success, todo}` or a failure payload
    """
    store = fresh_store(params)
    todo = store.add_todo(
        title=params["title"],
        project_id=params.get("project_id"),
        assignee_id=params.get("assignee_id"),
        date=params.get("date"),
        time=params.get("time"),
        priority=params.get("priority"),
        importance=params.get("importance"),
        note=params.get("note"),
    )
    if todo is None:
        return denied("Permission denied or failed to create todo")
    return {"success": True, "todo": todo.to_payload()}


async def todo_update(params: dict[str, Any]) -> dict[str, Any]:
    """Update the supplied fields of a todo; omitted fields stay as they are."""
    store = fresh_store(params)
    fields = arguments(params)
    todo_id = fields.pop("todo_id")

    todo = store.update_todo(todo_id, UpdateTodoFields(**fields).to_update())
    if todo is None:
        return denied("Permission denied or todo not found")
    return {"success": True, "todo": todo.to_payload()}


async def todo_toggle(params: dict[str, Any]) -> dict[str, Any]:
    """Flip a todo between pending and completed."""
    store = fresh_store(params)
    todo = store.toggle_todo(params["todo_id"])
    if todo is None:
        return denied("Permission denied or todo not found")
    return {"success": True, "todo": todo.to_payload(), "completed": todo.completed}


async def todo_delete(params: dict[str, Any]) -> dict[str, Any]:
    store = fresh_store(params)
    todo = store.delete_todo(params["todo_id"])
    if todo is None:
        return denied("Permission denied or todo not found")
    return {"success": True, "deleted": todo.to_payload()}


async def todo_assign(params: dict[str, Any]) -> dict[str, Any]:
    """Reassign a todo (admin or manager)."""
    store = fresh_store(params)
    todo = store.assign_todo(params["todo_id"], params["user_id"])
    if todo is None:
        return denied("Permission denied, todo not found, or user not found")

    assignee = store.get_user(todo.assignee_id)
    return {
        "success": True,
        "todo": todo.to_payload(),
        "assignedTo": assignee.name if assignee else None,
    }
