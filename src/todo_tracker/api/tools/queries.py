"""MCP tools for read-only todo queries and the summary."""

from typing import Any

from todo_tracker.api.tools.context import fresh_store, todo_list_payload


async def todo_by_project(params: dict[str, Any]) -> dict[str, Any]:
    store = fresh_store(params)
    project_id = params["project_id"]
    project = store.get_project(project_id)
    return todo_list_payload(
        store.get_todos_by_project(project_id),
        project=project.name if project else None,
    )


async def todo_by_assignee(params: dict[str, Any]) -> dict[str, Any]:
    store = fresh_store(params)
    user_id = params["user_id"]
    user = store.get_user(user_id)
    return todo_list_payload(
        store.get_todos_by_assignee(user_id),
        user=user.name if user else None,
    )


async def todo_by_date(params: dict[str, Any]) -> dict[str, Any]:
    store = fresh_store(params)
    return todo_list_payload(store.get_todos_by_date(params["date"]), date=params["date"])


async def todo_overdue(params: dict[str, Any]) -> dict[str, Any]:
    """Incomplete todos whose due date is before today."""
    store = fresh_store(params)
    return todo_list_payload(store.get_overdue_todos(), overdue=True)


async def todo_urgent(params: dict[str, Any]) -> dict[str, Any]:
    store = fresh_store(params)
    return todo_list_payload(store.get_urgent_todos(), priority="urgent")


async def todo_pending(params: dict[str, Any]) -> dict[str, Any]:
    store = fresh_store(params)
    return todo_list_payload(store.get_pending_todos(), completed=False)


async def todo_completed(params: dict[str, Any]) -> dict[str, Any]:
    store = fresh_store(params)
    return todo_list_payload(store.get_completed_todos(), completed=True)


async def todo_summary(params: dict[str, Any]) -> dict[str, Any]:
    """Stats for the current user's todos plus their permissions.

    Global totals are included even when nobody is logged in.
    """
    store = fresh_store(params)
    return store.get_summary().to_payload()
