"""MCP tools for projects."""

from typing import Any

from todo_tracker.api.tools.context import denied, fresh_store


async def todo_list_projects(params: dict[str, Any]) -> dict[str, Any]:
    """List every project."""
    store = fresh_store(params)
    projects = store.get_projects()
    return {"projects": [project.to_payload() for project in projects], "count": len(projects)}


async def todo_add_project(params: dict[str, Any]) -> dict[str, Any]:
    """Create a project (admin or manager).

    Args:
        params: Tool parameters including:
            - name: Project name
            - color: Hex color code (optional)
            - _context: Injected service context

    Returns:
        `{success, project}` or a failure payload
    """
    store = fresh_store(params)
    project = store.add_project(params["name"], params.get("color"))
    if project is None:
        return denied("Permission denied or failed to create project")
    return {"success": True, "project": project.to_payload()}


async def todo_delete_project(params: dict[str, Any]) -> dict[str, Any]:
    """Delete a project together with all of its todos."""
    store = fresh_store(params)
    success = store.delete_project(params["project_id"])
    return {
        "success": success,
        "message": "Project deleted" if success else "Permission denied or project not found",
    }
