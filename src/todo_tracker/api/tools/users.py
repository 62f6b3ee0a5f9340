"""MCP tools for users."""

from typing import Any

from todo_tracker.api.tools.context import denied, fresh_store


async def todo_list_users(params: dict[str, Any]) -> dict[str, Any]:
    """List every user with their role."""
    store = fresh_store(params)
    users = store.get_users()
    return {"users": [user.to_payload() for user in users], "count": len(users)}


async def todo_add_user(params: dict[str, Any]) -> dict[str, Any]:
    """Create a user. Only admins hold the manage-users capability.

    Args:
        params: Tool parameters including:
            - name: Full name
            - email: Email address
            - role: admin, manager, member or viewer
            - avatar: Emoji avatar (optional)
            - _context: Injected service context

    Returns:
        `{success, user}` or a failure payload
    """
    store = fresh_store(params)
    user = store.add_user(
        name=params["name"],
        email=params["email"],
        role=params["role"],
        avatar=params.get("avatar"),
    )
    if user is None:
        return denied("Permission denied or failed to create user")
    return {"success": True, "user": user.to_payload()}
