"""MCP tools for the login session."""

from typing import Any

from todo_tracker.api.tools.context import denied, fresh_store


async def todo_login(params: dict[str, Any]) -> dict[str, Any]:
    """Log in as an existing user.

    Args:
        params: Tool parameters including:
            - user_id: User to log in as
            - _context: Injected service context

    Returns:
        `{success, user}` or a failure payload
    """
    store = fresh_store(params)
    user = store.login(params["user_id"])
    if user is None:
        return denied("User not found")
    return {"success": True, "user": user.to_payload()}


async def todo_logout(params: dict[str, Any]) -> dict[str, Any]:
    """Clear the session."""
    store = fresh_store(params)
    store.logout()
    return {"success": True, "message": "Logged out"}


async def todo_current_user(params: dict[str, Any]) -> dict[str, Any]:
    """Return the logged-in user, or an error payload when nobody is."""
    store = fresh_store(params)
    user = store.get_current_user()
    if user is None:
        return {"error": "Not logged in"}
    return user.to_payload()
