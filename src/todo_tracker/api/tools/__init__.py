"""MCP tool implementations."""

from todo_tracker.api.tools.auth import (
    todo_current_user,
    todo_login,
    todo_logout,
)
from todo_tracker.api.tools.users import (
    todo_add_user,
    todo_list_users,
)
from todo_tracker.api.tools.projects import (
    todo_add_project,
    todo_delete_project,
    todo_list_projects,
)
from todo_tracker.api.tools.todos import (
    todo_add,
    todo_assign,
    todo_delete,
    todo_list,
    todo_toggle,
    todo_update,
)
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

__all__ = [
    # Session
    "todo_login",
    "todo_logout",
    "todo_current_user",
    # Users
    "todo_list_users",
    "todo_add_user",
    # Projects
    "todo_list_projects",
    "todo_add_project",
    "todo_delete_project",
    # Todos
    "todo_list",
    "todo_add",
    "todo_update",
    "todo_toggle",
    "todo_delete",
    "todo_assign",
    # Queries
    "todo_by_project",
    "todo_by_assignee",
    "todo_by_date",
    "todo_overdue",
    "todo_urgent",
    "todo_pending",
    "todo_completed",
    "todo_summary",
]
