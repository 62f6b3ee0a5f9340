"""Users, projects, todos and the aggregate that mirrors the backing file."""

import datetime as dt
from typing import Any, ClassVar

from pydantic import Field

from todo_tracker.models.base import CamelModel, Priority, Role

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"


class User(CamelModel):
    """A person who can log in. Never deleted by any exposed operation."""

    id: str = Field(..., min_length=1)
    name: str
    email: str
    avatar: str
    role: Role


class Project(CamelModel):
    """A named group of todos."""

    id: str = Field(..., min_length=1)
    name: str
    color: str
    created_at: dt.datetime
    created_by: str | None = Field(default=None, description="Weak reference to the creating user")


class Todo(CamelModel):
    """A task assigned to one user within one project.

    `completed_at` is set exactly when `completed` is true; the store keeps
    the two in step.
    """

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    project_id: str
    assignee_id: str
    date: dt.date
    time: str | None = Field(default=None, pattern=TIME_PATTERN)
    priority: Priority = Priority.MEDIUM
    importance: int = Field(default=3, ge=1, le=5)
    note: str | None = None
    completed: bool = False
    created_by: str
    created_at: dt.datetime
    completed_at: dt.datetime | None = None


class Permissions(CamelModel):
    """Capability flags for one role. Derived, never persisted."""

    can_create_task: bool = False
    can_assign_others: bool = False
    can_delete_any: bool = False
    can_edit_any: bool = False
    can_manage_projects: bool = False
    can_manage_users: bool = False


class TodoUpdate(CamelModel):
    """Partial update for a todo.

    Only fields that were explicitly supplied count as present (see
    `changes`). `time` and `note` may be cleared with an explicit null; a
    null for any other field is ignored.
    """

    title: str | None = Field(default=None, min_length=1)
    project_id: str | None = None
    assignee_id: str | None = None
    date: dt.date | None = None
    time: str | None = Field(default=None, pattern=TIME_PATTERN)
    priority: Priority | None = None
    importance: int | None = Field(default=None, ge=1, le=5)
    note: str | None = None

    CLEARABLE: ClassVar[frozenset[str]] = frozenset({"time", "note"})

    def changes(self) -> dict[str, Any]:
        """Present fields keyed by attribute name."""
        result: dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name not in self.CLEARABLE:
                continue
            result[name] = value
        return result


class GlobalStats(CamelModel):
    """Totals across the whole aggregate, independent of the session."""

    total_todos: int
    pending: int
    completed: int
    overdue: int
    urgent: int
    total_projects: int
    total_users: int


class Summary(CamelModel):
    """Per-user dashboard summary.

    When nobody is logged in only `error` and `all_stats` are populated.
    """

    error: str | None = None
    user: str | None = None
    role: Role | None = None
    permissions: Permissions | None = None
    total_tasks: int | None = None
    completed: int | None = None
    pending: int | None = None
    urgent: int | None = None
    overdue: int | None = None
    today_tasks: int | None = None
    all_stats: GlobalStats


class DataStore(CamelModel):
    """The aggregate: every entity plus the session pointer."""

    users: list[User] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    todos: list[Todo] = Field(default_factory=list)
    current_user_id: str | None = None

    def to_document(self) -> dict[str, Any]:
        """Serialize for the backing file.

        `currentUserId` is always written, as null when logged out.
        """
        return {
            "users": [user.to_payload() for user in self.users],
            "projects": [project.to_payload() for project in self.projects],
            "todos": [todo.to_payload() for todo in self.todos],
            "currentUserId": self.current_user_id,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "DataStore":
        """Parse a backing-file document."""
        return cls.model_validate(document)
