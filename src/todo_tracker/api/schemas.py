"""Request schemas shared by the MCP tools and the HTTP routes.

Arguments use snake_case keys on both transports. Every schema rejects
unknown keys, so malformed input is refused here, before the store is
called.
"""

from datetime import date as Date
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StringConstraints

from todo_tracker.models import DATE_PATTERN, TIME_PATTERN, Priority, Role, TodoUpdate

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


class RequestModel(BaseModel):
    """Strict base for every request schema."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
    )


def _check_calendar_date(value: str) -> str:
    Date.fromisoformat(value)
    return value


CalendarDate = Annotated[str, StringConstraints(pattern=DATE_PATTERN), AfterValidator(_check_calendar_date)]


class NoArguments(RequestModel):
    """Tools that take no arguments."""


class UserIdRequest(RequestModel):
    user_id: str = Field(..., min_length=1, description="User ID")


class AddUserRequest(RequestModel):
    name: str = Field(..., min_length=1, description="User's full name")
    email: str = Field(..., pattern=EMAIL_PATTERN, description="User's email address")
    role: Role = Field(..., description="User's role")
    avatar: str | None = Field(default=None, description="Emoji avatar")


class AddProjectRequest(RequestModel):
    name: str = Field(..., min_length=1, description="Project name")
    color: str | None = Field(default=None, pattern=COLOR_PATTERN, description="Hex color code")


class ProjectIdRequest(RequestModel):
    project_id: str = Field(..., min_length=1, description="Project ID")


class TodoIdRequest(RequestModel):
    todo_id: str = Field(..., min_length=1, description="Todo ID")


class DateRequest(RequestModel):
    date: CalendarDate = Field(..., description="Date in YYYY-MM-DD format")


class AddTodoRequest(RequestModel):
    title: str = Field(..., min_length=1, description="Task title")
    project_id: str | None = Field(default=None, description="Project ID (default: first project)")
    assignee_id: str | None = Field(default=None, description="User ID to assign to (default: current user)")
    date: CalendarDate | None = Field(default=None, description="Due date (YYYY-MM-DD, default: today)")
    time: str | None = Field(default=None, pattern=TIME_PATTERN, description="Due time (HH:MM)")
    priority: Priority | None = Field(default=None, description="Priority level (default: medium)")
    importance: int | None = Field(default=None, ge=1, le=5, description="Importance 1-5 (default: 3)")
    note: str | None = Field(default=None, description="Additional notes")


class UpdateTodoFields(RequestModel):
    """Fields of a todo update. Only keys present in the request are applied."""

    title: str | None = Field(default=None, min_length=1, description="New title")
    project_id: str | None = Field(default=None, description="New project ID")
    assignee_id: str | None = Field(default=None, description="New assignee ID")
    date: CalendarDate | None = Field(default=None, description="New due date")
    time: str | None = Field(default=None, pattern=TIME_PATTERN, description="New due time")
    priority: Priority | None = Field(default=None, description="New priority")
    importance: int | None = Field(default=None, ge=1, le=5, description="New importance")
    note: str | None = Field(default=None, description="New notes")

    def to_update(self) -> TodoUpdate:
        """Build the store's partial update from the supplied keys only."""
        fields = {name: getattr(self, name) for name in self.model_fields_set if name in TodoUpdate.model_fields}
        return TodoUpdate(**fields)


class UpdateTodoRequest(UpdateTodoFields):
    todo_id: str = Field(..., min_length=1, description="Todo ID to update")


class AssignTodoRequest(RequestModel):
    todo_id: str = Field(..., min_length=1, description="Todo ID to assign")
    user_id: str = Field(..., min_length=1, description="User ID to assign to")
