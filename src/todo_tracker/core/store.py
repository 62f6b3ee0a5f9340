"""The shared data store.

Every front-end (MCP tool or HTTP route) calls through a `TodoStore`. The
store owns the in-memory aggregate, evaluates role and ownership rules on
every mutation, and is the only writer of the backing storage.

Denials are signalled with None (False for `delete_project`), never with an
exception, and a missing entity looks exactly like a refused permission to
the caller. The specific reason is only logged.
"""

import random
import string
import time
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Any

from todo_tracker.core.permissions import permissions_for, role_grants
from todo_tracker.models import (
    Capability,
    DataStore,
    GlobalStats,
    Permissions,
    Priority,
    Project,
    Role,
    Summary,
    Todo,
    TodoUpdate,
    User,
)
from todo_tracker.storage import AggregateStorage, StorageError
from todo_tracker.utils.logging import get_logger
from todo_tracker.utils.metrics import get_metrics

logger = get_logger(__name__)
metrics = get_metrics()

DEFAULT_AVATAR = "\U0001f464"
DEFAULT_PROJECT_COLOR = "#667eea"

_BASE36 = string.digits + string.ascii_lowercase


def default_data(now: datetime) -> DataStore:
    """Seed aggregate used when no readable backing file exists."""
    users = [
        User(id="admin1", name="Admin", email="admin@company.com", avatar="\U0001f451", role=Role.ADMIN),
        User(id="manager1", name="Project Manager", email="pm@company.com", avatar="\U0001f4ca", role=Role.MANAGER),
        User(id="dev1", name="Developer 1", email="dev1@company.com", avatar="\U0001f4bb", role=Role.MEMBER),
        User(id="dev2", name="Developer 2", email="dev2@company.com", avatar="\U0001f3a8", role=Role.MEMBER),
        User(id="viewer1", name="Viewer", email="viewer@company.com", avatar="\U0001f440", role=Role.VIEWER),
    ]
    projects = [
        Project(id="proj1", name="Website Redesign", color="#667eea", created_at=now),
        Project(id="proj2", name="Mobile App", color="#f5576c", created_at=now),
        Project(id="proj3", name="API Development", color="#2ed573", created_at=now),
        Project(id="proj4", name="Marketing", color="#ffa502", created_at=now),
    ]
    return DataStore(users=users, projects=projects, todos=[], current_user_id=None)


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TodoStore:
    """Aggregate owner and rule engine.

    Callers must invoke `reload()` at the start of each request or tool call
    so that writes made by the other front-end become visible. Mutating
    operations persist the full aggregate before returning.
    """

    def __init__(
        self,
        storage: AggregateStorage,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the store and load the current aggregate.

        Args:
            storage: Backend holding the aggregate
            clock: Returns the current UTC time; injectable for tests
        """
        self.storage = storage
        self._clock = clock or _utc_now
        self._data = self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> DataStore:
        try:
            data = self.storage.load()
        except StorageError as e:
            metrics.record_io_failure("load")
            logger.error("data_load_failed", location=self.storage.location, error=str(e))
            data = None

        if data is None:
            logger.info("using_default_data", location=self.storage.location)
            return default_data(self._clock())
        return data

    def reload(self) -> None:
        """Discard in-memory state and re-read the backing storage."""
        self._data = self._load()

    def persist(self) -> bool:
        """Write the full aggregate back.

        A failed write is logged, not raised. The in-memory change stays
        applied and is lost on the next reload.

        Returns:
            True if the write succeeded
        """
        try:
            self.storage.save(self._data)
        except StorageError as e:
            metrics.record_io_failure("save")
            logger.error("data_save_failed", location=self.storage.location, error=str(e))
            return False
        return True

    @property
    def data(self) -> DataStore:
        """The current in-memory aggregate."""
        return self._data

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        """Current UTC calendar date."""
        return self._clock().astimezone(timezone.utc).date()

    def generate_id(self, taken: set[str] | None = None) -> str:
        """Generate a short id: base-36 millisecond timestamp plus random suffix."""
        taken = taken or set()
        while True:
            stamp = _to_base36(int(time.time() * 1000))
            suffix = "".join(random.choices(_BASE36, k=8))
            candidate = stamp + suffix
            if candidate not in taken:
                return candidate

    def _deny(self, operation: str, reason: str, **context: Any) -> None:
        metrics.record_store_operation(operation, "denied")
        logger.debug("operation_denied", operation=operation, reason=reason, **context)

    def _ok(self, operation: str) -> None:
        metrics.record_store_operation(operation, "ok")

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def get_current_user(self) -> User | None:
        """The logged-in user, or None (also when the session id dangles)."""
        if not self._data.current_user_id:
            return None
        return self.get_user(self._data.current_user_id)

    def login(self, user_id: str) -> User | None:
        """Set the session to `user_id` if such a user exists."""
        user = self.get_user(user_id)
        if user is None:
            self._deny("login", "user_not_found", user_id=user_id)
            return None

        self._data.current_user_id = user.id
        self.persist()
        self._ok("login")
        logger.info("user_logged_in", user_id=user.id, role=user.role.value)
        return user

    def logout(self) -> None:
        """Clear the session."""
        previous = self._data.current_user_id
        self._data.current_user_id = None
        self.persist()
        self._ok("logout")
        logger.info("user_logged_out", user_id=previous)

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def has_permission(self, capability: Capability | str) -> bool:
        """True iff someone is logged in and their role grants `capability`."""
        user = self.get_current_user()
        if user is None:
            return False
        return role_grants(user.role, capability)

    def get_permissions(self) -> Permissions | None:
        """Permission set of the current user, or None when logged out."""
        user = self.get_current_user()
        if user is None:
            return None
        return permissions_for(user.role)

    def can_edit_task(self, todo: Todo) -> bool:
        """Edit-any capability, or assignee, or creator."""
        user = self.get_current_user()
        if user is None:
            return False
        if self.has_permission(Capability.EDIT_ANY):
            return True
        return todo.assignee_id == user.id or todo.created_by == user.id

    def can_delete_task(self, todo: Todo) -> bool:
        """Delete-any capability, or creator. Being the assignee is not enough."""
        user = self.get_current_user()
        if user is None:
            return False
        if self.has_permission(Capability.DELETE_ANY):
            return True
        return todo.created_by == user.id

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_users(self) -> list[User]:
        return list(self._data.users)

    def get_user(self, user_id: str) -> User | None:
        return next((u for u in self._data.users if u.id == user_id), None)

    def add_user(
        self,
        name: str,
        email: str,
        role: Role | str,
        avatar: str | None = None,
    ) -> User | None:
        """Create a user. Requires the manage-users capability."""
        if not self.has_permission(Capability.MANAGE_USERS):
            self._deny("add_user", "permission")
            return None

        user = User(
            id=self.generate_id({u.id for u in self._data.users}),
            name=name,
            email=email,
            avatar=avatar or DEFAULT_AVATAR,
            role=Role(role),
        )
        self._data.users.append(user)
        self.persist()
        self._ok("add_user")
        logger.info("user_created", user_id=user.id, role=user.role.value)
        return user

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def get_projects(self) -> list[Project]:
        return list(self._data.projects)

    def get_project(self, project_id: str) -> Project | None:
        return next((p for p in self._data.projects if p.id == project_id), None)

    def add_project(self, name: str, color: str | None = None) -> Project | None:
        """Create a project. Requires the manage-projects capability."""
        if not self.has_permission(Capability.MANAGE_PROJECTS):
            self._deny("add_project", "permission")
            return None

        creator = self.get_current_user()
        project = Project(
            id=self.generate_id({p.id for p in self._data.projects}),
            name=name,
            color=color or DEFAULT_PROJECT_COLOR,
            created_at=self.now(),
            created_by=creator.id if creator else None,
        )
        self._data.projects.append(project)
        self.persist()
        self._ok("add_project")
        logger.info("project_created", project_id=project.id)
        return project

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and every todo that references it."""
        if not self.has_permission(Capability.MANAGE_PROJECTS):
            self._deny("delete_project", "permission", project_id=project_id)
            return False

        project = self.get_project(project_id)
        if project is None:
            self._deny("delete_project", "project_not_found", project_id=project_id)
            return False

        self._data.projects = [p for p in self._data.projects if p.id != project_id]
        remaining = [t for t in self._data.todos if t.project_id != project_id]
        removed = len(self._data.todos) - len(remaining)
        self._data.todos = remaining
        self.persist()
        self._ok("delete_project")
        logger.info("project_deleted", project_id=project_id, todos_removed=removed)
        return True

    # ------------------------------------------------------------------
    # Todos
    # ------------------------------------------------------------------

    def get_todos(self) -> list[Todo]:
        return list(self._data.todos)

    def get_todo(self, todo_id: str) -> Todo | None:
        return next((t for t in self._data.todos if t.id == todo_id), None)

    def add_todo(
        self,
        title: str,
        project_id: str | None = None,
        assignee_id: str | None = None,
        date: date | str | None = None,
        time: str | None = None,
        priority: Priority | str | None = None,
        importance: int | None = None,
        note: str | None = None,
    ) -> Todo | None:
        """Create a todo.

        Requires a session and the create-task capability. Assigning to
        anyone but oneself additionally requires assign-others. Referenced
        project and assignee must exist. Defaults: assignee is the current
        user, project is the first project, date is today, priority medium,
        importance 3.
        """
        if not self.has_permission(Capability.CREATE_TASK):
            self._deny("add_todo", "permission")
            return None

        user = self.get_current_user()
        if user is None:
            self._deny("add_todo", "not_logged_in")
            return None

        assignee = assignee_id or user.id
        if assignee != user.id and not self.has_permission(Capability.ASSIGN_OTHERS):
            self._deny("add_todo", "assign_others", assignee_id=assignee)
            return None
        if self.get_user(assignee) is None:
            self._deny("add_todo", "assignee_not_found", assignee_id=assignee)
            return None

        if project_id is None:
            if not self._data.projects:
                self._deny("add_todo", "no_projects")
                return None
            project_id = self._data.projects[0].id
        elif self.get_project(project_id) is None:
            self._deny("add_todo", "project_not_found", project_id=project_id)
            return None

        todo = Todo(
            id=self.generate_id({t.id for t in self._data.todos}),
            title=title,
            project_id=project_id,
            assignee_id=assignee,
            date=date or self.today(),
            time=time,
            priority=priority or Priority.MEDIUM,
            importance=importance or 3,
            note=note,
            completed=False,
            created_by=user.id,
            created_at=self.now(),
        )
        self._data.todos.append(todo)
        self.persist()
        self._ok("add_todo")
        logger.info("todo_created", todo_id=todo.id, assignee_id=assignee, project_id=project_id)
        return todo

    def update_todo(self, todo_id: str, update: TodoUpdate) -> Todo | None:
        """Apply the present fields of `update` to a todo.

        Requires edit rights on the todo; moving it to a different assignee
        also requires assign-others.
        """
        todo = self.get_todo(todo_id)
        if todo is None:
            self._deny("update_todo", "todo_not_found", todo_id=todo_id)
            return None
        if not self.can_edit_task(todo):
            self._deny("update_todo", "permission", todo_id=todo_id)
            return None

        changes = update.changes()

        new_assignee = changes.get("assignee_id")
        if new_assignee is not None and new_assignee != todo.assignee_id:
            if not self.has_permission(Capability.ASSIGN_OTHERS):
                self._deny("update_todo", "assign_others", todo_id=todo_id)
                return None
            if self.get_user(new_assignee) is None:
                self._deny("update_todo", "assignee_not_found", todo_id=todo_id)
                return None

        new_project = changes.get("project_id")
        if new_project is not None and self.get_project(new_project) is None:
            self._deny("update_todo", "project_not_found", todo_id=todo_id)
            return None

        for field_name, value in changes.items():
            setattr(todo, field_name, value)
        self.persist()
        self._ok("update_todo")
        logger.info("todo_updated", todo_id=todo_id, fields=sorted(changes))
        return todo

    def toggle_todo(self, todo_id: str) -> Todo | None:
        """Flip completion; stamps or clears `completed_at` to match."""
        todo = self.get_todo(todo_id)
        if todo is None:
            self._deny("toggle_todo", "todo_not_found", todo_id=todo_id)
            return None
        if not self.can_edit_task(todo):
            self._deny("toggle_todo", "permission", todo_id=todo_id)
            return None

        todo.completed = not todo.completed
        todo.completed_at = self.now() if todo.completed else None
        self.persist()
        self._ok("toggle_todo")
        logger.info("todo_toggled", todo_id=todo_id, completed=todo.completed)
        return todo

    def delete_todo(self, todo_id: str) -> Todo | None:
        """Remove a todo; returns the removed record."""
        todo = self.get_todo(todo_id)
        if todo is None:
            self._deny("delete_todo", "todo_not_found", todo_id=todo_id)
            return None
        if not self.can_delete_task(todo):
            self._deny("delete_todo", "permission", todo_id=todo_id)
            return None

        self._data.todos = [t for t in self._data.todos if t.id != todo_id]
        self.persist()
        self._ok("delete_todo")
        logger.info("todo_deleted", todo_id=todo_id)
        return todo

    def assign_todo(self, todo_id: str, user_id: str) -> Todo | None:
        """Reassign a todo. Always requires assign-others, whoever owns it."""
        if not self.has_permission(Capability.ASSIGN_OTHERS):
            self._deny("assign_todo", "permission", todo_id=todo_id)
            return None

        todo = self.get_todo(todo_id)
        if todo is None or self.get_user(user_id) is None:
            self._deny("assign_todo", "not_found", todo_id=todo_id, user_id=user_id)
            return None

        todo.assignee_id = user_id
        self.persist()
        self._ok("assign_todo")
        logger.info("todo_assigned", todo_id=todo_id, assignee_id=user_id)
        return todo

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _is_overdue(self, todo: Todo, today: date) -> bool:
        return todo.date < today and not todo.completed

    def get_todos_by_project(self, project_id: str) -> list[Todo]:
        return [t for t in self._data.todos if t.project_id == project_id]

    def get_todos_by_assignee(self, user_id: str) -> list[Todo]:
        return [t for t in self._data.todos if t.assignee_id == user_id]

    def get_todos_by_date(self, day: date | str) -> list[Todo]:
        if isinstance(day, str):
            day = date.fromisoformat(day)
        return [t for t in self._data.todos if t.date == day]

    def get_overdue_todos(self, today: date | None = None) -> list[Todo]:
        """Incomplete todos due strictly before today."""
        today = today or self.today()
        return [t for t in self._data.todos if self._is_overdue(t, today)]

    def get_urgent_todos(self) -> list[Todo]:
        return [t for t in self._data.todos if t.priority == Priority.URGENT and not t.completed]

    def get_pending_todos(self) -> list[Todo]:
        return [t for t in self._data.todos if not t.completed]

    def get_completed_todos(self) -> list[Todo]:
        return [t for t in self._data.todos if t.completed]

    def filter_todos(
        self,
        project: str | None = None,
        assignee: str | None = None,
        status: str | None = None,
        priority: Priority | str | None = None,
    ) -> list[Todo]:
        """Combined filter; `status` is "completed" or "pending", anything else is ignored.

        An unknown `priority` matches nothing.
        """
        todos = self.get_todos()
        if project:
            todos = [t for t in todos if t.project_id == project]
        if assignee:
            todos = [t for t in todos if t.assignee_id == assignee]
        if status == "completed":
            todos = [t for t in todos if t.completed]
        elif status == "pending":
            todos = [t for t in todos if not t.completed]
        if priority:
            todos = [t for t in todos if t.priority.value == priority]
        return todos

    # ------------------------------------------------------------------
    # Summary
    # ------------------------------------------------------------------

    def get_global_stats(self, today: date | None = None) -> GlobalStats:
        """Totals over the whole aggregate, regardless of login state."""
        today = today or self.today()
        todos = self._data.todos
        return GlobalStats(
            total_todos=len(todos),
            pending=sum(1 for t in todos if not t.completed),
            completed=sum(1 for t in todos if t.completed),
            overdue=sum(1 for t in todos if self._is_overdue(t, today)),
            urgent=sum(1 for t in todos if t.priority == Priority.URGENT and not t.completed),
            total_projects=len(self._data.projects),
            total_users=len(self._data.users),
        )

    def get_summary(self, today: date | None = None) -> Summary:
        """Counts for todos assigned to the current user, plus global totals."""
        today = today or self.today()
        stats = self.get_global_stats(today)

        user = self.get_current_user()
        if user is None:
            return Summary(error="Not logged in", all_stats=stats)

        mine = self.get_todos_by_assignee(user.id)
        return Summary(
            user=user.name,
            role=user.role,
            permissions=permissions_for(user.role),
            total_tasks=len(mine),
            completed=sum(1 for t in mine if t.completed),
            pending=sum(1 for t in mine if not t.completed),
            urgent=sum(1 for t in mine if t.priority == Priority.URGENT and not t.completed),
            overdue=sum(1 for t in mine if self._is_overdue(t, today)),
            today_tasks=sum(1 for t in mine if t.date == today),
            all_stats=stats,
        )
