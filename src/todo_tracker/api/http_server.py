"""FastAPI HTTP server: REST API plus the dashboard's static assets."""

from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from todo_tracker import __version__
from todo_tracker.api.schemas import (
    AddProjectRequest,
    AddTodoRequest,
    AddUserRequest,
    UpdateTodoFields,
    UserIdRequest,
)
from todo_tracker.config import Settings, get_settings
from todo_tracker.core.store import TodoStore
from todo_tracker.utils.logging import get_logger
from todo_tracker.utils.metrics import get_metrics

logger = get_logger(__name__)
metrics = get_metrics()

STATIC_DIR = Path(__file__).parent / "static"


def _forbidden(message: str = "Permission denied or not found") -> JSONResponse:
    return JSONResponse(content={"success": False, "error": message}, status_code=403)


def create_http_server(
    store: TodoStore,
    settings: Settings | None = None,
    static_dir: Path | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Every `/api` request reloads the store first. Mutating routes answer
    403 for both permission denial and a missing entity.

    Args:
        store: Shared store every route calls through
        settings: Settings for CORS (cached global settings if None)
        static_dir: Directory holding index.html and assets

    Returns:
        FastAPI application
    """
    settings = settings or get_settings()
    static_root = (static_dir or STATIC_DIR).resolve()

    app = FastAPI(
        title="Todo Tracker",
        description="REST API for the todo dashboard",
        version=__version__,
        docs_url=None,
        redoc_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def reload_before_api(request: Request, call_next: Any) -> Response:
        """Pick up writes made by the other front-end before serving /api."""
        is_api = request.url.path.startswith("/api/")
        if is_api:
            store.reload()
        response = await call_next(request)
        if is_api:
            metrics.record_http_request(request.method, response.status_code)
        return response

    # ==================== Auth ====================

    @app.post("/api/login")
    async def login(body: UserIdRequest) -> JSONResponse:
        user = store.login(body.user_id)
        if user is None:
            return JSONResponse(content={"success": False, "error": "User not found"}, status_code=404)
        return JSONResponse(content={"success": True, "user": user.to_payload()})

    @app.post("/api/logout")
    async def logout() -> dict[str, Any]:
        store.logout()
        return {"success": True}

    @app.get("/api/current-user")
    async def current_user() -> JSONResponse:
        user = store.get_current_user()
        return JSONResponse(content=user.to_payload() if user else None)

    # ==================== Users ====================

    @app.get("/api/users")
    async def list_users() -> list[dict[str, Any]]:
        return [user.to_payload() for user in store.get_users()]

    @app.post("/api/users")
    async def add_user(body: AddUserRequest) -> JSONResponse:
        user = store.add_user(body.name, body.email, body.role, body.avatar)
        if user is None:
            return _forbidden("Permission denied")
        return JSONResponse(content={"success": True, "user": user.to_payload()})

    # ==================== Projects ====================

    @app.get("/api/projects")
    async def list_projects() -> list[dict[str, Any]]:
        return [project.to_payload() for project in store.get_projects()]

    @app.post("/api/projects")
    async def add_project(body: AddProjectRequest) -> JSONResponse:
        project = store.add_project(body.name, body.color)
        if project is None:
            return _forbidden("Permission denied")
        return JSONResponse(content={"success": True, "project": project.to_payload()})

    @app.delete("/api/projects/{project_id}")
    async def delete_project(project_id: str) -> JSONResponse:
        if not store.delete_project(project_id):
            return _forbidden()
        return JSONResponse(content={"success": True})

    # ==================== Todos ====================

    @app.get("/api/todos")
    async def list_todos(
        project: str | None = None,
        assignee: str | None = None,
        status: str | None = None,
        priority: str | None = None,
    ) -> list[dict[str, Any]]:
        todos = store.filter_todos(project=project, assignee=assignee, status=status, priority=priority)
        return [todo.to_payload() for todo in todos]

    @app.post("/api/todos")
    async def add_todo(body: AddTodoRequest) -> JSONResponse:
        todo = store.add_todo(**body.model_dump())
        if todo is None:
            return _forbidden("Permission denied")
        return JSONResponse(content={"success": True, "todo": todo.to_payload()})

    @app.put("/api/todos/{todo_id}")
    async def update_todo(todo_id: str, body: UpdateTodoFields) -> JSONResponse:
        todo = store.update_todo(todo_id, body.to_update())
        if todo is None:
            return _forbidden()
        return JSONResponse(content={"success": True, "todo": todo.to_payload()})

    @app.delete("/api/todos/{todo_id}")
    async def delete_todo(todo_id: str) -> JSONResponse:
        todo = store.delete_todo(todo_id)
        if todo is None:
            return _forbidden()
        return JSONResponse(content={"success": True, "deleted": todo.to_payload()})

    @app.patch("/api/todos/{todo_id}/toggle")
    async def toggle_todo(todo_id: str) -> JSONResponse:
        todo = store.toggle_todo(todo_id)
        if todo is None:
            return _forbidden()
        return JSONResponse(content={"success": True, "todo": todo.to_payload()})

    @app.patch("/api/todos/{todo_id}/assign")
    async def assign_todo(todo_id: str, body: UserIdRequest) -> JSONResponse:
        todo = store.assign_todo(todo_id, body.user_id)
        if todo is None:
            return _forbidden()
        return JSONResponse(content={"success": True, "todo": todo.to_payload()})

    # ==================== Queries ====================

    @app.get("/api/summary")
    async def summary() -> dict[str, Any]:
        """Current-user summary with a `global` block that is always present."""
        return {
            **store.get_summary().to_payload(),
            "global": store.get_global_stats().to_payload(),
        }

    @app.get("/api/overdue")
    async def overdue() -> list[dict[str, Any]]:
        return [todo.to_payload() for todo in store.get_overdue_todos()]

    @app.get("/api/urgent")
    async def urgent() -> list[dict[str, Any]]:
        return [todo.to_payload() for todo in store.get_urgent_todos()]

    # ==================== Operations ====================

    @app.get("/health")
    async def health() -> JSONResponse:
        """Liveness check endpoint."""
        return JSONResponse(
            content={"status": "ok", "service": "todo-tracker", "data_path": store.storage.location},
            status_code=200,
        )

    @app.get("/metrics")
    async def prometheus_metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST,
        )

    # ==================== Dashboard ====================

    @app.get("/{path:path}")
    async def dashboard(path: str) -> Response:
        """Serve a static asset, or index.html for client-side routes."""
        if path == "api" or path.startswith("api/"):
            return JSONResponse(content={"success": False, "error": "Not found"}, status_code=404)

        if path:
            candidate = (static_root / path).resolve()
            if candidate.is_relative_to(static_root) and candidate.is_file():
                return FileResponse(candidate)

        index = static_root / "index.html"
        if not index.is_file():
            logger.warning("dashboard_index_missing", path=str(index))
            return JSONResponse(content={"error": "Dashboard not installed"}, status_code=404)
        return FileResponse(index)

    return app
