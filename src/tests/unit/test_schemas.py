"""Unit tests for request schema validation."""

import pytest
from pydantic import ValidationError

from todo_tracker.api.schemas import (
    AddProjectRequest,
    AddTodoRequest,
    AddUserRequest,
    DateRequest,
    NoArguments,
    UpdateTodoFields,
    UpdateTodoRequest,
    UserIdRequest,
)
from todo_tracker.models import Priority, Role


class TestSimpleRequests:
    """Tests for the small id and no-argument schemas."""

    def test_no_arguments_rejects_extras(self) -> None:
        """Test tools without arguments refuse unexpected keys."""
        with pytest.raises(ValidationError):
            NoArguments.model_validate({"user_id": "dev1"})

    def test_user_id_required(self) -> None:
        """Test user_id must be present and non-empty."""
        with pytest.raises(ValidationError):
            UserIdRequest.model_validate({})
        with pytest.raises(ValidationError):
            UserIdRequest.model_validate({"user_id": "   "})

    @pytest.mark.parametrize("value", ["2024-06-15", "2024-02-29"])
    def test_valid_dates(self, value: str) -> None:
        """Test real calendar dates are accepted."""
        assert DateRequest(date=value).date == value

    @pytest.mark.parametrize("value", ["2024-6-15", "15/06/2024", "2023-02-29", "2024-13-01"])
    def test_invalid_dates(self, value: str) -> None:
        """Test malformed or impossible dates are rejected."""
        with pytest.raises(ValidationError):
            DateRequest(date=value)


class TestAddUserRequest:
    """Tests for AddUserRequest."""

    def test_valid(self) -> None:
        """Test a complete request parses the role."""
        request = AddUserRequest(name="Ann", email="ann@company.com", role="manager")

        assert request.role == Role.MANAGER
        assert request.avatar is None

    def test_bad_email(self) -> None:
        """Test the email must look like an address."""
        with pytest.raises(ValidationError):
            AddUserRequest(name="Ann", email="not-an-email", role="member")

    def test_bad_role(self) -> None:
        """Test the role must be one of the four."""
        with pytest.raises(ValidationError):
            AddUserRequest(name="Ann", email="ann@company.com", role="owner")


class TestAddProjectRequest:
    """Tests for AddProjectRequest."""

    def test_color_optional(self) -> None:
        """Test color may be omitted."""
        assert AddProjectRequest(name="Ops").color is None

    @pytest.mark.parametrize("color", ["red", "#fff", "#12345G"])
    def test_color_must_be_hex(self, color: str) -> None:
        """Test color must be a six digit hex code."""
        with pytest.raises(ValidationError):
            AddProjectRequest(name="Ops", color=color)


class TestAddTodoRequest:
    """Tests for AddTodoRequest."""

    def test_title_only(self) -> None:
        """Test every field but the title is optional."""
        request = AddTodoRequest(title="Fix bug")

        assert request.model_dump() == {
            "title": "Fix bug",
            "project_id": None,
            "assignee_id": None,
            "date": None,
            "time": None,
            "priority": None,
            "importance": None,
            "note": None,
        }

    def test_full(self) -> None:
        """Test every field parses."""
        request = AddTodoRequest(
            title="Ship",
            project_id="proj1",
            assignee_id="dev2",
            date="2024-07-01",
            time="23:59",
            priority="high",
            importance=1,
            note="n",
        )

        assert request.priority == Priority.HIGH

    def test_blank_title_rejected(self) -> None:
        """Test whitespace-only titles are refused."""
        with pytest.raises(ValidationError):
            AddTodoRequest(title="  ")

    def test_importance_out_of_range(self) -> None:
        """Test importance outside 1..5 is refused."""
        with pytest.raises(ValidationError):
            AddTodoRequest(title="x", importance=9)

    def test_unknown_field_rejected(self) -> None:
        """Test extra keys are refused."""
        with pytest.raises(ValidationError):
            AddTodoRequest(title="x", completed=True)


class TestUpdateTodoFields:
    """Tests for update presence handling."""

    def test_to_update_keeps_only_supplied(self) -> None:
        """Test omitted keys do not reach the store."""
        update = UpdateTodoFields.model_validate({"note": None, "importance": 4}).to_update()

        assert update.changes() == {"note": None, "importance": 4}

    def test_date_converted(self) -> None:
        """Test the date string becomes a calendar date on the update."""
        update = UpdateTodoFields(date="2024-06-30").to_update()

        assert update.changes()["date"].isoformat() == "2024-06-30"

    def test_request_requires_todo_id(self) -> None:
        """Test the MCP update request needs a todo id."""
        with pytest.raises(ValidationError):
            UpdateTodoRequest.model_validate({"title": "x"})

    def test_request_ignores_todo_id_in_update(self) -> None:
        """Test the todo id is not treated as a field change."""
        request = UpdateTodoRequest.model_validate({"todo_id": "t1", "title": "x"})

        assert request.to_update().changes() == {"title": "x"}
