"""Base model and common enums."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """User role; determines the fixed permission set."""

    ADMIN = "admin"
    MANAGER = "manager"
    MEMBER = "member"
    VIEWER = "viewer"


class Priority(str, Enum):
    """Todo priority levels."""

    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Capability(str, Enum):
    """The six role-derived capabilities."""

    CREATE_TASK = "canCreateTask"
    ASSIGN_OTHERS = "canAssignOthers"
    DELETE_ANY = "canDeleteAny"
    EDIT_ANY = "canEditAny"
    MANAGE_PROJECTS = "canManageProjects"
    MANAGE_USERS = "canManageUsers"


class CamelModel(BaseModel):
    """Base for every persisted or serialized entity.

    Attributes are snake_case in Python and camelCase on disk and on the
    wire. Either spelling is accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
