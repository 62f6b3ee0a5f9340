"""Role to capability table."""

from todo_tracker.models import Capability, Permissions, Role

ROLE_PERMISSIONS: dict[Role, Permissions] = {
    Role.ADMIN: Permissions(
        can_create_task=True,
        can_assign_others=True,
        can_delete_any=True,
        can_edit_any=True,
        can_manage_projects=True,
        can_manage_users=True,
    ),
    Role.MANAGER: Permissions(
        can_create_task=True,
        can_assign_others=True,
        can_delete_any=True,
        can_edit_any=True,
        can_manage_projects=True,
        can_manage_users=False,
    ),
    Role.MEMBER: Permissions(
        can_create_task=True,
    ),
    Role.VIEWER: Permissions(),
}

# Capability value (camelCase flag name) -> Permissions attribute
_CAPABILITY_FIELDS: dict[Capability, str] = {
    Capability.CREATE_TASK: "can_create_task",
    Capability.ASSIGN_OTHERS: "can_assign_others",
    Capability.DELETE_ANY: "can_delete_any",
    Capability.EDIT_ANY: "can_edit_any",
    Capability.MANAGE_PROJECTS: "can_manage_projects",
    Capability.MANAGE_USERS: "can_manage_users",
}


def permissions_for(role: Role | str) -> Permissions:
    """Get a copy of the permission set for a role."""
    return ROLE_PERMISSIONS[Role(role)].model_copy()


def role_grants(role: Role | str, capability: Capability | str) -> bool:
    """Check whether a role holds a capability; unknown capability names are never granted."""
    try:
        field_name = _CAPABILITY_FIELDS[Capability(capability)]
    except ValueError:
        return False
    return getattr(ROLE_PERMISSIONS[Role(role)], field_name)
