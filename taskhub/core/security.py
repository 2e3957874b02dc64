"""Security constants and permissions."""
from enum import Enum


class Permission(str, Enum):
    """Permission constants for RBAC."""

    # Project permissions
    PROJECT_CREATE = "project.create"

    # Task permissions
    TASK_RESTORE = "task.restore"

    # Users
    USER_VIEW = "user.view"


# Role definitions with permissions
ROLE_PERMISSIONS = {
    "admin": [
        Permission.PROJECT_CREATE,
        Permission.TASK_RESTORE,
        Permission.USER_VIEW,
    ],
    "member": [
        Permission.PROJECT_CREATE,
        Permission.USER_VIEW,
    ],
    "guest": [],
}

# Role given to self-registered accounts
DEFAULT_ROLE = "member"
