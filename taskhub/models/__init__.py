"""Model modules."""
from taskhub.models.user import User, Role
from taskhub.models.team import Team, TeamMember, TeamRole, TeamStatus
from taskhub.models.project import Project, ProjectMember, ProjectRole, ProjectStatus
from taskhub.models.task import Task, TaskHistory, TaskComment, TaskAttachment

__all__ = [
    "User",
    "Role",
    "Team",
    "TeamMember",
    "TeamRole",
    "TeamStatus",
    "Project",
    "ProjectMember",
    "ProjectRole",
    "ProjectStatus",
    "Task",
    "TaskHistory",
    "TaskComment",
    "TaskAttachment",
]
