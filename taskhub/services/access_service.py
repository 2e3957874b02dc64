"""Project access gate."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import AccessDeniedError, ForbiddenError, NotFoundError
from taskhub.crud.project import project as project_crud, project_member
from taskhub.models.project import MANAGER_ROLES, Project, ProjectRole


class ProjectAccessService:
    """Answers whether a user may see or change a project and its tasks.

    A user has access when they own the project, the project is public, or
    they are a member. Soft-deleted projects do not exist for the gate.
    """

    @staticmethod
    async def get_project(db: AsyncSession, project_id: int) -> Project:
        """Load a live project or raise ``NotFoundError``."""
        project_obj = await project_crud.get_active(db, project_id=project_id)
        if project_obj is None:
            raise NotFoundError("Project", project_id)
        return project_obj

    @staticmethod
    async def project_exists(db: AsyncSession, project_id: int) -> bool:
        return await project_crud.get_active(db, project_id=project_id) is not None

    @staticmethod
    async def member_role(db: AsyncSession, project_id: int, user_id: int) -> Optional[ProjectRole]:
        membership = await project_member.get_membership(db, project_id=project_id, user_id=user_id)
        return membership.role if membership else None

    @staticmethod
    async def has_access(db: AsyncSession, project_id: int, user_id: int) -> bool:
        project_obj = await project_crud.get_active(db, project_id=project_id)
        if project_obj is None:
            return False
        if project_obj.owner_id == user_id or project_obj.is_public:
            return True
        return await ProjectAccessService.member_role(db, project_id, user_id) is not None

    @staticmethod
    async def can_manage(db: AsyncSession, project_obj: Project, user_id: int) -> bool:
        """Owner, or a member holding a manager role."""
        if project_obj.owner_id == user_id:
            return True
        role = await ProjectAccessService.member_role(db, project_obj.id, user_id)
        return role in MANAGER_ROLES

    @staticmethod
    async def ensure_access(db: AsyncSession, project_id: int, user_id: int) -> Project:
        """Existence first (404), then access (403)."""
        project_obj = await ProjectAccessService.get_project(db, project_id)
        if not await ProjectAccessService.has_access(db, project_id, user_id):
            raise AccessDeniedError()
        return project_obj

    @staticmethod
    async def ensure_manager(db: AsyncSession, project_id: int, user_id: int) -> Project:
        project_obj = await ProjectAccessService.ensure_access(db, project_id, user_id)
        if not await ProjectAccessService.can_manage(db, project_obj, user_id):
            raise ForbiddenError(message_key="errors.project_manage_denied")
        return project_obj


access_service = ProjectAccessService()
