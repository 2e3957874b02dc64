"""Project service: project lifecycle and membership."""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from taskhub.crud.project import project as project_crud, project_member
from taskhub.crud.team import team as team_crud
from taskhub.crud.user import user as user_crud
from taskhub.db.types import utcnow
from taskhub.models.project import Project, ProjectMember, ProjectRole
from taskhub.schemas.project import ProjectCreate, ProjectMemberCreate, ProjectUpdate
from taskhub.services.access_service import access_service

logger = logging.getLogger(__name__)


class ProjectService:
    """Project use cases."""

    @staticmethod
    async def _check_team(db: AsyncSession, team_id: Optional[int], actor_id: int) -> None:
        """A project may only be filed under a live team the actor belongs to."""
        if team_id is None:
            return
        team_obj = await team_crud.get_active(db, team_id=team_id)
        if team_obj is None:
            raise ValidationError("Team", f"team {team_id} does not exist")
        if not await team_crud.is_member(db, team=team_obj, user_id=actor_id):
            raise ForbiddenError(message_key="errors.team_access_denied", id=team_id)

    @staticmethod
    async def create_project(db: AsyncSession, *, project_in: ProjectCreate, actor_id: int) -> Project:
        """Create a project owned by the actor, who also becomes its Owner member."""
        await ProjectService._check_team(db, project_in.team_id, actor_id)
        project_obj = await project_crud.create_with_owner(db, obj_in=project_in, owner_id=actor_id)
        logger.info(f"Project {project_obj.id} created by user {actor_id}")
        return project_obj

    @staticmethod
    async def list_projects(
        db: AsyncSession, *, actor_id: int, skip: int = 0, limit: int = 100
    ) -> List[Project]:
        return await project_crud.list_visible(db, user_id=actor_id, skip=skip, limit=limit)

    @staticmethod
    async def get_project(db: AsyncSession, *, project_id: int, actor_id: int) -> Project:
        return await access_service.ensure_access(db, project_id, actor_id)

    @staticmethod
    async def update_project(
        db: AsyncSession, *, project_id: int, project_in: ProjectUpdate, actor_id: int
    ) -> Project:
        project_obj = await access_service.ensure_manager(db, project_id, actor_id)
        update_data = project_in.model_dump(exclude_unset=True)
        if "name" in update_data and not (update_data["name"] or "").strip():
            raise ValidationError("Name", "project name cannot be empty")
        if update_data.get("team_id") is not None:
            await ProjectService._check_team(db, update_data["team_id"], actor_id)
        project_obj = await project_crud.update(db, db_obj=project_obj, obj_in=update_data)
        logger.info(f"Project {project_id} updated by user {actor_id}: {', '.join(sorted(update_data))}")
        return project_obj

    @staticmethod
    async def delete_project(db: AsyncSession, *, project_id: int, actor_id: int) -> None:
        """Soft-delete a project. Only its owner may do this."""
        project_obj = await access_service.ensure_access(db, project_id, actor_id)
        if project_obj.owner_id != actor_id:
            raise ForbiddenError()
        await project_crud.update(db, db_obj=project_obj, obj_in={"deleted_at": utcnow()})
        logger.info(f"Project {project_id} deleted by user {actor_id}")

    @staticmethod
    async def list_members(db: AsyncSession, *, project_id: int, actor_id: int) -> List[ProjectMember]:
        await access_service.ensure_access(db, project_id, actor_id)
        return await project_member.list_for_project(db, project_id=project_id)

    @staticmethod
    async def add_member(
        db: AsyncSession, *, project_id: int, member_in: ProjectMemberCreate, actor_id: int
    ) -> ProjectMember:
        await access_service.ensure_manager(db, project_id, actor_id)
        if member_in.role == ProjectRole.OWNER:
            raise ValidationError("Role", "a project has exactly one owner")

        member_user = await user_crud.get(db, id=member_in.user_id)
        if member_user is None:
            raise NotFoundError("User", member_in.user_id)
        existing = await project_member.get_membership(db, project_id=project_id, user_id=member_in.user_id)
        if existing:
            raise ConflictError(
                message_key="errors.already_member", user_id=member_in.user_id, project_id=project_id
            )

        membership = await project_member.create(
            db,
            obj_in={"project_id": project_id, "user_id": member_in.user_id, "role": member_in.role},
        )
        logger.info(f"User {member_in.user_id} added to project {project_id} as {member_in.role.value}")
        return membership

    @staticmethod
    async def remove_member(db: AsyncSession, *, project_id: int, user_id: int, actor_id: int) -> None:
        project_obj = await access_service.ensure_manager(db, project_id, actor_id)
        if user_id == project_obj.owner_id:
            raise ValidationError("Member", "the project owner cannot be removed")
        membership = await project_member.get_membership(db, project_id=project_id, user_id=user_id)
        if membership is None:
            raise NotFoundError("ProjectMember", user_id)
        await project_member.remove(db, db_obj=membership)
        logger.info(f"User {user_id} removed from project {project_id} by user {actor_id}")


project_service = ProjectService()
