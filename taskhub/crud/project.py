"""Project CRUD operations."""
from typing import List, Optional

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.crud.base import CRUDBase
from taskhub.models.project import Project, ProjectMember, ProjectRole
from taskhub.schemas.project import ProjectCreate, ProjectUpdate


class CRUDProject(CRUDBase[Project, ProjectCreate, ProjectUpdate]):
    """CRUD operations for Project. Soft-deleted projects are never returned."""

    async def get_active(self, db: AsyncSession, *, project_id: int) -> Optional[Project]:
        result = await db.execute(
            select(Project).where(Project.id == project_id, Project.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def create_with_owner(self, db: AsyncSession, *, obj_in: ProjectCreate, owner_id: int) -> Project:
        """Create a project and register its owner as an Owner member."""
        db_obj = Project(**obj_in.model_dump(), owner_id=owner_id)
        db.add(db_obj)
        await db.flush()
        db.add(ProjectMember(project_id=db_obj.id, user_id=owner_id, role=ProjectRole.OWNER))
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def list_visible(
        self,
        db: AsyncSession,
        *,
        user_id: int,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Project]:
        """Projects the user owns, belongs to, or that are public."""
        is_member = exists().where(
            ProjectMember.project_id == Project.id,
            ProjectMember.user_id == user_id,
        )
        result = await db.execute(
            select(Project)
            .where(
                Project.deleted_at.is_(None),
                or_(Project.owner_id == user_id, Project.is_public.is_(True), is_member),
            )
            .order_by(Project.created_at.desc(), Project.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())


class CRUDProjectMember(CRUDBase[ProjectMember, dict, dict]):
    """CRUD operations for project membership."""

    async def get_membership(self, db: AsyncSession, *, project_id: int, user_id: int) -> Optional[ProjectMember]:
        result = await db.execute(
            select(ProjectMember).where(
                ProjectMember.project_id == project_id,
                ProjectMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_project(self, db: AsyncSession, *, project_id: int) -> List[ProjectMember]:
        result = await db.execute(
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.added_at, ProjectMember.id)
        )
        return list(result.scalars().all())


project = CRUDProject(Project)
project_member = CRUDProjectMember(ProjectMember)
