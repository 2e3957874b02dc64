"""Team CRUD operations."""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.crud.base import CRUDBase
from taskhub.models.team import Team, TeamMember, TeamStatus


class CRUDTeam(CRUDBase[Team, dict, dict]):
    """Read access to teams. Deleted teams are treated as absent."""

    async def get_active(self, db: AsyncSession, *, team_id: int) -> Optional[Team]:
        result = await db.execute(
            select(Team).where(Team.id == team_id, Team.status != TeamStatus.DELETED)
        )
        return result.scalar_one_or_none()

    async def is_member(self, db: AsyncSession, *, team: Team, user_id: int) -> bool:
        """True for the team owner and for every registered member."""
        if team.owner_id == user_id:
            return True
        membership = await db.scalar(
            select(TeamMember.id).where(TeamMember.team_id == team.id, TeamMember.user_id == user_id)
        )
        return membership is not None


team = CRUDTeam(Team)
