"""Team and team membership models."""
from enum import Enum

from sqlalchemy import (
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from taskhub.database import Base
from taskhub.db.types import utcnow


class TeamStatus(str, Enum):
    """Team lifecycle status."""

    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    DELETED = "Deleted"


class TeamRole(str, Enum):
    """Role of a user inside a team."""

    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"
    VIEWER = "Viewer"


class Team(Base):
    """Group of users that projects can be filed under."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    logo = Column(String(500), nullable=True)
    status = Column(SQLEnum(TeamStatus), default=TeamStatus.ACTIVE, nullable=False)
    max_members = Column(Integer, default=100, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utcnow)


class TeamMember(Base):
    """A user's membership in a team."""

    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_member"),
    )

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(SQLEnum(TeamRole), default=TeamRole.MEMBER, nullable=False)
    joined_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    joined_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
