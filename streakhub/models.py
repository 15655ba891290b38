from sqlalchemy import (
    JSON, Column, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship

from streakhub.constants import DEFAULT_TIMEZONE, GoalStatus, GoalType, GroupRole, TaskStatus
from streakhub.database import Base, UTCDateTime, utc_now


def _enum_column(enum_cls, name):
    """Store the enum's string value rather than its member name."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, nullable=False, unique=True, index=True)
    timezone = Column(String, nullable=False, default=DEFAULT_TIMEZONE)  # IANA zone, validated at sign-up
    created_at = Column(UTCDateTime, default=utc_now)

    memberships = relationship("GroupMember", back_populates="user", passive_deletes=True)


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(UTCDateTime, default=utc_now)

    members = relationship("GroupMember", back_populates="group", passive_deletes=True)


class GroupMember(Base):
    __tablename__ = "group_members"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(_enum_column(GroupRole, "group_role"), default=GroupRole.MEMBER, nullable=False)
    joined_at = Column(UTCDateTime, default=utc_now)

    group = relationship("Group", back_populates="members")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )


class DailyTask(Base):
    __tablename__ = "daily_tasks"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(UTCDateTime, nullable=False)  # Local midnight of the task's day, as a UTC instant
    status = Column(_enum_column(TaskStatus, "task_status"), default=TaskStatus.PENDING, nullable=False)
    completed_at = Column(UTCDateTime, nullable=True)  # Only set while status is completed
    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now)

    group = relationship("Group")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", "date", name="uq_daily_tasks_group_user_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<DailyTask id={self.id} group={self.group_id} user={self.user_id} "
            f"date={self.date} status={self.status}>"
        )


class Streak(Base):
    __tablename__ = "streaks"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    current_streak = Column(Integer, nullable=False, default=0)
    best_streak = Column(Integer, nullable=False, default=0)   # High-water mark, never decreases
    last_task_date = Column(UTCDateTime, nullable=True)        # Normalized date of the last counted task
    version = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now)

    group = relationship("Group")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_streaks_group_user"),
    )
    # Every UPDATE checks and bumps the version, so a concurrent writer raises StaleDataError
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Streak group={self.group_id} user={self.user_id} current={self.current_streak} "
            f"best={self.best_streak} last={self.last_task_date}>"
        )


class Goal(Base):
    __tablename__ = "goals"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    goal_type = Column(_enum_column(GoalType, "goal_type"), nullable=False)
    status = Column(_enum_column(GoalStatus, "goal_status"), default=GoalStatus.ACTIVE, nullable=False)

    # Short-term goals: checklist of {"id", "text", "completed"}
    items = Column(JSON, nullable=True)

    # Long-term goals: date range plus milestones of {"date", "text", "completed"}
    start_date = Column(UTCDateTime, nullable=True)
    end_date = Column(UTCDateTime, nullable=True)
    milestones = Column(JSON, nullable=True)

    created_at = Column(UTCDateTime, default=utc_now)
    updated_at = Column(UTCDateTime, default=utc_now, onupdate=utc_now)

    group = relationship("Group")
    user = relationship("User")
