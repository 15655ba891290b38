from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from streakhub.constants import (
    GOAL_DESCRIPTION_MAX_LENGTH, GOAL_TITLE_MAX_LENGTH,
    TASK_DESCRIPTION_MAX_LENGTH, TASK_TITLE_MAX_LENGTH,
    GoalStatus, GoalType, TaskStatus
)


class UserBrief(BaseModel):
    id: int
    name: Optional[str] = None
    email: str

    class Config:
        from_attributes = True


class GroupBrief(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


# Task schemas
class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=TASK_TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=TASK_DESCRIPTION_MAX_LENGTH)
    date: datetime  # Any instant on the intended day; normalized server-side


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=TASK_TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=TASK_DESCRIPTION_MAX_LENGTH)
    status: Optional[TaskStatus] = None


class TaskResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    title: str
    description: Optional[str] = None
    date: datetime
    status: TaskStatus
    completed_at: Optional[datetime] = None
    created_at: datetime
    user: Optional[UserBrief] = None

    class Config:
        from_attributes = True


class PendingTaskResponse(BaseModel):
    task: TaskResponse
    days_pending: int


class GroupPendingResponse(BaseModel):
    group_id: int
    group_name: Optional[str] = None
    count: int
    oldest_days_pending: int
    tasks: List[PendingTaskResponse]


# Streak schemas
class StreakResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    current_streak: int
    best_streak: int
    last_task_date: Optional[datetime] = None
    user: Optional[UserBrief] = None
    group: Optional[GroupBrief] = None

    class Config:
        from_attributes = True


# Goal schemas
class GoalItem(BaseModel):
    id: str
    text: str
    completed: bool = False


class GoalMilestone(BaseModel):
    date: datetime
    text: str
    completed: bool = False


class GoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=GOAL_TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=GOAL_DESCRIPTION_MAX_LENGTH)
    goal_type: GoalType
    items: Optional[List[GoalItem]] = None            # short-term goals
    start_date: Optional[datetime] = None             # long-term goals
    end_date: Optional[datetime] = None
    milestones: Optional[List[GoalMilestone]] = None


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=GOAL_TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=GOAL_DESCRIPTION_MAX_LENGTH)
    items: Optional[List[GoalItem]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    milestones: Optional[List[GoalMilestone]] = None
    status: Optional[GoalStatus] = None


class GoalResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    title: str
    description: Optional[str] = None
    goal_type: GoalType
    status: GoalStatus
    items: Optional[List[GoalItem]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    milestones: Optional[List[GoalMilestone]] = None
    progress: float = 0.0
    created_at: datetime
    user: Optional[UserBrief] = None

    class Config:
        from_attributes = True
