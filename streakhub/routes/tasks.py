"""
Daily task and pending-task HTTP routes.
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from streakhub.auth import get_current_user, verify_api_key
from streakhub.constants import TaskStatus
from streakhub.database import get_db
from streakhub.models import User
from streakhub.schemas import (
    GroupPendingResponse, PendingTaskResponse, TaskCreate, TaskResponse, TaskUpdate
)
from streakhub.services.date_service import DateService
from streakhub.services.pending_service import GroupPendingTasks, PendingTaskService
from streakhub.services.task_service import TaskService

router = APIRouter(prefix="/api", tags=["tasks"], dependencies=[Depends(verify_api_key)])


def _group_pending_response(bucket: GroupPendingTasks) -> GroupPendingResponse:
    return GroupPendingResponse(
        group_id=bucket.group_id,
        group_name=bucket.group_name,
        count=bucket.count,
        oldest_days_pending=bucket.oldest_days_pending,
        tasks=[
            PendingTaskResponse(
                task=TaskResponse.model_validate(item.task),
                days_pending=item.days_pending
            )
            for item in bucket.tasks
        ]
    )


@router.post(
    "/groups/{group_id}/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED
)
def create_task(
    group_id: int,
    task: TaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Post today's (or another day's) task in a group"""
    return TaskService(db).create_task(user, group_id, task)


@router.get("/groups/{group_id}/tasks", response_model=List[TaskResponse])
def get_group_tasks(
    group_id: int,
    date: Optional[datetime] = None,
    user_id: Optional[int] = None,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List a group's tasks, optionally for one day, member or status"""
    service = TaskService(db)
    service.ensure_member(user.id, group_id)
    day = DateService.start_of_day_in_timezone(date, user.timezone) if date else None
    return service.get_tasks_for_group(group_id, day=day, user_id=user_id, status=status_filter)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Edit a task or change its status"""
    return TaskService(db).update_task(user, task_id, task_update)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a task on its own day"""
    TaskService(db).delete_task(user, task_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/groups/{group_id}/pending", response_model=GroupPendingResponse)
def get_group_pending(
    group_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's overdue tasks in a group"""
    TaskService(db).ensure_member(user.id, group_id)
    items = PendingTaskService(db).pending_tasks_with_age(user.id, user.timezone, group_id=group_id)
    group_name = items[0].task.group.name if items else None
    return _group_pending_response(GroupPendingTasks(group_id, group_name, items))


@router.get("/pending", response_model=List[GroupPendingResponse])
def get_dashboard_pending(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's overdue tasks across all groups"""
    buckets = PendingTaskService(db).pending_tasks_by_group(user.id, user.timezone)
    return [_group_pending_response(bucket) for bucket in buckets]
