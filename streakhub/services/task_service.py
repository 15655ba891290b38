"""
Daily task management service.
Handles posting, editing, status changes and deletion of daily tasks, and
keeps streaks in step with status changes.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from streakhub.constants import TaskStatus
from streakhub.exceptions import (
    DuplicateTaskException, NotGroupMemberException,
    PermissionDeniedException, TaskLockedException, TaskNotFoundException
)
from streakhub.models import DailyTask, User
from streakhub.repositories.group_repository import GroupRepository
from streakhub.repositories.task_repository import TaskRepository
from streakhub.schemas import TaskCreate, TaskUpdate
from streakhub.services.date_service import DateService
from streakhub.services.streak_service import StreakService

logger = logging.getLogger("streakhub.tasks")


class TaskService:
    """Service for daily task management"""

    def __init__(self, db: Session):
        self.db = db
        self.task_repo = TaskRepository()
        self.group_repo = GroupRepository()
        self.date_service = DateService()
        self.streak_service = StreakService(db)

    def ensure_member(self, user_id: int, group_id: int) -> None:
        """Raise unless the user belongs to the group"""
        if not self.group_repo.get_membership(self.db, group_id, user_id):
            raise NotGroupMemberException(user_id, group_id)

    def get_task(self, task_id: int) -> DailyTask:
        """Get task by ID"""
        task = self.task_repo.get_by_id(self.db, task_id)
        if not task:
            raise TaskNotFoundException(task_id)
        return task

    def get_tasks_for_group(
        self,
        group_id: int,
        day: Optional[datetime] = None,
        user_id: Optional[int] = None,
        status: Optional[TaskStatus] = None
    ) -> List[DailyTask]:
        """Get tasks in a group, newest first. `day` must already be normalized."""
        return self.task_repo.get_for_group(
            self.db, group_id, day=day, user_id=user_id, status=status
        )

    def get_tasks_for_user(self, user_id: int, group_id: Optional[int] = None) -> List[DailyTask]:
        """Get a user's tasks, newest first"""
        return self.task_repo.get_for_user(self.db, user_id, group_id)

    def has_task_for_date(self, user_id: int, group_id: int, day: datetime) -> bool:
        """Check whether a task exists for a normalized day"""
        return self.task_repo.get_for_day(self.db, group_id, user_id, day) is not None

    def create_task(self, user: User, group_id: int, task_data: TaskCreate) -> DailyTask:
        """
        Post the user's task for a day.

        The supplied date is normalized to local midnight in the user's
        timezone, so any instant during the day maps to the same task slot.

        Raises:
            NotGroupMemberException: If the user is not in the group
            DuplicateTaskException: If the user already posted for that day
        """
        self.ensure_member(user.id, group_id)

        day = self.date_service.start_of_day_in_timezone(task_data.date, user.timezone)
        local_day = self.date_service.local_date(day, user.timezone)
        if self.has_task_for_date(user.id, group_id, day):
            raise DuplicateTaskException(group_id, user.id, local_day)

        task = DailyTask(
            group_id=group_id,
            user_id=user.id,
            title=task_data.title,
            description=task_data.description,
            date=day,
            status=TaskStatus.PENDING
        )
        try:
            task = self.task_repo.create(self.db, task)
        except IntegrityError as exc:
            # Lost a race with another request for the same slot
            self.db.rollback()
            raise DuplicateTaskException(group_id, user.id, local_day) from exc

        logger.info(f"User {user.id} posted task {task.id} for {local_day} in group {group_id}")
        return task

    def update_task(self, user: User, task_id: int, task_update: TaskUpdate) -> DailyTask:
        """
        Edit a task and/or change its status.

        Title and description are frozen once the task's day has passed;
        status may change at any time. Completing a task counts it towards
        the streak, marking it missed breaks the streak, and moving it back to
        pending clears the completion time.

        Raises:
            TaskNotFoundException: If the task does not exist
            PermissionDeniedException: If the user does not own the task
            TaskLockedException: If details are edited after the day passed
        """
        task = self.get_task(task_id)
        if task.user_id != user.id:
            raise PermissionDeniedException("You can only update your own tasks")

        update_data = task_update.model_dump(exclude_unset=True)
        new_status = update_data.pop("status", None)
        details = {key: value for key, value in update_data.items() if value is not None}

        now = self.date_service.utc_now()
        # Blank values do not count as an edit
        if any(details.values()) and self._day_has_passed(task, user.timezone, now):
            raise TaskLockedException(task.id, "edit")

        if new_status is None or new_status == task.status:
            for key, value in details.items():
                setattr(task, key, value)
            return self.task_repo.update(self.db, task)

        # Streak first: its retry path rolls the session back
        completed_at = None
        if new_status == TaskStatus.COMPLETED:
            self.streak_service.record_completion(
                task.user_id, task.group_id, task.date, user.timezone
            )
            completed_at = now
        elif new_status == TaskStatus.MISSED:
            self.streak_service.break_streak(task.user_id, task.group_id)

        for key, value in details.items():
            setattr(task, key, value)

        logger.info(f"Task {task.id} status {task.status.value} -> {new_status.value}")
        return self.task_repo.update_status(self.db, task, new_status, completed_at)

    def delete_task(self, user: User, task_id: int) -> None:
        """
        Delete a task on the day it was posted for.

        Raises:
            TaskNotFoundException: If the task does not exist
            PermissionDeniedException: If the user does not own the task
            TaskLockedException: If the task's day has passed
        """
        task = self.get_task(task_id)
        if task.user_id != user.id:
            raise PermissionDeniedException("You can only delete your own tasks")
        if self._day_has_passed(task, user.timezone, self.date_service.utc_now()):
            raise TaskLockedException(task.id, "delete")

        self.task_repo.delete(self.db, task)
        logger.info(f"Task {task_id} deleted by user {user.id}")

    def _day_has_passed(self, task: DailyTask, timezone: str, now: datetime) -> bool:
        start_of_today = self.date_service.start_of_day_in_timezone(now, timezone)
        return self.date_service.as_utc(task.date) < start_of_today
