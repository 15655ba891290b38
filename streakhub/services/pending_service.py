"""
Pending task derivation.
A task is pending once its calendar day has fully elapsed without being
marked completed or missed. Tasks due today are never pending.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, NamedTuple, Optional

from sqlalchemy.orm import Session

from streakhub.constants import TaskStatus
from streakhub.models import DailyTask
from streakhub.repositories.task_repository import TaskRepository
from streakhub.services.date_service import DateService


class PendingTask(NamedTuple):
    task: DailyTask
    days_pending: int


@dataclass
class GroupPendingTasks:
    """Pending tasks of one user in one group, for dashboard alerts"""
    group_id: int
    group_name: Optional[str]
    tasks: List[PendingTask] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.tasks)

    @property
    def oldest_days_pending(self) -> int:
        return max((item.days_pending for item in self.tasks), default=0)


class PendingTaskService:
    """Service for classifying overdue tasks"""

    def __init__(
        self,
        db: Session,
        task_repo: Optional[TaskRepository] = None,
        date_service: Optional[DateService] = None
    ):
        self.db = db
        self.task_repo = task_repo or TaskRepository()
        self.date_service = date_service or DateService()

    def is_pending(
        self,
        task: DailyTask,
        timezone: str,
        now: Optional[datetime] = None
    ) -> bool:
        """True if the task is unresolved and its day is over"""
        if now is None:
            now = self.date_service.utc_now()
        start_of_today = self.date_service.start_of_day_in_timezone(now, timezone)
        return (
            task.status == TaskStatus.PENDING
            and self.date_service.as_utc(task.date) < start_of_today
        )

    def pending_count(self, user_id: int, group_id: int, timezone: str) -> int:
        """Number of pending tasks a user has in a group"""
        return len(self._find_pending(timezone, user_id, group_id))

    def pending_tasks_with_age(
        self,
        user_id: int,
        timezone: str,
        group_id: Optional[int] = None
    ) -> List[PendingTask]:
        """
        Pending tasks annotated with how many days they have been pending.

        Args:
            user_id: Owner of the tasks
            timezone: IANA timezone of the user
            group_id: Restrict to one group; all of the user's groups if None

        Returns:
            (task, days_pending) pairs, oldest task first
        """
        now = self.date_service.utc_now()
        return [
            PendingTask(task, self.date_service.days_pending(task.date, timezone, now))
            for task in self._find_pending(timezone, user_id, group_id, now)
        ]

    def pending_tasks_by_group(self, user_id: int, timezone: str) -> List[GroupPendingTasks]:
        """Pending tasks across all of a user's groups, bucketed per group"""
        buckets = {}
        for item in self.pending_tasks_with_age(user_id, timezone):
            task = item.task
            if task.group_id not in buckets:
                group_name = task.group.name if task.group is not None else None
                buckets[task.group_id] = GroupPendingTasks(task.group_id, group_name)
            buckets[task.group_id].tasks.append(item)
        return list(buckets.values())

    def _find_pending(
        self,
        timezone: str,
        user_id: int,
        group_id: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> List[DailyTask]:
        if now is None:
            now = self.date_service.utc_now()
        start_of_today = self.date_service.start_of_day_in_timezone(now, timezone)
        return self.task_repo.find_by_status(
            self.db,
            TaskStatus.PENDING,
            user_id=user_id,
            group_id=group_id,
            before=start_of_today
        )
