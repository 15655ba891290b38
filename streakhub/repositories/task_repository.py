"""
Task repository - Data access layer for DailyTask model.
Handles all database queries related to daily tasks.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from streakhub.constants import TaskStatus
from streakhub.models import DailyTask


class TaskRepository:
    """Repository for DailyTask data access"""

    @staticmethod
    def get_by_id(db: Session, task_id: int) -> Optional[DailyTask]:
        """Get task by ID"""
        return db.query(DailyTask).filter(DailyTask.id == task_id).first()

    @staticmethod
    def get_for_day(
        db: Session,
        group_id: int,
        user_id: int,
        day: datetime
    ) -> Optional[DailyTask]:
        """Get the task a user posted in a group for a normalized day"""
        return db.query(DailyTask).filter(
            DailyTask.group_id == group_id,
            DailyTask.user_id == user_id,
            DailyTask.date == day
        ).first()

    @staticmethod
    def find_by_status(
        db: Session,
        status: TaskStatus,
        user_id: Optional[int] = None,
        group_id: Optional[int] = None,
        before: Optional[datetime] = None
    ) -> List[DailyTask]:
        """
        Get tasks with a status, oldest first.

        Args:
            db: Database session
            status: Status to match
            user_id: Restrict to one user
            group_id: Restrict to one group
            before: Only tasks whose normalized date is strictly earlier

        Returns:
            Matching tasks ordered by date ascending
        """
        query = db.query(DailyTask).options(
            joinedload(DailyTask.group)
        ).filter(DailyTask.status == status)

        if user_id is not None:
            query = query.filter(DailyTask.user_id == user_id)
        if group_id is not None:
            query = query.filter(DailyTask.group_id == group_id)
        if before is not None:
            query = query.filter(DailyTask.date < before)

        return query.order_by(DailyTask.date.asc(), DailyTask.id.asc()).all()

    @staticmethod
    def get_for_group(
        db: Session,
        group_id: int,
        day: Optional[datetime] = None,
        user_id: Optional[int] = None,
        status: Optional[TaskStatus] = None
    ) -> List[DailyTask]:
        """Get tasks in a group, newest first"""
        query = db.query(DailyTask).options(
            joinedload(DailyTask.user)
        ).filter(DailyTask.group_id == group_id)

        if day is not None:
            query = query.filter(DailyTask.date == day)
        if user_id is not None:
            query = query.filter(DailyTask.user_id == user_id)
        if status is not None:
            query = query.filter(DailyTask.status == status)

        return query.order_by(DailyTask.date.desc()).all()

    @staticmethod
    def get_for_user(
        db: Session,
        user_id: int,
        group_id: Optional[int] = None
    ) -> List[DailyTask]:
        """Get tasks of a user, newest first"""
        query = db.query(DailyTask).options(
            joinedload(DailyTask.group)
        ).filter(DailyTask.user_id == user_id)

        if group_id is not None:
            query = query.filter(DailyTask.group_id == group_id)

        return query.order_by(DailyTask.date.desc()).all()

    @staticmethod
    def create(db: Session, task: DailyTask) -> DailyTask:
        """Create a new task"""
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def update(db: Session, task: DailyTask) -> DailyTask:
        """Update existing task"""
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def update_status(
        db: Session,
        task: DailyTask,
        status: TaskStatus,
        completed_at: Optional[datetime] = None
    ) -> DailyTask:
        """Set a task's status; completed_at is kept only for completed tasks"""
        task.status = status
        task.completed_at = completed_at if status == TaskStatus.COMPLETED else None
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def delete(db: Session, task: DailyTask) -> None:
        """Delete a task"""
        db.delete(task)
        db.commit()
