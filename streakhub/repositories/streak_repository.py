"""
Streak repository - Data access layer for Streak model.
Handles all database queries related to streak records.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from streakhub.exceptions import ConcurrentModificationException
from streakhub.models import Streak

logger = logging.getLogger("streakhub.repositories.streak")


class StreakRepository:
    """Repository for Streak data access"""

    @staticmethod
    def get(db: Session, group_id: int, user_id: int) -> Optional[Streak]:
        """Get the streak for a (group, user) pair"""
        return db.query(Streak).filter(
            Streak.group_id == group_id,
            Streak.user_id == user_id
        ).first()

    @staticmethod
    def create(db: Session, group_id: int, user_id: int) -> Streak:
        """
        Stage a zeroed streak record in the session.

        Nothing is written here; the row is inserted by the next `update`,
        together with its counters.
        """
        streak = Streak(
            group_id=group_id,
            user_id=user_id,
            current_streak=0,
            best_streak=0,
            last_task_date=None
        )
        db.add(streak)
        return streak

    @staticmethod
    def update(db: Session, streak: Streak, **fields) -> Streak:
        """
        Write the given fields in a single versioned INSERT or UPDATE.

        Raises:
            ConcurrentModificationException: If another writer changed the row
                since it was read, or created it first
        """
        key = f"group={streak.group_id} user={streak.user_id}"
        for field, value in fields.items():
            setattr(streak, field, value)
        try:
            db.commit()
        except (StaleDataError, IntegrityError) as exc:
            db.rollback()
            logger.warning(f"Stale write on streak {key}: {exc}")
            raise ConcurrentModificationException("Streak", key) from exc
        db.refresh(streak)
        return streak

    @staticmethod
    def find_active(
        db: Session,
        user_id: Optional[int] = None,
        group_id: Optional[int] = None
    ) -> List[Streak]:
        """Get streaks with a running count, with their owners, optionally scoped to a user and/or group"""
        query = db.query(Streak).options(
            joinedload(Streak.user)
        ).filter(Streak.current_streak > 0)
        if user_id is not None:
            query = query.filter(Streak.user_id == user_id)
        if group_id is not None:
            query = query.filter(Streak.group_id == group_id)
        return query.all()

    @staticmethod
    def get_for_user(db: Session, user_id: int) -> List[Streak]:
        """Get all streaks of a user, longest running first"""
        return db.query(Streak).filter(
            Streak.user_id == user_id
        ).order_by(Streak.current_streak.desc()).all()

    @staticmethod
    def get_for_group(db: Session, group_id: int) -> List[Streak]:
        """Get all streaks in a group, longest running first"""
        return db.query(Streak).filter(
            Streak.group_id == group_id
        ).order_by(Streak.current_streak.desc()).all()
