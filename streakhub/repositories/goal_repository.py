"""
Goal repository - Data access layer for Goal model.
"""
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from streakhub.models import Goal


class GoalRepository:
    """Repository for Goal data access"""

    @staticmethod
    def get_by_id(db: Session, goal_id: int) -> Optional[Goal]:
        """Get goal by ID"""
        return db.query(Goal).filter(Goal.id == goal_id).first()

    @staticmethod
    def get_for_group(db: Session, group_id: int) -> List[Goal]:
        """Get all goals in a group, newest first"""
        return db.query(Goal).options(
            joinedload(Goal.user)
        ).filter(Goal.group_id == group_id).order_by(
            Goal.created_at.desc(), Goal.id.desc()
        ).all()

    @staticmethod
    def create(db: Session, goal: Goal) -> Goal:
        """Create a new goal"""
        db.add(goal)
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def update(db: Session, goal: Goal) -> Goal:
        """Update existing goal"""
        db.commit()
        db.refresh(goal)
        return goal

    @staticmethod
    def delete(db: Session, goal: Goal) -> None:
        """Delete a goal"""
        db.delete(goal)
        db.commit()
