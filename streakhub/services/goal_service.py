"""
Goal management service.
Handles short-term (checklist) and long-term (milestone) goals of a group.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from streakhub.constants import GoalStatus, GoalType
from streakhub.exceptions import (
    GoalNotFoundException, NotGroupMemberException,
    PermissionDeniedException, ValidationException
)
from streakhub.models import Goal, User
from streakhub.repositories.goal_repository import GoalRepository
from streakhub.repositories.group_repository import GroupRepository
from streakhub.schemas import GoalCreate, GoalUpdate
from streakhub.services.date_service import DateService

logger = logging.getLogger("streakhub.goals")

# JSON columns hold plain dicts; datetimes are stored as ISO strings
_JSON_FIELDS = ("items", "milestones")


class GoalService:
    """Service for managing group goals"""

    def __init__(self, db: Session):
        self.db = db
        self.goal_repo = GoalRepository()
        self.group_repo = GroupRepository()

    @staticmethod
    def progress(goal: Goal) -> float:
        """Percentage of completed checklist items or milestones"""
        entries = goal.items if goal.goal_type == GoalType.SHORT_TERM else goal.milestones
        entries = entries or []
        if not entries:
            return 0.0
        done = sum(1 for entry in entries if entry.get("completed"))
        return done / len(entries) * 100

    def get_goal(self, user: User, goal_id: int) -> Goal:
        """Get a goal visible to the user"""
        goal = self._get_or_raise(goal_id)
        self._ensure_member(user.id, goal.group_id)
        return goal

    def get_goals_for_group(self, user: User, group_id: int) -> List[Goal]:
        """Get a group's goals, newest first"""
        self._ensure_member(user.id, group_id)
        return self.goal_repo.get_for_group(self.db, group_id)

    def create_goal(self, user: User, group_id: int, goal_data: GoalCreate) -> Goal:
        """Create a goal owned by the user"""
        self._ensure_member(user.id, group_id)

        data = goal_data.model_dump(mode="json", include=set(_JSON_FIELDS))
        if goal_data.goal_type == GoalType.SHORT_TERM and goal_data.milestones:
            raise ValidationException("milestones", "short-term goals use checklist items")
        if goal_data.goal_type == GoalType.LONG_TERM and goal_data.items:
            raise ValidationException("items", "long-term goals use milestones")
        self._check_date_range(goal_data.start_date, goal_data.end_date)

        goal = Goal(
            group_id=group_id,
            user_id=user.id,
            title=goal_data.title,
            description=goal_data.description,
            goal_type=goal_data.goal_type,
            status=GoalStatus.ACTIVE,
            items=data.get("items"),
            start_date=goal_data.start_date,
            end_date=goal_data.end_date,
            milestones=data.get("milestones")
        )
        goal = self.goal_repo.create(self.db, goal)
        logger.info(f"User {user.id} created {goal.goal_type.value} goal {goal.id} in group {group_id}")
        return goal

    def update_goal(self, user: User, goal_id: int, goal_update: GoalUpdate) -> Goal:
        """Update a goal owned by the user"""
        goal = self._get_owned(user, goal_id, "update")

        update_data = goal_update.model_dump(exclude_unset=True)
        json_data = goal_update.model_dump(mode="json", exclude_unset=True, include=set(_JSON_FIELDS))
        update_data.update(json_data)
        for key, value in update_data.items():
            if value is None and key in ("title", "status"):
                continue
            setattr(goal, key, value)
        self._check_date_range(goal.start_date, goal.end_date)

        return self.goal_repo.update(self.db, goal)

    def delete_goal(self, user: User, goal_id: int) -> None:
        """Delete a goal owned by the user"""
        goal = self._get_owned(user, goal_id, "delete")
        self.goal_repo.delete(self.db, goal)
        logger.info(f"Goal {goal_id} deleted by user {user.id}")

    def toggle_item(self, user: User, goal_id: int, item_id: str) -> Goal:
        """Flip a checklist item; completing the last one completes the goal"""
        goal = self._get_owned(user, goal_id, "update")
        items = [dict(item) for item in (goal.items or [])]
        for item in items:
            if item.get("id") == item_id:
                item["completed"] = not item.get("completed", False)
                break
        else:
            raise ValidationException("item_id", f"no item {item_id!r} in goal {goal_id}")

        goal.items = items
        self._complete_if_done(goal, items)
        return self.goal_repo.update(self.db, goal)

    def toggle_milestone(self, user: User, goal_id: int, index: int) -> Goal:
        """Flip a milestone; completing the last one completes the goal"""
        goal = self._get_owned(user, goal_id, "update")
        milestones = [dict(milestone) for milestone in (goal.milestones or [])]
        if not 0 <= index < len(milestones):
            raise ValidationException("index", f"no milestone {index} in goal {goal_id}")

        milestones[index]["completed"] = not milestones[index].get("completed", False)
        goal.milestones = milestones
        self._complete_if_done(goal, milestones)
        return self.goal_repo.update(self.db, goal)

    def _complete_if_done(self, goal: Goal, entries: List[dict]) -> None:
        if entries and all(entry.get("completed") for entry in entries):
            goal.status = GoalStatus.COMPLETED
            logger.info(f"Goal {goal.id} completed")

    @staticmethod
    def _check_date_range(start_date, end_date) -> None:
        if start_date and end_date and DateService.as_utc(end_date) < DateService.as_utc(start_date):
            raise ValidationException("end_date", "must not be before start_date")

    def _ensure_member(self, user_id: int, group_id: int) -> None:
        if not self.group_repo.get_membership(self.db, group_id, user_id):
            raise NotGroupMemberException(user_id, group_id)

    def _get_or_raise(self, goal_id: int) -> Goal:
        goal = self.goal_repo.get_by_id(self.db, goal_id)
        if not goal:
            raise GoalNotFoundException(goal_id)
        return goal

    def _get_owned(self, user: User, goal_id: int, action: str) -> Goal:
        goal = self._get_or_raise(goal_id)
        if goal.user_id != user.id:
            raise PermissionDeniedException(f"You can only {action} your own goals")
        return goal
