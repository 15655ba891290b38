"""
Streak HTTP routes.
Every read sweeps stale streaks first so counts shown are current.
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from streakhub.auth import get_current_user, verify_api_key
from streakhub.database import get_db
from streakhub.exceptions import StreakNotFoundException
from streakhub.models import User
from streakhub.schemas import StreakResponse
from streakhub.services.streak_service import StreakService
from streakhub.services.task_service import TaskService

router = APIRouter(prefix="/api", tags=["streaks"], dependencies=[Depends(verify_api_key)])


@router.get("/streaks/me", response_model=List[StreakResponse])
def get_my_streaks(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All of the current user's streaks"""
    service = StreakService(db)
    service.sweep_stale_streaks(user.timezone, user_id=user.id)
    return service.get_streaks_for_user(user.id)


@router.get("/groups/{group_id}/streaks", response_model=List[StreakResponse])
def get_group_streaks(
    group_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Streak leaderboard of a group"""
    TaskService(db).ensure_member(user.id, group_id)
    service = StreakService(db)
    service.sweep_stale_streaks(user.timezone, group_id=group_id)
    return service.get_streaks_for_group(group_id)


@router.get("/groups/{group_id}/streaks/me", response_model=StreakResponse)
def get_my_group_streak(
    group_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's streak in one group"""
    TaskService(db).ensure_member(user.id, group_id)
    service = StreakService(db)
    service.sweep_stale_streaks(user.timezone, user_id=user.id, group_id=group_id)
    streak = service.get_streak(user.id, group_id)
    if streak is None:
        raise StreakNotFoundException(user.id, group_id)
    return streak
