"""
Goal HTTP routes.
"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from streakhub.auth import get_current_user, verify_api_key
from streakhub.database import get_db
from streakhub.models import Goal, User
from streakhub.schemas import GoalCreate, GoalResponse, GoalUpdate
from streakhub.services.goal_service import GoalService

router = APIRouter(prefix="/api", tags=["goals"], dependencies=[Depends(verify_api_key)])


def _goal_response(goal: Goal) -> GoalResponse:
    response = GoalResponse.model_validate(goal)
    response.progress = GoalService.progress(goal)
    return response


@router.get("/groups/{group_id}/goals", response_model=List[GoalResponse])
def get_group_goals(
    group_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    goals = GoalService(db).get_goals_for_group(user, group_id)
    return [_goal_response(goal) for goal in goals]


@router.post(
    "/groups/{group_id}/goals",
    response_model=GoalResponse,
    status_code=status.HTTP_201_CREATED
)
def create_goal(
    group_id: int,
    goal: GoalCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _goal_response(GoalService(db).create_goal(user, group_id, goal))


@router.get("/goals/{goal_id}", response_model=GoalResponse)
def get_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _goal_response(GoalService(db).get_goal(user, goal_id))


@router.patch("/goals/{goal_id}", response_model=GoalResponse)
def update_goal(
    goal_id: int,
    goal_update: GoalUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _goal_response(GoalService(db).update_goal(user, goal_id, goal_update))


@router.delete("/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_goal(
    goal_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    GoalService(db).delete_goal(user, goal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/goals/{goal_id}/items/{item_id}/toggle", response_model=GoalResponse)
def toggle_goal_item(
    goal_id: int,
    item_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Check or uncheck a short-term goal's checklist item"""
    return _goal_response(GoalService(db).toggle_item(user, goal_id, item_id))


@router.post("/goals/{goal_id}/milestones/{index}/toggle", response_model=GoalResponse)
def toggle_goal_milestone(
    goal_id: int,
    index: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Check or uncheck a long-term goal's milestone"""
    return _goal_response(GoalService(db).toggle_milestone(user, goal_id, index))
