"""Study goal endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.db.data_service import DataService, desc, eq, select_one
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_data_service
from studyhub.web.schemas import Envelope, GoalCreate, GoalUpdate

router = APIRouter(prefix="/api/goals", tags=["goals"])


def _get_goal(service: DataService, goal_id: str) -> dict[str, Any]:
    goal = select_one(service, "study_goals", [eq("id", goal_id)])
    if goal is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Goal not found",
        )
    return goal


def _set_completed(service: DataService, goal_id: str, completed: bool) -> dict[str, Any]:
    updated = service.update(
        "study_goals",
        {"completed": completed, "updated_at": now_iso()},
        [eq("id", goal_id)],
    )
    return updated[0]


@router.get("/{user_id}", response_model=Envelope)
def get_goals(
    user_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    goals = service.select(
        "study_goals",
        filters=[eq("user_id", user_id)],
        order=[desc("created_at")],
    )
    return Envelope(data=goals)


@router.post("/{user_id}", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_goal(
    user_id: str,
    body: GoalCreate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    goal = service.insert(
        "study_goals",
        {"user_id": user_id, "title": body.title, "completed": False},
    )
    return Envelope(message="Goal created successfully", data=goal)


@router.put("/{goal_id}", response_model=Envelope)
def update_goal(
    goal_id: str,
    body: GoalUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_goal(service, goal_id)
    return Envelope(
        message="Goal updated successfully",
        data=_set_completed(service, goal_id, body.completed),
    )


@router.patch("/{goal_id}/toggle", response_model=Envelope)
def toggle_goal(
    goal_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Flip the goal's completed flag."""
    goal = _get_goal(service, goal_id)
    return Envelope(
        message="Goal updated successfully",
        data=_set_completed(service, goal_id, not goal["completed"]),
    )


@router.delete("/{goal_id}", response_model=Envelope)
def delete_goal(
    goal_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_goal(service, goal_id)
    service.delete("study_goals", [eq("id", goal_id)])
    return Envelope(message="Goal deleted successfully")
