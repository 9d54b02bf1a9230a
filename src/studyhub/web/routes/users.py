"""Profile, stats and dashboard for the signed-in user."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.core.stats import average_percentage, study_streak, total_minutes
from studyhub.db.data_service import AuthUser, DataService, asc, desc, eq, gte, in_
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_current_user, get_data_service
from studyhub.web.schemas import Envelope, ProfileUpdate

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

DASHBOARD_LIMIT = 5


@router.put("/profile", response_model=Envelope)
def update_profile(
    body: ProfileUpdate,
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    changes = body.model_dump(exclude_unset=True)
    changes["updated_at"] = now_iso()
    updated = service.update("users", changes, [eq("id", user.id)])
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found",
        )
    logger.info("profile_updated", user_id=user.id, fields=sorted(changes))
    return Envelope(message="Profile updated successfully", data=updated[0])


@router.get("/stats", response_model=Envelope)
def get_user_stats(
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """All-time totals and the current study streak."""
    sessions = service.select(
        "study_sessions",
        columns="duration, date, created_at",
        filters=[eq("user_id", user.id), eq("completed", True)],
    )
    submissions = service.select(
        "quiz_submissions",
        columns="percentage",
        filters=[eq("user_id", user.id)],
    )
    flashcard_sets = service.select(
        "flashcard_sets",
        columns="id",
        filters=[eq("user_id", user.id)],
    )

    return Envelope(
        data={
            "total_study_sessions": len(sessions),
            "total_study_minutes": total_minutes(sessions),
            "total_quiz_submissions": len(submissions),
            "average_quiz_score": average_percentage(submissions),
            "total_flashcard_sets": len(flashcard_sets),
            "study_streak": study_streak(sessions),
        }
    )


@router.get("/dashboard", response_model=Envelope)
def get_dashboard(
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Recent activity and upcoming sessions."""
    recent_sessions = service.select(
        "study_sessions",
        filters=[eq("user_id", user.id)],
        order=[desc("created_at")],
        limit=DASHBOARD_LIMIT,
    )

    recent_submissions = service.select(
        "quiz_submissions",
        columns="id, quiz_id, score, total_points, percentage, submitted_at",
        filters=[eq("user_id", user.id)],
        order=[desc("submitted_at")],
        limit=DASHBOARD_LIMIT,
    )
    quiz_ids = sorted({s["quiz_id"] for s in recent_submissions})
    quizzes = (
        service.select("quizzes", columns="id, title", filters=[in_("id", quiz_ids)])
        if quiz_ids
        else []
    )
    titles = {q["id"]: q["title"] for q in quizzes}

    today = datetime.now(timezone.utc).date().isoformat()
    upcoming = service.select(
        "study_sessions",
        filters=[eq("user_id", user.id), eq("completed", False), gte("date", today)],
        order=[asc("date"), asc("time")],
        limit=DASHBOARD_LIMIT,
    )

    return Envelope(
        data={
            "recent_sessions": recent_sessions,
            "recent_submissions": [
                {**s, "quiz_title": titles.get(s["quiz_id"])} for s in recent_submissions
            ],
            "upcoming_sessions": upcoming,
        }
    )
