"""Progress tracking for the signed-in user."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from studyhub.core.stats import period_start, progress_stats
from studyhub.db.data_service import AuthUser, DataService, desc, eq, gte, lte
from studyhub.web.deps import get_current_user, get_data_service
from studyhub.web.schemas import Envelope, ProgressSessionCreate

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/progress", tags=["progress"])


@router.post("/sessions", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_progress_session(
    body: ProgressSessionCreate,
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Log a finished study session for today."""
    session = service.insert(
        "study_sessions",
        {
            "user_id": user.id,
            "subject": body.subject,
            "topic": body.topic,
            "duration": body.duration,
            "notes": body.notes,
            "date": datetime.now(timezone.utc).date().isoformat(),
            "completed": True,
        },
    )
    logger.info("progress_session_logged", user_id=user.id, minutes=body.duration)
    return Envelope(message="Study session recorded successfully", data=session)


@router.get("/sessions", response_model=Envelope)
def get_progress_sessions(
    start_date: str | None = None,
    end_date: str | None = None,
    subject: str | None = None,
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Sessions of the signed-in user, most recent date first."""
    filters = [eq("user_id", user.id)]
    if start_date:
        filters.append(gte("date", start_date))
    if end_date:
        filters.append(lte("date", end_date))
    if subject:
        filters.append(eq("subject", subject))

    sessions = service.select(
        "study_sessions",
        filters=filters,
        order=[desc("date"), desc("created_at")],
    )
    return Envelope(data=sessions)


@router.get("/stats", response_model=Envelope)
def get_progress_stats(
    period: str = Query(default="week"),
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Totals over the last week, month or year."""
    try:
        since = period_start(period)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    sessions = service.select(
        "study_sessions",
        columns="subject, duration, date, created_at",
        filters=[
            eq("user_id", user.id),
            eq("completed", True),
            gte("date", since.date().isoformat()),
        ],
    )
    submissions = service.select(
        "quiz_submissions",
        columns="score, total_points, percentage, submitted_at",
        filters=[eq("user_id", user.id), gte("submitted_at", since.isoformat())],
    )
    return Envelope(data={"period": period, **progress_stats(sessions, submissions)})
