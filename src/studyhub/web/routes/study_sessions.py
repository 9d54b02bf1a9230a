"""Planned study session endpoints."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.db.data_service import DataService, asc, eq, select_one
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_data_service
from studyhub.web.schemas import Envelope, StudySessionCreate, StudySessionUpdate

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/study-sessions", tags=["study-sessions"])


def _get_session(service: DataService, session_id: str) -> dict[str, Any]:
    session = select_one(service, "study_sessions", [eq("id", session_id)])
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Study session not found",
        )
    return session


@router.get("/session/{session_id}", response_model=Envelope)
def get_study_session(
    session_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    return Envelope(data=_get_session(service, session_id))


@router.get("/{user_id}", response_model=Envelope)
def get_study_sessions(
    user_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Sessions of a user in calendar order."""
    sessions = service.select(
        "study_sessions",
        filters=[eq("user_id", user_id)],
        order=[asc("date"), asc("time")],
    )
    return Envelope(data=sessions)


@router.post("/", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_study_session(
    body: StudySessionCreate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    session = service.insert(
        "study_sessions",
        {
            "user_id": body.user_id,
            "subject": body.subject,
            "topic": body.topic,
            "date": body.date,
            "time": body.time,
            "duration": body.duration,
            "pomodoro_sessions": body.pomodoro_sessions,
            "notes": body.notes,
            "completed": False,
        },
    )
    logger.info("study_session_created", session_id=session["id"], user_id=body.user_id)
    return Envelope(message="Study session created successfully", data=session)


@router.put("/{session_id}", response_model=Envelope)
def update_study_session(
    session_id: str,
    body: StudySessionUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_session(service, session_id)
    changes = body.model_dump(exclude_unset=True)
    changes["updated_at"] = now_iso()
    updated = service.update("study_sessions", changes, [eq("id", session_id)])
    return Envelope(message="Study session updated successfully", data=updated[0])


@router.delete("/{session_id}", response_model=Envelope)
def delete_study_session(
    session_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_session(service, session_id)
    service.delete("study_sessions", [eq("id", session_id)])
    return Envelope(message="Study session deleted successfully")
