"""Class and enrollment endpoints."""

from collections import Counter
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from studyhub.core.class_codes import generate_class_code
from studyhub.db.data_service import (
    ConflictError,
    DataService,
    desc,
    eq,
    in_,
    neq,
    select_one,
)
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_data_service
from studyhub.web.schemas import ClassCreate, ClassUpdate, Envelope, JoinClassRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/classes", tags=["classes"])

CLASS_COLUMNS = (
    "id, name, subject, grade_level, class_code, schedule, room, description, teacher_id, created_at"
)


def _get_owned_class(service: DataService, teacher_id: str, class_id: str) -> dict[str, Any]:
    """Class row owned by the teacher, or 404."""
    class_row = select_one(service, "classes", [eq("id", class_id), eq("teacher_id", teacher_id)])
    if class_row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )
    return class_row


def _class_code_exists(service: DataService, code: str) -> bool:
    return select_one(service, "classes", [eq("class_code", code)], columns="id") is not None


def _new_class_code(service: DataService) -> str:
    return generate_class_code(lambda code: _class_code_exists(service, code))


def _with_student_counts(service: DataService, classes: list[dict[str, Any]]) -> list[dict[str, Any]]:
    if not classes:
        return []
    enrollments = service.select(
        "class_students",
        columns="class_id",
        filters=[in_("class_id", [c["id"] for c in classes])],
    )
    counts = Counter(e["class_id"] for e in enrollments)
    return [{**c, "student_count": counts.get(c["id"], 0)} for c in classes]


def _users_by_id(service: DataService, user_ids: list[str], columns: str) -> dict[str, dict]:
    if not user_ids:
        return {}
    users = service.select("users", columns=columns, filters=[in_("id", user_ids)])
    return {u["id"]: u for u in users}


# =============================================================================
# STUDENT SIDE
# =============================================================================


@router.get("/students/{student_id}/classes", response_model=Envelope)
def get_student_classes(
    student_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Classes the student is enrolled in, with teacher details."""
    enrollments = service.select(
        "class_students",
        columns="class_id, enrolled_at",
        filters=[eq("user_id", student_id)],
    )
    if not enrollments:
        return Envelope(data=[])

    classes = service.select(
        "classes",
        columns=CLASS_COLUMNS,
        filters=[in_("id", [e["class_id"] for e in enrollments])],
    )
    classes_by_id = {c["id"]: c for c in classes}
    teachers = _users_by_id(
        service,
        sorted({c["teacher_id"] for c in classes}),
        columns="id, first_name, last_name, email",
    )

    result = []
    for enrollment in enrollments:
        class_row = classes_by_id.get(enrollment["class_id"])
        if class_row is None:
            continue
        teacher = teachers.get(class_row["teacher_id"])
        result.append(
            {
                **class_row,
                "enrolled_at": enrollment["enrolled_at"],
                "teacher": (
                    {
                        "first_name": teacher["first_name"],
                        "last_name": teacher["last_name"],
                        "email": teacher["email"],
                    }
                    if teacher
                    else None
                ),
            }
        )

    logger.info("student_classes_listed", student_id=student_id, count=len(result))
    return Envelope(data=result)


@router.post(
    "/students/{student_id}/join-class",
    response_model=Envelope,
    status_code=status.HTTP_201_CREATED,
)
def join_class_with_code(
    student_id: str,
    body: JoinClassRequest,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Enroll a student using a class code."""
    class_row = select_one(service, "classes", [eq("class_code", body.class_code)], columns="id")
    if class_row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found with the provided code",
        )

    existing = select_one(
        service,
        "class_students",
        [eq("class_id", class_row["id"]), eq("user_id", student_id)],
        columns="id",
    )
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Student is already enrolled in this class",
        )

    try:
        enrollment = service.insert(
            "class_students",
            {"class_id": class_row["id"], "user_id": student_id, "enrolled_at": now_iso()},
        )
    except ConflictError as exc:
        # Lost a race with a concurrent join
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Student is already enrolled in this class",
        ) from exc

    logger.info("class_joined", class_id=class_row["id"], student_id=student_id)
    return Envelope(message="Successfully joined class", data=enrollment)


@router.get("/{student_id}/{class_id}/classmates", response_model=Envelope)
def get_classmates(
    student_id: str,
    class_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Other students of a class, visible to enrolled students only."""
    enrolled = select_one(
        service,
        "class_students",
        [eq("class_id", class_id), eq("user_id", student_id)],
        columns="id",
    )
    if enrolled is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not enrolled in this class",
        )

    enrollments = service.select(
        "class_students",
        columns="user_id, enrolled_at",
        filters=[eq("class_id", class_id)],
    )
    user_ids = [e["user_id"] for e in enrollments]
    users = service.select(
        "users",
        columns="id, first_name, last_name, email, created_at",
        filters=[in_("id", user_ids), neq("id", student_id)],
    )
    users_by_id = {u["id"]: u for u in users}

    classmates = [
        {
            "id": user["id"],
            "first_name": user["first_name"],
            "last_name": user["last_name"],
            "email": user["email"],
            "enrolled_at": enrollment["enrolled_at"],
            "member_since": user["created_at"],
        }
        for enrollment in enrollments
        if (user := users_by_id.get(enrollment["user_id"])) is not None
    ]
    classmates.sort(key=lambda c: (c["first_name"] or "").casefold())
    return Envelope(data=classmates)


# =============================================================================
# TEACHER SIDE
# =============================================================================


@router.get("/{teacher_id}", response_model=Envelope)
def get_classes(
    teacher_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """All classes of a teacher, newest first."""
    classes = service.select(
        "classes",
        filters=[eq("teacher_id", teacher_id)],
        order=[desc("created_at")],
    )
    return Envelope(data=_with_student_counts(service, classes))


@router.post("/{teacher_id}", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_class(
    teacher_id: str,
    body: ClassCreate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Create a class with a fresh join code."""
    new_class = service.insert(
        "classes",
        {
            "name": body.name,
            "subject": body.subject,
            "grade_level": body.grade_level,
            "schedule": body.schedule,
            "room": body.room,
            "description": body.description,
            "teacher_id": teacher_id,
            "class_code": _new_class_code(service),
        },
    )
    logger.info("class_created", class_id=new_class["id"], teacher_id=teacher_id)
    return Envelope(message="Class created successfully", data=new_class)


@router.get("/{teacher_id}/{class_id}", response_model=Envelope)
def get_class_by_id(
    teacher_id: str,
    class_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    class_row = _get_owned_class(service, teacher_id, class_id)
    return Envelope(data=_with_student_counts(service, [class_row])[0])


@router.put("/{teacher_id}/{class_id}", response_model=Envelope)
def update_class(
    teacher_id: str,
    class_id: str,
    body: ClassUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_owned_class(service, teacher_id, class_id)

    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    changes["updated_at"] = now_iso()
    updated = service.update("classes", changes, [eq("id", class_id)])
    return Envelope(message="Class updated successfully", data=updated[0] if updated else None)


@router.delete("/{teacher_id}/{class_id}", response_model=Envelope)
def delete_class(
    teacher_id: str,
    class_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_owned_class(service, teacher_id, class_id)
    service.delete("classes", [eq("id", class_id)])
    logger.info("class_deleted", class_id=class_id, teacher_id=teacher_id)
    return Envelope(message="Class deleted successfully")


@router.post("/{teacher_id}/{class_id}/generate-code", response_model=Envelope)
def generate_new_class_code(
    teacher_id: str,
    class_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Replace the class join code."""
    _get_owned_class(service, teacher_id, class_id)
    updated = service.update(
        "classes",
        {"class_code": _new_class_code(service), "updated_at": now_iso()},
        [eq("id", class_id)],
    )
    return Envelope(
        message="New class code generated successfully",
        data=updated[0] if updated else None,
    )


@router.get("/{teacher_id}/{class_id}/students", response_model=Envelope)
def get_class_students(
    teacher_id: str,
    class_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Enrolled students of a class."""
    _get_owned_class(service, teacher_id, class_id)

    enrollments = service.select(
        "class_students",
        columns="user_id, enrolled_at",
        filters=[eq("class_id", class_id)],
    )
    users = _users_by_id(
        service,
        [e["user_id"] for e in enrollments],
        columns="id, first_name, last_name, email, created_at",
    )

    students = [
        {
            "id": user["id"],
            "first_name": user["first_name"],
            "last_name": user["last_name"],
            "email": user["email"],
            "enrolled_at": enrollment["enrolled_at"],
            "created_at": user["created_at"],
        }
        for enrollment in enrollments
        if (user := users.get(enrollment["user_id"])) is not None
    ]
    logger.info("class_students_listed", class_id=class_id, count=len(students))
    return Envelope(data=students)


@router.delete("/{teacher_id}/{class_id}/students/{student_id}", response_model=Envelope)
def remove_student_from_class(
    teacher_id: str,
    class_id: str,
    student_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_owned_class(service, teacher_id, class_id)
    service.delete("class_students", [eq("class_id", class_id), eq("user_id", student_id)])
    return Envelope(message="Student removed from class successfully")
