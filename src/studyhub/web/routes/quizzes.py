"""Quiz authoring endpoints (teacher side)."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError

from studyhub.db.data_service import DataService, asc, desc, eq, in_, select_one
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_data_service
from studyhub.web.errors import validation_message
from studyhub.web.schemas import Envelope, QuestionIn, QuestionUpdate, QuizCreate, QuizUpdate

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])


def _get_class_quiz(service: DataService, class_id: str, quiz_id: str) -> dict[str, Any]:
    """Quiz row belonging to the class, or 404."""
    quiz = select_one(service, "quizzes", [eq("id", quiz_id), eq("class_id", class_id)])
    if quiz is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Quiz not found",
        )
    return quiz


def _list_questions(service: DataService, quiz_id: str) -> list[dict[str, Any]]:
    return service.select(
        "quiz_questions",
        filters=[eq("quiz_id", quiz_id)],
        order=[asc("order_index")],
    )


def _question_row(quiz_id: str, question: QuestionIn, index: int) -> dict[str, Any]:
    return {
        "quiz_id": quiz_id,
        "question": question.question,
        "type": question.type,
        "options": [o.model_dump() for o in question.options],
        "correct_answer": question.correct_answer,
        "points": question.points,
        "order_index": index if question.order_index is None else question.order_index,
    }


def _insert_questions(
    service: DataService, quiz_id: str, questions: list[QuestionIn]
) -> list[dict[str, Any]]:
    return [
        service.insert("quiz_questions", _question_row(quiz_id, q, i))
        for i, q in enumerate(questions)
    ]


def _recompute_totals(service: DataService, quiz_id: str) -> dict[str, Any]:
    """Store sum of question points and question count on the quiz."""
    questions = service.select("quiz_questions", columns="points", filters=[eq("quiz_id", quiz_id)])
    updated = service.update(
        "quizzes",
        {
            "total_points": sum(int(q["points"] or 0) for q in questions),
            "question_count": len(questions),
            "updated_at": now_iso(),
        },
        [eq("id", quiz_id)],
    )
    return updated[0]


@router.get("/teacher/{teacher_id}", response_model=Envelope)
def get_teacher_quizzes(
    teacher_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Quizzes across all of a teacher's classes."""
    classes = service.select("classes", columns="id, name", filters=[eq("teacher_id", teacher_id)])
    if not classes:
        return Envelope(data=[])

    class_names = {c["id"]: c["name"] for c in classes}
    quizzes = service.select(
        "quizzes",
        filters=[in_("class_id", list(class_names))],
        order=[desc("created_at")],
    )
    return Envelope(data=[{**q, "class_name": class_names.get(q["class_id"])} for q in quizzes])


@router.get("/{class_id}", response_model=Envelope)
def get_quizzes(
    class_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    quizzes = service.select(
        "quizzes",
        filters=[eq("class_id", class_id)],
        order=[desc("created_at")],
    )
    return Envelope(data=quizzes)


@router.post("/{class_id}", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def create_quiz(
    class_id: str,
    body: QuizCreate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Create a quiz and its questions."""
    if select_one(service, "classes", [eq("id", class_id)], columns="id") is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Class not found",
        )

    quiz = service.insert(
        "quizzes",
        {
            "class_id": class_id,
            "title": body.title,
            "description": body.description,
            "quiz_type": body.quiz_type,
            "due_date": body.due_date,
            "time_limit": body.time_limit,
            "created_by": body.created_by,
            "total_points": sum(q.points for q in body.questions),
            "question_count": len(body.questions),
        },
    )
    questions = _insert_questions(service, quiz["id"], body.questions)

    logger.info("quiz_created", quiz_id=quiz["id"], class_id=class_id, questions=len(questions))
    return Envelope(
        message="Quiz created successfully",
        data={**quiz, "questions": questions},
    )


@router.get("/{class_id}/{quiz_id}", response_model=Envelope)
def get_quiz(
    class_id: str,
    quiz_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    quiz = _get_class_quiz(service, class_id, quiz_id)
    return Envelope(data={**quiz, "questions": _list_questions(service, quiz_id)})


@router.put("/{class_id}/{quiz_id}", response_model=Envelope)
def update_quiz(
    class_id: str,
    quiz_id: str,
    body: QuizUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Update quiz fields; a questions list replaces every question."""
    _get_class_quiz(service, class_id, quiz_id)

    changes = body.model_dump(exclude_unset=True, exclude={"questions"})
    if changes:
        changes["updated_at"] = now_iso()
        service.update("quizzes", changes, [eq("id", quiz_id)])

    if body.questions is not None:
        service.delete("quiz_questions", [eq("quiz_id", quiz_id)])
        _insert_questions(service, quiz_id, body.questions)
        quiz = _recompute_totals(service, quiz_id)
    else:
        quiz = _get_class_quiz(service, class_id, quiz_id)

    return Envelope(
        message="Quiz updated successfully",
        data={**quiz, "questions": _list_questions(service, quiz_id)},
    )


@router.delete("/{class_id}/{quiz_id}", response_model=Envelope)
def delete_quiz(
    class_id: str,
    quiz_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_class_quiz(service, class_id, quiz_id)
    service.delete("quizzes", [eq("id", quiz_id)])
    logger.info("quiz_deleted", quiz_id=quiz_id, class_id=class_id)
    return Envelope(message="Quiz deleted successfully")


@router.get("/{class_id}/{quiz_id}/submissions", response_model=Envelope)
def get_quiz_submissions(
    class_id: str,
    quiz_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Every submission of the quiz with the student's name."""
    _get_class_quiz(service, class_id, quiz_id)

    submissions = service.select(
        "quiz_submissions",
        filters=[eq("quiz_id", quiz_id)],
        order=[desc("submitted_at")],
    )
    user_ids = sorted({s["user_id"] for s in submissions})
    users = (
        service.select(
            "users",
            columns="id, first_name, last_name, email",
            filters=[in_("id", user_ids)],
        )
        if user_ids
        else []
    )
    users_by_id = {u["id"]: u for u in users}

    return Envelope(
        data=[{**s, "student": users_by_id.get(s["user_id"])} for s in submissions]
    )


@router.get("/{class_id}/{quiz_id}/questions", response_model=Envelope)
def get_quiz_questions(
    class_id: str,
    quiz_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_class_quiz(service, class_id, quiz_id)
    return Envelope(data=_list_questions(service, quiz_id))


def _get_question(service: DataService, quiz_id: str, question_id: str) -> dict[str, Any]:
    question = select_one(service, "quiz_questions", [eq("id", question_id), eq("quiz_id", quiz_id)])
    if question is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found",
        )
    return question


@router.get("/{class_id}/{quiz_id}/questions/{question_id}", response_model=Envelope)
def get_quiz_question(
    class_id: str,
    quiz_id: str,
    question_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    _get_class_quiz(service, class_id, quiz_id)
    return Envelope(data=_get_question(service, quiz_id, question_id))


@router.put("/{class_id}/{quiz_id}/questions/{question_id}", response_model=Envelope)
def update_quiz_question(
    class_id: str,
    quiz_id: str,
    question_id: str,
    body: QuestionUpdate,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Update one question and refresh the quiz point total."""
    _get_class_quiz(service, class_id, quiz_id)
    current = _get_question(service, quiz_id, question_id)

    changes = body.model_dump(exclude_unset=True)
    merged = {
        "question": current["question"],
        "type": current["type"],
        "options": current["options"] or [],
        "correct_answer": current["correct_answer"],
        "points": current["points"],
        "order_index": current["order_index"],
        **changes,
    }
    # The merged question must still have a usable answer key
    try:
        question = QuestionIn.model_validate(merged)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=validation_message(exc),
        ) from exc

    updated = service.update(
        "quiz_questions",
        _question_row(quiz_id, question, current["order_index"]),
        [eq("id", question_id)],
    )
    quiz = _recompute_totals(service, quiz_id)

    return Envelope(
        message="Question updated successfully",
        data={**updated[0], "quiz_total_points": quiz["total_points"]},
    )
