"""Quiz taking endpoints (student side).

Questions are served without their answer key; grading happens on
submit and every submission is stored as a new row.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from studyhub.core.grader import GradingError, QuizQuestion, SubmittedAnswer, grade_submission
from studyhub.db.data_service import AuthUser, DataService, asc, desc, eq, in_, select_one
from studyhub.utils.validators import now_iso
from studyhub.web.deps import get_current_user, get_data_service
from studyhub.web.schemas import Envelope, QuizSubmitRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/quiz-taking", tags=["quiz-taking"])

HIDDEN_QUESTION_FIELDS = frozenset({"correct_answer"})


def _public_question(row: dict[str, Any]) -> dict[str, Any]:
    """Question row with the answer key removed."""
    public = {k: v for k, v in row.items() if k not in HIDDEN_QUESTION_FIELDS}
    public["options"] = [
        {k: v for k, v in option.items() if k != "is_correct"}
        for option in row.get("options") or []
    ]
    return public


def _get_quiz(service: DataService, quiz_id: str) -> dict[str, Any]:
    quiz = select_one(service, "quizzes", [eq("id", quiz_id)])
    if quiz is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Quiz not found",
        )
    return quiz


@router.get("/{quiz_id}/take", response_model=Envelope)
def get_quiz_for_taking(
    quiz_id: str,
    student_id: str = Query(..., alias="studentId"),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Quiz and its questions for an enrolled student."""
    quiz = _get_quiz(service, quiz_id)

    enrolled = select_one(
        service,
        "class_students",
        [eq("class_id", quiz["class_id"]), eq("user_id", student_id)],
        columns="id",
    )
    if enrolled is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not enrolled in this class",
        )

    questions = service.select(
        "quiz_questions",
        filters=[eq("quiz_id", quiz_id)],
        order=[asc("order_index")],
    )
    return Envelope(data={**quiz, "questions": [_public_question(q) for q in questions]})


@router.post("/submit", response_model=Envelope, status_code=status.HTTP_201_CREATED)
def submit_quiz(
    body: QuizSubmitRequest,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Grade answers and store the submission."""
    _get_quiz(service, body.quiz_id)

    rows = service.select("quiz_questions", filters=[eq("quiz_id", body.quiz_id)])
    try:
        questions = [QuizQuestion.from_row(row) for row in rows]
    except GradingError as exc:
        logger.error("quiz_not_gradable", quiz_id=body.quiz_id, error=str(exc))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Quiz cannot be graded",
        ) from exc

    answers = [SubmittedAnswer(question_id=a.question_id, answer=a.answer) for a in body.answers]
    summary = grade_submission(questions, answers)

    submission = service.insert(
        "quiz_submissions",
        {
            "quiz_id": body.quiz_id,
            "user_id": body.student_id,
            "answers": [r.to_dict() for r in summary.results],
            "score": summary.total_score,
            "total_points": summary.total_points,
            "percentage": summary.percentage,
            "time_spent": body.time_spent,
            "submitted_at": now_iso(),
        },
    )

    logger.info(
        "quiz_submitted",
        quiz_id=body.quiz_id,
        student_id=body.student_id,
        score=summary.total_score,
        total_points=summary.total_points,
    )
    return Envelope(
        message="Quiz submitted successfully",
        data={**submission, "correct_count": summary.correct_count},
    )


@router.get("/{quiz_id}/results/{student_id}", response_model=Envelope)
def get_quiz_results(
    quiz_id: str,
    student_id: str,
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Most recent submission of the student for the quiz."""
    submissions = service.select(
        "quiz_submissions",
        filters=[eq("quiz_id", quiz_id), eq("user_id", student_id)],
        order=[desc("submitted_at")],
        limit=1,
    )
    if not submissions:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No submission found for this quiz",
        )
    return Envelope(data=submissions[0])


@router.get("/submissions", response_model=Envelope)
def get_my_submissions(
    quiz_id: str | None = Query(default=None, alias="quizId"),
    user: AuthUser = Depends(get_current_user),
    service: DataService = Depends(get_data_service),
) -> Envelope:
    """Every attempt of the signed-in user, newest first, with quiz titles."""
    filters = [eq("user_id", user.id)]
    if quiz_id:
        filters.append(eq("quiz_id", quiz_id))
    submissions = service.select(
        "quiz_submissions",
        filters=filters,
        order=[desc("submitted_at")],
    )

    quiz_ids = sorted({s["quiz_id"] for s in submissions})
    quizzes = (
        service.select("quizzes", columns="id, title", filters=[in_("id", quiz_ids)])
        if quiz_ids
        else []
    )
    titles = {q["id"]: q["title"] for q in quizzes}

    return Envelope(data=[{**s, "quiz_title": titles.get(s["quiz_id"])} for s in submissions])
