"""Pydantic schemas for Web API.

Request bodies accept camelCase keys (as sent by the web client) and
snake_case keys alike. Responses share a single Envelope shape.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

from studyhub import __version__

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

QuestionTypeName = Literal["multiple_choice", "true_false", "short_answer"]


class RequestModel(BaseModel):
    """Base for request bodies."""

    model_config = ConfigDict(populate_by_name=True)


class PartialUpdate(RequestModel):
    """Base for partial updates.

    Fields listed in NOT_NULL may be left out of the body but not sent
    as null, since their columns cannot hold NULL.
    """

    NOT_NULL: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self) -> PartialUpdate:
        nulls = sorted(
            name for name in self.NOT_NULL & self.model_fields_set if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"{', '.join(nulls)} may not be null")
        return self


# =============================================================================
# ENVELOPE
# =============================================================================


class Envelope(BaseModel):
    """Response wrapper used by every endpoint."""

    success: bool = True
    message: str | None = None
    data: Any = None


class ErrorEnvelope(BaseModel):
    """Failure response."""

    success: bool = False
    message: str


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class RegisterRequest(RequestModel):
    """Request body for registering a user."""

    email: NonEmptyStr
    password: str = Field(..., min_length=6)
    first_name: NonEmptyStr = Field(..., alias="firstName")
    last_name: NonEmptyStr = Field(..., alias="lastName")
    phone: str | None = None
    role: Literal["student", "teacher"] = "student"


class LoginRequest(RequestModel):
    email: NonEmptyStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(RequestModel):
    refresh_token: NonEmptyStr = Field(..., alias="refreshToken")


class ForgotPasswordRequest(RequestModel):
    email: NonEmptyStr


class ResetPasswordRequest(RequestModel):
    password: str = Field(..., min_length=6)


# =============================================================================
# CLASS SCHEMAS
# =============================================================================


class ClassCreate(RequestModel):
    """Request body for creating a class."""

    name: NonEmptyStr
    subject: NonEmptyStr
    grade_level: NonEmptyStr = Field(..., alias="gradeLevel")
    schedule: str = ""
    room: str = ""
    description: str = ""


class ClassUpdate(RequestModel):
    """Partial update; only fields present in the body change."""

    name: NonEmptyStr | None = None
    subject: NonEmptyStr | None = None
    grade_level: NonEmptyStr | None = Field(default=None, alias="gradeLevel")
    schedule: str | None = None
    room: str | None = None
    description: str | None = None


class JoinClassRequest(RequestModel):
    class_code: NonEmptyStr = Field(..., alias="classCode")


# =============================================================================
# QUIZ SCHEMAS
# =============================================================================


class QuestionOptionIn(RequestModel):
    option_text: NonEmptyStr = Field(..., alias="optionText")
    is_correct: bool = Field(default=False, alias="isCorrect")


class QuestionIn(RequestModel):
    """A quiz question as authored by the teacher."""

    question: NonEmptyStr
    type: QuestionTypeName
    options: list[QuestionOptionIn] = Field(default_factory=list)
    correct_answer: str | None = Field(default=None, alias="correctAnswer")
    points: int = Field(default=1, ge=0)
    order_index: int | None = Field(default=None, alias="orderIndex")

    @model_validator(mode="after")
    def _check_answer_key(self) -> QuestionIn:
        if self.type == "multiple_choice":
            if len(self.options) < 2:
                raise ValueError("multiple_choice questions need at least two options")
            if not any(o.is_correct for o in self.options):
                raise ValueError("multiple_choice questions need an option marked correct")
        elif not (self.correct_answer or "").strip():
            raise ValueError(f"{self.type} questions need a correct_answer")
        return self


class QuizCreate(RequestModel):
    """Request body for creating a quiz with its questions."""

    title: NonEmptyStr
    description: str = ""
    quiz_type: QuestionTypeName = Field(default="multiple_choice", alias="quizType")
    due_date: str | None = Field(default=None, alias="dueDate")
    time_limit: int | None = Field(default=None, ge=1, alias="timeLimit")
    created_by: str | None = Field(default=None, alias="createdBy")
    questions: list[QuestionIn] = Field(default_factory=list)


class QuizUpdate(PartialUpdate):
    """Partial update; a questions list replaces all questions."""

    NOT_NULL = frozenset({"title", "quiz_type"})

    title: NonEmptyStr | None = None
    description: str | None = None
    quiz_type: QuestionTypeName | None = Field(default=None, alias="quizType")
    due_date: str | None = Field(default=None, alias="dueDate")
    time_limit: int | None = Field(default=None, ge=1, alias="timeLimit")
    questions: list[QuestionIn] | None = None


class QuestionUpdate(PartialUpdate):
    """Partial update of one question."""

    NOT_NULL = frozenset({"question", "type", "options", "points", "order_index"})

    question: NonEmptyStr | None = None
    type: QuestionTypeName | None = None
    options: list[QuestionOptionIn] | None = None
    correct_answer: str | None = Field(default=None, alias="correctAnswer")
    points: int | None = Field(default=None, ge=0)
    order_index: int | None = Field(default=None, alias="orderIndex")


class AnswerIn(RequestModel):
    question_id: NonEmptyStr = Field(..., alias="questionId")
    answer: Any = None


class QuizSubmitRequest(RequestModel):
    """Request body for submitting quiz answers."""

    quiz_id: NonEmptyStr = Field(..., alias="quizId")
    student_id: NonEmptyStr = Field(..., alias="studentId")
    answers: list[AnswerIn]
    time_spent: int | None = Field(default=None, ge=0, alias="timeSpent")


# =============================================================================
# FLASHCARD SCHEMAS
# =============================================================================


class FlashcardSetCreate(RequestModel):
    title: NonEmptyStr
    description: str = ""
    subject: str | None = None
    user_id: NonEmptyStr = Field(..., alias="userId")


class FlashcardSetUpdate(PartialUpdate):
    NOT_NULL = frozenset({"title"})

    title: NonEmptyStr | None = None
    description: str | None = None
    subject: str | None = None


class FlashcardCreate(RequestModel):
    question: NonEmptyStr
    answer: NonEmptyStr
    flashcard_set_id: NonEmptyStr = Field(..., alias="flashcardSetId")


class FlashcardUpdate(PartialUpdate):
    NOT_NULL = frozenset({"question", "answer"})

    question: NonEmptyStr | None = None
    answer: NonEmptyStr | None = None


class StudyRequest(RequestModel):
    set_id: NonEmptyStr = Field(..., alias="setId")
    shuffle: bool = True


# =============================================================================
# STUDY SESSION / PROGRESS / GOAL SCHEMAS
# =============================================================================


class StudySessionCreate(RequestModel):
    user_id: NonEmptyStr = Field(..., alias="userId")
    subject: NonEmptyStr
    topic: str | None = None
    date: str | None = None
    time: str | None = None
    duration: int | None = Field(default=None, ge=0)
    pomodoro_sessions: int | None = Field(default=None, ge=0, alias="pomodoroSessions")
    notes: str | None = None


class StudySessionUpdate(PartialUpdate):
    NOT_NULL = frozenset({"completed"})

    subject: NonEmptyStr | None = None
    topic: str | None = None
    date: str | None = None
    time: str | None = None
    duration: int | None = Field(default=None, ge=0)
    pomodoro_sessions: int | None = Field(default=None, ge=0, alias="pomodoroSessions")
    notes: str | None = None
    completed: bool | None = None


class ProgressSessionCreate(RequestModel):
    """A finished study session logged by the signed-in user."""

    subject: NonEmptyStr
    topic: str | None = None
    duration: int = Field(..., ge=0, alias="duration_minutes")
    notes: str | None = None


class GoalCreate(RequestModel):
    title: NonEmptyStr


class GoalUpdate(RequestModel):
    completed: bool


# =============================================================================
# RESOURCE SCHEMAS
# =============================================================================

ResourceType = Literal["pdf", "video", "link", "note"]


class ResourceCreate(RequestModel):
    title: NonEmptyStr
    description: str | None = None
    subject: str | None = None
    resource_type: ResourceType | None = Field(default=None, alias="resourceType")
    url: str | None = None
    content: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_public: bool = Field(default=False, alias="isPublic")


class ResourceUpdate(PartialUpdate):
    NOT_NULL = frozenset({"title", "tags", "is_public"})

    title: NonEmptyStr | None = None
    description: str | None = None
    subject: str | None = None
    resource_type: ResourceType | None = Field(default=None, alias="resourceType")
    url: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    is_public: bool | None = Field(default=None, alias="isPublic")


# =============================================================================
# USER / CONTACT SCHEMAS
# =============================================================================


class ProfileUpdate(RequestModel):
    first_name: NonEmptyStr = Field(..., alias="firstName")
    last_name: NonEmptyStr = Field(..., alias="lastName")
    phone: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
    bio: str | None = None
    study_preferences: dict[str, Any] | None = Field(default=None, alias="studyPreferences")


class ContactCreate(RequestModel):
    first_name: NonEmptyStr = Field(..., alias="firstName")
    last_name: NonEmptyStr = Field(..., alias="lastName")
    email: NonEmptyStr
    phone: str | None = None
    subject: NonEmptyStr
    message: NonEmptyStr


class ContactStatusUpdate(RequestModel):
    status: Literal["pending", "read", "replied", "resolved"]


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = __version__
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
