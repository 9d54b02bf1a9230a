"""Route handlers for Web API."""

from studyhub.web.routes.auth import router as auth_router
from studyhub.web.routes.classes import router as classes_router
from studyhub.web.routes.contact import router as contact_router
from studyhub.web.routes.flashcards import router as flashcards_router
from studyhub.web.routes.goals import router as goals_router
from studyhub.web.routes.health import router as health_router
from studyhub.web.routes.progress import router as progress_router
from studyhub.web.routes.quiz_taking import router as quiz_taking_router
from studyhub.web.routes.quizzes import router as quizzes_router
from studyhub.web.routes.resources import router as resources_router
from studyhub.web.routes.study_sessions import router as study_sessions_router
from studyhub.web.routes.users import router as users_router

__all__ = [
    "auth_router",
    "classes_router",
    "contact_router",
    "flashcards_router",
    "goals_router",
    "health_router",
    "progress_router",
    "quiz_taking_router",
    "quizzes_router",
    "resources_router",
    "study_sessions_router",
    "users_router",
]
