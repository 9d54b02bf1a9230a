"""SQLite database connection and schema management.

Provides connection management and schema initialization for the local
data service backend. The table layout mirrors the hosted Supabase
project so that handlers are backend-agnostic.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/studyhub.db")

# Columns stored as JSON text, decoded on read
JSON_COLUMNS = frozenset({"options", "answers", "tags", "study_preferences", "metadata"})

# Columns stored as 0/1, decoded to bool on read
BOOL_COLUMNS = frozenset({"completed", "is_public", "revoked"})


def init_db(db_path: Path | None = None) -> Path:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/studyhub.db

    Returns:
        The path that was initialized.
    """
    db_path = db_path or DEFAULT_DB_PATH

    with get_db(db_path) as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(db_path))
    return db_path


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db(path) as conn:
            rows = conn.execute("SELECT * FROM classes").fetchall()
    """
    db_path = db_path or DEFAULT_DB_PATH

    # Ensure directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Auth identities (kept apart from profiles, like a hosted auth store)
        CREATE TABLE IF NOT EXISTS auth_users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            metadata TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS auth_refresh_tokens (
            id TEXT PRIMARY KEY,
            token_hash TEXT NOT NULL UNIQUE,
            user_id TEXT NOT NULL REFERENCES auth_users(id) ON DELETE CASCADE,
            revoked INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Profiles
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL,
            first_name TEXT,
            last_name TEXT,
            phone TEXT,
            role TEXT NOT NULL DEFAULT 'student' CHECK(role IN ('student', 'teacher')),
            avatar_url TEXT,
            bio TEXT,
            study_preferences TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS classes (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            subject TEXT,
            grade_level TEXT,
            schedule TEXT DEFAULT '',
            room TEXT DEFAULT '',
            description TEXT DEFAULT '',
            class_code TEXT NOT NULL UNIQUE,
            teacher_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS class_students (
            id TEXT PRIMARY KEY,
            class_id TEXT NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            enrolled_at TEXT NOT NULL,
            created_at TEXT NOT NULL,
            UNIQUE(class_id, user_id)
        );

        CREATE TABLE IF NOT EXISTS quizzes (
            id TEXT PRIMARY KEY,
            class_id TEXT NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT DEFAULT '',
            quiz_type TEXT NOT NULL DEFAULT 'multiple_choice'
                CHECK(quiz_type IN ('multiple_choice', 'true_false', 'short_answer')),
            due_date TEXT,
            time_limit INTEGER,
            total_points INTEGER NOT NULL DEFAULT 0,
            question_count INTEGER NOT NULL DEFAULT 0,
            created_by TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS quiz_questions (
            id TEXT PRIMARY KEY,
            quiz_id TEXT NOT NULL REFERENCES quizzes(id) ON DELETE CASCADE,
            question TEXT NOT NULL,
            type TEXT NOT NULL CHECK(type IN ('multiple_choice', 'true_false', 'short_answer')),
            options TEXT NOT NULL DEFAULT '[]',
            correct_answer TEXT,
            points INTEGER NOT NULL DEFAULT 1,
            order_index INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS quiz_submissions (
            id TEXT PRIMARY KEY,
            quiz_id TEXT NOT NULL REFERENCES quizzes(id) ON DELETE CASCADE,
            user_id TEXT NOT NULL,
            answers TEXT NOT NULL DEFAULT '[]',
            score INTEGER NOT NULL DEFAULT 0,
            total_points INTEGER NOT NULL DEFAULT 0,
            percentage REAL NOT NULL DEFAULT 0,
            time_spent INTEGER,
            submitted_at TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS flashcard_sets (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT DEFAULT '',
            subject TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS flashcards (
            id TEXT PRIMARY KEY,
            flashcard_set_id TEXT NOT NULL REFERENCES flashcard_sets(id) ON DELETE CASCADE,
            question TEXT NOT NULL,
            answer TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS study_sessions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            subject TEXT,
            topic TEXT,
            date TEXT,
            time TEXT,
            duration INTEGER,
            pomodoro_sessions INTEGER,
            notes TEXT,
            completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS study_goals (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS learning_resources (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            subject TEXT,
            resource_type TEXT,
            url TEXT,
            content TEXT,
            tags TEXT NOT NULL DEFAULT '[]',
            is_public INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE TABLE IF NOT EXISTS contacts (
            id TEXT PRIMARY KEY,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            email TEXT NOT NULL,
            phone TEXT,
            subject TEXT NOT NULL,
            message TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending'
                CHECK(status IN ('pending', 'read', 'replied', 'resolved')),
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_classes_teacher ON classes(teacher_id);
        CREATE INDEX IF NOT EXISTS idx_class_students_user ON class_students(user_id);
        CREATE INDEX IF NOT EXISTS idx_quizzes_class ON quizzes(class_id);
        CREATE INDEX IF NOT EXISTS idx_quiz_questions_quiz ON quiz_questions(quiz_id);
        CREATE INDEX IF NOT EXISTS idx_quiz_submissions_quiz_user ON quiz_submissions(quiz_id, user_id);
        CREATE INDEX IF NOT EXISTS idx_study_sessions_user ON study_sessions(user_id);
        """
    )
