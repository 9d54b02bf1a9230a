"""Progress statistics over study-session and quiz-submission rows."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Literal

Period = Literal["week", "month", "year"]

PERIOD_DAYS: dict[str, int] = {"week": 7, "month": 30, "year": 365}


def period_start(period: str, now: datetime | None = None) -> datetime:
    """Start of the reporting window ending at `now`.

    Raises:
        ValueError: If period is not week, month or year
    """
    if period not in PERIOD_DAYS:
        raise ValueError(f"Unknown period '{period}' (expected week, month or year)")
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=PERIOD_DAYS[period])


def _session_day(session: dict[str, Any]) -> date | None:
    """Calendar day of a session: its `date`, else its creation day."""
    raw = session.get("date") or session.get("created_at")
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        return None


def study_streak(sessions: Iterable[dict[str, Any]], today: date | None = None) -> int:
    """Consecutive days with at least one study session.

    The streak ends today, or yesterday when nothing was studied yet
    today.
    """
    days = {d for d in (_session_day(s) for s in sessions) if d is not None}
    today = today or datetime.now(timezone.utc).date()

    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def total_minutes(sessions: Iterable[dict[str, Any]]) -> int:
    return sum(int(s.get("duration") or 0) for s in sessions)


def average_percentage(submissions: list[dict[str, Any]]) -> float:
    if not submissions:
        return 0.0
    total = sum(float(s.get("percentage") or 0) for s in submissions)
    return round(total / len(submissions), 2)


def progress_stats(
    sessions: list[dict[str, Any]],
    submissions: list[dict[str, Any]],
) -> dict[str, Any]:
    """Aggregate one reporting window."""
    by_subject = Counter(s.get("subject") or "unspecified" for s in sessions)
    return {
        "total_study_sessions": len(sessions),
        "total_study_minutes": total_minutes(sessions),
        "completed_quizzes": len(submissions),
        "average_quiz_score": average_percentage(submissions),
        "study_sessions_by_subject": dict(by_subject),
    }
