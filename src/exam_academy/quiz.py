"""Quiz history: finished results and the saved in-progress exam."""
import json
import logging
from datetime import datetime

from exam_academy.db import get_connection
from exam_academy.exceptions import InvalidInput
from exam_academy.models import QuizResult, UserAnswer

logger = logging.getLogger(__name__)


def record_quiz_result(db_path: str, result: QuizResult) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO quiz_results (id, exam_name, score, total_questions, percentage, taken_at) VALUES (?, ?, ?, ?, ?, ?)",
        (result.id, result.exam_name, result.score, result.total_questions, result.percentage, result.date),
    )
    for position, ua in enumerate(result.user_answers):
        conn.execute(
            """INSERT INTO user_answers
            (result_id, position, question, options, answer, user_answer, is_correct, category, reference, quote, explanation)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                result.id, position, ua.question, json.dumps(ua.options), ua.answer, ua.user_answer,
                int(ua.is_correct), ua.category, ua.reference, ua.quote, ua.explanation,
            ),
        )
    conn.commit()
    conn.close()
    logger.debug("Recorded result %s for %s", result.id, result.exam_name)


def _answers_for(conn, result_id: str) -> list[UserAnswer]:
    rows = conn.execute(
        "SELECT * FROM user_answers WHERE result_id = ? ORDER BY position", (result_id,)
    ).fetchall()
    return [
        UserAnswer(
            question=r["question"],
            options=json.loads(r["options"]),
            answer=r["answer"],
            user_answer=r["user_answer"],
            is_correct=bool(r["is_correct"]),
            category=r["category"] or "",
            reference=r["reference"] or "",
            quote=r["quote"] or "",
            explanation=r["explanation"] or "",
        )
        for r in rows
    ]


def _result_from_row(conn, row) -> QuizResult:
    return QuizResult(
        id=row["id"],
        exam_name=row["exam_name"],
        score=row["score"],
        total_questions=row["total_questions"],
        percentage=row["percentage"],
        date=row["taken_at"],
        user_answers=_answers_for(conn, row["id"]),
    )


def get_history(db_path: str, limit: int | None = None) -> list[QuizResult]:
    """Finished results, newest first."""
    conn = get_connection(db_path)
    sql = "SELECT * FROM quiz_results ORDER BY taken_at DESC, rowid DESC"
    params: tuple = ()
    if limit is not None:
        sql += " LIMIT ?"
        params = (limit,)
    rows = conn.execute(sql, params).fetchall()
    results = [_result_from_row(conn, r) for r in rows]
    conn.close()
    return results


def get_result(db_path: str, result_id: str) -> QuizResult | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM quiz_results WHERE id = ?", (result_id,)).fetchone()
    result = _result_from_row(conn, row) if row else None
    conn.close()
    return result


def get_average_score(db_path: str) -> float:
    """Mean percentage across all results."""
    conn = get_connection(db_path)
    row = conn.execute("SELECT COUNT(*) as total, AVG(percentage) as avg FROM quiz_results").fetchone()
    conn.close()
    if row["total"] == 0:
        return 0.0
    return round(row["avg"], 1)


def get_exams_practiced(db_path: str) -> list[str]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT DISTINCT exam_name FROM quiz_results ORDER BY exam_name").fetchall()
    conn.close()
    return [r["exam_name"] for r in rows]


def save_in_progress(db_path: str, snapshot: dict) -> None:
    """Store the single resumable exam, replacing any earlier one."""
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO in_progress (id, snapshot, saved_at) VALUES (1, ?, ?) "
        "ON CONFLICT(id) DO UPDATE SET snapshot=excluded.snapshot, saved_at=excluded.saved_at",
        (json.dumps(snapshot), datetime.now().isoformat(timespec="seconds")),
    )
    conn.commit()
    conn.close()


def load_in_progress(db_path: str) -> dict | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT snapshot FROM in_progress WHERE id = 1").fetchone()
    conn.close()
    if not row:
        return None
    try:
        return json.loads(row["snapshot"])
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Saved exam is corrupt: {e}") from e


def clear_in_progress(db_path: str) -> None:
    conn = get_connection(db_path)
    conn.execute("DELETE FROM in_progress")
    conn.commit()
    conn.close()


class SqliteResultStore:
    """Result and snapshot store handed to an ExamSession."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def record(self, result: QuizResult) -> None:
        record_quiz_result(self.db_path, result)
        # A finished exam supersedes whatever was saved for later.
        clear_in_progress(self.db_path)

    def save_snapshot(self, snapshot: dict) -> None:
        save_in_progress(self.db_path, snapshot)

    def load_snapshot(self) -> dict | None:
        return load_in_progress(self.db_path)
