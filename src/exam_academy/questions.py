"""Question sources: where a session's question set comes from."""
import json
import logging
from typing import Optional, Protocol

from exam_academy.db import get_connection
from exam_academy.exceptions import GenerationFailed, InvalidInput
from exam_academy.models import EXAM_MODES, Question

logger = logging.getLogger(__name__)


class QuestionSource(Protocol):
    def generate(self, exam_name: str, count: int, mode: str, topics: Optional[list] = None) -> list:
        ...


def question_from_row(row) -> Question:
    return Question(
        prompt=row["question"],
        options=tuple(json.loads(row["options"] or "[]")),
        answer=row["answer"],
        category=row["category"] or "",
        reference=row["reference"] or "",
        quote=row["quote"] or "",
        explanation=row["explanation"] or "",
        type=row["type"] or "multiple-choice",
    )


def insert_question(conn, exam_id: int, question: Question, book_mode: str = None, source: str = "seeded") -> None:
    conn.execute(
        """INSERT INTO questions
        (exam_id, book_mode, type, question, options, answer, category, reference, quote, explanation, source)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            exam_id, book_mode, question.type, question.prompt, json.dumps(list(question.options)),
            question.answer, question.category, question.reference, question.quote,
            question.explanation, source,
        ),
    )


def parse_questions(items: list) -> list:
    """Turn raw question dicts into Questions, dropping malformed ones."""
    questions = []
    for item in items:
        try:
            questions.append(Question.from_dict(item))
        except InvalidInput as e:
            logger.warning("Skipping question: %s", e)
    return questions


class BankQuestionSource:
    """Draws a random question set from the local question bank."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    def generate(self, exam_name: str, count: int, mode: str = "closed", topics: Optional[list] = None) -> list:
        if count < 1:
            raise GenerationFailed(f"Question count must be at least 1, got {count}")
        if mode not in EXAM_MODES:
            raise GenerationFailed(f"Unknown exam mode {mode!r}")
        sql = """SELECT q.* FROM questions q JOIN exams e ON q.exam_id = e.id
            WHERE e.name = ? AND e.is_active = 1"""
        params: list = [exam_name]
        # Simulation mixes closed and open book questions.
        if mode != "simulation":
            sql += " AND (q.book_mode = ? OR q.book_mode IS NULL)"
            params.append(mode)
        if topics:
            sql += f" AND q.category IN ({', '.join('?' for _ in topics)})"
            params.extend(topics)
        sql += " ORDER BY RANDOM() LIMIT ?"
        params.append(count)

        conn = get_connection(self.db_path)
        rows = conn.execute(sql, params).fetchall()
        conn.close()
        if not rows:
            raise GenerationFailed(f"No {mode}-book questions available for {exam_name!r}")
        if len(rows) < count:
            logger.info("Only %d of %d requested questions available for %s", len(rows), count, exam_name)
        return [question_from_row(r) for r in rows]

    def available_topics(self, exam_name: str) -> list:
        conn = get_connection(self.db_path)
        rows = conn.execute(
            """SELECT DISTINCT q.category FROM questions q JOIN exams e ON q.exam_id = e.id
            WHERE e.name = ? AND q.category IS NOT NULL AND q.category != '' ORDER BY q.category""",
            (exam_name,),
        ).fetchall()
        conn.close()
        return [r["category"] for r in rows]
