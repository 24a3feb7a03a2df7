"""Seed the database with the exam catalog and the starter question bank."""
import json
from pathlib import Path

from exam_academy.db import get_connection
from exam_academy.models import Question
from exam_academy.questions import insert_question

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether the database has already been seeded with exams."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM exams").fetchone()[0]
    conn.close()
    return count > 0


def seed_exams(db_path: str) -> None:
    """Insert the exam catalog from exams.json."""
    data = json.loads((CONTENT_DIR / "exams.json").read_text(encoding="utf-8"))
    conn = get_connection(db_path)
    for exam in data["exams"]:
        conn.execute(
            "INSERT OR IGNORE INTO exams (name, effectivity_sheet, body_of_knowledge, is_active) VALUES (?, ?, ?, 1)",
            (exam["name"], exam["effectivity_sheet"], exam["body_of_knowledge"]),
        )
    conn.commit()
    conn.close()


def seed_questions(db_path: str) -> None:
    """Insert the starter questions from questions.json."""
    data = json.loads((CONTENT_DIR / "questions.json").read_text(encoding="utf-8"))
    conn = get_connection(db_path)
    for item in data["questions"]:
        row = conn.execute("SELECT id FROM exams WHERE name = ?", (item["exam"],)).fetchone()
        insert_question(conn, row["id"], Question.from_dict(item), book_mode=item.get("book_mode"))
    conn.commit()
    conn.close()


def seed_all(db_path: str) -> None:
    """Run all seed functions in order."""
    if is_seeded(db_path):
        return
    seed_exams(db_path)
    seed_questions(db_path)
