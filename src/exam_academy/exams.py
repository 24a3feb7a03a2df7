"""Exam catalog lookups."""
from exam_academy.db import get_connection
from exam_academy.models import Exam


def _exam_from_row(row) -> Exam:
    return Exam(
        id=row["id"],
        name=row["name"],
        effectivity_sheet=row["effectivity_sheet"] or "",
        body_of_knowledge=row["body_of_knowledge"] or "",
        is_active=bool(row["is_active"]),
    )


def list_exams(db_path: str, active_only: bool = True) -> list[Exam]:
    conn = get_connection(db_path)
    sql = "SELECT * FROM exams"
    if active_only:
        sql += " WHERE is_active = 1"
    rows = conn.execute(sql + " ORDER BY name").fetchall()
    conn.close()
    return [_exam_from_row(r) for r in rows]


def get_exam(db_path: str, name: str) -> Exam | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM exams WHERE name = ?", (name,)).fetchone()
    conn.close()
    return _exam_from_row(row) if row else None


def count_questions(db_path: str, exam_name: str) -> int:
    conn = get_connection(db_path)
    count = conn.execute(
        "SELECT COUNT(*) FROM questions q JOIN exams e ON q.exam_id = e.id WHERE e.name = ?",
        (exam_name,),
    ).fetchone()[0]
    conn.close()
    return count
