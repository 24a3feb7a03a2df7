"""Import question banks from JSON or YAML files."""
import json
import logging
from pathlib import Path

import yaml

from exam_academy.db import get_connection
from exam_academy.exceptions import InvalidInput
from exam_academy.models import EXAM_MODES, Question
from exam_academy.questions import insert_question

logger = logging.getLogger(__name__)


def read_question_file(file_path: str):
    path = Path(file_path)
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    try:
        if suffix == ".json":
            return json.loads(text)
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidInput(f"Could not parse {path.name}: {e}") from e
    raise InvalidInput(f"Unsupported question bank format: {suffix or path.name}")


def import_question_bank(db_path: str, file_path: str, exam_name: str | None = None) -> dict:
    """Import questions into the bank.

    The file holds either a list of questions or a mapping with ``questions``
    and an optional ``exam``. Each question may name its own ``exam`` and
    ``book_mode``. Malformed questions are skipped and counted.
    """
    data = read_question_file(file_path)
    if isinstance(data, dict):
        exam_name = exam_name or data.get("exam")
        items = data.get("questions")
    else:
        items = data
    if not isinstance(items, list):
        raise InvalidInput(f"{Path(file_path).name} does not contain a list of questions")

    conn = get_connection(db_path)
    exam_ids = {r["name"]: r["id"] for r in conn.execute("SELECT id, name FROM exams").fetchall()}
    imported = skipped = 0
    for item in items:
        if not isinstance(item, dict):
            skipped += 1
            continue
        target = item.get("exam") or exam_name
        if target not in exam_ids:
            logger.warning("Skipping question for unknown exam %r", target)
            skipped += 1
            continue
        book_mode = item.get("book_mode")
        if book_mode is not None and book_mode not in EXAM_MODES[:2]:
            logger.warning("Skipping question with book mode %r", book_mode)
            skipped += 1
            continue
        try:
            question = Question.from_dict(item)
        except InvalidInput as e:
            logger.warning("Skipping question: %s", e)
            skipped += 1
            continue
        insert_question(conn, exam_ids[target], question, book_mode=book_mode, source="imported")
        imported += 1
    conn.commit()
    conn.close()
    return {"filename": Path(file_path).name, "imported": imported, "skipped": skipped}
