"""Tests for database initialization and connection management."""
import sqlite3

import pytest

from exam_academy.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {
        "exams", "questions", "quiz_results", "user_answers",
        "in_progress", "user_settings",
    }
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_directory(tmp_path):
    db_path = str(tmp_path / "nested" / "dir" / "academy.db")
    init_db(db_path)
    assert (tmp_path / "nested" / "dir" / "academy.db").exists()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO user_settings (key, value) VALUES ('test', 'val')")
    row = conn.execute("SELECT key, value FROM user_settings WHERE key='test'").fetchone()
    assert row["key"] == "test"
    conn.close()


def test_in_progress_holds_a_single_row(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute("INSERT INTO in_progress (id, snapshot) VALUES (2, '{}')")
    conn.close()


def test_deleting_result_cascades_to_answers(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute(
        "INSERT INTO quiz_results (id, exam_name, score, total_questions, percentage, taken_at) "
        "VALUES ('r1', 'API 510', 1, 1, 100.0, '2024-01-01T00:00:00')"
    )
    conn.execute(
        "INSERT INTO user_answers (result_id, position, question, answer, user_answer, is_correct) "
        "VALUES ('r1', 0, 'Q?', 'a', 'a', 1)"
    )
    conn.execute("DELETE FROM quiz_results WHERE id = 'r1'")
    assert conn.execute("SELECT COUNT(*) FROM user_answers").fetchone()[0] == 0
    conn.close()
