import pytest
from unittest.mock import patch

from exam_academy.app import (
    cmd_quiz, cmd_resume, cmd_review, handle_exam_command, main, make_session,
    prompt_int, run_exam, run_quiz,
)
from exam_academy.clock import PolledClock
from exam_academy.config import get_setting, load_settings
from exam_academy.db import init_db
from exam_academy.exceptions import GenerationFailed, IllegalTransition, InvalidInput
from exam_academy.models import Phase, QuizSettings
from exam_academy.quiz import get_history, load_in_progress, record_quiz_result
from exam_academy.seed import is_seeded, seed_all
from exam_academy.session import ExamSession

API_510 = "API 510 - Pressure Vessel Inspector"


class FixedSource:
    def __init__(self, questions):
        self.questions = questions
        self.calls = []

    def generate(self, exam_name, count, mode, topics=None):
        self.calls.append((exam_name, count, mode, topics))
        return self.questions[:count]


class FakeTime:
    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


@pytest.fixture
def seeded_db(tmp_db):
    init_db(tmp_db)
    seed_all(tmp_db)
    return tmp_db


def test_prompt_int_retries_until_number():
    with patch("exam_academy.app.Prompt.ask", side_effect=["abc", "3"]):
        assert prompt_int("count") == 3


def test_handle_exam_command_answers_and_marks(questions):
    session = ExamSession()
    session.start(questions)
    handle_exam_command(session, "x a")
    handle_exam_command(session, "f")
    handle_exam_command(session, "b")
    answer = session.current_answer
    assert answer.user_answer == "0.006 in./yr"
    assert answer.flagged is True
    assert answer.struck_options == {"0.004 in./yr"}


def test_handle_exam_command_navigation(questions):
    session = ExamSession()
    session.start(questions)
    handle_exam_command(session, "n")
    assert session.current_index == 1
    handle_exam_command(session, "p")
    assert session.current_index == 0
    handle_exam_command(session, "g 3")
    assert session.current_index == 2
    handle_exam_command(session, "r")
    assert session.phase is Phase.REVIEWING
    handle_exam_command(session, "2")
    assert session.phase is Phase.IN_PROGRESS
    assert session.current_index == 1


def test_handle_exam_command_quit_and_blank(questions):
    session = ExamSession()
    session.start(questions)
    assert handle_exam_command(session, "q") == "quit"
    assert handle_exam_command(session, "   ") is None
    assert handle_exam_command(session, "zzz") is None
    assert session.phase is Phase.IN_PROGRESS


def test_handle_exam_command_rejects_missing_option(questions):
    session = ExamSession()
    session.start(questions)
    with pytest.raises(InvalidInput):
        handle_exam_command(session, "d")


def test_handle_exam_command_second_answer_rejected(questions):
    session = ExamSession()
    session.start(questions)
    handle_exam_command(session, "a")
    with pytest.raises(IllegalTransition):
        handle_exam_command(session, "b")


def test_run_exam_to_submission(tmp_db, questions):
    init_db(tmp_db)
    session = make_session(tmp_db, API_510)
    session.start(questions)
    # b is correct, c and a are wrong, "d" is reported and ignored
    with patch("exam_academy.app.Prompt.ask", side_effect=["b", "n", "c", "n", "d", "a", "s"]):
        result = run_exam(session)
    assert result.score == 1
    assert result.total_questions == 3
    assert [r.id for r in get_history(tmp_db)] == [result.id]


def test_run_exam_save_and_exit(tmp_db, questions):
    init_db(tmp_db)
    session = make_session(tmp_db, API_510)
    session.start(questions)
    with patch("exam_academy.app.Prompt.ask", side_effect=["b", "n", "q"]):
        assert run_exam(session) is None
    snapshot = load_in_progress(tmp_db)
    assert snapshot["current_index"] == 1
    assert snapshot["answers"][0]["user_answer"] == "0.006 in./yr"
    assert get_history(tmp_db) == []


def test_run_exam_times_out(tmp_db, questions):
    init_db(tmp_db)
    now = FakeTime()
    clock = PolledClock(now=now)
    session = make_session(tmp_db, API_510, clock)
    session.start(questions, 5)

    def slow_answer(*args, **kwargs):
        now.value += 10
        return "b"

    with patch("exam_academy.app.Prompt.ask", side_effect=slow_answer):
        result = run_exam(session, clock)
    assert session.timed_out
    assert result.score == 0
    assert len(get_history(tmp_db)) == 1


def test_run_quiz_untimed(seeded_db):
    settings = QuizSettings(exam_name=API_510, num_questions=3, exam_mode="closed")
    with patch("exam_academy.app.Prompt.ask", side_effect=["s"]):
        result = run_quiz(seeded_db, settings)
    assert result.total_questions == 3
    assert result.score == 0
    assert get_setting(seeded_db, "last_exam") == API_510


def test_run_quiz_uses_given_source(tmp_db, questions):
    init_db(tmp_db)
    source = FixedSource(questions)
    settings = QuizSettings(exam_name=API_510, num_questions=2, exam_mode="open", topics="Corrosion Rates")
    with patch("exam_academy.app.Prompt.ask", side_effect=["b", "s"]):
        result = run_quiz(tmp_db, settings, source=source)
    assert source.calls == [(API_510, 2, "open", ["Corrosion Rates"])]
    assert result.exam_name == "Weakness Drill: Corrosion Rates"
    assert result.score == 1


def test_run_quiz_with_no_questions(seeded_db):
    settings = QuizSettings(exam_name="Unknown Exam")
    with pytest.raises(GenerationFailed):
        run_quiz(seeded_db, settings)


def test_cmd_quiz(seeded_db):
    settings = load_settings({})
    with patch("exam_academy.app.Prompt.ask", side_effect=["1", "closed", "2", "n", "s"]):
        cmd_quiz(seeded_db, settings)
    history = get_history(seeded_db)
    assert len(history) == 1
    assert history[0].exam_name == API_510
    assert history[0].total_questions == 2


def test_cmd_resume_without_saved_exam(tmp_db):
    init_db(tmp_db)
    assert cmd_resume(tmp_db) is None


def test_cmd_resume_continues_saved_exam(tmp_db, questions):
    init_db(tmp_db)
    session = make_session(tmp_db, API_510)
    session.start(questions)
    with patch("exam_academy.app.Prompt.ask", side_effect=["b", "q"]):
        run_exam(session)
    with patch("exam_academy.app.Prompt.ask", side_effect=["n", "b", "s"]):
        result = cmd_resume(tmp_db)
    assert result.score == 2
    assert load_in_progress(tmp_db) is None


def test_cmd_review_without_history(seeded_db):
    assert cmd_review(seeded_db, load_settings({})) is None


def test_cmd_review_runs_weakness_drill(seeded_db, make_result):
    # Damage Mechanisms only has closed-book questions in the seeded bank
    record_quiz_result(seeded_db, make_result([("Damage Mechanisms", False)] * 3))
    with patch("exam_academy.app.Prompt.ask", side_effect=["y", "s"]):
        result = cmd_review(seeded_db, load_settings({}))
    assert result.exam_name == "Weakness Drill: Damage Mechanisms"
    assert result.total_questions == 1


def test_weakness_drill_draws_from_both_books(seeded_db, make_result, questions):
    record_quiz_result(seeded_db, make_result([("Damage Mechanisms", False)] * 3))
    source = FixedSource(questions)
    with patch("exam_academy.app.BankQuestionSource", return_value=source), \
            patch("exam_academy.app.Prompt.ask", side_effect=["y", "s"]):
        cmd_review(seeded_db, load_settings({}))
    assert source.calls == [(API_510, 10, "simulation", ["Damage Mechanisms"])]


def test_main_seeds_and_quits(tmp_db, monkeypatch):
    monkeypatch.setenv("EXAM_ACADEMY_DB", tmp_db)
    with patch("exam_academy.app.Prompt.ask", side_effect=["exams", "bogus", "quit"]):
        main()
    assert is_seeded(tmp_db)
