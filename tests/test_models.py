# tests/test_models.py
import pytest

from exam_academy.exceptions import InvalidInput
from exam_academy.models import AnswerState, Question, QuizSettings


def test_question_from_dict():
    q = Question.from_dict({
        "question": "Which code covers in-service piping?",
        "options": ["API 510", "API 570", "API 653"],
        "answer": "API 570",
        "category": "Codes",
    })
    assert q.prompt == "Which code covers in-service piping?"
    assert q.options == ("API 510", "API 570", "API 653")
    assert q.type == "multiple-choice"
    assert q.choices == q.options


def test_question_accepts_prompt_key():
    q = Question.from_dict({"prompt": "Pick one", "options": ["x", "y"], "answer": "y"})
    assert q.prompt == "Pick one"


def test_true_false_question_has_implicit_choices():
    q = Question.from_dict({"question": "Is it so?", "answer": "True", "type": "true-false"})
    assert q.options == ()
    assert q.choices == ("True", "False")


@pytest.mark.parametrize("data", [
    {"options": ["a", "b"], "answer": "a"},
    {"question": "   ", "options": ["a", "b"], "answer": "a"},
    {"question": "Q?", "options": ["a"], "answer": "a"},
    {"question": "Q?", "options": ["a", "b"], "answer": "c"},
    {"question": "Q?", "answer": "Maybe", "type": "true-false"},
    ["not", "a", "dict"],
])
def test_invalid_question_rejected(data):
    with pytest.raises(InvalidInput):
        Question.from_dict(data)


def test_question_to_dict_round_trips(questions):
    for q in questions:
        assert Question.from_dict(q.to_dict()) == q


def test_answer_state_defaults():
    state = AnswerState()
    assert state.user_answer is None
    assert state.flagged is False
    assert state.struck_options == set()
    assert not state.is_answered


def test_answer_states_do_not_share_struck_options():
    a, b = AnswerState(), AnswerState()
    a.struck_options.add("x")
    assert b.struck_options == set()


def test_quiz_settings_result_name():
    assert QuizSettings(exam_name="CWI").result_name == "CWI"
    drill = QuizSettings(exam_name="CWI", topics="Welding, Safety")
    assert drill.result_name == "Weakness Drill: Welding, Safety"
