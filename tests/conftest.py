import uuid

import pytest

from exam_academy.models import Question, QuizResult, UserAnswer


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_academy.db")
    return db_path


@pytest.fixture
def questions():
    """Three questions: two multiple choice, one true/false."""
    return [
        Question(
            prompt="What is the long-term corrosion rate?",
            options=("0.004 in./yr", "0.006 in./yr", "0.008 in./yr"),
            answer="0.006 in./yr",
            category="Corrosion Rates",
            reference="API 510, 7.1.1.1",
            explanation="(0.500 - 0.440) / 10",
        ),
        Question(
            prompt="Which ASME V article covers liquid penetrant?",
            options=("Article 2", "Article 6", "Article 7"),
            answer="Article 6",
            category="Nondestructive Examination",
        ),
        Question(
            prompt="True or False: hydrotest pressure is below MAWP.",
            answer="False",
            category="Pressure Testing",
            type="true-false",
        ),
    ]


@pytest.fixture
def make_result():
    """Build a QuizResult from (category, is_correct) pairs."""
    def _make(outcomes, exam_name="API 510 - Pressure Vessel Inspector", date="2024-01-01T09:00:00", result_id=None):
        user_answers = [
            UserAnswer(
                question=f"Question {i + 1}?",
                options=["a", "b"],
                answer="a",
                user_answer="a" if correct else "b",
                is_correct=correct,
                category=category,
            )
            for i, (category, correct) in enumerate(outcomes)
        ]
        score = sum(1 for ua in user_answers if ua.is_correct)
        return QuizResult(
            id=result_id or uuid.uuid4().hex,
            exam_name=exam_name,
            score=score,
            total_questions=len(user_answers),
            percentage=100 * score / len(user_answers),
            date=date,
            user_answers=user_answers,
        )
    return _make
