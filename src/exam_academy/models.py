"""Data classes for the exam practice domain model."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from exam_academy.exceptions import InvalidInput

NOT_ANSWERED = "Not Answered"
TRUE_FALSE_CHOICES = ("True", "False")
EXAM_MODES = ("open", "closed", "simulation")


class Phase(str, Enum):
    IN_PROGRESS = "in_progress"
    REVIEWING = "reviewing"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class Question:
    prompt: str
    options: tuple = ()
    answer: str = ""
    category: str = ""
    reference: str = ""
    quote: str = ""
    explanation: str = ""
    type: str = "multiple-choice"

    @property
    def choices(self) -> tuple:
        """The strings a user may pick for this question."""
        if self.type == "true-false" and not self.options:
            return TRUE_FALSE_CHOICES
        return self.options

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        """Build a question from the question-bank JSON shape.

        Raises InvalidInput when the prompt is missing, there are fewer than
        two choices, or the answer is not one of the choices.
        """
        if not isinstance(data, dict):
            raise InvalidInput(f"Question must be an object, got {type(data).__name__}")
        prompt = str(data.get("question") or data.get("prompt") or "").strip()
        if not prompt:
            raise InvalidInput("Question text is missing")
        qtype = data.get("type") or "multiple-choice"
        options = tuple(str(o) for o in (data.get("options") or ()))
        question = cls(
            prompt=prompt,
            options=options,
            answer=str(data.get("answer") or ""),
            category=str(data.get("category") or ""),
            reference=str(data.get("reference") or ""),
            quote=str(data.get("quote") or ""),
            explanation=str(data.get("explanation") or ""),
            type=qtype,
        )
        if len(question.choices) < 2:
            raise InvalidInput(f"Question needs at least two options: {prompt[:60]!r}")
        if question.answer not in question.choices:
            raise InvalidInput(f"Answer {question.answer!r} is not one of the options: {prompt[:60]!r}")
        return question

    def to_dict(self) -> dict:
        return {
            "question": self.prompt,
            "options": list(self.options),
            "answer": self.answer,
            "category": self.category,
            "reference": self.reference,
            "quote": self.quote,
            "explanation": self.explanation,
            "type": self.type,
        }


@dataclass
class AnswerState:
    user_answer: Optional[str] = None
    flagged: bool = False
    struck_options: set = field(default_factory=set)

    @property
    def is_answered(self) -> bool:
        return self.user_answer is not None


@dataclass
class SessionState:
    questions: list
    answers: list
    current_index: int = 0
    time_left: Optional[int] = None
    phase: Phase = Phase.IN_PROGRESS

    @property
    def total(self) -> int:
        return len(self.questions)


@dataclass
class ReviewSummary:
    answered: list = field(default_factory=list)
    unanswered: list = field(default_factory=list)
    flagged: list = field(default_factory=list)


@dataclass
class UserAnswer:
    question: str
    options: list
    answer: str
    user_answer: str
    is_correct: bool
    category: str = ""
    reference: str = ""
    quote: str = ""
    explanation: str = ""


@dataclass
class QuizResult:
    id: str
    exam_name: str
    score: int
    total_questions: int
    percentage: float
    date: str
    user_answers: list = field(default_factory=list)


@dataclass
class QuizSettings:
    exam_name: str
    num_questions: int = 10
    is_timed: bool = False
    exam_mode: str = "closed"
    topics: Optional[str] = None

    @property
    def result_name(self) -> str:
        """Name the finished attempt is filed under in the history."""
        if self.topics:
            return f"Weakness Drill: {self.topics}"
        return self.exam_name


@dataclass
class Exam:
    id: int
    name: str
    effectivity_sheet: str = ""
    body_of_knowledge: str = ""
    is_active: bool = True
