"""Exam session state machine.

One ``ExamSession`` drives a single attempt from the first question to a
submitted ``QuizResult``:

    in_progress --(navigate "next" at last index)--> reviewing
    in_progress --(submit)--> submitted
    reviewing   --(navigate to any index)--> in_progress
                  ("prev" at the first question stays in review)
    reviewing   --(submit)--> submitted
    in_progress|reviewing --(time runs out)--> submitted

Nothing leaves ``submitted``. Rejected calls raise ``InvalidInput`` or
``IllegalTransition`` and leave the state as it was.
"""
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Union

from exam_academy.exceptions import IllegalTransition, InvalidInput
from exam_academy.models import (
    NOT_ANSWERED, AnswerState, Phase, Question, QuizResult, ReviewSummary,
    SessionState, UserAnswer,
)

logger = logging.getLogger(__name__)

SECONDS_PER_QUESTION = 90
WARNING_THRESHOLDS = (30 * 60, 5 * 60)
SNAPSHOT_VERSION = 1


def default_time_limit(num_questions: int, seconds_per_question: int = SECONDS_PER_QUESTION) -> int:
    return num_questions * seconds_per_question


def format_time(seconds: int) -> str:
    hours, rest = divmod(max(seconds, 0), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def warning_message(threshold: int) -> str:
    return f"You have {threshold // 60} minutes remaining."


def review_summary(state: SessionState) -> ReviewSummary:
    """Partition question indices into answered, unanswered and flagged.

    Flagged is independent of the other two groups.
    """
    summary = ReviewSummary()
    for index, answer in enumerate(state.answers):
        if answer.flagged:
            summary.flagged.append(index)
        if answer.is_answered:
            summary.answered.append(index)
        else:
            summary.unanswered.append(index)
    return summary


def score_answers(questions: list, answers: list) -> tuple[int, list]:
    """Score a finished attempt. Unanswered questions are never correct."""
    score = 0
    records = []
    for question, answer in zip(questions, answers):
        is_correct = answer.is_answered and answer.user_answer == question.answer
        if is_correct:
            score += 1
        records.append(UserAnswer(
            question=question.prompt,
            options=list(question.choices),
            answer=question.answer,
            user_answer=answer.user_answer if answer.is_answered else NOT_ANSWERED,
            is_correct=is_correct,
            category=question.category,
            reference=question.reference,
            quote=question.quote,
            explanation=question.explanation,
        ))
    return score, records


class ExamSession:
    """State and transitions for one exam attempt.

    Collaborators are optional and injected:
        result_store: object with ``record(result)``, called once on submit.
        snapshot_store: object with ``save_snapshot(snapshot)``, called by
            ``save_and_exit``.
        clock: object with ``on_tick(callback) -> cancel``; only used when
            the session is timed.
        on_warning: callable receiving the text of each time warning.
    """

    def __init__(
        self,
        exam_name: str = "Practice Exam",
        result_store=None,
        snapshot_store=None,
        clock=None,
        on_warning: Optional[Callable[[str], None]] = None,
    ):
        self.exam_name = exam_name
        self._result_store = result_store
        self._snapshot_store = snapshot_store
        self._clock = clock
        self._on_warning = on_warning
        self._state: Optional[SessionState] = None
        self._result: Optional[QuizResult] = None
        self._cancel_timer: Optional[Callable[[], None]] = None
        self._fired: set = set()
        self._closed = False
        self.timed_out = False

    # -- read-only views ---------------------------------------------------

    @property
    def state(self) -> Optional[SessionState]:
        return self._state

    @property
    def phase(self) -> Optional[Phase]:
        return self._state.phase if self._state else None

    @property
    def current_index(self) -> int:
        self._require_started()
        return self._state.current_index

    @property
    def current_question(self) -> Question:
        self._require_started()
        return self._state.questions[self._state.current_index]

    @property
    def current_answer(self) -> AnswerState:
        self._require_started()
        return self._state.answers[self._state.current_index]

    @property
    def time_left(self) -> Optional[int]:
        return self._state.time_left if self._state else None

    @property
    def is_timed(self) -> bool:
        return self._state is not None and self._state.time_left is not None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def result(self) -> Optional[QuizResult]:
        return self._result

    def review_summary(self) -> ReviewSummary:
        self._require_started()
        return review_summary(self._state)

    # -- guards ------------------------------------------------------------

    def _require_started(self) -> None:
        if self._state is None:
            raise IllegalTransition("Session has not been started")

    def _require_open(self) -> None:
        self._require_started()
        if self._closed:
            raise IllegalTransition("Session has been closed")
        if self._state.phase is Phase.SUBMITTED:
            raise IllegalTransition("Session has already been submitted")

    def _require_in_progress(self) -> None:
        self._require_open()
        if self._state.phase is not Phase.IN_PROGRESS:
            raise IllegalTransition(f"Not allowed while {self._state.phase.value}")

    def _require_choice(self, option: str) -> None:
        if option not in self.current_question.choices:
            raise InvalidInput(f"{option!r} is not an option for question {self._state.current_index + 1}")

    # -- timer -------------------------------------------------------------

    def _start_timer(self) -> None:
        if self._clock is not None and self._cancel_timer is None:
            self._cancel_timer = self._clock.on_tick(self.tick)

    def _stop_timer(self) -> None:
        if self._cancel_timer is not None:
            cancel, self._cancel_timer = self._cancel_timer, None
            cancel()

    # -- transitions -------------------------------------------------------

    def start(self, questions: list, timed_seconds: Optional[int] = None) -> SessionState:
        if self._state is not None:
            raise IllegalTransition("Session has already been started")
        questions = list(questions)
        if not questions:
            raise InvalidInput("Cannot start a session without questions")
        if timed_seconds is not None and (
            isinstance(timed_seconds, bool) or not isinstance(timed_seconds, int) or timed_seconds <= 0
        ):
            raise InvalidInput(f"Time limit must be a positive number of seconds, got {timed_seconds!r}")
        self._state = SessionState(
            questions=questions,
            answers=[AnswerState() for _ in questions],
            time_left=timed_seconds,
        )
        if timed_seconds is not None:
            # Only thresholds above the limit are skipped; one equal to it fires on the first tick.
            self._fired = {t for t in WARNING_THRESHOLDS if t > timed_seconds}
            self._start_timer()
        logger.debug("Started %s: %d questions, time limit %s", self.exam_name, len(questions), timed_seconds)
        return self._state

    def select_answer(self, option: str) -> bool:
        """Lock in an answer for the current question.

        Returns whether the answer is correct. The question is locked after
        the first selection.
        """
        self._require_in_progress()
        self._require_choice(option)
        answer = self.current_answer
        if answer.is_answered:
            raise IllegalTransition(f"Question {self._state.current_index + 1} is already answered")
        if option in answer.struck_options:
            raise IllegalTransition(f"{option!r} is struck through")
        answer.user_answer = option
        return option == self.current_question.answer

    def toggle_flag(self) -> bool:
        """Flag or unflag the current question, answered or not.

        Not allowed while reviewing; review is read-only.
        """
        self._require_in_progress()
        answer = self.current_answer
        answer.flagged = not answer.flagged
        return answer.flagged

    def toggle_strikethrough(self, option: str) -> bool:
        """Strike an option out, or restore it. Only before answering."""
        self._require_in_progress()
        self._require_choice(option)
        answer = self.current_answer
        if answer.is_answered:
            raise IllegalTransition(f"Question {self._state.current_index + 1} is already answered")
        if option in answer.struck_options:
            answer.struck_options.discard(option)
            return False
        answer.struck_options.add(option)
        return True

    def navigate(self, target: Union[str, int]) -> Optional[ReviewSummary]:
        """Move the cursor to "next", "prev" or a question index.

        "next" on the last question enters review and returns the summary.
        """
        self._require_open()
        state = self._state
        last = state.total - 1
        if target == "next":
            if state.current_index >= last:
                return self.enter_review()
            new_index = state.current_index + 1
        elif target == "prev":
            if state.current_index == 0:
                return None
            new_index = state.current_index - 1
        elif isinstance(target, int) and not isinstance(target, bool):
            if not 0 <= target <= last:
                raise InvalidInput(f"Question index {target} is out of range 0..{last}")
            new_index = target
        else:
            raise InvalidInput(f"Unknown navigation target {target!r}")
        if state.phase is Phase.REVIEWING:
            state.phase = Phase.IN_PROGRESS
            logger.debug("Resumed editing at question %d", new_index + 1)
        state.current_index = new_index
        return None

    def enter_review(self) -> ReviewSummary:
        self._require_open()
        if self._state.phase is Phase.IN_PROGRESS:
            self._state.phase = Phase.REVIEWING
            logger.debug("Entered review for %s", self.exam_name)
        return review_summary(self._state)

    def submit(self) -> QuizResult:
        """Score the attempt and hand the result to the result store.

        Partial attempts are always accepted. Calling again returns the same
        result without recording it a second time.
        """
        if self._result is not None:
            return self._result
        self._require_started()
        if self._closed:
            raise IllegalTransition("Session has been closed")
        state = self._state
        score, user_answers = score_answers(state.questions, state.answers)
        total = state.total
        self._result = QuizResult(
            id=uuid.uuid4().hex,
            exam_name=self.exam_name,
            score=score,
            total_questions=total,
            percentage=100 * score / total,
            date=datetime.now().isoformat(timespec="seconds"),
            user_answers=user_answers,
        )
        state.phase = Phase.SUBMITTED
        self._stop_timer()
        logger.info("Submitted %s: %d/%d", self.exam_name, score, total)
        if self._result_store is not None:
            self._result_store.record(self._result)
        return self._result

    def tick(self) -> None:
        """Advance the countdown by one second.

        Fires each time warning once and submits when time runs out.
        """
        state = self._state
        if state is None or self._closed or state.phase is Phase.SUBMITTED or state.time_left is None:
            return
        state.time_left = max(state.time_left - 1, 0)
        for threshold in WARNING_THRESHOLDS:
            if state.time_left <= threshold and threshold not in self._fired:
                self._fired.add(threshold)
                message = warning_message(threshold)
                logger.info(message)
                if self._on_warning is not None:
                    self._on_warning(message)
        if state.time_left == 0:
            self.timed_out = True
            logger.warning("Time is up for %s, submitting", self.exam_name)
            self.submit()

    def save_and_exit(self, remaining_time: Optional[int] = None) -> dict:
        """Snapshot the attempt for later and close the session.

        The phase is left as it is and no result is recorded.
        """
        self._require_open()
        if remaining_time is not None and (
            isinstance(remaining_time, bool) or not isinstance(remaining_time, int) or remaining_time <= 0
        ):
            raise InvalidInput(f"Remaining time must be a positive number of seconds, got {remaining_time!r}")
        state = self._state
        snapshot = {
            "version": SNAPSHOT_VERSION,
            "exam_name": self.exam_name,
            "questions": [q.to_dict() for q in state.questions],
            "answers": [
                {
                    "user_answer": a.user_answer,
                    "flagged": a.flagged,
                    "struck_options": sorted(a.struck_options),
                }
                for a in state.answers
            ],
            "current_index": state.current_index,
            "time_left": remaining_time if remaining_time is not None else state.time_left,
            "phase": state.phase.value,
            "fired_warnings": sorted(self._fired),
            "saved_at": datetime.now().isoformat(timespec="seconds"),
        }
        self._stop_timer()
        self._closed = True
        logger.info("Saved %s at question %d", self.exam_name, state.current_index + 1)
        if self._snapshot_store is not None:
            self._snapshot_store.save_snapshot(snapshot)
        return snapshot

    def abandon(self) -> None:
        """Tear the session down without a snapshot or a result."""
        self._stop_timer()
        self._closed = True

    @classmethod
    def resume(cls, snapshot: dict, **collaborators) -> "ExamSession":
        """Rebuild a session from a ``save_and_exit`` snapshot."""
        try:
            questions = [Question.from_dict(q) for q in snapshot["questions"]]
            answers = [
                AnswerState(
                    user_answer=a.get("user_answer"),
                    flagged=bool(a.get("flagged")),
                    struck_options=set(a.get("struck_options") or ()),
                )
                for a in snapshot["answers"]
            ]
            current_index = int(snapshot.get("current_index", 0))
            time_left = snapshot.get("time_left")
            phase = Phase(snapshot.get("phase", Phase.IN_PROGRESS.value))
            fired = {int(t) for t in snapshot.get("fired_warnings") or ()}
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise InvalidInput(f"Malformed session snapshot: {exc}") from exc
        if not questions or len(answers) != len(questions):
            raise InvalidInput("Snapshot questions and answers do not line up")
        if not 0 <= current_index < len(questions):
            raise InvalidInput(f"Snapshot index {current_index} is out of range")
        if phase is Phase.SUBMITTED:
            raise InvalidInput("Cannot resume a submitted session")
        if time_left is not None and (not isinstance(time_left, int) or time_left <= 0):
            raise InvalidInput(f"Snapshot time left must be a positive integer, got {time_left!r}")
        for question, answer in zip(questions, answers):
            if answer.user_answer is not None and answer.user_answer not in question.choices:
                raise InvalidInput(f"Snapshot answer {answer.user_answer!r} is not an option")

        session = cls(exam_name=snapshot.get("exam_name", "Practice Exam"), **collaborators)
        session._state = SessionState(
            questions=questions,
            answers=answers,
            current_index=current_index,
            time_left=time_left,
            phase=phase,
        )
        session._fired = fired
        if time_left is not None:
            session._start_timer()
        logger.debug("Resumed %s at question %d", session.exam_name, current_index + 1)
        return session
