"""Error types raised by the exam session and its collaborators."""


class ExamAcademyError(Exception):
    """Base class for all errors raised by exam_academy."""


class InvalidInput(ExamAcademyError):
    """The call received data it cannot work with; state is unaffected."""


class IllegalTransition(ExamAcademyError):
    """The operation is not allowed in the session's current state."""


class GenerationFailed(ExamAcademyError):
    """A question source could not produce a question set."""
