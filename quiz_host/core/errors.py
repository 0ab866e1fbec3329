"""Error kinds raised by the quiz host core."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Stable, caller-visible category of a failed operation."""

    INVALID_SESSION = "InvalidSession"
    INVALID_PLAYER = "InvalidPlayer"
    INVALID_POSITION = "InvalidPosition"
    INVALID_ANSWER_ID = "InvalidAnswerId"
    DUPLICATE_ANSWER_ID = "DuplicateAnswerId"
    EMPTY_SUBMISSION = "EmptySubmission"
    WRONG_PHASE = "WrongPhase"
    NOT_YET_ON_QUESTION = "NotYetOnQuestion"
    INVALID_TRANSITION = "InvalidTransition"
    INVALID_ACTION = "InvalidAction"
    DUPLICATE_NAME = "DuplicateName"
    INVALID_MESSAGE = "InvalidMessage"
    INVALID_QUIZ = "InvalidQuiz"
    FORBIDDEN = "Forbidden"
    UNAUTHENTICATED = "Unauthenticated"


class QuizHostError(Exception):
    """Raised when a request fails validation; never retried internally."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"QuizHostError({self.kind.value}, {self.message!r})"
