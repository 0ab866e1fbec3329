"""Service for managing quiz definitions and handing out session snapshots."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from itertools import count
import random
import re
import time

from quiz_host.constants.quiz_constants import (
    ANSWER_COLOURS,
    ANSWER_TEXT_MAX_LENGTH,
    ANSWER_TEXT_MIN_LENGTH,
    MAX_ANSWERS_PER_QUESTION,
    MAX_POINTS,
    MAX_QUIZ_DURATION_SECONDS,
    MIN_ANSWERS_PER_QUESTION,
    MIN_DURATION_SECONDS,
    MIN_POINTS,
    QUESTION_TEXT_MAX_LENGTH,
    QUESTION_TEXT_MIN_LENGTH,
    QUIZ_DESCRIPTION_MAX_LENGTH,
    QUIZ_NAME_MAX_LENGTH,
    QUIZ_NAME_MIN_LENGTH,
)
from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import Answer, Question, QuizSnapshot

_QUIZ_NAME_PATTERN = re.compile(r"^[A-Za-z0-9 ]+$")


@dataclass(slots=True)
class AnswerInput:
    """Answer option as supplied by a quiz author."""

    text: str
    correct: bool


@dataclass(slots=True)
class QuizDefinition:
    """Editable quiz owned by one administrator."""

    quiz_id: int
    owner_id: int
    name: str
    description: str
    time_created: int
    time_last_edited: int
    questions: list[Question] = field(default_factory=list)

    @property
    def duration_seconds(self) -> int:
        return sum(q.duration_seconds for q in self.questions)


class QuizCatalog:
    """In-memory quiz store; sessions only ever see snapshots of it."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._quizzes: dict[int, QuizDefinition] = {}
        self._quiz_ids = count(1)
        self._question_ids = count(1)
        self._answer_ids = count(1)
        self._rng = rng or random.Random()

    def create_quiz(self, owner_id: int, name: str, description: str = "") -> QuizDefinition:
        cleaned_name = name.strip()
        if not QUIZ_NAME_MIN_LENGTH <= len(cleaned_name) <= QUIZ_NAME_MAX_LENGTH:
            raise QuizHostError(
                ErrorKind.INVALID_QUIZ,
                f"Quiz name must be between {QUIZ_NAME_MIN_LENGTH} and {QUIZ_NAME_MAX_LENGTH} characters.",
            )
        if not _QUIZ_NAME_PATTERN.match(cleaned_name):
            raise QuizHostError(ErrorKind.INVALID_QUIZ, "Quiz name may only contain letters, digits and spaces.")
        if any(q.owner_id == owner_id and q.name == cleaned_name for q in self._quizzes.values()):
            raise QuizHostError(ErrorKind.INVALID_QUIZ, f"Quiz name '{cleaned_name}' is already in use.")
        if len(description) > QUIZ_DESCRIPTION_MAX_LENGTH:
            raise QuizHostError(
                ErrorKind.INVALID_QUIZ,
                f"Description must not exceed {QUIZ_DESCRIPTION_MAX_LENGTH} characters.",
            )

        now = int(time.time())
        quiz = QuizDefinition(
            quiz_id=next(self._quiz_ids),
            owner_id=owner_id,
            name=cleaned_name,
            description=description,
            time_created=now,
            time_last_edited=now,
        )
        self._quizzes[quiz.quiz_id] = quiz
        return quiz

    def require_owner(self, user_id: int, quiz_id: int) -> QuizDefinition:
        """Return the quiz if ``user_id`` owns it; unknown quizzes are also forbidden."""
        quiz = self._quizzes.get(quiz_id)
        if quiz is None or quiz.owner_id != user_id:
            raise QuizHostError(ErrorKind.FORBIDDEN, f"User does not own the quiz with id {quiz_id}.")
        return quiz

    def list_quizzes(self, owner_id: int) -> list[QuizDefinition]:
        return [q for q in self._quizzes.values() if q.owner_id == owner_id]

    def add_question(
        self,
        quiz: QuizDefinition,
        text: str,
        duration_seconds: int,
        points: int,
        answers: list[AnswerInput],
    ) -> Question:
        self._validate_question(quiz, text, duration_seconds, points, answers)
        question = Question(
            question_id=next(self._question_ids),
            text=text,
            duration_seconds=duration_seconds,
            points=points,
            answers=[
                Answer(
                    answer_id=next(self._answer_ids),
                    text=answer.text,
                    colour=self._rng.choice(list(ANSWER_COLOURS)),
                    correct=answer.correct,
                )
                for answer in answers
            ],
        )
        quiz.questions.append(question)
        quiz.time_last_edited = int(time.time())
        return question

    def snapshot(self, quiz: QuizDefinition) -> QuizSnapshot:
        """Deep-copy the quiz so later edits never reach a running session."""
        return QuizSnapshot(
            quiz_id=quiz.quiz_id,
            owner_id=quiz.owner_id,
            name=quiz.name,
            description=quiz.description,
            questions=copy.deepcopy(quiz.questions),
        )

    def clear(self) -> None:
        self._quizzes.clear()

    @staticmethod
    def _validate_question(
        quiz: QuizDefinition,
        text: str,
        duration_seconds: int,
        points: int,
        answers: list[AnswerInput],
    ) -> None:
        if not QUESTION_TEXT_MIN_LENGTH <= len(text) <= QUESTION_TEXT_MAX_LENGTH:
            raise QuizHostError(
                ErrorKind.INVALID_QUIZ,
                f"Question text must be between {QUESTION_TEXT_MIN_LENGTH} and "
                f"{QUESTION_TEXT_MAX_LENGTH} characters.",
            )
        if not MIN_ANSWERS_PER_QUESTION <= len(answers) <= MAX_ANSWERS_PER_QUESTION:
            raise QuizHostError(
                ErrorKind.INVALID_QUIZ,
                f"A question needs between {MIN_ANSWERS_PER_QUESTION} and "
                f"{MAX_ANSWERS_PER_QUESTION} answers.",
            )
        if duration_seconds < MIN_DURATION_SECONDS:
            raise QuizHostError(ErrorKind.INVALID_QUIZ, "Question duration must be positive.")
        if quiz.duration_seconds + duration_seconds > MAX_QUIZ_DURATION_SECONDS:
            raise QuizHostError(
                ErrorKind.INVALID_QUIZ,
                f"Question durations may not add up to more than {MAX_QUIZ_DURATION_SECONDS} seconds.",
            )
        if not MIN_POINTS <= points <= MAX_POINTS:
            raise QuizHostError(
                ErrorKind.INVALID_QUIZ,
                f"Points must be between {MIN_POINTS} and {MAX_POINTS}.",
            )
        if any(not ANSWER_TEXT_MIN_LENGTH <= len(a.text) <= ANSWER_TEXT_MAX_LENGTH for a in answers):
            raise QuizHostError(
                ErrorKind.INVALID_QUIZ,
                f"Answer text must be between {ANSWER_TEXT_MIN_LENGTH} and "
                f"{ANSWER_TEXT_MAX_LENGTH} characters.",
            )
        texts = [a.text for a in answers]
        if len(set(texts)) != len(texts):
            raise QuizHostError(ErrorKind.INVALID_QUIZ, "Answer texts must be unique within a question.")
        if not any(a.correct for a in answers):
            raise QuizHostError(ErrorKind.INVALID_QUIZ, "A question needs at least one correct answer.")
