"""Service for recording answer submissions and scoring them."""

from __future__ import annotations

from datetime import datetime, timezone

from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import Player, Question, QuestionResult, QuizSnapshot, SubmittedAnswer
from quiz_host.core.services.player_registry import round_score


class AnswerLedger:
    """Per-question correctness bookkeeping for one session.

    A submission is fully correct only when the selected ids equal the
    question's correct set exactly. The n-th fully correct responder to a
    question is awarded ``points / n``, rounded to one decimal place.
    """

    def __init__(self, snapshot: QuizSnapshot) -> None:
        self._results: dict[int, QuestionResult] = {
            question.question_id: QuestionResult(question_id=question.question_id)
            for question in snapshot.questions
        }
        self._submissions: list[SubmittedAnswer] = []

    @staticmethod
    def validate_selection(question: Question, answer_ids: list[int]) -> None:
        if not answer_ids:
            raise QuizHostError(ErrorKind.EMPTY_SUBMISSION, "At least one answer id must be submitted.")
        valid_ids = question.answer_ids()
        unknown = [answer_id for answer_id in answer_ids if answer_id not in valid_ids]
        if unknown:
            raise QuizHostError(
                ErrorKind.INVALID_ANSWER_ID,
                f"Answer ids {unknown} are not valid for question {question.question_id}.",
            )
        if len(set(answer_ids)) != len(answer_ids):
            raise QuizHostError(ErrorKind.DUPLICATE_ANSWER_ID, "Duplicate answer ids provided.")

    def record_answer(self, player: Player, question: Question, answer_ids: list[int]) -> SubmittedAnswer:
        """Score a validated selection and remember it.

        The caller adds ``awarded_points`` to the player's running score.
        """
        result = self._results[question.question_id]
        is_correct = frozenset(answer_ids) == question.correct_answer_ids()
        awarded = 0.0
        if is_correct:
            rank = len(result.players_correct) + 1
            awarded = round_score(question.points / rank)
            result.players_correct.append(player.name)

        submission = SubmittedAnswer(
            player_id=player.player_id,
            question_id=question.question_id,
            answer_ids=tuple(answer_ids),
            is_correct=is_correct,
            awarded_points=awarded,
            submitted_at=datetime.now(timezone.utc),
        )
        self._submissions.append(submission)
        return submission

    def get_question_result(self, question_id: int) -> QuestionResult:
        """Return a copy of a question's result with responders sorted by name."""
        result = self._results[question_id]
        return QuestionResult(
            question_id=result.question_id,
            players_correct=sorted(result.players_correct),
            average_answer_time=result.average_answer_time,
            percent_correct=result.percent_correct,
        )

    def get_submissions(self, player_id: int | None = None) -> list[SubmittedAnswer]:
        if player_id is None:
            return list(self._submissions)
        return [s for s in self._submissions if s.player_id == player_id]
