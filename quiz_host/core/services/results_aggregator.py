"""Service for building leaderboards and per-question statistics."""

from __future__ import annotations

from quiz_host.core.models import QuestionResult, QuizSnapshot, RankedPlayer, SessionResults
from quiz_host.core.services.answer_ledger import AnswerLedger
from quiz_host.core.services.player_registry import PlayerRegistry


class ResultsAggregator:
    """Read-only view over a session's players and answers."""

    def __init__(self, snapshot: QuizSnapshot, players: PlayerRegistry, ledger: AnswerLedger) -> None:
        self._snapshot = snapshot
        self._players = players
        self._ledger = ledger

    def get_ranked_players(self) -> list[RankedPlayer]:
        """Return every player sorted by score, highest first; ties keep join order."""
        ranked = sorted(self._players.get_players(), key=lambda p: -p.score)
        return [RankedPlayer(name=p.name, score=p.score) for p in ranked]

    def get_question_results(self) -> list[QuestionResult]:
        return [
            self._ledger.get_question_result(question.question_id)
            for question in self._snapshot.questions
        ]

    def build_session_results(self) -> SessionResults:
        return SessionResults(
            users_ranked_by_score=self.get_ranked_players(),
            question_results=self.get_question_results(),
        )
