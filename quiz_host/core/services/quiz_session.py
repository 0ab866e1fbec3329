"""Service for driving one live quiz session through its phases."""

from __future__ import annotations

import logging
from threading import RLock
from typing import Callable

from quiz_host.constants.session_constants import COUNTDOWN_SECONDS
from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import (
    Action,
    AnswerView,
    ChatMessage,
    Phase,
    Player,
    PlayerStatus,
    Question,
    QuestionResult,
    QuestionView,
    QuizSnapshot,
    SessionResults,
    SessionStatus,
    SubmittedAnswer,
)
from quiz_host.core.name_assigner import NameAssigner
from quiz_host.core.services.answer_ledger import AnswerLedger
from quiz_host.core.services.chat_log import ChatLog
from quiz_host.core.services.player_registry import PlayerRegistry
from quiz_host.core.services.results_aggregator import ResultsAggregator
from quiz_host.core.services.session_clock import SessionClock, TimerFactory, TimerKind

logger = logging.getLogger(__name__)

_VALID_SOURCES: dict[Action, frozenset[Phase]] = {
    Action.NEXT_QUESTION: frozenset({Phase.LOBBY, Phase.QUESTION_CLOSE, Phase.ANSWER_SHOW}),
    Action.SKIP_COUNTDOWN: frozenset({Phase.QUESTION_COUNTDOWN}),
    Action.GO_TO_ANSWER: frozenset({Phase.QUESTION_OPEN, Phase.QUESTION_CLOSE}),
    Action.GO_TO_FINAL_RESULTS: frozenset({Phase.QUESTION_CLOSE, Phase.ANSWER_SHOW}),
    Action.END: frozenset(phase for phase in Phase if phase is not Phase.END),
}


class QuizSession:
    """State machine for a single session plus the players and answers it owns.

    Every public method takes the session lock, and so do the clock
    callbacks. A callback therefore either runs before a competing command or
    observes that its timer was cancelled and does nothing.
    """

    def __init__(
        self,
        session_id: int,
        snapshot: QuizSnapshot,
        next_player_id: Callable[[], int],
        name_assigner: NameAssigner,
        auto_start_num: int,
        countdown_seconds: float = COUNTDOWN_SECONDS,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        self.session_id = session_id
        self.snapshot = snapshot
        self.auto_start_num = auto_start_num
        self.lock = RLock()
        self._phase = Phase.LOBBY
        self._at_question = 0
        self._countdown_seconds = countdown_seconds
        self._clock = SessionClock(timer_factory)
        self._players = PlayerRegistry(session_id, next_player_id, name_assigner)
        self._ledger = AnswerLedger(snapshot)
        self._results = ResultsAggregator(snapshot, self._players, self._ledger)
        self._chat = ChatLog()
        self._closed = False

    # --- Phase state ---

    @property
    def phase(self) -> Phase:
        with self.lock:
            return self._phase

    @property
    def at_question(self) -> int:
        with self.lock:
            return self._at_question

    @property
    def pending_timer(self) -> TimerKind | None:
        with self.lock:
            return self._clock.pending_kind

    def is_active(self) -> bool:
        return self.phase is not Phase.END

    def apply_action(self, action: Action) -> Phase:
        """Run an administrator command and return the resulting phase."""
        with self.lock:
            self._require_open()
            if self._phase not in _VALID_SOURCES[action]:
                raise QuizHostError(
                    ErrorKind.INVALID_TRANSITION,
                    f"Action {action.value} cannot be applied in state {self._phase.value}.",
                )
            previous = self._phase
            if action is Action.NEXT_QUESTION:
                self._next_question()
            elif action is Action.SKIP_COUNTDOWN:
                self._clock.cancel()
                self._open_question()
            elif action is Action.GO_TO_ANSWER:
                self._clock.cancel()
                self._phase = Phase.ANSWER_SHOW
            elif action is Action.GO_TO_FINAL_RESULTS:
                self._clock.cancel()
                self._phase = Phase.FINAL_RESULTS
            else:
                self._clock.cancel()
                self._phase = Phase.END
            logger.info(
                "Session %d: %s -> %s via %s",
                self.session_id,
                previous.value,
                self._phase.value,
                action.value,
            )
            return self._phase

    def shutdown(self) -> None:
        """Close the session and cancel any pending timer without changing the phase.

        A closed session refuses further commands and joins, so nothing can
        schedule a new timer on it.
        """
        with self.lock:
            self._closed = True
            self._clock.cancel()

    def _require_open(self) -> None:
        if self._closed:
            raise QuizHostError(ErrorKind.INVALID_SESSION, f"Session {self.session_id} has been cleared.")

    def _next_question(self) -> None:
        if self._at_question >= self.snapshot.num_questions:
            raise QuizHostError(
                ErrorKind.INVALID_TRANSITION,
                "There is no next question; the session is already on the last one.",
            )
        self._at_question += 1
        self._phase = Phase.QUESTION_COUNTDOWN
        self._clock.schedule(TimerKind.COUNTDOWN, self._countdown_seconds, self._on_countdown_elapsed)

    def _open_question(self) -> None:
        self._phase = Phase.QUESTION_OPEN
        question = self._current_question()
        self._clock.schedule(TimerKind.DURATION, question.duration_seconds, self._on_duration_elapsed)

    def _on_countdown_elapsed(self, token: int) -> None:
        with self.lock:
            if not self._clock.is_live(token) or self._phase is not Phase.QUESTION_COUNTDOWN:
                logger.debug("Session %d: ignoring stale countdown timer #%d", self.session_id, token)
                return
            self._clock.release(token)
            self._open_question()
            logger.info("Session %d: countdown elapsed, question %d open", self.session_id, self._at_question)

    def _on_duration_elapsed(self, token: int) -> None:
        with self.lock:
            if not self._clock.is_live(token) or self._phase is not Phase.QUESTION_OPEN:
                logger.debug("Session %d: ignoring stale duration timer #%d", self.session_id, token)
                return
            self._clock.release(token)
            self._phase = Phase.QUESTION_CLOSE
            logger.info("Session %d: question %d closed", self.session_id, self._at_question)

    def _current_question(self) -> Question:
        return self.snapshot.question_at(self._at_question)

    def _require_position(self, position: int) -> Question:
        if not 1 <= position <= self.snapshot.num_questions:
            raise QuizHostError(
                ErrorKind.INVALID_POSITION,
                f"Question position {position} is not valid for this session.",
            )
        return self.snapshot.question_at(position)

    # --- Players ---

    def join(self, name: str) -> Player:
        with self.lock:
            self._require_open()
            self._players.ensure_name_available(name)
            if self._phase is not Phase.LOBBY:
                raise QuizHostError(ErrorKind.WRONG_PHASE, "Players can only join while the session is in LOBBY.")
            player = self._players.register_player(name)
            logger.info("Session %d: player %d joined as %r", self.session_id, player.player_id, player.name)
            return player

    def get_player(self, player_id: int) -> Player:
        with self.lock:
            player = self._players.get_player(player_id)
        if player is None:
            raise QuizHostError(ErrorKind.INVALID_PLAYER, f"Player {player_id} does not exist.")
        return player

    def get_player_names(self) -> list[str]:
        with self.lock:
            return self._players.get_names()

    def player_status(self) -> PlayerStatus:
        with self.lock:
            return PlayerStatus(
                phase=self._phase,
                num_questions=self.snapshot.num_questions,
                at_question=self._at_question,
            )

    # --- Questions and answers ---

    def question_info(self, position: int) -> QuestionView:
        with self.lock:
            question = self._require_position(position)
            if self._phase in (Phase.LOBBY, Phase.END):
                raise QuizHostError(
                    ErrorKind.WRONG_PHASE,
                    f"Question information is unavailable in state {self._phase.value}.",
                )
            if self._at_question != position:
                raise QuizHostError(
                    ErrorKind.NOT_YET_ON_QUESTION,
                    f"Session is not currently on question {position}.",
                )
            return QuestionView(
                question_id=question.question_id,
                text=question.text,
                duration_seconds=question.duration_seconds,
                points=question.points,
                answers=[
                    AnswerView(answer_id=a.answer_id, text=a.text, colour=a.colour)
                    for a in question.answers
                ],
            )

    def submit_answer(self, player_id: int, position: int, answer_ids: list[int]) -> SubmittedAnswer:
        with self.lock:
            player = self.get_player(player_id)
            question = self._require_position(position)
            if self._phase is not Phase.QUESTION_OPEN:
                raise QuizHostError(ErrorKind.WRONG_PHASE, "Session is not in QUESTION_OPEN state.")
            if self._at_question < position:
                raise QuizHostError(
                    ErrorKind.NOT_YET_ON_QUESTION,
                    f"Session is not yet up to question {position}.",
                )
            self._ledger.validate_selection(question, answer_ids)
            submission = self._ledger.record_answer(player, question, answer_ids)
            if submission.awarded_points:
                self._players.add_points(player_id, submission.awarded_points)
            return submission

    def question_results(self, position: int) -> QuestionResult:
        with self.lock:
            question = self._require_position(position)
            if self._phase is not Phase.ANSWER_SHOW:
                raise QuizHostError(ErrorKind.WRONG_PHASE, "Session state is not ANSWER_SHOW.")
            if self._at_question < position:
                raise QuizHostError(
                    ErrorKind.NOT_YET_ON_QUESTION,
                    f"Session is not yet up to question {position}.",
                )
            return self._ledger.get_question_result(question.question_id)

    def get_submissions(self, player_id: int | None = None) -> list[SubmittedAnswer]:
        with self.lock:
            return self._ledger.get_submissions(player_id)

    # --- Results ---

    def final_results(self) -> SessionResults:
        with self.lock:
            if self._phase is not Phase.FINAL_RESULTS:
                raise QuizHostError(ErrorKind.WRONG_PHASE, "Session is not in FINAL_RESULTS state.")
            return self._results.build_session_results()

    def status(self) -> SessionStatus:
        with self.lock:
            return SessionStatus(
                phase=self._phase,
                at_question=self._at_question,
                players=self._players.get_names(),
                metadata=self.snapshot,
            )

    # --- Chat ---

    def send_chat(self, player_id: int, message_body: str) -> ChatMessage:
        with self.lock:
            return self._chat.send(self.get_player(player_id), message_body)

    def chat_history(self) -> list[ChatMessage]:
        with self.lock:
            return self._chat.history()
