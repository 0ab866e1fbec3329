"""Business logic for hosting quiz sessions, shared by every API route."""

from __future__ import annotations

from itertools import count
import logging
from threading import Lock

from quiz_host.constants.session_constants import (
    AUTO_START_MAX,
    AUTO_START_MIN,
    COUNTDOWN_SECONDS,
    MAX_ACTIVE_SESSIONS_PER_QUIZ,
)
from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import (
    Action,
    ChatMessage,
    Phase,
    PlayerStatus,
    Question,
    QuestionResult,
    QuestionView,
    SessionList,
    SessionResults,
    SessionStatus,
    SubmittedAnswer,
)
from quiz_host.core.name_assigner import NameAssigner
from quiz_host.core.services.admin_directory import AdminDirectory
from quiz_host.core.services.quiz_catalog import AnswerInput, QuizCatalog, QuizDefinition
from quiz_host.core.services.quiz_session import QuizSession
from quiz_host.core.services.session_clock import TimerFactory

logger = logging.getLogger(__name__)


class SessionManager:
    """Facade over the catalog, the admin directory and every live session.

    The manager lock guards only the lookup tables. Work on a session runs
    under that session's own lock, so sessions never block each other.
    """

    def __init__(
        self,
        countdown_seconds: float = COUNTDOWN_SECONDS,
        timer_factory: TimerFactory | None = None,
        name_assigner: NameAssigner | None = None,
    ) -> None:
        self._lock = Lock()
        self._countdown_seconds = countdown_seconds
        self._timer_factory = timer_factory
        self._name_assigner = name_assigner or NameAssigner()

        self._directory = AdminDirectory()
        self._catalog = QuizCatalog()
        self._sessions: dict[int, QuizSession] = {}
        self._player_sessions: dict[int, int] = {}
        self._session_ids = count(1)
        self._player_ids = count(1)

    # --- Identity ---

    def issue_token(self, user_id: int) -> str:
        return self._directory.issue_token(user_id)

    def authenticate(self, token: str | None) -> int:
        return self._directory.resolve(token)

    def logout(self, token: str | None) -> None:
        self._directory.resolve(token)
        self._directory.revoke(token)

    # --- Quiz catalog delegation ---

    def create_quiz(self, user_id: int, name: str, description: str = "") -> QuizDefinition:
        with self._lock:
            return self._catalog.create_quiz(user_id, name, description)

    def list_quizzes(self, user_id: int) -> list[QuizDefinition]:
        with self._lock:
            return self._catalog.list_quizzes(user_id)

    def quiz_info(self, user_id: int, quiz_id: int) -> QuizDefinition:
        with self._lock:
            return self._catalog.require_owner(user_id, quiz_id)

    def add_question(
        self,
        user_id: int,
        quiz_id: int,
        text: str,
        duration_seconds: int,
        points: int,
        answers: list[AnswerInput],
    ) -> Question:
        with self._lock:
            quiz = self._catalog.require_owner(user_id, quiz_id)
            if self._active_sessions_for(quiz_id):
                raise QuizHostError(
                    ErrorKind.INVALID_QUIZ,
                    "Questions cannot be added while the quiz has sessions that are not in END state.",
                )
            return self._catalog.add_question(quiz, text, duration_seconds, points, answers)

    # --- Administrator session control ---

    def start_session(self, user_id: int, quiz_id: int, auto_start_num: int) -> int:
        with self._lock:
            quiz = self._catalog.require_owner(user_id, quiz_id)
            if not AUTO_START_MIN <= auto_start_num <= AUTO_START_MAX:
                raise QuizHostError(
                    ErrorKind.INVALID_QUIZ,
                    f"autoStartNum must be between {AUTO_START_MIN} and {AUTO_START_MAX}.",
                )
            if not quiz.questions:
                raise QuizHostError(ErrorKind.INVALID_QUIZ, "The quiz does not have any questions in it.")
            if len(self._active_sessions_for(quiz_id)) >= MAX_ACTIVE_SESSIONS_PER_QUIZ:
                raise QuizHostError(
                    ErrorKind.INVALID_QUIZ,
                    f"A maximum of {MAX_ACTIVE_SESSIONS_PER_QUIZ} sessions that are not in END state already exist.",
                )
            session = QuizSession(
                session_id=next(self._session_ids),
                snapshot=self._catalog.snapshot(quiz),
                next_player_id=self._next_player_id,
                name_assigner=self._name_assigner,
                auto_start_num=auto_start_num,
                countdown_seconds=self._countdown_seconds,
                timer_factory=self._timer_factory,
            )
            self._sessions[session.session_id] = session
        logger.info("Started session %d for quiz %d", session.session_id, quiz_id)
        return session.session_id

    def transition(self, user_id: int, quiz_id: int, session_id: int, action: Action | str) -> Phase:
        session = self._owned_session(user_id, quiz_id, session_id)
        try:
            parsed = Action(action)
        except ValueError:
            raise QuizHostError(ErrorKind.INVALID_ACTION, f"{action!r} is not a valid action.") from None
        return session.apply_action(parsed)

    def view_sessions(self, user_id: int, quiz_id: int) -> SessionList:
        with self._lock:
            self._catalog.require_owner(user_id, quiz_id)
            sessions = [s for s in self._sessions.values() if s.snapshot.quiz_id == quiz_id]
        return SessionList(
            active_sessions=sorted(s.session_id for s in sessions if s.is_active()),
            inactive_sessions=sorted(s.session_id for s in sessions if not s.is_active()),
        )

    def session_status(self, user_id: int, quiz_id: int, session_id: int) -> SessionStatus:
        return self._owned_session(user_id, quiz_id, session_id).status()

    def session_results(self, user_id: int, quiz_id: int, session_id: int) -> SessionResults:
        return self._owned_session(user_id, quiz_id, session_id).final_results()

    # --- Player operations ---

    def join(self, session_id: int, name: str) -> int:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise QuizHostError(ErrorKind.INVALID_SESSION, f"Session {session_id} does not exist.")
        player = session.join(name)
        with self._lock:
            if self._sessions.get(session_id) is not session:
                raise QuizHostError(ErrorKind.INVALID_SESSION, f"Session {session_id} has been cleared.")
            self._player_sessions[player.player_id] = session_id
        return player.player_id

    def player_status(self, player_id: int) -> PlayerStatus:
        return self._session_for_player(player_id).player_status()

    def question_info(self, player_id: int, position: int) -> QuestionView:
        return self._session_for_player(player_id).question_info(position)

    def submit_answer(self, player_id: int, position: int, answer_ids: list[int]) -> SubmittedAnswer:
        return self._session_for_player(player_id).submit_answer(player_id, position, answer_ids)

    def question_results(self, player_id: int, position: int) -> QuestionResult:
        return self._session_for_player(player_id).question_results(position)

    def player_session_results(self, player_id: int) -> SessionResults:
        return self._session_for_player(player_id).final_results()

    def send_chat(self, player_id: int, message_body: str) -> ChatMessage:
        return self._session_for_player(player_id).send_chat(player_id, message_body)

    def chat_history(self, player_id: int) -> list[ChatMessage]:
        return self._session_for_player(player_id).chat_history()

    # --- Housekeeping ---

    def clear(self) -> None:
        """Discard every session, player, quiz and token, cancelling pending timers."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._player_sessions.clear()
            self._catalog.clear()
            self._directory.clear()
        for session in sessions:
            session.shutdown()
        logger.info("Cleared %d session(s)", len(sessions))

    def get_session(self, session_id: int) -> QuizSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def _next_player_id(self) -> int:
        return next(self._player_ids)

    def _active_sessions_for(self, quiz_id: int) -> list[QuizSession]:
        return [
            s for s in self._sessions.values() if s.snapshot.quiz_id == quiz_id and s.is_active()
        ]

    def _owned_session(self, user_id: int, quiz_id: int, session_id: int) -> QuizSession:
        with self._lock:
            self._catalog.require_owner(user_id, quiz_id)
            session = self._sessions.get(session_id)
        if session is None or session.snapshot.quiz_id != quiz_id:
            raise QuizHostError(
                ErrorKind.INVALID_SESSION,
                f"Session {session_id} does not refer to a valid session within quiz {quiz_id}.",
            )
        return session

    def _session_for_player(self, player_id: int) -> QuizSession:
        with self._lock:
            session_id = self._player_sessions.get(player_id)
            session = self._sessions.get(session_id) if session_id is not None else None
        if session is None:
            raise QuizHostError(ErrorKind.INVALID_PLAYER, f"Player {player_id} does not exist.")
        return session
