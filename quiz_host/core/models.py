"""Domain models for the quiz host."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Phase(str, Enum):
    """Lifecycle position of a quiz session."""

    LOBBY = "LOBBY"
    QUESTION_COUNTDOWN = "QUESTION_COUNTDOWN"
    QUESTION_OPEN = "QUESTION_OPEN"
    QUESTION_CLOSE = "QUESTION_CLOSE"
    ANSWER_SHOW = "ANSWER_SHOW"
    FINAL_RESULTS = "FINAL_RESULTS"
    END = "END"


class Action(str, Enum):
    """Administrator commands accepted by a session."""

    NEXT_QUESTION = "NEXT_QUESTION"
    SKIP_COUNTDOWN = "SKIP_COUNTDOWN"
    GO_TO_ANSWER = "GO_TO_ANSWER"
    GO_TO_FINAL_RESULTS = "GO_TO_FINAL_RESULTS"
    END = "END"


@dataclass(slots=True)
class Answer:
    """One answer option of a question."""

    answer_id: int
    text: str
    colour: str
    correct: bool


@dataclass(slots=True)
class Question:
    """Multiple-choice question with between two and six options."""

    question_id: int
    text: str
    duration_seconds: int
    points: int
    answers: list[Answer]

    def correct_answer_ids(self) -> frozenset[int]:
        return frozenset(a.answer_id for a in self.answers if a.correct)

    def answer_ids(self) -> frozenset[int]:
        return frozenset(a.answer_id for a in self.answers)


@dataclass(slots=True)
class QuizSnapshot:
    """Copy of a quiz taken when a session starts; never edited afterwards."""

    quiz_id: int
    owner_id: int
    name: str
    description: str
    questions: list[Question]

    @property
    def num_questions(self) -> int:
        return len(self.questions)

    @property
    def duration_seconds(self) -> int:
        return sum(q.duration_seconds for q in self.questions)

    def question_at(self, position: int) -> Question:
        """Return the question at a 1-based position."""
        return self.questions[position - 1]


@dataclass(slots=True)
class Player:
    """A participant of exactly one session."""

    player_id: int
    session_id: int
    name: str
    score: float = 0.0


@dataclass(slots=True)
class SubmittedAnswer:
    """Represents the answer ids a player selected for one question."""

    player_id: int
    question_id: int
    answer_ids: tuple[int, ...]
    is_correct: bool
    awarded_points: float
    submitted_at: datetime


@dataclass(slots=True)
class QuestionResult:
    question_id: int
    players_correct: list[str] = field(default_factory=list)
    # Answer timing is not tracked; both figures are always reported as zero.
    average_answer_time: int = 0
    percent_correct: int = 0


@dataclass(slots=True)
class RankedPlayer:
    name: str
    score: float


@dataclass(slots=True)
class SessionResults:
    """Final leaderboard plus per-question outcomes."""

    users_ranked_by_score: list[RankedPlayer]
    question_results: list[QuestionResult]


@dataclass(slots=True)
class PlayerStatus:
    phase: Phase
    num_questions: int
    at_question: int


@dataclass(slots=True)
class SessionStatus:
    phase: Phase
    at_question: int
    players: list[str]
    metadata: QuizSnapshot


@dataclass(slots=True)
class SessionList:
    active_sessions: list[int]
    inactive_sessions: list[int]


@dataclass(slots=True)
class AnswerView:
    """Answer option as shown to players, without its correctness flag."""

    answer_id: int
    text: str
    colour: str


@dataclass(slots=True)
class QuestionView:
    question_id: int
    text: str
    duration_seconds: int
    points: int
    answers: list[AnswerView]


@dataclass(slots=True)
class ChatMessage:
    message_body: str
    player_id: int
    player_name: str
    time_sent: int
