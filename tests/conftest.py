"""
Pytest configuration and fixtures for QuizHost tests.
"""
import random

import pytest

from quiz_host.core.models import Action
from quiz_host.core.name_assigner import NameAssigner
from quiz_host.core.services.quiz_catalog import AnswerInput
from quiz_host.core.session_manager import SessionManager

ADMIN_ID = 1
OTHER_ADMIN_ID = 2


class ManualTimer:
    """Timer double that only runs its callback when fired by the test."""

    def __init__(self, delay, function, args):
        self.delay = delay
        self.function = function
        self.args = args
        self.started = False
        self.cancelled = False
        self.fired = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.function(*self.args)


class ManualTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, delay, function, args):
        timer = ManualTimer(delay, function, args)
        self.timers.append(timer)
        return timer

    def live(self):
        return [t for t in self.timers if t.started and not (t.cancelled or t.fired)]

    @property
    def latest(self):
        return self.timers[-1]


@pytest.fixture
def timers():
    return ManualTimerFactory()


@pytest.fixture
def manager(timers):
    return SessionManager(timer_factory=timers, name_assigner=NameAssigner(random.Random(7)))


@pytest.fixture
def quiz_id(manager):
    """A quiz with a single-answer question and a multi-answer question."""
    quiz = manager.create_quiz(ADMIN_ID, "General knowledge", "Warm-up round")
    manager.add_question(
        ADMIN_ID,
        quiz.quiz_id,
        text="What is two plus two?",
        duration_seconds=10,
        points=5,
        answers=[AnswerInput("Four", True), AnswerInput("Five", False)],
    )
    manager.add_question(
        ADMIN_ID,
        quiz.quiz_id,
        text="Pick the prime numbers",
        duration_seconds=20,
        points=5,
        answers=[
            AnswerInput("Two", True),
            AnswerInput("Three", True),
            AnswerInput("Four", False),
        ],
    )
    return quiz.quiz_id


@pytest.fixture
def session_id(manager, quiz_id):
    return manager.start_session(ADMIN_ID, quiz_id, 1)


@pytest.fixture
def session(manager, session_id):
    return manager.get_session(session_id)


@pytest.fixture
def open_question(manager, quiz_id, session_id):
    """Advance the session to its next question and open it without waiting."""

    def advance():
        manager.transition(ADMIN_ID, quiz_id, session_id, Action.NEXT_QUESTION)
        manager.transition(ADMIN_ID, quiz_id, session_id, Action.SKIP_COUNTDOWN)

    return advance


def answer_ids(session, position, *texts):
    """Look up answer ids of a question in the session snapshot by their text."""
    question = session.snapshot.question_at(position)
    by_text = {a.text: a.answer_id for a in question.answers}
    return [by_text[t] for t in texts]
