"""
Tests for the session manager facade: starting sessions, status views,
quiz snapshots, chat and clearing state.
"""
import pytest

from conftest import ADMIN_ID, OTHER_ADMIN_ID
from quiz_host.constants.session_constants import MAX_ACTIVE_SESSIONS_PER_QUIZ
from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import Action, Phase
from quiz_host.core.services.quiz_catalog import AnswerInput


def _assert_fails(kind, fn, *args):
    with pytest.raises(QuizHostError) as exc_info:
        fn(*args)
    assert exc_info.value.kind is kind


def _yes_no():
    return [AnswerInput("Yes", True), AnswerInput("No", False)]


class TestStartSession:
    @pytest.mark.parametrize("auto_start_num", [0, 51, -3])
    def test_auto_start_num_bounds(self, manager, quiz_id, auto_start_num):
        _assert_fails(ErrorKind.INVALID_QUIZ, manager.start_session, ADMIN_ID, quiz_id, auto_start_num)

    @pytest.mark.parametrize("auto_start_num", [1, 50])
    def test_auto_start_num_accepted(self, manager, quiz_id, auto_start_num):
        session_id = manager.start_session(ADMIN_ID, quiz_id, auto_start_num)

        assert manager.get_session(session_id).auto_start_num == auto_start_num

    def test_empty_quiz(self, manager):
        quiz = manager.create_quiz(ADMIN_ID, "Empty quiz")

        _assert_fails(ErrorKind.INVALID_QUIZ, manager.start_session, ADMIN_ID, quiz.quiz_id, 1)

    def test_not_owner(self, manager, quiz_id):
        _assert_fails(ErrorKind.FORBIDDEN, manager.start_session, OTHER_ADMIN_ID, quiz_id, 1)

    def test_unknown_quiz_is_forbidden(self, manager):
        _assert_fails(ErrorKind.FORBIDDEN, manager.start_session, ADMIN_ID, 404, 1)

    def test_active_session_limit(self, manager, quiz_id):
        session_ids = [manager.start_session(ADMIN_ID, quiz_id, 1) for _ in range(MAX_ACTIVE_SESSIONS_PER_QUIZ)]

        _assert_fails(ErrorKind.INVALID_QUIZ, manager.start_session, ADMIN_ID, quiz_id, 1)

        manager.transition(ADMIN_ID, quiz_id, session_ids[0], Action.END)
        assert manager.start_session(ADMIN_ID, quiz_id, 1) not in session_ids


class TestViews:
    def test_view_sessions_splits_on_end(self, manager, quiz_id):
        first = manager.start_session(ADMIN_ID, quiz_id, 1)
        second = manager.start_session(ADMIN_ID, quiz_id, 1)
        third = manager.start_session(ADMIN_ID, quiz_id, 1)
        manager.transition(ADMIN_ID, quiz_id, second, Action.END)

        sessions = manager.view_sessions(ADMIN_ID, quiz_id)

        assert sessions.active_sessions == [first, third]
        assert sessions.inactive_sessions == [second]

    def test_view_sessions_not_owner(self, manager, quiz_id):
        _assert_fails(ErrorKind.FORBIDDEN, manager.view_sessions, OTHER_ADMIN_ID, quiz_id)

    def test_session_status(self, manager, quiz_id, session_id):
        manager.join(session_id, "Harry")
        manager.join(session_id, "Kevin")
        manager.transition(ADMIN_ID, quiz_id, session_id, Action.NEXT_QUESTION)

        status = manager.session_status(ADMIN_ID, quiz_id, session_id)

        assert status.phase is Phase.QUESTION_COUNTDOWN
        assert status.at_question == 1
        assert status.players == ["Harry", "Kevin"]
        assert status.metadata.num_questions == 2
        assert status.metadata.duration_seconds == 30

    def test_session_status_unknown_session(self, manager, quiz_id, session_id):
        _assert_fails(ErrorKind.INVALID_SESSION, manager.session_status, ADMIN_ID, quiz_id, session_id + 7)


class TestQuizSnapshot:
    def test_running_session_keeps_its_snapshot(self, manager, quiz_id, session_id):
        manager.transition(ADMIN_ID, quiz_id, session_id, Action.END)
        manager.add_question(ADMIN_ID, quiz_id, "Is the sky blue?", 5, 2, _yes_no())

        status = manager.session_status(ADMIN_ID, quiz_id, session_id)

        assert status.metadata.num_questions == 2
        assert len(manager.quiz_info(ADMIN_ID, quiz_id).questions) == 3

    def test_questions_locked_while_session_active(self, manager, quiz_id, session_id):
        _assert_fails(
            ErrorKind.INVALID_QUIZ,
            manager.add_question, ADMIN_ID, quiz_id, "Is the sky blue?", 5, 2, _yes_no(),
        )

    def test_snapshot_is_a_copy(self, manager, quiz_id, session_id, session):
        original = manager.quiz_info(ADMIN_ID, quiz_id).questions[0]
        original.answers[0].text = "Changed"

        assert session.snapshot.question_at(1).answers[0].text == "Four"


class TestCatalogValidation:
    @pytest.mark.parametrize(
        "text, duration, points, answers",
        [
            ("Hi?", 5, 2, _yes_no()),
            ("Valid question", 0, 2, _yes_no()),
            ("Valid question", 181, 2, _yes_no()),
            ("Valid question", 5, 0, _yes_no()),
            ("Valid question", 5, 11, _yes_no()),
            ("Valid question", 5, 2, [AnswerInput("Only", True)]),
            ("Valid question", 5, 2, [AnswerInput(str(i), i == 0) for i in range(7)]),
            ("Valid question", 5, 2, [AnswerInput("Yes", False), AnswerInput("No", False)]),
            ("Valid question", 5, 2, [AnswerInput("Same", True), AnswerInput("Same", False)]),
            ("Valid question", 5, 2, [AnswerInput("", True), AnswerInput("No", False)]),
        ],
    )
    def test_rejects_invalid_questions(self, manager, text, duration, points, answers):
        quiz = manager.create_quiz(ADMIN_ID, "Validation quiz")

        _assert_fails(ErrorKind.INVALID_QUIZ, manager.add_question, ADMIN_ID, quiz.quiz_id, text, duration, points, answers)

    def test_answers_get_ids_and_colours(self, manager):
        quiz = manager.create_quiz(ADMIN_ID, "Colour quiz")

        question = manager.add_question(ADMIN_ID, quiz.quiz_id, "Is the sky blue?", 5, 2, _yes_no())

        assert len({a.answer_id for a in question.answers}) == 2
        assert all(a.colour for a in question.answers)

    @pytest.mark.parametrize("name", ["ab", "x" * 31, "Bad-name!"])
    def test_rejects_invalid_quiz_names(self, manager, name):
        _assert_fails(ErrorKind.INVALID_QUIZ, manager.create_quiz, ADMIN_ID, name)

    def test_quiz_names_unique_per_owner(self, manager, quiz_id):
        _assert_fails(ErrorKind.INVALID_QUIZ, manager.create_quiz, ADMIN_ID, "General knowledge")

        manager.create_quiz(OTHER_ADMIN_ID, "General knowledge")


class TestChat:
    def test_history_newest_first_and_session_scoped(self, manager, quiz_id, session_id):
        harry = manager.join(session_id, "Harry")
        kevin = manager.join(session_id, "Kevin")
        outsider = manager.join(manager.start_session(ADMIN_ID, quiz_id, 1), "Olive")

        manager.send_chat(harry, "hello")
        manager.send_chat(kevin, "hi there")
        manager.send_chat(outsider, "wrong room")

        history = manager.chat_history(harry)

        assert [(m.player_name, m.message_body) for m in history] == [
            ("Kevin", "hi there"),
            ("Harry", "hello"),
        ]

    @pytest.mark.parametrize("body", ["", "x" * 101])
    def test_message_length_bounds(self, manager, session_id, body):
        harry = manager.join(session_id, "Harry")

        _assert_fails(ErrorKind.INVALID_MESSAGE, manager.send_chat, harry, body)

    def test_unknown_player(self, manager):
        _assert_fails(ErrorKind.INVALID_PLAYER, manager.send_chat, 77, "hello")
        _assert_fails(ErrorKind.INVALID_PLAYER, manager.chat_history, 77)


class TestIdentityAndClear:
    def test_tokens_resolve_to_users(self, manager):
        token = manager.issue_token(ADMIN_ID)

        assert manager.authenticate(token) == ADMIN_ID

    @pytest.mark.parametrize("token", [None, "", "not-a-token"])
    def test_bad_tokens(self, manager, token):
        _assert_fails(ErrorKind.UNAUTHENTICATED, manager.authenticate, token)

    def test_logout_revokes_token(self, manager):
        token = manager.issue_token(ADMIN_ID)
        manager.logout(token)

        _assert_fails(ErrorKind.UNAUTHENTICATED, manager.authenticate, token)

    def test_clear_cancels_timers_and_discards_state(self, manager, quiz_id, session_id, session, timers):
        player_id = manager.join(session_id, "Harry")
        manager.transition(ADMIN_ID, quiz_id, session_id, Action.NEXT_QUESTION)
        countdown = timers.latest

        manager.clear()
        countdown.fire()

        assert countdown.cancelled
        assert session.phase is Phase.QUESTION_COUNTDOWN
        assert manager.get_session(session_id) is None
        _assert_fails(ErrorKind.INVALID_PLAYER, manager.player_status, player_id)
        _assert_fails(ErrorKind.FORBIDDEN, manager.quiz_info, ADMIN_ID, quiz_id)

    def test_cleared_session_refuses_commands_and_joins(self, manager, session, timers):
        manager.clear()

        _assert_fails(ErrorKind.INVALID_SESSION, session.apply_action, Action.NEXT_QUESTION)
        _assert_fails(ErrorKind.INVALID_SESSION, session.join, "Harry")
        assert timers.live() == []
        assert session.phase is Phase.LOBBY
        assert session.get_player_names() == []
