"""FastAPI server that exposes administrator and player endpoints."""

from __future__ import annotations

import logging
from threading import Thread

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from quiz_host.constants.about import APP_NAME, APP_VERSION
from quiz_host.constants.network_constants import API_LOG_LEVEL, DEFAULT_HOST, DEFAULT_PORT
from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import (
    ChatMessage,
    Question,
    QuestionResult,
    QuestionView,
    QuizSnapshot,
    SessionResults,
)
from quiz_host.core.services.quiz_catalog import AnswerInput, QuizDefinition
from quiz_host.core.session_manager import SessionManager

logger = logging.getLogger(__name__)

_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
}


class TokenPayload(BaseModel):
    """Payload schema for issuing an administrator token."""

    user_id: int = Field(alias="authUserId")


class QuizCreatePayload(BaseModel):
    name: str
    description: str = ""


class AnswerPayload(BaseModel):
    answer: str
    correct: bool


class QuestionPayload(BaseModel):
    """Payload schema for adding a question to a quiz."""

    question: str
    duration: int
    points: int
    answers: list[AnswerPayload]


class SessionStartPayload(BaseModel):
    auto_start_num: int = Field(alias="autoStartNum")


class SessionActionPayload(BaseModel):
    action: str


class JoinPayload(BaseModel):
    """Payload schema for the lobby join flow."""

    session_id: int = Field(alias="sessionId")
    name: str = ""


class SubmissionPayload(BaseModel):
    """Payload schema for submitted answers."""

    answer_ids: list[int] = Field(alias="answerIds")


class ChatPayload(BaseModel):
    message_body: str = Field(alias="messageBody")


def _serialize_question(question: Question) -> dict[str, object]:
    return {
        "questionId": question.question_id,
        "question": question.text,
        "duration": question.duration_seconds,
        "points": question.points,
        "answers": [
            {
                "answerId": answer.answer_id,
                "answer": answer.text,
                "colour": answer.colour,
                "correct": answer.correct,
            }
            for answer in question.answers
        ],
    }


def _serialize_quiz(quiz: QuizDefinition | QuizSnapshot) -> dict[str, object]:
    body: dict[str, object] = {
        "quizId": quiz.quiz_id,
        "name": quiz.name,
        "description": quiz.description,
        "numQuestions": len(quiz.questions),
        "questions": [_serialize_question(q) for q in quiz.questions],
        "duration": quiz.duration_seconds,
    }
    if isinstance(quiz, QuizDefinition):
        body["timeCreated"] = quiz.time_created
        body["timeLastEdited"] = quiz.time_last_edited
    return body


def _serialize_question_view(view: QuestionView) -> dict[str, object]:
    return {
        "questionId": view.question_id,
        "question": view.text,
        "duration": view.duration_seconds,
        "points": view.points,
        "answers": [
            {"answerId": a.answer_id, "answer": a.text, "colour": a.colour} for a in view.answers
        ],
    }


def _serialize_question_result(result: QuestionResult) -> dict[str, object]:
    return {
        "questionId": result.question_id,
        "playersCorrectList": result.players_correct,
        "averageAnswerTime": result.average_answer_time,
        "percentCorrect": result.percent_correct,
    }


def _serialize_session_results(results: SessionResults) -> dict[str, object]:
    return {
        "usersRankedByScore": [
            {"name": ranked.name, "score": ranked.score} for ranked in results.users_ranked_by_score
        ],
        "questionResults": [_serialize_question_result(r) for r in results.question_results],
    }


def _serialize_message(message: ChatMessage) -> dict[str, object]:
    return {
        "messageBody": message.message_body,
        "playerId": message.player_id,
        "playerName": message.player_name,
        "timeSent": message.time_sent,
    }


def _get_session_manager_dependency(session_manager: SessionManager):
    def dependency() -> SessionManager:
        return session_manager

    return dependency


def create_api_app(session_manager: SessionManager) -> FastAPI:
    """Create a FastAPI application wired to the provided session manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    manager_dep = _get_session_manager_dependency(session_manager)

    def current_user(
        token: str | None = Header(default=None),
        manager: SessionManager = Depends(manager_dep),
    ) -> int:
        return manager.authenticate(token)

    @app.exception_handler(QuizHostError)
    async def handle_quiz_host_error(request: Request, exc: QuizHostError) -> JSONResponse:
        status_code = _STATUS_BY_KIND.get(exc.kind, 400)
        logger.info("%s %s failed: %s (%s)", request.method, request.url.path, exc.kind.value, exc.message)
        return JSONResponse(status_code=status_code, content={"error": exc.message, "kind": exc.kind.value})

    # --- Administrator identity (stand-in for the account service) ---

    @app.post("/v1/admin/auth/token")
    def issue_token(payload: TokenPayload, manager: SessionManager = Depends(manager_dep)) -> dict[str, object]:
        return {"token": manager.issue_token(payload.user_id)}

    @app.post("/v1/admin/auth/logout")
    def logout(
        token: str | None = Header(default=None),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        manager.logout(token)
        return {}

    # --- Quiz content (stand-in for the quiz service) ---

    @app.post("/v1/admin/quiz")
    def create_quiz(
        payload: QuizCreatePayload,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        quiz = manager.create_quiz(user_id, payload.name, payload.description)
        return {"quizId": quiz.quiz_id}

    @app.get("/v1/admin/quiz/list")
    def list_quizzes(
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return {
            "quizzes": [{"quizId": q.quiz_id, "name": q.name} for q in manager.list_quizzes(user_id)]
        }

    @app.get("/v1/admin/quiz/{quiz_id}")
    def quiz_info(
        quiz_id: int,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return _serialize_quiz(manager.quiz_info(user_id, quiz_id))

    @app.post("/v1/admin/quiz/{quiz_id}/question")
    def add_question(
        quiz_id: int,
        payload: QuestionPayload,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        question = manager.add_question(
            user_id,
            quiz_id,
            text=payload.question,
            duration_seconds=payload.duration,
            points=payload.points,
            answers=[AnswerInput(text=a.answer, correct=a.correct) for a in payload.answers],
        )
        return {"questionId": question.question_id}

    # --- Sessions ---

    @app.post("/v1/admin/quiz/{quiz_id}/session/start")
    def start_session(
        quiz_id: int,
        payload: SessionStartPayload,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return {"sessionId": manager.start_session(user_id, quiz_id, payload.auto_start_num)}

    @app.get("/v1/admin/quiz/{quiz_id}/sessions")
    def view_sessions(
        quiz_id: int,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        sessions = manager.view_sessions(user_id, quiz_id)
        return {
            "activeSessions": sessions.active_sessions,
            "inactiveSessions": sessions.inactive_sessions,
        }

    @app.put("/v1/admin/quiz/{quiz_id}/session/{session_id}")
    def update_session_state(
        quiz_id: int,
        session_id: int,
        payload: SessionActionPayload,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        manager.transition(user_id, quiz_id, session_id, payload.action)
        return {}

    @app.get("/v1/admin/quiz/{quiz_id}/session/{session_id}")
    def session_status(
        quiz_id: int,
        session_id: int,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        status = manager.session_status(user_id, quiz_id, session_id)
        return {
            "state": status.phase.value,
            "atQuestion": status.at_question,
            "players": status.players,
            "metadata": _serialize_quiz(status.metadata),
        }

    @app.get("/v1/admin/quiz/{quiz_id}/session/{session_id}/results")
    def session_results(
        quiz_id: int,
        session_id: int,
        user_id: int = Depends(current_user),
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return _serialize_session_results(manager.session_results(user_id, quiz_id, session_id))

    # --- Players ---

    @app.post("/v1/player/join")
    def join(payload: JoinPayload, manager: SessionManager = Depends(manager_dep)) -> dict[str, object]:
        return {"playerId": manager.join(payload.session_id, payload.name)}

    @app.get("/v1/player/{player_id}")
    def player_status(player_id: int, manager: SessionManager = Depends(manager_dep)) -> dict[str, object]:
        status = manager.player_status(player_id)
        return {
            "state": status.phase.value,
            "numQuestions": status.num_questions,
            "atQuestion": status.at_question,
        }

    @app.get("/v1/player/{player_id}/question/{position}")
    def question_info(
        player_id: int,
        position: int,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return _serialize_question_view(manager.question_info(player_id, position))

    @app.put("/v1/player/{player_id}/question/{position}/answer")
    def submit_answer(
        player_id: int,
        position: int,
        payload: SubmissionPayload,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        manager.submit_answer(player_id, position, payload.answer_ids)
        return {}

    @app.get("/v1/player/{player_id}/question/{position}/results")
    def question_results(
        player_id: int,
        position: int,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return _serialize_question_result(manager.question_results(player_id, position))

    @app.get("/v1/player/{player_id}/results")
    def player_session_results(
        player_id: int,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        return _serialize_session_results(manager.player_session_results(player_id))

    @app.get("/v1/player/{player_id}/chat")
    def chat_history(player_id: int, manager: SessionManager = Depends(manager_dep)) -> dict[str, object]:
        return {"messages": [_serialize_message(m) for m in manager.chat_history(player_id)]}

    @app.post("/v1/player/{player_id}/chat")
    def send_chat(
        player_id: int,
        payload: ChatPayload,
        manager: SessionManager = Depends(manager_dep),
    ) -> dict[str, object]:
        manager.send_chat(player_id, payload.message_body)
        return {}

    @app.delete("/v1/clear")
    def clear(manager: SessionManager = Depends(manager_dep)) -> dict[str, object]:
        manager.clear()
        return {}

    return app


def start_api_server(
    session_manager: SessionManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(session_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=API_LOG_LEVEL)
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizHostApiServer", daemon=True)
    thread.start()
    return thread
