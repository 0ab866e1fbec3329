"""Append-only chat log shared by the players of one session."""

from __future__ import annotations

import time

from quiz_host.constants.session_constants import CHAT_MESSAGE_MAX_LENGTH, CHAT_MESSAGE_MIN_LENGTH
from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import ChatMessage, Player


class ChatLog:
    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []

    def send(self, player: Player, message_body: str) -> ChatMessage:
        if not CHAT_MESSAGE_MIN_LENGTH <= len(message_body) <= CHAT_MESSAGE_MAX_LENGTH:
            raise QuizHostError(
                ErrorKind.INVALID_MESSAGE,
                f"Message body must be between {CHAT_MESSAGE_MIN_LENGTH} and "
                f"{CHAT_MESSAGE_MAX_LENGTH} characters.",
            )
        message = ChatMessage(
            message_body=message_body,
            player_id=player.player_id,
            player_name=player.name,
            time_sent=int(time.time()),
        )
        self._messages.append(message)
        return message

    def history(self) -> list[ChatMessage]:
        """Return all messages, newest first."""
        return list(reversed(self._messages))
