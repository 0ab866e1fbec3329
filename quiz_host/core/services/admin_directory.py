"""Stand-in for the account service: maps opaque tokens to user ids."""

from __future__ import annotations

from threading import Lock
from uuid import uuid4

from quiz_host.core.errors import ErrorKind, QuizHostError


class AdminDirectory:
    def __init__(self) -> None:
        self._tokens: dict[str, int] = {}
        self._lock = Lock()

    def issue_token(self, user_id: int) -> str:
        token = uuid4().hex
        with self._lock:
            self._tokens[token] = user_id
        return token

    def resolve(self, token: str | None) -> int:
        """Return the user id behind ``token`` or fail as unauthenticated."""
        with self._lock:
            user_id = self._tokens.get(token) if token else None
        if user_id is None:
            raise QuizHostError(ErrorKind.UNAUTHENTICATED, "Token is empty or invalid.")
        return user_id

    def revoke(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()
