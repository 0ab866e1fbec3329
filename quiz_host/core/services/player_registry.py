"""Service for tracking the players of a session and their running scores."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from quiz_host.core.errors import ErrorKind, QuizHostError
from quiz_host.core.models import Player
from quiz_host.core.name_assigner import NameAssigner


def round_score(value: float) -> float:
    """Round half-up to one decimal place."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class PlayerRegistry:
    """Players of one session, kept in join order."""

    def __init__(
        self,
        session_id: int,
        next_player_id: Callable[[], int],
        name_assigner: NameAssigner,
    ) -> None:
        self._session_id = session_id
        self._next_player_id = next_player_id
        self._name_assigner = name_assigner
        self._players: dict[int, Player] = {}

    def ensure_name_available(self, name: str) -> None:
        """Reject a chosen name already used in this session (case-sensitive)."""
        if name and any(p.name == name for p in self._players.values()):
            raise QuizHostError(
                ErrorKind.DUPLICATE_NAME,
                f"Name '{name}' is already used in this session.",
            )

    def register_player(self, name: str) -> Player:
        """Add a player; an empty name is replaced by a generated one.

        Generated names are not checked against existing players.
        """
        if not name:
            name = self._name_assigner.next_name()
        player = Player(
            player_id=self._next_player_id(),
            session_id=self._session_id,
            name=name,
        )
        self._players[player.player_id] = player
        return player

    def get_player(self, player_id: int) -> Player | None:
        return self._players.get(player_id)

    def get_players(self) -> list[Player]:
        return list(self._players.values())

    def get_names(self) -> list[str]:
        return [p.name for p in self._players.values()]

    def add_points(self, player_id: int, points: float) -> float:
        """Add ``points`` to a running score and return it, rounded to one decimal."""
        player = self._players[player_id]
        player.score = round_score(player.score + points)
        return player.score
