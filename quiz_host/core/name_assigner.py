"""Utility for assigning display names to players who join without one."""

from __future__ import annotations

import random
import string
from threading import Lock

from quiz_host.constants.session_constants import (
    GENERATED_NAME_DIGITS,
    GENERATED_NAME_LETTERS,
)


class NameAssigner:
    """Produces names of five distinct lowercase letters and three distinct digits.

    Names are not checked against players already in a session, so two
    generated names can collide.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self._lock = Lock()

    def next_name(self) -> str:
        with self._lock:
            letters = self._rng.sample(string.ascii_lowercase, GENERATED_NAME_LETTERS)
            digits = self._rng.sample(string.digits, GENERATED_NAME_DIGITS)
        return "".join(letters) + "".join(digits)
