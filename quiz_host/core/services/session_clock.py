"""Service for scheduling the delayed phase changes of one session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import count
import logging
from threading import Timer
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerKind(str, Enum):
    COUNTDOWN = "COUNTDOWN"
    DURATION = "DURATION"


class TimerHandle(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[..., None], tuple], TimerHandle]


def thread_timer_factory(delay: float, function: Callable[..., None], args: tuple) -> TimerHandle:
    """Build a daemon ``threading.Timer`` so pending timers never block shutdown."""
    timer = Timer(delay, function, args=args)
    timer.daemon = True
    return timer


@dataclass(slots=True)
class PendingTimer:
    kind: TimerKind
    token: int
    delay: float
    handle: TimerHandle


class SessionClock:
    """Owns the single timer slot of a session.

    The clock is not synchronised on its own: callers hold the session lock
    around every call, and timer callbacks take that same lock before asking
    ``is_live`` whether they are still the current timer.
    """

    def __init__(self, timer_factory: TimerFactory | None = None) -> None:
        self._timer_factory = timer_factory or thread_timer_factory
        self._pending: PendingTimer | None = None
        self._tokens = count(1)

    def schedule(self, kind: TimerKind, delay: float, callback: Callable[[int], None]) -> int:
        """Replace any live timer with a new one; return its token."""
        self.cancel()
        token = next(self._tokens)
        handle = self._timer_factory(delay, callback, (token,))
        self._pending = PendingTimer(kind=kind, token=token, delay=delay, handle=handle)
        handle.start()
        logger.debug("Scheduled %s timer #%d for %.1fs", kind.value, token, delay)
        return token

    def cancel(self) -> TimerKind | None:
        """Cancel the live timer, if any, and return its kind."""
        pending = self._pending
        if pending is None:
            return None
        self._pending = None
        pending.handle.cancel()
        logger.debug("Cancelled %s timer #%d", pending.kind.value, pending.token)
        return pending.kind

    def is_live(self, token: int) -> bool:
        return self._pending is not None and self._pending.token == token

    def release(self, token: int) -> None:
        """Forget a timer that has fired, leaving later timers untouched."""
        if self.is_live(token):
            self._pending = None

    @property
    def pending_kind(self) -> TimerKind | None:
        return self._pending.kind if self._pending else None
