"""Bounded wait for an assistant run to reach ``completed``."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from app.core.errors import TransportFailure


class RunStatus(str, Enum):
    """Run states reported by the Assistants API, plus a catch-all."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"
    FAILED = "failed"
    COMPLETED = "completed"
    INCOMPLETE = "incomplete"
    EXPIRED = "expired"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> "RunStatus":
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


class PollState(str, Enum):
    WAITING = "waiting"
    COMPLETED = "completed"
    EXPIRED = "expired"
    TRANSPORT_FAILURE = "transport_failure"


@dataclass(frozen=True)
class PollOutcome:
    state: PollState
    attempts: int
    elapsed: float
    last_status: RunStatus | None = None
    detail: str | None = None

    @property
    def completed(self) -> bool:
        return self.state is PollState.COMPLETED

    @property
    def timed_out(self) -> bool:
        return self.state is PollState.EXPIRED


class RunPoller:
    """
    Repeatedly asks for a run's status until it completes or the deadline passes.

    Every status other than ``completed`` (including ``failed`` and
    ``cancelled``) is waited out until ``max_duration``. A
    :class:`TransportFailure` from ``status_query`` stops polling at once;
    any other exception propagates to the caller.

    ``clock`` and ``sleep`` default to :func:`time.monotonic` and
    :func:`time.sleep`.
    """

    def __init__(
        self,
        interval: float,
        max_duration: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if max_duration < 0:
            raise ValueError("max_duration may not be negative")
        self.interval = interval
        self.max_duration = max_duration
        self._clock = clock
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)

    def poll(self, status_query: Callable[[], RunStatus]) -> PollOutcome:
        state = PollState.WAITING
        started = self._clock()
        attempts = 0
        status: RunStatus | None = None

        while state is PollState.WAITING:
            attempts += 1
            try:
                status = status_query()
            except TransportFailure as exc:
                self.logger.warning("Run status query failed after %d attempts: %s", attempts, exc.detail)
                return PollOutcome(
                    PollState.TRANSPORT_FAILURE,
                    attempts,
                    self._clock() - started,
                    status,
                    exc.detail,
                )

            elapsed = self._clock() - started
            self.logger.debug("Run status check %d: %s (%.2fs)", attempts, status.value, elapsed)
            if status is RunStatus.COMPLETED:
                state = PollState.COMPLETED
            elif elapsed >= self.max_duration:
                state = PollState.EXPIRED
            else:
                self._sleep(min(self.interval, self.max_duration - elapsed))

        elapsed = self._clock() - started
        if state is PollState.EXPIRED:
            self.logger.warning("Run still %s after %.2fs; giving up.", status.value, elapsed)
        return PollOutcome(state, attempts, elapsed, status)
