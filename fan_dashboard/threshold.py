"""Temperature threshold editing and the server update state machine."""

import asyncio
import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from fan_dashboard.api import TransportError

log = logging.getLogger(__name__)

THRESHOLD_MIN = 20.0
THRESHOLD_MAX = 40.0
DEFAULT_THRESHOLD = 30.0

# Seconds a success/error status stays visible before reverting to idle
STATUS_RESET_DELAY = 3.0


class ThresholdStatus(enum.Enum):
    IDLE = "idle"
    UPDATING = "updating"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class ThresholdState:
    """Snapshot of the threshold as seen by the operator."""

    applied: float  # last server-confirmed value
    pending: float  # operator edit, always within [THRESHOLD_MIN, THRESHOLD_MAX]
    status: ThresholdStatus


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
ThresholdWriter = Callable[[float], Awaitable[float]]


def clamp_threshold(value: float) -> float:
    """Clamp a threshold into the legal range."""
    return max(THRESHOLD_MIN, min(THRESHOLD_MAX, float(value)))


def _loop_scheduler(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class ThresholdController:
    """Owns applied/pending threshold values and the update status.

    Status transitions: idle -> updating -> success|error -> idle. The return
    to idle is a timer scheduled on entering success/error. Every transition
    bumps a generation counter, so a revert scheduled for an earlier state can
    never overwrite a newer one, even if its cancellation came too late.
    """

    def __init__(
        self,
        writer: ThresholdWriter,
        *,
        reset_delay: float = STATUS_RESET_DELAY,
        scheduler: Scheduler | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._writer = writer
        self._reset_delay = reset_delay
        self._scheduler = scheduler if scheduler is not None else _loop_scheduler
        self._on_change = on_change
        self._applied = DEFAULT_THRESHOLD
        self._pending = DEFAULT_THRESHOLD
        self._status = ThresholdStatus.IDLE
        self._generation = 0
        self._reset_handle: TimerHandle | None = None

    @property
    def state(self) -> ThresholdState:
        return ThresholdState(self._applied, self._pending, self._status)

    @property
    def status(self) -> ThresholdStatus:
        return self._status

    def set_pending(self, value: float) -> float:
        """Record an operator edit. Allowed in any status; never starts an update."""
        self._pending = clamp_threshold(value)
        self._changed()
        return self._pending

    def confirm(self, threshold: float) -> None:
        """Adopt a server-confirmed threshold, overriding any local edit."""
        self._applied = float(threshold)
        self._pending = clamp_threshold(threshold)
        log.debug("Threshold confirmed by server: %.1f°C", self._applied)
        self._changed()

    async def submit(self) -> None:
        """Send the pending threshold to the server.

        No-op while an update is already in flight. Transport failures are
        reported through the ``error`` status only. Any other exception, task
        cancellation included, also ends in ``error`` and is then re-raised.
        """
        if self._status is ThresholdStatus.UPDATING:
            log.debug("Threshold update already in flight, ignoring submit")
            return

        value = self._pending
        self._transition(ThresholdStatus.UPDATING)
        log.info("Updating threshold to %.1f°C", value)

        try:
            confirmed = await self._writer(value)
        except TransportError as e:
            log.warning("Threshold update failed: %s", e)
            self._transition(ThresholdStatus.ERROR)
            return
        except BaseException:
            # Leave UPDATING so later submits are not blocked forever
            self._transition(ThresholdStatus.ERROR)
            raise

        self._applied = float(confirmed)
        self._pending = clamp_threshold(confirmed)
        log.info("Threshold updated: %.1f°C", self._applied)
        self._transition(ThresholdStatus.SUCCESS)

    def close(self) -> None:
        """Cancel a scheduled status revert, if any."""
        self._cancel_reset()

    def _transition(self, status: ThresholdStatus) -> None:
        self._cancel_reset()
        self._generation += 1
        self._status = status

        if status in (ThresholdStatus.SUCCESS, ThresholdStatus.ERROR):
            generation = self._generation
            self._reset_handle = self._scheduler(
                self._reset_delay, lambda: self._reset(generation)
            )

        self._changed()

    def _reset(self, generation: int) -> None:
        if generation != self._generation:
            return
        self._reset_handle = None
        self._status = ThresholdStatus.IDLE
        self._changed()

    def _cancel_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
