"""Composition root exposed to the rendering layer."""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fan_dashboard.api import DashboardApi
from fan_dashboard.push import PushChannel
from fan_dashboard.series import HISTORY_SIZE, SeriesBuffer
from fan_dashboard.telemetry import TelemetrySource
from fan_dashboard.threshold import STATUS_RESET_DELAY, Scheduler, ThresholdController
from fan_dashboard.view import DashboardView

log = logging.getLogger(__name__)


class DashboardEngine:
    """Wires the buffer, telemetry source and threshold controller together.

    Holds no logic of its own beyond delegation and building DashboardView.
    """

    def __init__(
        self,
        api: DashboardApi,
        channel: PushChannel,
        *,
        history_size: int = HISTORY_SIZE,
        reset_delay: float = STATUS_RESET_DELAY,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._listeners: list[Callable[[], None]] = []
        self._buffer = SeriesBuffer(history_size)

        self._thresholds = ThresholdController(
            api.write_config,
            reset_delay=reset_delay,
            scheduler=scheduler,
            on_change=self._notify,
        )
        self._source = TelemetrySource(
            api, channel, self._buffer, self._thresholds, on_change=self._notify
        )

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` after every state change."""
        self._listeners.append(listener)

    def view(self) -> DashboardView:
        current = self._source.current
        thresholds = self._thresholds.state
        return DashboardView(
            temperature=current.temperature,
            fan_speed=current.fan_speed,
            last_update=current.timestamp,
            series=self._buffer.snapshot(),
            applied_threshold=thresholds.applied,
            pending_threshold=thresholds.pending,
            status=thresholds.status,
        )

    async def refresh(self) -> None:
        """Reload history and threshold from the server."""
        log.debug("Refreshing dashboard data")
        await asyncio.gather(self._source.load_initial(), self._source.load_config())

    def set_pending(self, value: float) -> float:
        return self._thresholds.set_pending(value)

    async def submit(self) -> None:
        await self._thresholds.submit()

    @asynccontextmanager
    async def session(self) -> AsyncIterator["DashboardEngine"]:
        """Run a dashboard session: live updates subscribed, initial data loaded."""
        async with self._source.session():
            await self.refresh()
            try:
                yield self
            finally:
                self._thresholds.close()

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()
