"""Reconciles the bulk history fetch and the push stream into dashboard state."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fan_dashboard.api import DashboardApi, TransportError
from fan_dashboard.push import CONFIG_UPDATE, DATA_UPDATE, PushChannel
from fan_dashboard.series import UNKNOWN, CurrentState, Sample, SeriesBuffer
from fan_dashboard.threshold import ThresholdController

log = logging.getLogger(__name__)


class TelemetrySource:
    """Feeds SeriesBuffer, the current reading and the applied threshold.

    Read-path failures never touch existing state: the last known data stays
    on screen.
    """

    def __init__(
        self,
        api: DashboardApi,
        channel: PushChannel,
        buffer: SeriesBuffer,
        thresholds: ThresholdController,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._api = api
        self._channel = channel
        self._buffer = buffer
        self._thresholds = thresholds
        self._on_change = on_change
        self._current = UNKNOWN

    @property
    def current(self) -> CurrentState:
        return self._current

    async def load_initial(self) -> None:
        """Replace the history with the server's recent records."""
        try:
            records = await self._api.fetch_history()
            # Server sends newest first
            samples = [Sample.from_record(r) for r in reversed(records)]
        except (TransportError, ValueError) as e:
            log.warning("Error fetching telemetry history: %s", e)
            return

        self._buffer.insert_batch(samples)
        latest = self._buffer.latest()
        if latest is not None:
            self._current = CurrentState.of(latest)
        log.debug("Loaded %d telemetry samples", len(self._buffer))
        self._changed()

    async def load_config(self) -> None:
        """Adopt the threshold stored on the server as both applied and pending."""
        try:
            threshold = await self._api.fetch_config()
        except TransportError as e:
            log.warning("Error fetching config: %s", e)
            return

        self._thresholds.confirm(threshold)

    def on_push(self, event: str, payload: dict) -> None:
        """Apply one push event. Malformed payloads are logged and dropped."""
        if event == DATA_UPDATE:
            try:
                sample = Sample.from_record(payload)
            except ValueError as e:
                log.warning("Ignoring %s: %s", event, e)
                return
            self._current = CurrentState.of(sample)
            self._buffer.insert_one(sample)
            self._changed()
        elif event == CONFIG_UPDATE:
            try:
                threshold = float(payload["threshold"])
            except (KeyError, TypeError, ValueError):
                log.warning("Ignoring %s without a valid threshold: %r", event, payload)
                return
            log.info("Threshold changed remotely to %.1f°C", threshold)
            self._thresholds.confirm(threshold)
        else:
            log.debug("Ignoring unknown push event %s", event)

    @asynccontextmanager
    async def session(self) -> AsyncIterator["TelemetrySource"]:
        """Hold the push channel open and subscribed for the duration of the block.

        If the channel cannot connect, the session still runs on REST data only.
        """
        self._channel.subscribe(DATA_UPDATE, lambda p: self.on_push(DATA_UPDATE, p))
        self._channel.subscribe(CONFIG_UPDATE, lambda p: self.on_push(CONFIG_UPDATE, p))
        try:
            try:
                await self._channel.connect()
            except TransportError as e:
                log.warning("%s; live updates disabled", e)
            yield self
        finally:
            self._channel.unsubscribe(DATA_UPDATE)
            self._channel.unsubscribe(CONFIG_UPDATE)
            await self._channel.disconnect()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()
