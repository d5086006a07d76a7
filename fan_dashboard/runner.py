"""Console entry point: runs a dashboard session and logs its state."""

import asyncio
import logging
import signal
import sys

import httpx

from fan_dashboard.api import DashboardApi
from fan_dashboard.config import Config
from fan_dashboard.engine import DashboardEngine
from fan_dashboard.push import PushChannel
from fan_dashboard.view import DashboardView, format_date, format_time

log = logging.getLogger(__name__)


def describe(view: DashboardView) -> str:
    """One-line summary of the dashboard state."""
    return (
        f"Temperature {view.temperature:.1f}°C ({view.temperature_level.value}), "
        f"fan {view.fan_speed}% ({'running' if view.fan_running else 'idle'}), "
        f"threshold {view.applied_threshold:.1f}°C [{view.status_label}], "
        f"last update {format_date(view.last_update)} {format_time(view.last_update)}, "
        f"{len(view.series)} samples"
    )


class Runner:
    """Headless dashboard session driven by signals."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._stopped = asyncio.Event()
        self._tasks: set[asyncio.Task] = set()

    def _on_shutdown(self, sig: signal.Signals) -> None:
        log.info("Received %s, shutting down", sig.name)
        self._stopped.set()

    def _on_refresh(self, engine: DashboardEngine) -> None:
        log.info("Received SIGHUP, refreshing dashboard data")
        task = asyncio.create_task(engine.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _wait(self, seconds: float) -> None:
        try:
            await asyncio.wait_for(self._stopped.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    async def run(self) -> None:
        """Open the session, apply an optional threshold, then report until stopped."""
        cfg = self._config
        log.info(
            "Starting dashboard session with server=%s, report_interval=%.1fs",
            cfg.server_url,
            cfg.report_interval,
        )

        async with httpx.AsyncClient(base_url=cfg.server_url, timeout=cfg.request_timeout) as http:
            engine = DashboardEngine(
                DashboardApi(http), PushChannel(cfg.server_url), reset_delay=cfg.reset_delay
            )
            engine.add_listener(lambda: log.debug("State changed: %s", describe(engine.view())))

            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                loop.add_signal_handler(sig, self._on_shutdown, sig)
            loop.add_signal_handler(signal.SIGHUP, self._on_refresh, engine)

            try:
                async with engine.session():
                    if cfg.threshold is not None:
                        engine.set_pending(cfg.threshold)
                        await engine.submit()

                    while not self._stopped.is_set():
                        log.info("%s", describe(engine.view()))
                        await self._wait(cfg.report_interval)

                    for task in list(self._tasks):
                        task.cancel()
            finally:
                for sig in (signal.SIGTERM, signal.SIGINT, signal.SIGHUP):
                    loop.remove_signal_handler(sig)

        log.info("Dashboard session stopped")


def main() -> None:
    """Entry point."""
    try:
        config = Config.load()
    except (ValueError, SystemExit) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    config.setup_logging()
    asyncio.run(Runner(config).run())


if __name__ == "__main__":
    main()
