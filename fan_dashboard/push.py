"""Socket.IO push channel delivering unsolicited server updates."""

import logging
from collections.abc import Callable

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from fan_dashboard.api import TransportError

log = logging.getLogger(__name__)

DATA_UPDATE = "data_update"
CONFIG_UPDATE = "config_update"
EVENTS = (DATA_UPDATE, CONFIG_UPDATE)

PushHandler = Callable[[dict], None]


class PushChannel:
    """Owns one Socket.IO connection and at most one handler per event.

    The owner opens it with connect() and closes it with disconnect().
    """

    def __init__(self, url: str, client: socketio.AsyncClient | None = None) -> None:
        self._url = url
        self._client = client if client is not None else socketio.AsyncClient(reconnection=True)
        self._handlers: dict[str, PushHandler] = {}

        for event in EVENTS:
            self._client.on(event, self._dispatcher(event))

    def subscribe(self, event: str, handler: PushHandler) -> None:
        """Register the handler for an event. Raises ValueError if one is already set."""
        if event not in EVENTS:
            raise ValueError(f"Unknown push event '{event}'. Known: {', '.join(EVENTS)}")
        if event in self._handlers:
            raise ValueError(f"A handler is already subscribed to '{event}'")
        self._handlers[event] = handler
        log.debug("Subscribed to %s", event)

    def unsubscribe(self, event: str) -> None:
        if self._handlers.pop(event, None) is not None:
            log.debug("Unsubscribed from %s", event)

    def subscribed(self, event: str) -> bool:
        return event in self._handlers

    async def connect(self) -> None:
        """Open the connection. Raises TransportError if the server cannot be reached."""
        try:
            await self._client.connect(self._url)
        except SocketConnectionError as e:
            raise TransportError(f"Push channel connection to {self._url} failed: {e}") from e
        log.info("Push channel connected to %s", self._url)

    async def disconnect(self) -> None:
        if self._client.connected:
            await self._client.disconnect()
            log.info("Push channel disconnected")

    def _dispatcher(self, event: str) -> Callable[[object], None]:
        def dispatch(payload: object) -> None:
            handler = self._handlers.get(event)
            if handler is None:
                return
            if not isinstance(payload, dict):
                log.warning("Ignoring %s with non-object payload: %r", event, payload)
                return
            handler(payload)

        return dispatch
