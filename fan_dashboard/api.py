"""REST client for the fan controller server."""

import logging

import httpx

log = logging.getLogger(__name__)

DATA_PATH = "/api/data"
CONFIG_PATH = "/api/config"


class TransportError(Exception):
    """The server was unreachable or did not answer with a usable response."""


class DashboardApi:
    """Thin wrapper around an ``httpx.AsyncClient`` bound to the server base URL.

    Every failure (network error, non-2xx status, unexpected body) is raised as
    TransportError.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def fetch_history(self) -> list[dict]:
        """Return recent telemetry records, newest first."""
        body = await self._request("GET", DATA_PATH)
        if not isinstance(body, list):
            raise TransportError(f"Expected a list from {DATA_PATH}, got {type(body).__name__}")
        return body

    async def fetch_config(self) -> float:
        """Return the threshold currently stored on the server."""
        return _threshold_of(await self._request("GET", CONFIG_PATH))

    async def write_config(self, threshold: float) -> float:
        """Store a new threshold and return the value the server confirmed."""
        body = await self._request("POST", CONFIG_PATH, json={"threshold": threshold})
        return _threshold_of(body)

    async def _request(self, method: str, path: str, **kwargs: object) -> object:
        try:
            response = await self._client.request(method, path, **kwargs)  # type: ignore[arg-type]
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"{method} {path} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"{method} {path} returned invalid JSON: {e}") from e


def _threshold_of(body: object) -> float:
    if not isinstance(body, dict) or "threshold" not in body:
        raise TransportError(f"Response has no threshold: {body!r}")
    try:
        return float(body["threshold"])
    except (TypeError, ValueError) as e:
        raise TransportError(f"Invalid threshold {body['threshold']!r}") from e
