"""Bounded telemetry history and the current-value projection derived from it."""

from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone

HISTORY_SIZE = 50


@dataclass(frozen=True)
class Sample:
    """One telemetry reading reported by the fan controller."""

    timestamp: datetime
    temperature: float
    fan_speed: int  # 0-100%

    @classmethod
    def from_record(cls, record: Mapping[str, object]) -> "Sample":
        """Build a Sample from a wire record (epoch-millis timestamp, camelCase keys).

        Raises ValueError if a field is missing or not numeric, if the fan
        speed is not a whole percentage, or if the timestamp is out of range.
        """
        try:
            millis = float(record["timestamp"])  # type: ignore[arg-type]
            temperature = float(record["temperature"])  # type: ignore[arg-type]
            raw_speed = record["fanSpeed"]
            if isinstance(raw_speed, bool):
                raise TypeError("fanSpeed must be a number, got a boolean")
            speed = float(raw_speed)  # type: ignore[arg-type]
            timestamp = datetime.fromtimestamp(millis / 1000.0, tz=timezone.utc)
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            raise ValueError(f"Malformed telemetry record {record!r}: {e}") from e

        if not speed.is_integer():
            raise ValueError(f"Fan speed must be a whole percentage, got {raw_speed!r}")
        fan_speed = int(speed)
        if not (0 <= fan_speed <= 100):
            raise ValueError(f"Fan speed must be 0-100, got {fan_speed}")

        return cls(timestamp=timestamp, temperature=temperature, fan_speed=fan_speed)


@dataclass(frozen=True)
class CurrentState:
    """Latest known reading, or the unknown sentinel before any sample arrived."""

    temperature: float = 0.0
    fan_speed: int = 0
    timestamp: datetime | None = None

    @classmethod
    def of(cls, sample: Sample) -> "CurrentState":
        return cls(sample.temperature, sample.fan_speed, sample.timestamp)

    @property
    def known(self) -> bool:
        return self.timestamp is not None


UNKNOWN = CurrentState()


class SeriesBuffer:
    """Chronological (oldest first) store of at most ``capacity`` samples.

    Eviction is by insertion order, not by timestamp value. Samples sharing a
    timestamp are kept as distinct entries.
    """

    def __init__(self, capacity: int = HISTORY_SIZE) -> None:
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self._samples: deque[Sample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen  # type: ignore[return-value]

    def __len__(self) -> int:
        return len(self._samples)

    def insert_batch(self, samples: Iterable[Sample]) -> None:
        """Replace the whole content with the newest ``capacity`` samples, sorted by time."""
        ordered = sorted(samples, key=lambda s: s.timestamp)
        self._samples = deque(ordered[-self.capacity:], maxlen=self.capacity)

    def insert_one(self, sample: Sample) -> None:
        """Add the newest sample, dropping the oldest one when full."""
        self._samples.append(sample)

    def snapshot(self) -> tuple[Sample, ...]:
        """Return an immutable chronological copy of the buffer."""
        return tuple(self._samples)

    def latest(self) -> Sample | None:
        return self._samples[-1] if self._samples else None
