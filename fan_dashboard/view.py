"""Read-only dashboard model handed to the rendering layer."""

import enum
from dataclasses import dataclass
from datetime import datetime

from fan_dashboard.series import Sample
from fan_dashboard.threshold import ThresholdStatus

# Readings at or above this are shown as critical regardless of the threshold
CRITICAL_TEMPERATURE = 40.0

_STATUS_LABELS = {
    ThresholdStatus.IDLE: "Apply",
    ThresholdStatus.UPDATING: "Updating...",
    ThresholdStatus.SUCCESS: "Updated!",
    ThresholdStatus.ERROR: "Failed!",
}


class TemperatureLevel(enum.Enum):
    NORMAL = "normal"
    WARM = "warm"
    CRITICAL = "critical"


@dataclass(frozen=True)
class DashboardView:
    """Everything the dashboard displays, captured at one instant."""

    temperature: float
    fan_speed: int
    last_update: datetime | None
    series: tuple[Sample, ...]
    applied_threshold: float
    pending_threshold: float
    status: ThresholdStatus

    @property
    def temperature_level(self) -> TemperatureLevel:
        if self.temperature >= CRITICAL_TEMPERATURE:
            return TemperatureLevel.CRITICAL
        if self.temperature >= self.applied_threshold:
            return TemperatureLevel.WARM
        return TemperatureLevel.NORMAL

    @property
    def fan_running(self) -> bool:
        return self.fan_speed > 0

    @property
    def status_label(self) -> str:
        return _STATUS_LABELS[self.status]

    @property
    def can_submit(self) -> bool:
        return self.status is not ThresholdStatus.UPDATING


def format_time(value: datetime | None) -> str:
    """Local wall-clock time of a reading, or a placeholder."""
    if value is None:
        return "--:--"
    return value.astimezone().strftime("%H:%M:%S")


def format_date(value: datetime | None) -> str:
    if value is None:
        return "--/--/----"
    return value.astimezone().strftime("%m/%d/%Y")


def format_axis_time(value: datetime | None) -> str:
    """Short hour:minute label for chart axes."""
    if value is None:
        return ""
    return value.astimezone().strftime("%H:%M")
