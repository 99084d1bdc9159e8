"""Sensor sample and derived reading types."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class SensorSample:
    """Latest values seen from the acquisition entities."""

    distance_cm: float | None = None
    temperature_c: float | None = None
    sensor_voltage: float | None = None
    timestamp: datetime | None = None

    def with_values(self, timestamp: datetime, **values: float | None) -> SensorSample:
        """Return a copy with some values replaced and a new timestamp."""
        return replace(self, timestamp=timestamp, **values)


@dataclass(frozen=True)
class GasReading:
    """Fill level and leak flag derived from the sensors."""

    level_percent: float | None
    leak_detected: bool

    @property
    def display_level(self) -> float | None:
        """Level at display precision (0.1 %)."""
        if self.level_percent is None:
            return None
        return round(self.level_percent, 1)
