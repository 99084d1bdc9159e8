"""Gas leak detection and sticky leak status."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from .calibration import GasSensorCalibration
from .const import DEFAULT_LEAK_DEBOUNCE_SAMPLES


def evaluate_leak(sensor_voltage: float, calibration: GasSensorCalibration) -> bool:
    """Return True when the sensor voltage is above the leak threshold."""
    return sensor_voltage > calibration.leak_threshold_voltage


class LeakStatus(StrEnum):
    """System level leak status."""

    NORMAL = "normal"
    DETECTED = "detected"


@dataclass
class LeakDebouncer:
    """Require several consecutive positive samples before reporting a leak.

    With required_samples=1 every positive sample is reported immediately.
    """

    required_samples: int = DEFAULT_LEAK_DEBOUNCE_SAMPLES
    consecutive: int = 0

    def update(self, leak_detected: bool) -> bool:
        """Feed one raw detector result and return the debounced result."""
        if not leak_detected:
            self.consecutive = 0
            return False

        self.consecutive += 1
        return self.consecutive >= max(1, int(self.required_samples))

    def reset(self) -> None:
        """Reset the consecutive sample count."""
        self.consecutive = 0


@dataclass
class LeakState:
    """Leak status that is set by readings and cleared only explicitly."""

    status: LeakStatus = LeakStatus.NORMAL
    detected_at: datetime | None = None
    trigger_voltage: float | None = None
    cleared_at: datetime | None = None
    clear_reason: str | None = None

    @property
    def detected(self) -> bool:
        """Return True while a leak is latched."""
        return self.status is LeakStatus.DETECTED

    def observe(
        self, leak_detected: bool, now: datetime, voltage: float | None = None
    ) -> bool:
        """Latch a leak. Return True only on the Normal to Detected transition.

        A clean sample never clears the latch.
        """
        if not leak_detected or self.detected:
            return False

        self.status = LeakStatus.DETECTED
        self.detected_at = now
        self.trigger_voltage = voltage
        return True

    def clear(self, now: datetime, reason: str = "manual") -> bool:
        """Acknowledge a latched leak. Return False if nothing was latched."""
        if not self.detected:
            return False

        self.status = LeakStatus.NORMAL
        self.cleared_at = now
        self.clear_reason = reason
        return True
