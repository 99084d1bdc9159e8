"""Ultrasonic distance to LPG fill level conversion."""

from __future__ import annotations

import logging
import math

from .calibration import (
    InvalidCalibration,
    UltrasonicCalibration,
    validate_ultrasonic_calibration,
)
from .const import REFERENCE_TEMPERATURE, SMOOTHING_WEIGHT

_LOGGER = logging.getLogger(__name__)


class SensorTimeout(Exception):
    """Raised when the echo timer produced no usable pulse."""


def adjusted_sound_velocity(
    calibration: UltrasonicCalibration, temperature_c: float
) -> float:
    """Return the speed of sound (m/s) corrected for air temperature."""
    return calibration.sound_velocity + calibration.temp_velocity_coeff * (
        temperature_c - REFERENCE_TEMPERATURE
    )


def echo_to_distance(
    echo_us: float | None,
    calibration: UltrasonicCalibration,
    temperature_c: float = REFERENCE_TEMPERATURE,
) -> float:
    """Convert a round-trip echo time in microseconds to a distance in cm."""
    if echo_us is None or not echo_us > 0:
        raise SensorTimeout(f"No echo received (duration: {echo_us})")

    velocity = adjusted_sound_velocity(calibration, temperature_c)
    # µs * m/s = 1e-4 cm, halved for the round trip
    return echo_us * velocity / 20000.0


def calculate_level(distance_cm: float, calibration: UltrasonicCalibration) -> float:
    """Map a sensor-to-surface distance to a fill percentage in [0, 100].

    Uses the calibration distances only; the sound velocity belongs to the
    echo-to-distance step. No rounding is applied here.
    """
    empty = calibration.empty_distance_cm
    full = calibration.full_distance_cm

    if distance_cm < full:
        level = 100.0
    elif distance_cm > empty:
        level = 0.0
    else:
        level = ((empty - distance_cm) / (empty - full)) * 100.0

    if math.isnan(level):
        return 0.0
    return max(0.0, min(100.0, level))


def smooth_level(
    level: float, previous: float, weight: float = SMOOTHING_WEIGHT
) -> float:
    """Exponentially weighted blend of a new level with the previous output."""
    return weight * level + (1 - weight) * previous


class LevelConverter:
    """Distance to level conversion bound to one physical sensor stream.

    Each instance owns its smoothing accumulator, so independent sensors
    never share state.
    """

    def __init__(
        self,
        calibration: UltrasonicCalibration,
        smoothing: bool = False,
        weight: float = SMOOTHING_WEIGHT,
    ) -> None:
        errors = validate_ultrasonic_calibration(calibration)
        if errors:
            raise InvalidCalibration(errors)

        self.calibration = calibration
        self.smoothing = smoothing
        self.weight = weight
        self.last_level: float | None = None
        self.last_distance: float | None = None

    def convert(self, distance_cm: float) -> float:
        """Convert a distance reading, applying smoothing when enabled."""
        level = calculate_level(distance_cm, self.calibration)

        if self.smoothing and self.last_level is not None:
            level = smooth_level(level, self.last_level, self.weight)

        self.last_distance = distance_cm
        self.last_level = level
        return level

    def convert_echo(self, echo_us: float | None, temperature_c: float) -> float:
        """Convert a raw echo time; on timeout keep the last good level."""
        try:
            distance = echo_to_distance(echo_us, self.calibration, temperature_c)
        except SensorTimeout:
            if self.last_level is None:
                raise
            _LOGGER.debug(
                "Echo timeout, keeping last level %.1f %%", self.last_level
            )
            return self.last_level

        return self.convert(distance)

    def reset(self) -> None:
        """Forget the smoothing accumulator and last distance."""
        self.last_level = None
        self.last_distance = None
