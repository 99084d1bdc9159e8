"""Calibration models and validation for the LPG cylinder sensors."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .const import (
    CONF_CLEAN_AIR_VOLTAGE,
    CONF_CYLINDER_HEIGHT,
    CONF_EMPTY_DISTANCE,
    CONF_FULL_DISTANCE,
    CONF_LEAK_THRESHOLD_VOLTAGE,
    CONF_SENSOR_SENSITIVITY,
    CONF_SOUND_VELOCITY,
    CONF_TEMP_VELOCITY_COEFF,
    DEFAULT_CLEAN_AIR_VOLTAGE,
    DEFAULT_CYLINDER_HEIGHT,
    DEFAULT_EMPTY_DISTANCE,
    DEFAULT_FULL_DISTANCE,
    DEFAULT_LEAK_THRESHOLD_VOLTAGE,
    DEFAULT_SENSOR_SENSITIVITY,
    DEFAULT_SOUND_VELOCITY,
    DEFAULT_TEMP_VELOCITY_COEFF,
    MAX_CYLINDER_HEIGHT,
    MAX_SOUND_VELOCITY,
    MIN_FULL_DISTANCE,
    MIN_SOUND_VELOCITY,
    SUPPLY_VOLTAGE,
)


class InvalidCalibration(ValueError):
    """Raised when a calibration breaks one or more physical bounds."""

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


@dataclass(frozen=True)
class UltrasonicCalibration:
    """Constants mapping an ultrasonic distance to a fill percentage."""

    cylinder_height_cm: float = DEFAULT_CYLINDER_HEIGHT
    empty_distance_cm: float = DEFAULT_EMPTY_DISTANCE
    full_distance_cm: float = DEFAULT_FULL_DISTANCE
    sound_velocity: float = DEFAULT_SOUND_VELOCITY
    temp_velocity_coeff: float = DEFAULT_TEMP_VELOCITY_COEFF


@dataclass(frozen=True)
class GasSensorCalibration:
    """Constants mapping a gas sensor voltage to a leak flag."""

    leak_threshold_voltage: float = DEFAULT_LEAK_THRESHOLD_VOLTAGE
    clean_air_voltage: float = DEFAULT_CLEAN_AIR_VOLTAGE
    sensor_sensitivity: float = DEFAULT_SENSOR_SENSITIVITY


def validate_ultrasonic_calibration(calibration: UltrasonicCalibration) -> list[str]:
    """Return every violated ultrasonic rule, in check order.

    Comparisons are written so that NaN fails each rule it takes part in.
    """
    errors: list[str] = []

    if not 0 < calibration.cylinder_height_cm <= MAX_CYLINDER_HEIGHT:
        errors.append("Cylinder height must be between 0 and 100 cm")

    if not calibration.empty_distance_cm > calibration.full_distance_cm:
        errors.append("Empty distance must be greater than full distance")

    if not calibration.full_distance_cm >= MIN_FULL_DISTANCE:
        errors.append("Full distance must be at least 1 cm")

    if not MIN_SOUND_VELOCITY <= calibration.sound_velocity <= MAX_SOUND_VELOCITY:
        errors.append("Sound velocity should be between 300-400 m/s")

    return errors


def validate_gas_sensor_calibration(calibration: GasSensorCalibration) -> list[str]:
    """Return every violated gas sensor rule, in check order."""
    errors: list[str] = []

    if not calibration.leak_threshold_voltage > calibration.clean_air_voltage:
        errors.append("Leak threshold must be higher than clean air voltage")

    if not calibration.leak_threshold_voltage <= SUPPLY_VOLTAGE:
        errors.append("Leak threshold cannot exceed 3.3 V (supply voltage)")

    if not calibration.clean_air_voltage >= 0:
        errors.append("Clean air voltage cannot be negative")

    if not calibration.sensor_sensitivity > 0:
        errors.append("Sensor sensitivity must be greater than 0")

    return errors


def validate_calibration(
    ultrasonic: UltrasonicCalibration | None = None,
    gas_sensor: GasSensorCalibration | None = None,
) -> list[str]:
    """Validate either or both calibrations; ultrasonic violations come first."""
    errors: list[str] = []
    if ultrasonic is not None:
        errors.extend(validate_ultrasonic_calibration(ultrasonic))
    if gas_sensor is not None:
        errors.extend(validate_gas_sensor_calibration(gas_sensor))
    return errors


def ultrasonic_from_config(config: Mapping[str, Any]) -> UltrasonicCalibration:
    """Read an ultrasonic calibration from config entry data, unvalidated."""
    return UltrasonicCalibration(
        cylinder_height_cm=float(
            config.get(CONF_CYLINDER_HEIGHT, DEFAULT_CYLINDER_HEIGHT)
        ),
        empty_distance_cm=float(config.get(CONF_EMPTY_DISTANCE, DEFAULT_EMPTY_DISTANCE)),
        full_distance_cm=float(config.get(CONF_FULL_DISTANCE, DEFAULT_FULL_DISTANCE)),
        sound_velocity=float(config.get(CONF_SOUND_VELOCITY, DEFAULT_SOUND_VELOCITY)),
        temp_velocity_coeff=float(
            config.get(CONF_TEMP_VELOCITY_COEFF, DEFAULT_TEMP_VELOCITY_COEFF)
        ),
    )


def gas_sensor_from_config(config: Mapping[str, Any]) -> GasSensorCalibration:
    """Read a gas sensor calibration from config entry data, unvalidated."""
    return GasSensorCalibration(
        leak_threshold_voltage=float(
            config.get(CONF_LEAK_THRESHOLD_VOLTAGE, DEFAULT_LEAK_THRESHOLD_VOLTAGE)
        ),
        clean_air_voltage=float(
            config.get(CONF_CLEAN_AIR_VOLTAGE, DEFAULT_CLEAN_AIR_VOLTAGE)
        ),
        sensor_sensitivity=float(
            config.get(CONF_SENSOR_SENSITIVITY, DEFAULT_SENSOR_SENSITIVITY)
        ),
    )


def build_ultrasonic_calibration(config: Mapping[str, Any]) -> UltrasonicCalibration:
    """Build a validated ultrasonic calibration or raise InvalidCalibration."""
    calibration = ultrasonic_from_config(config)
    errors = validate_ultrasonic_calibration(calibration)
    if errors:
        raise InvalidCalibration(errors)
    return calibration


def build_gas_sensor_calibration(config: Mapping[str, Any]) -> GasSensorCalibration:
    """Build a validated gas sensor calibration or raise InvalidCalibration."""
    calibration = gas_sensor_from_config(config)
    errors = validate_gas_sensor_calibration(calibration)
    if errors:
        raise InvalidCalibration(errors)
    return calibration
