"""Text calibration report for operators."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from homeassistant.util import dt as dt_util

from .calibration import (
    GasSensorCalibration,
    UltrasonicCalibration,
    validate_calibration,
)
from .const import REFERENCE_TEMPERATURE
from .leak import evaluate_leak
from .level import calculate_level


@dataclass(frozen=True)
class ReportReading:
    """A bench reading to map through the calibration."""

    distance_cm: float
    voltage: float
    temperature_c: float = REFERENCE_TEMPERATURE


def generate_calibration_report(
    ultrasonic: UltrasonicCalibration,
    gas_sensor: GasSensorCalibration,
    readings: Iterable[ReportReading] | None = None,
    generated_at: datetime | None = None,
) -> str:
    """Render calibration values, violations and optional test readings."""
    lines = [
        "=== LPG Monitor Calibration Report ===",
        "",
        "Ultrasonic Sensor Configuration:",
        f"- Cylinder Height: {ultrasonic.cylinder_height_cm} cm",
        f"- Empty Distance: {ultrasonic.empty_distance_cm} cm",
        f"- Full Distance: {ultrasonic.full_distance_cm} cm",
        f"- Sound Velocity: {ultrasonic.sound_velocity} m/s",
        f"- Temperature Coefficient: {ultrasonic.temp_velocity_coeff} m/s/°C",
        "",
        "Gas Sensor Configuration:",
        f"- Leak Threshold: {gas_sensor.leak_threshold_voltage} V",
        f"- Clean Air Baseline: {gas_sensor.clean_air_voltage} V",
        f"- Sensitivity Multiplier: {gas_sensor.sensor_sensitivity}",
        "",
        "Validation:",
    ]

    violations = validate_calibration(ultrasonic, gas_sensor)
    if violations:
        lines.extend(f"- {violation}" for violation in violations)
    else:
        lines.append("- All calibration values are within bounds")

    readings = list(readings or [])
    if readings:
        lines.append("")
        lines.append("Test Readings:")
        for index, reading in enumerate(readings, start=1):
            level = calculate_level(reading.distance_cm, ultrasonic)
            leak = evaluate_leak(reading.voltage, gas_sensor)
            lines.append(
                f"{index}. Distance: {reading.distance_cm}cm, "
                f"Gas Level: {level:.1f}%, "
                f"Voltage: {reading.voltage}V, "
                f"Leak: {'YES' if leak else 'NO'}, "
                f"Temp: {reading.temperature_c}°C"
            )

    timestamp = generated_at or dt_util.now()
    lines.append("")
    lines.append(f"Generated: {timestamp.isoformat()}")
    return "\n".join(lines) + "\n"
