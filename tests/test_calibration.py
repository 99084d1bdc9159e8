"""Tests for calibration models and validation."""

from __future__ import annotations

import math

import pytest

from custom_components.lpg_monitor.calibration import (
    GasSensorCalibration,
    InvalidCalibration,
    UltrasonicCalibration,
    build_gas_sensor_calibration,
    build_ultrasonic_calibration,
    validate_calibration,
    validate_gas_sensor_calibration,
    validate_ultrasonic_calibration,
)
from custom_components.lpg_monitor.const import (
    CONF_CLEAN_AIR_VOLTAGE,
    CONF_EMPTY_DISTANCE,
    CONF_FULL_DISTANCE,
    CONF_LEAK_THRESHOLD_VOLTAGE,
    CONF_SOUND_VELOCITY,
)


# ---------------------------------------------------------------------------
# Ultrasonic rules
# ---------------------------------------------------------------------------

class TestUltrasonicValidation:
    """Tests for ultrasonic calibration rules."""

    def test_default_calibration_is_valid(self):
        """Factory defaults should pass every rule."""
        assert validate_ultrasonic_calibration(UltrasonicCalibration()) == []

    def test_reference_calibration_is_valid(self):
        """empty=28, full=3, height=30, velocity=343 has no violations."""
        cal = UltrasonicCalibration(
            cylinder_height_cm=30,
            empty_distance_cm=28,
            full_distance_cm=3,
            sound_velocity=343,
        )
        assert validate_ultrasonic_calibration(cal) == []

    def test_empty_below_full_is_single_violation(self):
        """empty=2, full=3 should only break the ordering rule."""
        cal = UltrasonicCalibration(
            cylinder_height_cm=30,
            empty_distance_cm=2,
            full_distance_cm=3,
            sound_velocity=343,
        )
        errors = validate_ultrasonic_calibration(cal)
        assert errors == ["Empty distance must be greater than full distance"]

    def test_empty_equal_full_is_violation(self):
        """Equal distances would divide by zero and must be rejected."""
        cal = UltrasonicCalibration(empty_distance_cm=10, full_distance_cm=10)
        assert "Empty distance must be greater than full distance" in (
            validate_ultrasonic_calibration(cal)
        )

    @pytest.mark.parametrize("height", [0, -1, 100.5])
    def test_cylinder_height_bounds(self, height):
        """Height must be in (0, 100]."""
        cal = UltrasonicCalibration(cylinder_height_cm=height)
        assert validate_ultrasonic_calibration(cal) == [
            "Cylinder height must be between 0 and 100 cm"
        ]

    def test_cylinder_height_upper_bound_inclusive(self):
        """100 cm is allowed."""
        cal = UltrasonicCalibration(cylinder_height_cm=100)
        assert validate_ultrasonic_calibration(cal) == []

    def test_full_distance_minimum(self):
        """Full distance below 1 cm is rejected."""
        cal = UltrasonicCalibration(full_distance_cm=0.5)
        assert validate_ultrasonic_calibration(cal) == [
            "Full distance must be at least 1 cm"
        ]

    @pytest.mark.parametrize("velocity", [299.9, 400.1])
    def test_sound_velocity_bounds(self, velocity):
        """Velocity outside [300, 400] is rejected."""
        cal = UltrasonicCalibration(sound_velocity=velocity)
        assert validate_ultrasonic_calibration(cal) == [
            "Sound velocity should be between 300-400 m/s"
        ]

    def test_all_violations_reported_in_order(self):
        """Every broken rule is listed, in check order."""
        cal = UltrasonicCalibration(
            cylinder_height_cm=0,
            empty_distance_cm=0.2,
            full_distance_cm=0.5,
            sound_velocity=1000,
        )
        assert validate_ultrasonic_calibration(cal) == [
            "Cylinder height must be between 0 and 100 cm",
            "Empty distance must be greater than full distance",
            "Full distance must be at least 1 cm",
            "Sound velocity should be between 300-400 m/s",
        ]

    def test_nan_is_violation_not_exception(self):
        """NaN input is reported rather than raised."""
        cal = UltrasonicCalibration(sound_velocity=math.nan)
        assert validate_ultrasonic_calibration(cal) == [
            "Sound velocity should be between 300-400 m/s"
        ]


# ---------------------------------------------------------------------------
# Gas sensor rules
# ---------------------------------------------------------------------------

class TestGasSensorValidation:
    """Tests for gas sensor calibration rules."""

    def test_default_calibration_is_valid(self):
        assert validate_gas_sensor_calibration(GasSensorCalibration()) == []

    def test_threshold_must_exceed_clean_air(self):
        cal = GasSensorCalibration(leak_threshold_voltage=0.4, clean_air_voltage=0.4)
        assert validate_gas_sensor_calibration(cal) == [
            "Leak threshold must be higher than clean air voltage"
        ]

    def test_threshold_supply_ceiling(self):
        cal = GasSensorCalibration(leak_threshold_voltage=3.4)
        assert validate_gas_sensor_calibration(cal) == [
            "Leak threshold cannot exceed 3.3 V (supply voltage)"
        ]

    def test_threshold_at_supply_ceiling_is_valid(self):
        cal = GasSensorCalibration(leak_threshold_voltage=3.3)
        assert validate_gas_sensor_calibration(cal) == []

    def test_negative_clean_air(self):
        cal = GasSensorCalibration(clean_air_voltage=-0.1)
        assert validate_gas_sensor_calibration(cal) == [
            "Clean air voltage cannot be negative"
        ]

    def test_sensitivity_must_be_positive(self):
        cal = GasSensorCalibration(sensor_sensitivity=0)
        assert validate_gas_sensor_calibration(cal) == [
            "Sensor sensitivity must be greater than 0"
        ]

    def test_all_violations_reported_in_order(self):
        cal = GasSensorCalibration(
            leak_threshold_voltage=5.0,
            clean_air_voltage=6.0,
            sensor_sensitivity=-1,
        )
        assert validate_gas_sensor_calibration(cal) == [
            "Leak threshold must be higher than clean air voltage",
            "Leak threshold cannot exceed 3.3 V (supply voltage)",
            "Sensor sensitivity must be greater than 0",
        ]


# ---------------------------------------------------------------------------
# Combined validation and build gate
# ---------------------------------------------------------------------------

class TestCombinedValidation:
    """Tests for validate_calibration."""

    def test_no_calibrations_is_valid(self):
        assert validate_calibration() == []

    def test_ultrasonic_violations_come_first(self):
        errors = validate_calibration(
            UltrasonicCalibration(sound_velocity=10),
            GasSensorCalibration(sensor_sensitivity=0),
        )
        assert errors == [
            "Sound velocity should be between 300-400 m/s",
            "Sensor sensitivity must be greater than 0",
        ]


class TestBuildGate:
    """Tests for validate-then-build constructors."""

    def test_build_uses_defaults_for_missing_keys(self):
        assert build_ultrasonic_calibration({}) == UltrasonicCalibration()
        assert build_gas_sensor_calibration({}) == GasSensorCalibration()

    def test_build_reads_config_keys(self):
        cal = build_ultrasonic_calibration(
            {CONF_EMPTY_DISTANCE: 40, CONF_FULL_DISTANCE: 5, CONF_SOUND_VELOCITY: 340}
        )
        assert cal.empty_distance_cm == 40.0
        assert cal.full_distance_cm == 5.0
        assert cal.sound_velocity == 340.0

    def test_build_rejects_invalid_ultrasonic(self):
        with pytest.raises(InvalidCalibration) as exc_info:
            build_ultrasonic_calibration({CONF_EMPTY_DISTANCE: 2, CONF_FULL_DISTANCE: 3})
        assert exc_info.value.violations == [
            "Empty distance must be greater than full distance"
        ]

    def test_build_rejects_invalid_gas_sensor(self):
        with pytest.raises(InvalidCalibration) as exc_info:
            build_gas_sensor_calibration(
                {CONF_LEAK_THRESHOLD_VOLTAGE: 0.2, CONF_CLEAN_AIR_VOLTAGE: -1}
            )
        assert len(exc_info.value.violations) == 1
        assert "Clean air voltage cannot be negative" in str(exc_info.value)

    def test_invalid_calibration_is_value_error(self):
        assert issubclass(InvalidCalibration, ValueError)
