"""Shared fixtures for LPG monitor tests."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock, AsyncMock, patch

import pytest

# Ensure custom_components is importable
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

pytest.importorskip("homeassistant")

from custom_components.lpg_monitor.calibration import (
    GasSensorCalibration,
    UltrasonicCalibration,
)
from custom_components.lpg_monitor.const import (
    DEFAULT_CYLINDER_CHANGE_THRESHOLD,
    DEFAULT_LEAK_DEBOUNCE_SAMPLES,
    DEFAULT_SMOOTHING,
    DEFAULT_USAGE_DAYS,
)
from custom_components.lpg_monitor.usage import UsageTracker


DISTANCE_SENSOR = "sensor.lpg_distance"
TEMPERATURE_SENSOR = "sensor.lpg_temperature"
VOLTAGE_SENSOR = "sensor.lpg_gas_voltage"


def make_state(value, unit: str | None = None):
    """Build a mocked entity state."""
    state = MagicMock()
    state.state = str(value)
    state.attributes = {"unit_of_measurement": unit} if unit else {}
    return state


def make_event(value, unit: str | None = None):
    """Build a mocked state change event."""
    event = MagicMock()
    event.data = {"new_state": make_state(value, unit) if value is not None else None}
    return event


@pytest.fixture
def mock_hass():
    """Create a mocked HomeAssistant instance."""
    hass = MagicMock()
    hass.states.get.return_value = None
    hass.async_create_task.return_value = None
    hass.bus.async_listen.return_value = MagicMock()
    hass.bus.async_fire = MagicMock()
    hass.data = {}
    return hass


@pytest.fixture
def usage_tracker():
    """Create a UsageTracker with default settings."""
    return UsageTracker(usage_days=DEFAULT_USAGE_DAYS, max_history_days=365)


def make_coordinator(
    mock_hass,
    distance_sensor=DISTANCE_SENSOR,
    temperature_sensor=None,
    voltage_sensor=VOLTAGE_SENSOR,
    ultrasonic=None,
    gas_sensor=None,
    initial_states=None,
    entry_id="test_entry_id",
    **kwargs,
):
    """Create an LpgMonitorCoordinator with mocked HA dependencies.

    *initial_states* maps entity ids to mocked states present at startup.
    Store and async_track_state_change_event are patched out.
    """
    from custom_components.lpg_monitor.coordinator import LpgMonitorCoordinator

    states = dict(initial_states or {})
    mock_hass.states.get.side_effect = states.get

    with (
        patch(
            "custom_components.lpg_monitor.coordinator.async_track_state_change_event"
        ),
        patch("custom_components.lpg_monitor.coordinator.Store") as mock_store_cls,
        patch("homeassistant.helpers.frame.report_usage"),
    ):
        mock_store = MagicMock()
        mock_store.async_load = AsyncMock(return_value=None)
        mock_store.async_delay_save = MagicMock()
        mock_store_cls.return_value = mock_store

        coordinator = LpgMonitorCoordinator(
            mock_hass,
            distance_sensor=distance_sensor,
            ultrasonic=ultrasonic or UltrasonicCalibration(),
            gas_sensor=gas_sensor or GasSensorCalibration(),
            temperature_sensor=temperature_sensor,
            voltage_sensor=voltage_sensor,
            smoothing=kwargs.get("smoothing", DEFAULT_SMOOTHING),
            leak_debounce_samples=kwargs.get(
                "leak_debounce_samples", DEFAULT_LEAK_DEBOUNCE_SAMPLES
            ),
            cylinder_change_threshold=kwargs.get(
                "cylinder_change_threshold", DEFAULT_CYLINDER_CHANGE_THRESHOLD
            ),
            usage_days=kwargs.get("usage_days", DEFAULT_USAGE_DAYS),
            entry_id=entry_id,
        )

        # Store the mock store for assertions
        coordinator._store = mock_store

    return coordinator
