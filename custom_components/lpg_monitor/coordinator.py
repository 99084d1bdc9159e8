"""Coordinator for LPG Monitor data and updates."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
import logging

from homeassistant.core import CALLBACK_TYPE, Event, HomeAssistant
from homeassistant.helpers.event import async_track_state_change_event
from homeassistant.helpers.storage import Store
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .calibration import GasSensorCalibration, UltrasonicCalibration
from .const import (
    DEFAULT_ALERT_HISTORY_MAX,
    DEFAULT_CYLINDER_CHANGE_THRESHOLD,
    DEFAULT_CYLINDER_HISTORY_MAX,
    DEFAULT_LEAK_DEBOUNCE_SAMPLES,
    DEFAULT_SMOOTHING,
    DEFAULT_USAGE_DAYS,
    DEFAULT_USAGE_HISTORY_DAYS,
    DOMAIN,
    ECHO_TIME_UNITS,
    EVENT_EMERGENCY_SHUTOFF,
    EVENT_LEAK_CLEARED,
    EVENT_LEAK_DETECTED,
    REFERENCE_TEMPERATURE,
    STORAGE_KEY,
    STORAGE_VERSION,
    VALVE_CLOSED,
    VALVE_OPEN,
)
from .leak import LeakDebouncer, LeakState, LeakStatus, evaluate_leak
from .level import LevelConverter, SensorTimeout, adjusted_sound_velocity
from .reading import GasReading, SensorSample
from .report import ReportReading, generate_calibration_report
from .usage import UsageTracker, gas_level_status

_LOGGER = logging.getLogger(__name__)

_UNAVAILABLE_STATES = ("unknown", "unavailable")


@dataclass(frozen=True)
class LpgMonitorData:
    """Snapshot of LPG monitor data for entities."""

    reading: GasReading
    sample: SensorSample
    sound_velocity: float
    level_status: str | None
    leak_detected_at: datetime | None
    leak_trigger_voltage: float | None
    valve_status: str
    last_shutoff: datetime | None
    daily_usage: float
    days_remaining: int | None
    predicted_empty_date: datetime | None
    usage_trend: float | None
    last_cylinder_change: datetime | None


class LpgMonitorCoordinator(DataUpdateCoordinator[LpgMonitorData]):
    """Coordinator to turn raw sensor entities into level and leak data."""

    def __init__(
        self,
        hass: HomeAssistant,
        distance_sensor: str,
        ultrasonic: UltrasonicCalibration,
        gas_sensor: GasSensorCalibration,
        temperature_sensor: str | None = None,
        voltage_sensor: str | None = None,
        smoothing: bool = DEFAULT_SMOOTHING,
        leak_debounce_samples: int = DEFAULT_LEAK_DEBOUNCE_SAMPLES,
        cylinder_change_threshold: float = DEFAULT_CYLINDER_CHANGE_THRESHOLD,
        usage_days: int = DEFAULT_USAGE_DAYS,
        entry_id: str | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(hass, _LOGGER, name=DOMAIN)

        self.hass = hass
        self.distance_sensor = distance_sensor
        self.temperature_sensor = temperature_sensor
        self.voltage_sensor = voltage_sensor
        self.ultrasonic = ultrasonic
        self.gas_sensor = gas_sensor
        self.cylinder_change_threshold = cylinder_change_threshold
        self.usage_days = usage_days

        # Raises InvalidCalibration before any listener is registered
        self._converter = LevelConverter(ultrasonic, smoothing=smoothing)
        self._debouncer = LeakDebouncer(required_samples=int(leak_debounce_samples))
        self._leak = LeakState()
        self._raw_leak: bool = False

        self._sample = SensorSample()
        self._current_level: float | None = None
        self._usage_baseline: float | None = None
        self._valve_status: str = VALVE_OPEN
        self._last_shutoff: datetime | None = None
        self._alerts: list[dict] = []
        self._cylinder_changes: list[dict] = []

        self._usage = UsageTracker(
            usage_days=usage_days,
            max_history_days=DEFAULT_USAGE_HISTORY_DAYS,
        )

        storage_key = f"{STORAGE_KEY}_{entry_id}" if entry_id else STORAGE_KEY
        self._store = Store(hass, STORAGE_VERSION, storage_key)
        self._history_load_task = hass.async_create_task(self._async_load_history())

        self._unsub_listeners: list[CALLBACK_TYPE] = [
            async_track_state_change_event(
                hass, [distance_sensor], self._handle_distance_change
            )
        ]
        if temperature_sensor:
            self._unsub_listeners.append(
                async_track_state_change_event(
                    hass, [temperature_sensor], self._handle_temperature_change
                )
            )
        if voltage_sensor:
            self._unsub_listeners.append(
                async_track_state_change_event(
                    hass, [voltage_sensor], self._handle_voltage_change
                )
            )

        if temperature_sensor:
            self._initialize_temperature()
        self._initialize_level()
        if voltage_sensor:
            self._initialize_leak()

        self._publish()

    async def async_shutdown(self) -> None:
        """Detach sensor listeners and stop pending work."""
        await super().async_shutdown()
        while self._unsub_listeners:
            self._unsub_listeners.pop()()
        if self._history_load_task and not self._history_load_task.done():
            self._history_load_task.cancel()

    async def _async_update_data(self) -> LpgMonitorData:
        """Provide data for coordinator refresh requests."""
        self._publish()
        return self.data

    @property
    def leak_status(self) -> LeakStatus:
        """Return the latched leak status."""
        return self._leak.status

    @property
    def alerts(self) -> list[dict]:
        """Return leak alert history, newest last."""
        return self._alerts

    @property
    def cylinder_changes(self) -> list[dict]:
        """Return detected cylinder changes, newest last."""
        return self._cylinder_changes

    @property
    def temperature(self) -> float:
        """Return the current air temperature, or the reference temperature."""
        if self._sample.temperature_c is None:
            return REFERENCE_TEMPERATURE
        return self._sample.temperature_c

    def _state_value(self, entity_id: str) -> float | None:
        """Read a numeric state from the state machine."""
        state = self.hass.states.get(entity_id)
        if not state or state.state in _UNAVAILABLE_STATES:
            return None
        try:
            return float(state.state)
        except (ValueError, TypeError) as exc:
            _LOGGER.debug("Could not read %s: %s", entity_id, exc)
            return None

    def _initialize_temperature(self) -> None:
        """Initialize temperature from the current sensor state."""
        temperature = self._state_value(self.temperature_sensor)
        if temperature is not None:
            self._sample = self._sample.with_values(
                dt_util.now(), temperature_c=temperature
            )
            _LOGGER.debug("Initialized temperature from sensor: %.2f °C", temperature)

    def _initialize_level(self) -> None:
        """Initialize level from the current distance sensor state."""
        state = self.hass.states.get(self.distance_sensor)
        value = self._state_value(self.distance_sensor)
        if value is None:
            return

        try:
            level = self._convert(value, _unit_of(state))
        except SensorTimeout:
            _LOGGER.debug("No echo at startup; level unknown")
            return

        self._current_level = level
        self._usage_baseline = level
        _LOGGER.debug("Initialized level from sensor: %.1f %%", level)

    def _initialize_leak(self) -> None:
        """Evaluate the gas sensor voltage present at startup."""
        voltage = self._state_value(self.voltage_sensor)
        if voltage is not None:
            self._process_voltage(voltage, dt_util.now())

    def _convert(self, value: float, unit: str | None) -> float:
        """Convert a distance (cm) or echo time (µs) reading to a level."""
        if unit in ECHO_TIME_UNITS:
            level = self._converter.convert_echo(value, self.temperature)
        else:
            level = self._converter.convert(value)

        self._sample = self._sample.with_values(
            dt_util.now(), distance_cm=self._converter.last_distance
        )
        return level

    async def _handle_temperature_change(self, event: Event) -> None:
        """Handle temperature sensor state change."""
        new_state = event.data.get("new_state")
        if new_state is None or new_state.state in _UNAVAILABLE_STATES:
            return

        try:
            temperature = float(new_state.state)
        except (ValueError, TypeError):
            _LOGGER.warning("Invalid temperature value: %s", new_state.state)
            return

        self._sample = self._sample.with_values(
            dt_util.now(), temperature_c=temperature
        )
        _LOGGER.debug("Temperature updated: %.2f °C", temperature)
        self._publish()

    async def _handle_distance_change(self, event: Event) -> None:
        """Handle distance sensor state change."""
        new_state = event.data.get("new_state")
        if new_state is None or new_state.state in _UNAVAILABLE_STATES:
            # Acquisition timeout: the last level stays published
            return

        try:
            value = float(new_state.state)
        except (ValueError, TypeError):
            _LOGGER.warning("Invalid distance value: %s", new_state.state)
            return

        try:
            level = self._convert(value, _unit_of(new_state))
        except SensorTimeout:
            _LOGGER.debug("Echo timeout before first reading; level unknown")
            return

        self._process_level(level)

    async def _handle_voltage_change(self, event: Event) -> None:
        """Handle gas sensor voltage state change."""
        new_state = event.data.get("new_state")
        if new_state is None or new_state.state in _UNAVAILABLE_STATES:
            return

        try:
            voltage = float(new_state.state)
        except (ValueError, TypeError):
            _LOGGER.warning("Invalid gas sensor voltage: %s", new_state.state)
            return

        self._process_voltage(voltage, dt_util.now())
        self._publish()

    def _process_level(self, new_level: float) -> None:
        """Track usage and cylinder changes for a new level."""
        now = dt_util.now()

        if self._usage_baseline is None:
            self._current_level = new_level
            self._usage_baseline = new_level
            _LOGGER.debug("Initial level reading: %.1f %%", new_level)
            self._publish()
            return

        change = new_level - self._usage_baseline
        self._current_level = new_level

        if change > self.cylinder_change_threshold:
            self._record_cylinder_change(self._usage_baseline, new_level, now)
            self._usage_baseline = new_level
        elif change <= -0.1:
            self._usage.record(abs(change), now)
            self._usage_baseline = new_level
            _LOGGER.debug("Usage: %.2f %%, new level: %.1f %%", abs(change), new_level)
            self._schedule_save()

        self._publish()

    def _record_cylinder_change(
        self, previous_level: float, new_level: float, now: datetime
    ) -> None:
        """Record a swap to a fuller cylinder."""
        self._cylinder_changes.append(
            {
                "timestamp": now.isoformat(),
                "previous_level": round(previous_level, 1),
                "new_level": round(new_level, 1),
            }
        )
        self._cylinder_changes = self._cylinder_changes[-DEFAULT_CYLINDER_HISTORY_MAX:]
        _LOGGER.info(
            "Cylinder change detected: %.1f %% → %.1f %%", previous_level, new_level
        )
        self._schedule_save()

    def _process_voltage(self, voltage: float, now: datetime) -> None:
        """Run the leak detector and latch the system leak status."""
        self._sample = self._sample.with_values(now, sensor_voltage=voltage)
        self._raw_leak = evaluate_leak(voltage, self.gas_sensor)
        confirmed = self._debouncer.update(self._raw_leak)

        if not self._leak.observe(confirmed, now, voltage):
            return

        alert = {
            "id": f"ALERT_{int(now.timestamp() * 1000)}",
            "timestamp": now.isoformat(),
            "level": (
                round(self._current_level, 1)
                if self._current_level is not None
                else None
            ),
            "voltage": voltage,
            "acknowledged": False,
        }
        self._alerts.append(alert)
        self._alerts = self._alerts[-DEFAULT_ALERT_HISTORY_MAX:]

        _LOGGER.warning(
            "Gas leak detected: sensor voltage %.2f V above threshold %.2f V",
            voltage,
            self.gas_sensor.leak_threshold_voltage,
        )
        self.hass.bus.async_fire(
            EVENT_LEAK_DETECTED,
            {"voltage": voltage, "level": alert["level"], "alert_id": alert["id"]},
        )
        self._schedule_save()

    async def async_clear_leak(self, reason: str = "manual") -> bool:
        """Acknowledge a latched leak. Return False if none was latched."""
        now = dt_util.now()
        if not self._leak.clear(now, reason):
            _LOGGER.debug("Clear requested but no leak is latched")
            return False

        self._debouncer.reset()
        for alert in reversed(self._alerts):
            if not alert.get("acknowledged"):
                alert["acknowledged"] = True
                alert["acknowledged_at"] = now.isoformat()
                alert["clear_reason"] = reason
                break

        _LOGGER.info("Gas leak cleared (%s)", reason)
        self.hass.bus.async_fire(EVENT_LEAK_CLEARED, {"reason": reason})
        self._publish()
        self._schedule_save()
        return True

    async def async_emergency_shutoff(self) -> None:
        """Mark the gas supply as shut off and clear the leak alarm."""
        self._valve_status = VALVE_CLOSED
        self._last_shutoff = dt_util.now()
        _LOGGER.warning("Emergency gas shutoff activated")
        self.hass.bus.async_fire(
            EVENT_EMERGENCY_SHUTOFF,
            {"timestamp": self._last_shutoff.isoformat()},
        )

        if not await self.async_clear_leak("emergency_shutoff"):
            self._publish()
            self._schedule_save()

    def calibration_report(self, readings: Iterable[ReportReading] | None = None) -> str:
        """Render the calibration report for this cylinder."""
        return generate_calibration_report(self.ultrasonic, self.gas_sensor, readings)

    def _schedule_save(self) -> None:
        """Schedule saving history to storage."""
        self._store.async_delay_save(self._serialize_history, 10)

    def _serialize_history(self) -> dict:
        """Serialize history state for persistence."""
        return {
            "version": STORAGE_VERSION,
            "usage_daily": self._usage.get_daily_totals(),
            "alerts": self._alerts,
            "cylinder_changes": self._cylinder_changes,
            "leak": {
                "status": str(self._leak.status),
                "detected_at": (
                    self._leak.detected_at.isoformat()
                    if self._leak.detected_at
                    else None
                ),
                "trigger_voltage": self._leak.trigger_voltage,
            },
            "valve": {
                "status": self._valve_status,
                "last_shutoff": (
                    self._last_shutoff.isoformat() if self._last_shutoff else None
                ),
            },
        }

    async def _async_load_history(self) -> None:
        """Load persisted history from storage."""
        data = await self._store.async_load()
        if not data:
            return

        if data.get("version") != STORAGE_VERSION:
            _LOGGER.debug("History schema version mismatch; ignoring persisted data")
            return

        # Readings handled before the load finished are newer than anything stored
        has_live_history = bool(
            self._alerts or self._cylinder_changes or self._usage.get_daily_totals()
        )

        daily_totals = data.get("usage_daily", {})
        if isinstance(daily_totals, dict):
            merged = dict(daily_totals)
            for day, total in self._usage.get_daily_totals().items():
                merged[day] = merged.get(day, 0.0) + total
            self._usage.set_daily_totals(merged)

        alerts = data.get("alerts", [])
        if isinstance(alerts, list):
            self._alerts = (alerts + self._alerts)[-DEFAULT_ALERT_HISTORY_MAX:]

        changes = data.get("cylinder_changes", [])
        if isinstance(changes, list):
            self._cylinder_changes = (changes + self._cylinder_changes)[
                -DEFAULT_CYLINDER_HISTORY_MAX:
            ]

        leak = data.get("leak") or {}
        if isinstance(leak, dict) and leak.get("status") == LeakStatus.DETECTED:
            # A leak latched before restart stays latched until acknowledged
            self._leak.observe(
                True,
                _parse_datetime(leak.get("detected_at")) or dt_util.now(),
                leak.get("trigger_voltage"),
            )

        valve = data.get("valve") or {}
        if isinstance(valve, dict) and self._last_shutoff is None:
            self._valve_status = valve.get("status") or VALVE_OPEN
            self._last_shutoff = _parse_datetime(valve.get("last_shutoff"))

        if has_live_history:
            self._schedule_save()
        self._publish()

    def _publish(self) -> None:
        """Publish updated data to listeners."""
        now = dt_util.now()
        level = self._current_level

        data = LpgMonitorData(
            reading=GasReading(level_percent=level, leak_detected=self._leak.detected),
            sample=self._sample,
            sound_velocity=adjusted_sound_velocity(self.ultrasonic, self.temperature),
            level_status=gas_level_status(level),
            leak_detected_at=self._leak.detected_at,
            leak_trigger_voltage=self._leak.trigger_voltage,
            valve_status=self._valve_status,
            last_shutoff=self._last_shutoff,
            daily_usage=self._usage.get_daily_usage(now),
            days_remaining=(
                self._usage.get_days_remaining(now, level)
                if level is not None
                else None
            ),
            predicted_empty_date=(
                self._usage.get_predicted_empty_date(now, level)
                if level is not None
                else None
            ),
            usage_trend=self._usage.get_usage_trend(now),
            last_cylinder_change=(
                _parse_datetime(self._cylinder_changes[-1]["timestamp"])
                if self._cylinder_changes
                else None
            ),
        )

        self.async_set_updated_data(data)


def _unit_of(state) -> str | None:
    """Return the unit of measurement of a state, if any."""
    if state is None:
        return None
    return state.attributes.get("unit_of_measurement")


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return dt_util.parse_datetime(value)
    except (TypeError, ValueError):
        return None
