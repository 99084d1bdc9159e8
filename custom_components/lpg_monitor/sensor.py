"""Sensor platform for LPG Monitor."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import (
    PERCENTAGE,
    UnitOfLength,
    UnitOfSpeed,
    UnitOfTime,
)
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import CRITICAL_GAS_THRESHOLD, DOMAIN, LOW_GAS_THRESHOLD
from .coordinator import LpgMonitorCoordinator
from .entity import LpgMonitorEntity


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the sensor platform from a config entry."""
    coordinator: LpgMonitorCoordinator = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(_build_sensors(coordinator))


def _build_sensors(coordinator: LpgMonitorCoordinator) -> list[SensorEntity]:
    """Create the sensors for one cylinder."""
    return [
        LpgLevelSensor(coordinator),
        LpgDistanceSensor(coordinator),
        LpgSoundVelocitySensor(coordinator),
        LpgDailyUsageSensor(coordinator),
        LpgDaysRemainingSensor(coordinator),
        LpgLastCylinderChangeSensor(coordinator),
    ]


class LpgLevelSensor(LpgMonitorEntity, SensorEntity):
    """Gas fill level of the cylinder."""

    _attr_translation_key = "gas_level"
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = PERCENTAGE
    _attr_suggested_display_precision = 1
    _attr_icon = "mdi:gas-cylinder"

    def __init__(self, coordinator: LpgMonitorCoordinator) -> None:
        super().__init__(coordinator, "gas_level")

    @property
    def native_value(self) -> float | None:
        if self._data is None:
            return None
        return self._data.reading.display_level

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        if self._data is None:
            return {}
        return {
            "status": self._data.level_status,
            "low_threshold": LOW_GAS_THRESHOLD,
            "critical_threshold": CRITICAL_GAS_THRESHOLD,
            "last_reading": (
                self._data.sample.timestamp.isoformat()
                if self._data.sample.timestamp
                else None
            ),
        }


class LpgDistanceSensor(LpgMonitorEntity, SensorEntity):
    """Sensor-to-surface distance used for the last level."""

    _attr_translation_key = "surface_distance"
    _attr_device_class = SensorDeviceClass.DISTANCE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfLength.CENTIMETERS
    _attr_suggested_display_precision = 1
    _attr_entity_registry_enabled_default = False

    def __init__(self, coordinator: LpgMonitorCoordinator) -> None:
        super().__init__(coordinator, "surface_distance")

    @property
    def native_value(self) -> float | None:
        if self._data is None:
            return None
        return self._data.sample.distance_cm


class LpgSoundVelocitySensor(LpgMonitorEntity, SensorEntity):
    """Temperature-compensated speed of sound."""

    _attr_translation_key = "sound_velocity"
    _attr_device_class = SensorDeviceClass.SPEED
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfSpeed.METERS_PER_SECOND
    _attr_suggested_display_precision = 1
    _attr_entity_registry_enabled_default = False

    def __init__(self, coordinator: LpgMonitorCoordinator) -> None:
        super().__init__(coordinator, "sound_velocity")

    @property
    def native_value(self) -> float | None:
        if self._data is None:
            return None
        return self._data.sound_velocity

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        return {"temperature": self.coordinator.temperature}


class LpgDailyUsageSensor(LpgMonitorEntity, SensorEntity):
    """Average percentage of the cylinder used per day."""

    _attr_translation_key = "daily_usage"
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = f"{PERCENTAGE}/d"
    _attr_suggested_display_precision = 2
    _attr_icon = "mdi:chart-line"

    def __init__(self, coordinator: LpgMonitorCoordinator) -> None:
        super().__init__(coordinator, "daily_usage")

    @property
    def native_value(self) -> float | None:
        if self._data is None:
            return None
        return round(self._data.daily_usage, 2)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        attrs: dict[str, Any] = {
            "calculation_period_days": self.coordinator.usage_days,
        }
        if self._data is not None and self._data.usage_trend is not None:
            attrs["usage_trend_percent"] = round(self._data.usage_trend, 1)
        return attrs


class LpgDaysRemainingSensor(LpgMonitorEntity, SensorEntity):
    """Estimated days until the cylinder is empty."""

    _attr_translation_key = "days_remaining"
    _attr_native_unit_of_measurement = UnitOfTime.DAYS
    _attr_icon = "mdi:calendar-clock"

    def __init__(self, coordinator: LpgMonitorCoordinator) -> None:
        super().__init__(coordinator, "days_remaining")

    @property
    def native_value(self) -> int | None:
        if self._data is None:
            return None
        return self._data.days_remaining

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        if self._data is None or self._data.predicted_empty_date is None:
            return {}
        predicted = self._data.predicted_empty_date
        return {"predicted_empty_date": predicted.date().isoformat()}


class LpgLastCylinderChangeSensor(LpgMonitorEntity, SensorEntity):
    """Timestamp of the last detected cylinder change."""

    _attr_translation_key = "last_cylinder_change"
    _attr_device_class = SensorDeviceClass.TIMESTAMP
    _attr_icon = "mdi:gas-station"

    def __init__(self, coordinator: LpgMonitorCoordinator) -> None:
        super().__init__(coordinator, "last_cylinder_change")

    @property
    def native_value(self) -> datetime | None:
        if self._data is None:
            return None
        return self._data.last_cylinder_change

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        changes = self.coordinator.cylinder_changes
        if not changes:
            return {}
        return {
            "change_count": len(changes),
            "previous_level": changes[-1].get("previous_level"),
        }
