"""Binary sensor platform for LPG Monitor."""

from __future__ import annotations

from typing import Any

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN
from .coordinator import LpgMonitorCoordinator
from .entity import LpgMonitorEntity


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the leak binary sensor from a config entry."""
    coordinator: LpgMonitorCoordinator = hass.data[DOMAIN][entry.entry_id]
    if coordinator.voltage_sensor:
        async_add_entities([LpgLeakBinarySensor(coordinator)])


class LpgLeakBinarySensor(LpgMonitorEntity, BinarySensorEntity):
    """Latched gas leak alarm. Cleared only by clear_leak or emergency_shutoff."""

    _attr_translation_key = "gas_leak"
    _attr_device_class = BinarySensorDeviceClass.GAS

    def __init__(self, coordinator: LpgMonitorCoordinator) -> None:
        super().__init__(coordinator, "gas_leak")

    @property
    def is_on(self) -> bool | None:
        if self._data is None:
            return None
        return self._data.reading.leak_detected

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        if self._data is None:
            return {}

        data = self._data
        return {
            "status": str(self.coordinator.leak_status),
            "sensor_voltage": data.sample.sensor_voltage,
            "threshold_voltage": self.coordinator.gas_sensor.leak_threshold_voltage,
            "detected_at": (
                data.leak_detected_at.isoformat() if data.leak_detected_at else None
            ),
            "trigger_voltage": data.leak_trigger_voltage,
            "valve_status": data.valve_status,
            "last_shutoff": (
                data.last_shutoff.isoformat() if data.last_shutoff else None
            ),
            "alert_count": len(self.coordinator.alerts),
        }
