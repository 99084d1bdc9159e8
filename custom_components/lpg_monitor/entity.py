"""Base entity for LPG Monitor."""

from __future__ import annotations

from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .const import DOMAIN
from .coordinator import LpgMonitorCoordinator, LpgMonitorData


class LpgMonitorEntity(CoordinatorEntity[LpgMonitorCoordinator]):
    """Entity bound to one cylinder, grouped under one device."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: LpgMonitorCoordinator, key: str) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self._attr_unique_id = f"{coordinator.distance_sensor}_{key}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, coordinator.distance_sensor)},
            name="LPG Cylinder",
            manufacturer="LPG Monitor",
            model="Ultrasonic level + MQ-5 leak sensor",
        )

    @property
    def _data(self) -> LpgMonitorData | None:
        return self.coordinator.data
