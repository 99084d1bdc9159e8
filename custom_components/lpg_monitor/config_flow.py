"""Config flow for LPG Monitor integration."""

from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import HomeAssistant, callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers import selector

from .calibration import (
    gas_sensor_from_config,
    ultrasonic_from_config,
    validate_calibration,
)
from .const import (
    DOMAIN,
    CONF_DISTANCE_SENSOR,
    CONF_TEMPERATURE_SENSOR,
    CONF_VOLTAGE_SENSOR,
    CONF_CYLINDER_HEIGHT,
    CONF_EMPTY_DISTANCE,
    CONF_FULL_DISTANCE,
    CONF_SOUND_VELOCITY,
    CONF_TEMP_VELOCITY_COEFF,
    CONF_LEAK_THRESHOLD_VOLTAGE,
    CONF_CLEAN_AIR_VOLTAGE,
    CONF_SENSOR_SENSITIVITY,
    CONF_SMOOTHING,
    CONF_LEAK_DEBOUNCE_SAMPLES,
    CONF_CYLINDER_CHANGE_THRESHOLD,
    CONF_USAGE_DAYS,
    DEFAULT_CYLINDER_HEIGHT,
    DEFAULT_EMPTY_DISTANCE,
    DEFAULT_FULL_DISTANCE,
    DEFAULT_SOUND_VELOCITY,
    DEFAULT_TEMP_VELOCITY_COEFF,
    DEFAULT_LEAK_THRESHOLD_VOLTAGE,
    DEFAULT_CLEAN_AIR_VOLTAGE,
    DEFAULT_SENSOR_SENSITIVITY,
    DEFAULT_SMOOTHING,
    DEFAULT_LEAK_DEBOUNCE_SAMPLES,
    DEFAULT_CYLINDER_CHANGE_THRESHOLD,
    DEFAULT_USAGE_DAYS,
)

_LOGGER = logging.getLogger(__name__)

_DEFAULTS: dict[str, Any] = {
    CONF_CYLINDER_HEIGHT: DEFAULT_CYLINDER_HEIGHT,
    CONF_EMPTY_DISTANCE: DEFAULT_EMPTY_DISTANCE,
    CONF_FULL_DISTANCE: DEFAULT_FULL_DISTANCE,
    CONF_SOUND_VELOCITY: DEFAULT_SOUND_VELOCITY,
    CONF_TEMP_VELOCITY_COEFF: DEFAULT_TEMP_VELOCITY_COEFF,
    CONF_LEAK_THRESHOLD_VOLTAGE: DEFAULT_LEAK_THRESHOLD_VOLTAGE,
    CONF_CLEAN_AIR_VOLTAGE: DEFAULT_CLEAN_AIR_VOLTAGE,
    CONF_SENSOR_SENSITIVITY: DEFAULT_SENSOR_SENSITIVITY,
    CONF_SMOOTHING: DEFAULT_SMOOTHING,
    CONF_LEAK_DEBOUNCE_SAMPLES: DEFAULT_LEAK_DEBOUNCE_SAMPLES,
    CONF_CYLINDER_CHANGE_THRESHOLD: DEFAULT_CYLINDER_CHANGE_THRESHOLD,
    CONF_USAGE_DAYS: DEFAULT_USAGE_DAYS,
}


def _number(
    min_value: float,
    max_value: float,
    step: float | str = "any",
    unit: str | None = None,
) -> selector.NumberSelector:
    """Build a box-mode number selector."""
    config = selector.NumberSelectorConfig(
        min=min_value,
        max=max_value,
        step=step,
        mode=selector.NumberSelectorMode.BOX,
    )
    # The selector schema rejects a None unit
    if unit:
        config["unit_of_measurement"] = unit
    return selector.NumberSelector(config)


def _build_schema(defaults: dict[str, Any]) -> vol.Schema:
    """Build the shared schema for config and options flows.

    Selector bounds only stop typos; the physical rules are checked by
    validate_calibration so every violation can be shown at once.
    """
    defaults = {**_DEFAULTS, **defaults}
    sensor_selector = selector.EntitySelector(
        selector.EntitySelectorConfig(domain="sensor")
    )

    return vol.Schema(
        {
            vol.Required(
                CONF_DISTANCE_SENSOR,
                description={"suggested_value": defaults.get(CONF_DISTANCE_SENSOR)},
            ): sensor_selector,
            vol.Optional(
                CONF_TEMPERATURE_SENSOR,
                description={"suggested_value": defaults.get(CONF_TEMPERATURE_SENSOR)},
            ): sensor_selector,
            vol.Optional(
                CONF_VOLTAGE_SENSOR,
                description={"suggested_value": defaults.get(CONF_VOLTAGE_SENSOR)},
            ): sensor_selector,
            vol.Required(
                CONF_CYLINDER_HEIGHT, default=defaults[CONF_CYLINDER_HEIGHT]
            ): _number(0, 500, 0.1, "cm"),
            vol.Required(
                CONF_EMPTY_DISTANCE, default=defaults[CONF_EMPTY_DISTANCE]
            ): _number(0, 500, 0.1, "cm"),
            vol.Required(
                CONF_FULL_DISTANCE, default=defaults[CONF_FULL_DISTANCE]
            ): _number(0, 500, 0.1, "cm"),
            vol.Required(
                CONF_SOUND_VELOCITY, default=defaults[CONF_SOUND_VELOCITY]
            ): _number(0, 1000, 0.1, "m/s"),
            vol.Required(
                CONF_TEMP_VELOCITY_COEFF, default=defaults[CONF_TEMP_VELOCITY_COEFF]
            ): _number(-5, 5, 0.01, "m/s/°C"),
            vol.Required(
                CONF_LEAK_THRESHOLD_VOLTAGE,
                default=defaults[CONF_LEAK_THRESHOLD_VOLTAGE],
            ): _number(-10, 10, 0.01, "V"),
            vol.Required(
                CONF_CLEAN_AIR_VOLTAGE, default=defaults[CONF_CLEAN_AIR_VOLTAGE]
            ): _number(-10, 10, 0.01, "V"),
            vol.Required(
                CONF_SENSOR_SENSITIVITY, default=defaults[CONF_SENSOR_SENSITIVITY]
            ): _number(-10, 10, 0.01),
            vol.Optional(
                CONF_SMOOTHING, default=defaults[CONF_SMOOTHING]
            ): selector.BooleanSelector(),
            vol.Optional(
                CONF_LEAK_DEBOUNCE_SAMPLES,
                default=defaults[CONF_LEAK_DEBOUNCE_SAMPLES],
            ): _number(1, 20, 1),
            vol.Optional(
                CONF_CYLINDER_CHANGE_THRESHOLD,
                default=defaults[CONF_CYLINDER_CHANGE_THRESHOLD],
            ): _number(5, 100, 1, "%"),
            vol.Optional(
                CONF_USAGE_DAYS, default=defaults[CONF_USAGE_DAYS]
            ): _number(1, 90, 1, "days"),
        }
    )


def _validate_input(
    hass: HomeAssistant, user_input: dict[str, Any]
) -> tuple[dict[str, str], list[str]]:
    """Check source entities and calibration; return form errors and violations."""
    errors: dict[str, str] = {}

    for key in (CONF_DISTANCE_SENSOR, CONF_TEMPERATURE_SENSOR, CONF_VOLTAGE_SENSOR):
        entity_id = user_input.get(key)
        if entity_id and not hass.states.get(entity_id):
            errors[key] = "sensor_not_found"

    violations = validate_calibration(
        ultrasonic_from_config(user_input), gas_sensor_from_config(user_input)
    )
    if violations:
        errors["base"] = "invalid_calibration"

    return errors, violations


def _placeholders(violations: list[str]) -> dict[str, str]:
    return {"violations": "\n".join(f"- {v}" for v in violations)}


class LpgMonitorConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    """Handle a config flow for LPG Monitor."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Handle the initial step."""
        errors: dict[str, str] = {}
        violations: list[str] = []

        if user_input is not None:
            errors, violations = _validate_input(self.hass, user_input)
            if violations:
                _LOGGER.debug("Calibration rejected: %s", violations)

            if not errors:
                # Check if already configured
                await self.async_set_unique_id(user_input[CONF_DISTANCE_SENSOR])
                self._abort_if_unique_id_configured()

                return self.async_create_entry(
                    title="LPG Monitor",
                    data=user_input,
                )

        return self.async_show_form(
            step_id="user",
            data_schema=_build_schema(user_input or {}),
            errors=errors,
            description_placeholders=_placeholders(violations),
        )

    async def async_step_import(self, import_config: dict[str, Any]) -> FlowResult:
        """Handle import from configuration.yaml."""
        return await self.async_step_user(import_config)

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,
    ) -> config_entries.OptionsFlow:
        """Get the options flow for this handler."""
        return LpgMonitorOptionsFlow()


class LpgMonitorOptionsFlow(config_entries.OptionsFlow):
    """Handle options flow for LPG Monitor (recalibration)."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        """Manage the options."""
        errors: dict[str, str] = {}
        violations: list[str] = []

        if user_input is not None:
            errors, violations = _validate_input(self.hass, user_input)
            if not errors:
                self.hass.config_entries.async_update_entry(
                    self.config_entry,
                    data={**self.config_entry.data, **user_input},
                )
                return self.async_create_entry(title="", data={})

        defaults = {**self.config_entry.data, **(user_input or {})}
        return self.async_show_form(
            step_id="init",
            data_schema=_build_schema(defaults),
            errors=errors,
            description_placeholders=_placeholders(violations),
        )
