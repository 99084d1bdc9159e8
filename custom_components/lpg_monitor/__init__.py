"""LPG Monitor Integration."""

import logging

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.typing import ConfigType

from .calibration import (
    InvalidCalibration,
    build_gas_sensor_calibration,
    build_ultrasonic_calibration,
)
from .const import (
    DOMAIN,
    ATTR_ENTRY_ID,
    ATTR_READINGS,
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
    DEFAULT_SMOOTHING,
    DEFAULT_LEAK_DEBOUNCE_SAMPLES,
    DEFAULT_CYLINDER_CHANGE_THRESHOLD,
    DEFAULT_USAGE_DAYS,
    REFERENCE_TEMPERATURE,
    SERVICE_CLEAR_LEAK,
    SERVICE_EMERGENCY_SHUTOFF,
    SERVICE_CALIBRATION_REPORT,
)
from .coordinator import LpgMonitorCoordinator
from .report import ReportReading

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.SENSOR, Platform.BINARY_SENSOR]

# Keep YAML config support for backward compatibility
CONFIG_SCHEMA = vol.Schema(
    {
        DOMAIN: vol.Schema(
            {
                vol.Required(CONF_DISTANCE_SENSOR): cv.entity_id,
                vol.Optional(CONF_TEMPERATURE_SENSOR): cv.entity_id,
                vol.Optional(CONF_VOLTAGE_SENSOR): cv.entity_id,
                vol.Optional(CONF_CYLINDER_HEIGHT): vol.Coerce(float),
                vol.Optional(CONF_EMPTY_DISTANCE): vol.Coerce(float),
                vol.Optional(CONF_FULL_DISTANCE): vol.Coerce(float),
                vol.Optional(CONF_SOUND_VELOCITY): vol.Coerce(float),
                vol.Optional(CONF_TEMP_VELOCITY_COEFF): vol.Coerce(float),
                vol.Optional(CONF_LEAK_THRESHOLD_VOLTAGE): vol.Coerce(float),
                vol.Optional(CONF_CLEAN_AIR_VOLTAGE): vol.Coerce(float),
                vol.Optional(CONF_SENSOR_SENSITIVITY): vol.Coerce(float),
                vol.Optional(CONF_SMOOTHING, default=DEFAULT_SMOOTHING): cv.boolean,
                vol.Optional(
                    CONF_LEAK_DEBOUNCE_SAMPLES, default=DEFAULT_LEAK_DEBOUNCE_SAMPLES
                ): cv.positive_int,
                vol.Optional(
                    CONF_CYLINDER_CHANGE_THRESHOLD,
                    default=DEFAULT_CYLINDER_CHANGE_THRESHOLD,
                ): cv.positive_float,
                vol.Optional(
                    CONF_USAGE_DAYS, default=DEFAULT_USAGE_DAYS
                ): cv.positive_int,
            }
        )
    },
    extra=vol.ALLOW_EXTRA,
)

TARGET_SCHEMA = vol.Schema({vol.Optional(ATTR_ENTRY_ID): cv.string})

READING_SCHEMA = vol.Schema(
    {
        vol.Required("distance"): vol.Coerce(float),
        vol.Required("voltage"): vol.Coerce(float),
        vol.Optional("temperature", default=REFERENCE_TEMPERATURE): vol.Coerce(float),
    }
)

REPORT_SCHEMA = TARGET_SCHEMA.extend(
    {vol.Optional(ATTR_READINGS, default=[]): vol.All(cv.ensure_list, [READING_SCHEMA])}
)


def _target_coordinators(
    hass: HomeAssistant, call: ServiceCall
) -> dict[str, LpgMonitorCoordinator]:
    """Resolve the coordinator(s) a service call applies to."""
    entry_id = call.data.get(ATTR_ENTRY_ID)
    coordinators = {
        key: coord
        for key, coord in hass.data.get(DOMAIN, {}).items()
        if isinstance(coord, LpgMonitorCoordinator)
    }
    if not entry_id:
        return coordinators

    if entry_id not in coordinators:
        _LOGGER.warning("No coordinator found for entry_id: %s", entry_id)
        return {}
    return {entry_id: coordinators[entry_id]}


async def async_setup(hass: HomeAssistant, config: ConfigType) -> bool:
    """Set up the LPG Monitor component from YAML."""
    hass.data.setdefault(DOMAIN, {})

    async def handle_clear_leak(call: ServiceCall) -> None:
        """Manually acknowledge a latched gas leak."""
        for coord in _target_coordinators(hass, call).values():
            await coord.async_clear_leak("manual")

    async def handle_emergency_shutoff(call: ServiceCall) -> None:
        """Record an emergency gas shutoff."""
        for coord in _target_coordinators(hass, call).values():
            await coord.async_emergency_shutoff()

    async def handle_calibration_report(call: ServiceCall) -> ServiceResponse:
        """Return a calibration report for each targeted cylinder."""
        readings = [
            ReportReading(
                distance_cm=reading["distance"],
                voltage=reading["voltage"],
                temperature_c=reading["temperature"],
            )
            for reading in call.data.get(ATTR_READINGS, [])
        ]
        return {
            "reports": {
                entry_id: coord.calibration_report(readings)
                for entry_id, coord in _target_coordinators(hass, call).items()
            }
        }

    hass.services.async_register(
        DOMAIN, SERVICE_CLEAR_LEAK, handle_clear_leak, schema=TARGET_SCHEMA
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_EMERGENCY_SHUTOFF,
        handle_emergency_shutoff,
        schema=TARGET_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_CALIBRATION_REPORT,
        handle_calibration_report,
        schema=REPORT_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )

    # Support YAML configuration (legacy)
    if DOMAIN in config:
        hass.async_create_task(
            hass.config_entries.flow.async_init(
                DOMAIN,
                context={"source": "import"},
                data=config[DOMAIN],
            )
        )

    return True


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up LPG Monitor from a config entry."""
    hass.data.setdefault(DOMAIN, {})

    # Merge entry.data and entry.options (options take precedence)
    config = {**entry.data, **entry.options}

    distance_sensor = config.get(CONF_DISTANCE_SENSOR)
    if not distance_sensor:
        _LOGGER.error("Missing distance sensor for entry %s", entry.entry_id)
        return False

    try:
        ultrasonic = build_ultrasonic_calibration(config)
        gas_sensor = build_gas_sensor_calibration(config)
    except InvalidCalibration as exc:
        _LOGGER.error(
            "Invalid calibration for entry %s: %s", entry.entry_id, exc.violations
        )
        return False

    coordinator = LpgMonitorCoordinator(
        hass,
        distance_sensor=distance_sensor,
        ultrasonic=ultrasonic,
        gas_sensor=gas_sensor,
        temperature_sensor=config.get(CONF_TEMPERATURE_SENSOR),
        voltage_sensor=config.get(CONF_VOLTAGE_SENSOR),
        smoothing=config.get(CONF_SMOOTHING, DEFAULT_SMOOTHING),
        leak_debounce_samples=int(
            config.get(CONF_LEAK_DEBOUNCE_SAMPLES, DEFAULT_LEAK_DEBOUNCE_SAMPLES)
        ),
        cylinder_change_threshold=config.get(
            CONF_CYLINDER_CHANGE_THRESHOLD, DEFAULT_CYLINDER_CHANGE_THRESHOLD
        ),
        usage_days=int(config.get(CONF_USAGE_DAYS, DEFAULT_USAGE_DAYS)),
        entry_id=entry.entry_id,
    )

    hass.data[DOMAIN][entry.entry_id] = coordinator

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)

    # Register update listener for options changes
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)

    if unload_ok:
        coordinator: LpgMonitorCoordinator = hass.data[DOMAIN].pop(entry.entry_id)
        await coordinator.async_shutdown()

    return unload_ok


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload config entry when options change."""
    await hass.config_entries.async_reload(entry.entry_id)
