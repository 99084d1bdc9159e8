DOMAIN = "lpg_monitor"

CONF_DISTANCE_SENSOR = "distance_sensor"
CONF_TEMPERATURE_SENSOR = "temperature_sensor"
CONF_VOLTAGE_SENSOR = "gas_voltage_sensor"

# Ultrasonic calibration
CONF_CYLINDER_HEIGHT = "cylinder_height_cm"
CONF_EMPTY_DISTANCE = "empty_distance_cm"
CONF_FULL_DISTANCE = "full_distance_cm"
CONF_SOUND_VELOCITY = "sound_velocity"
CONF_TEMP_VELOCITY_COEFF = "temp_velocity_coeff"

DEFAULT_CYLINDER_HEIGHT = 30.0  # cm - standard 14.2 kg cylinder
DEFAULT_EMPTY_DISTANCE = 28.0  # cm
DEFAULT_FULL_DISTANCE = 3.0  # cm
DEFAULT_SOUND_VELOCITY = 343.0  # m/s at 20 °C
DEFAULT_TEMP_VELOCITY_COEFF = 0.6  # m/s per °C

# Gas sensor (MQ-5) calibration
CONF_LEAK_THRESHOLD_VOLTAGE = "leak_threshold_voltage"
CONF_CLEAN_AIR_VOLTAGE = "clean_air_voltage"
CONF_SENSOR_SENSITIVITY = "sensor_sensitivity"

DEFAULT_LEAK_THRESHOLD_VOLTAGE = 1.5  # V
DEFAULT_CLEAN_AIR_VOLTAGE = 0.4  # V
DEFAULT_SENSOR_SENSITIVITY = 1.0

# Reading filter settings
CONF_SMOOTHING = "smoothing"
CONF_LEAK_DEBOUNCE_SAMPLES = "leak_debounce_samples"
CONF_CYLINDER_CHANGE_THRESHOLD = "cylinder_change_threshold_percent"
CONF_USAGE_DAYS = "usage_calculation_days"

DEFAULT_SMOOTHING = False
DEFAULT_LEAK_DEBOUNCE_SAMPLES = 1  # 1 = alarm on the first sample over threshold
DEFAULT_CYLINDER_CHANGE_THRESHOLD = 30.0  # Percentage points
DEFAULT_USAGE_DAYS = 7  # Days to average for usage calculation

# Physical bounds
REFERENCE_TEMPERATURE = 20.0  # °C - temperature the sound velocity is quoted at
SMOOTHING_WEIGHT = 0.7  # Weight of the newest reading
SUPPLY_VOLTAGE = 3.3  # V - ADC ceiling of the gas sensor input
MAX_CYLINDER_HEIGHT = 100.0  # cm
MIN_FULL_DISTANCE = 1.0  # cm
MIN_SOUND_VELOCITY = 300.0  # m/s
MAX_SOUND_VELOCITY = 400.0  # m/s

# Level status thresholds
LOW_GAS_THRESHOLD = 15.0  # Percentage
CRITICAL_GAS_THRESHOLD = 5.0  # Percentage

# Source units that mean the distance sensor reports raw echo time
ECHO_TIME_UNITS = ("µs", "μs", "us")

# History and persistence
STORAGE_VERSION = 1
STORAGE_KEY = f"{DOMAIN}_history"
DEFAULT_USAGE_HISTORY_DAYS = 365
DEFAULT_ALERT_HISTORY_MAX = 100
DEFAULT_CYLINDER_HISTORY_MAX = 50

# Events
EVENT_LEAK_DETECTED = f"{DOMAIN}_leak_detected"
EVENT_LEAK_CLEARED = f"{DOMAIN}_leak_cleared"
EVENT_EMERGENCY_SHUTOFF = f"{DOMAIN}_emergency_shutoff"

# Services
SERVICE_CLEAR_LEAK = "clear_leak"
SERVICE_EMERGENCY_SHUTOFF = "emergency_shutoff"
SERVICE_CALIBRATION_REPORT = "calibration_report"

ATTR_ENTRY_ID = "entry_id"
ATTR_READINGS = "readings"

VALVE_OPEN = "open"
VALVE_CLOSED = "closed"
