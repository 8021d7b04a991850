"""Constants for CoolMaster HVAC integration.

This module contains all the constants used throughout the integration,
including controller endpoints, raw command names, configuration keys and
the characteristic enum values of the accessory model.
"""

from enum import IntEnum, StrEnum

DOMAIN = "coolmaster_hvac"

DEFAULT_PORT = 10103
DEFAULT_TIMEOUT = 10.0

MANUFACTURER = "CoolAutomation"
MODEL = "CoolMaster"

CONF_SERIAL = "serial"
CONF_MAX_ATTEMPTS = "max_attempts"
CONF_BACKOFF_FACTOR = "backoff_factor"
CONF_MAX_BACKOFF = "max_backoff"

DEFAULT_MAX_ATTEMPTS = 0  # 0 means retry forever
DEFAULT_BACKOFF_FACTOR = 0.5
DEFAULT_MAX_BACKOFF = 30.0
DEFAULT_JITTER = 0.25  # fraction of the backoff added or removed at random

# Retry budget of one transport round when retrying forever; keeps the
# backoff exponent bounded
RETRIES_PER_ROUND = 32

# Every non-2xx status is retried
RETRY_STATUS_CODES = frozenset(range(300, 600))

ERROR_CANNOT_CONNECT = "cannot_connect"
ERROR_INVALID_RESPONSE = "invalid_response"
ERROR_UNKNOWN = "unknown_error"

# Raw command verbs understood by the controller
COMMAND_QUERY = "query"
COMMAND_ON = "on"
COMMAND_OFF = "off"
COMMAND_COOL = "cool"
COMMAND_HEAT = "heat"
COMMAND_TEMP = "temp"
COMMAND_STATUS = "ls2"

# Fields of the "query" command
QUERY_POWER = "o"
QUERY_MODE = "m"
QUERY_SETPOINT = "h"

# Mode codes returned by "query&<uid>&m"
MODE_CODE_COOL = 0
MODE_CODE_HEAT = 1
MODE_CODE_DRY = 3
COOL_MODE_CODES = frozenset({MODE_CODE_COOL, MODE_CODE_DRY})

# Fields of the v2 ls2 status object
STATUS_POWER_OFF = "OFF"
STATUS_MODE_HEAT = "Heat"
STATUS_COOLING_MODES = frozenset({"Cool", "Dry"})

COOLING_THRESHOLD_MIN = 16
HEATING_THRESHOLD_MIN = 10


class Characteristic(StrEnum):
    """Characteristics exposed by the heater-cooler accessory."""

    ACTIVE = "Active"
    CURRENT_HEATER_COOLER_STATE = "CurrentHeaterCoolerState"
    TARGET_HEATER_COOLER_STATE = "TargetHeaterCoolerState"
    CURRENT_TEMPERATURE = "CurrentTemperature"
    COOLING_THRESHOLD_TEMPERATURE = "CoolingThresholdTemperature"
    HEATING_THRESHOLD_TEMPERATURE = "HeatingThresholdTemperature"


class Active(IntEnum):
    """Active characteristic values."""

    INACTIVE = 0
    ACTIVE = 1


class CurrentHeaterCoolerState(IntEnum):
    """CurrentHeaterCoolerState characteristic values."""

    INACTIVE = 0
    IDLE = 1
    HEATING = 2
    COOLING = 3


class TargetHeaterCoolerState(IntEnum):
    """TargetHeaterCoolerState characteristic values."""

    AUTO = 0
    HEAT = 1
    COOL = 2
