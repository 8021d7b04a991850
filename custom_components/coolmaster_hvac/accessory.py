"""Heater-cooler accessory backed by a CoolMaster controller.

The accessory registers one get (and optionally set) handler per
characteristic and translates between the platform's characteristic values
and the controller's raw commands. Every read goes to the controller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .api import CoolMasterClient, CoolMasterReadOnlyError, CoolMasterResponseError
from .const import (
    COOL_MODE_CODES,
    COOLING_THRESHOLD_MIN,
    HEATING_THRESHOLD_MIN,
    MODE_CODE_HEAT,
    STATUS_COOLING_MODES,
    STATUS_MODE_HEAT,
    STATUS_POWER_OFF,
    Characteristic,
)
from .models import (
    CharacteristicProps,
    CharacteristicRegistration,
    CharacteristicValues,
    CoolMasterDevice,
    Setpoint,
)

_LOGGER = logging.getLogger(__name__)

CharacteristicNotifier = Callable[[Characteristic, Any], None]


def _status_field(status: dict[str, Any], key: str) -> Any:  # noqa: ANN401
    try:
        return status[key]
    except KeyError as err:
        error_msg = f"v2 status has no {key!r} field: {status!r}"
        raise CoolMasterResponseError(error_msg) from err


class CoolMasterAccessory:
    """Accessory adapter for one AC unit."""

    def __init__(
        self,
        client: CoolMasterClient,
        device: CoolMasterDevice,
        values: CharacteristicValues | None = None,
        notifier: CharacteristicNotifier | None = None,
    ) -> None:
        """Initialize the accessory.

        Args:
            client: Raw command client for the controller.
            device: Unit served by this accessory.
            values: Characteristic values of the host platform.
            notifier: Callback receiving out-of-band characteristic updates.

        """
        self._client = client
        self.device = device
        self.values = values or CharacteristicValues()
        self._notifier = notifier
        self.characteristics: dict[Characteristic, CharacteristicRegistration] = {}
        self._register_characteristics()

    @property
    def name(self) -> str:
        """Return the display name of the unit."""
        return self.device.display_name

    def _register_characteristics(self) -> None:
        self.characteristics[Characteristic.ACTIVE] = CharacteristicRegistration(
            getter=self.async_get_active,
            setter=self.async_set_active,
        )
        self.characteristics[Characteristic.CURRENT_HEATER_COOLER_STATE] = (
            CharacteristicRegistration(getter=self.async_get_current_state)
        )
        self.characteristics[Characteristic.TARGET_HEATER_COOLER_STATE] = (
            CharacteristicRegistration(
                getter=self.async_get_target_state,
                setter=self.async_set_target_state,
                props=CharacteristicProps(
                    valid_values=[self.values.target_heat, self.values.target_cool]
                ),
            )
        )
        self.characteristics[Characteristic.CURRENT_TEMPERATURE] = (
            CharacteristicRegistration(getter=self.async_get_current_temperature)
        )
        self.characteristics[Characteristic.COOLING_THRESHOLD_TEMPERATURE] = (
            CharacteristicRegistration(
                getter=self.async_get_cooling_threshold,
                setter=self.async_set_threshold_temperature,
                props=CharacteristicProps(min_value=COOLING_THRESHOLD_MIN),
            )
        )
        self.characteristics[Characteristic.HEATING_THRESHOLD_TEMPERATURE] = (
            CharacteristicRegistration(
                getter=self.async_get_heating_threshold,
                setter=self.async_set_threshold_temperature,
                props=CharacteristicProps(min_value=HEATING_THRESHOLD_MIN),
            )
        )

    def set_notifier(self, notifier: CharacteristicNotifier | None) -> None:
        """Replace the callback receiving out-of-band updates."""
        self._notifier = notifier

    def props(self, characteristic: Characteristic) -> CharacteristicProps:
        """Return the props registered for ``characteristic``."""
        return self.characteristics[characteristic].props

    async def async_get(self, characteristic: Characteristic) -> Any:  # noqa: ANN401
        """Read a characteristic through its registered handler."""
        return await self.characteristics[characteristic].getter()

    async def async_set(
        self, characteristic: Characteristic, value: Any  # noqa: ANN401
    ) -> None:
        """Write a characteristic through its registered handler.

        Raises:
            CoolMasterReadOnlyError: If the characteristic has no set handler.

        """
        registration = self.characteristics[characteristic]
        if not registration.writable:
            error_msg = f"{characteristic} is read-only"
            raise CoolMasterReadOnlyError(error_msg)
        await registration.setter(value)

    def _notify(
        self, characteristic: Characteristic, value: Any  # noqa: ANN401
    ) -> None:
        if self._notifier is None:
            _LOGGER.debug("%s: no listener for %s update", self.name, characteristic)
            return
        self._notifier(characteristic, value)

    async def async_get_active(self) -> int:
        """Return 1 if the unit is on, 0 otherwise."""
        _LOGGER.debug("%s Triggered GET Active", self.name)
        active = await self._client.async_get_power(self.device.unique_id)
        _LOGGER.debug("%s Active is %s", self.name, active)
        return active

    async def async_set_active(self, value: Any) -> None:  # noqa: ANN401
        """Switch the unit on for truthy values, off otherwise."""
        _LOGGER.debug("%s Triggered SET Active: %s", self.name, value)
        await self._client.async_set_power(self.device.unique_id, bool(value))

    async def async_get_current_state(self) -> Any:  # noqa: ANN401
        """Return whether the unit is inactive, heating or cooling."""
        _LOGGER.debug("%s Triggered GET CurrentHeaterCoolerState", self.name)
        status = await self._client.async_get_unit_status(self.device.unique_id)
        _LOGGER.debug("%s LS2 State: %s", self.name, status)

        if _status_field(status, "onoff") == STATUS_POWER_OFF:
            _LOGGER.debug("%s CurrentHeaterCoolerState is INACTIVE", self.name)
            return self.values.current_inactive

        mode = _status_field(status, "mode")
        if mode == STATUS_MODE_HEAT:
            _LOGGER.debug("%s CurrentHeaterCoolerState is HEATING", self.name)
            return self.values.current_heating

        if mode not in STATUS_COOLING_MODES:
            # Fan, Auto and unknown firmware modes are reported as cooling
            _LOGGER.warning(
                "%s: unrecognized controller mode %r, reporting COOLING",
                self.name,
                mode,
            )
        _LOGGER.debug("%s CurrentHeaterCoolerState is COOLING", self.name)
        return self.values.current_cooling

    async def async_get_target_state(self) -> Any:  # noqa: ANN401
        """Return the target state (COOL or HEAT) from the unit mode code."""
        _LOGGER.debug("%s Triggered GET TargetHeaterCoolerState", self.name)
        code = await self._client.async_get_mode_code(self.device.unique_id)

        if code in COOL_MODE_CODES:
            _LOGGER.debug("%s TargetHeaterCoolerState is COOL", self.name)
            return self.values.target_cool

        if code == MODE_CODE_HEAT:
            _LOGGER.debug("%s TargetHeaterCoolerState is HEAT", self.name)
            return self.values.target_heat

        _LOGGER.warning(
            "%s: unrecognized controller mode code %s, reporting COOL",
            self.name,
            code,
        )
        return self.values.target_cool

    async def async_set_target_state(self, value: Any) -> None:  # noqa: ANN401
        """Switch the unit to cooling or heating.

        The controller keeps its setpoint across mode changes, so the current
        setpoint is read back and pushed to the threshold characteristic of
        the new mode.

        Raises:
            ValueError: If ``value`` is not one of the registered valid values.

        """
        _LOGGER.debug("%s Triggered SET TargetHeaterCoolerState: %s", self.name, value)
        unique_id = self.device.unique_id

        if value == self.values.target_cool:
            await self._client.async_set_cool(unique_id)
            setpoint = await self._client.async_get_setpoint(unique_id)
            _LOGGER.debug(
                "%s CoolingThresholdTemperature is %s",
                self.name,
                setpoint.cooling_threshold,
            )
            self._notify(
                Characteristic.COOLING_THRESHOLD_TEMPERATURE,
                setpoint.cooling_threshold,
            )
        elif value == self.values.target_heat:
            await self._client.async_set_heat(unique_id)
            setpoint = await self._client.async_get_setpoint(unique_id)
            _LOGGER.debug(
                "%s HeatingThresholdTemperature is %s",
                self.name,
                setpoint.heating_threshold,
            )
            self._notify(
                Characteristic.HEATING_THRESHOLD_TEMPERATURE,
                setpoint.heating_threshold,
            )
        else:
            error_msg = f"Unsupported target heater-cooler state: {value!r}"
            raise ValueError(error_msg)

    async def async_get_current_temperature(self) -> float:
        """Return the room temperature from the unit status line."""
        _LOGGER.debug("%s Triggered GET CurrentTemperature", self.name)
        status = await self._client.async_get_status_line(self.device.unique_id)
        _LOGGER.debug(
            "%s CurrentTemperature is %s", self.name, status.current_temperature
        )
        return status.current_temperature

    async def async_get_setpoint(self) -> Setpoint:
        """Return the setpoint shared by both threshold characteristics."""
        _LOGGER.debug("%s Triggered GET ThresholdTemperature", self.name)
        setpoint = await self._client.async_get_setpoint(self.device.unique_id)
        _LOGGER.debug("%s ThresholdTemperature is %s", self.name, setpoint.value)
        return setpoint

    async def async_get_cooling_threshold(self) -> float:
        """Return the setpoint as the cooling threshold."""
        return (await self.async_get_setpoint()).cooling_threshold

    async def async_get_heating_threshold(self) -> float:
        """Return the setpoint as the heating threshold."""
        return (await self.async_get_setpoint()).heating_threshold

    async def async_set_threshold_temperature(self, value: float) -> None:
        """Change the setpoint shared by both threshold characteristics."""
        _LOGGER.debug("%s Triggered SET ThresholdTemperature: %s", self.name, value)
        await self._client.async_set_setpoint(self.device.unique_id, value)
