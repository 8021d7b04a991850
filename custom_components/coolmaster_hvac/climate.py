"""Climate entities for CoolMaster HVAC units.

This module exposes a CoolMaster-controlled AC unit as a Home Assistant
climate entity. All reads and writes go through the heater-cooler accessory,
with Home Assistant's HVAC modes and actions injected as its characteristic
values.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from homeassistant.components.climate import (
    ClimateEntity,
    ClimateEntityFeature,
    HVACAction,
    HVACMode,
)
from homeassistant.components.climate.const import ATTR_HVAC_MODE
from homeassistant.const import ATTR_TEMPERATURE, UnitOfTemperature
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.device_registry import DeviceInfo

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .accessory import CoolMasterAccessory
from .api import CoolMasterApiError
from .const import DOMAIN, MANUFACTURER, MODEL, Active, Characteristic
from .models import CharacteristicValues, CoolMasterConnection

_LOGGER = logging.getLogger(__name__)

CLIMATE_VALUES = CharacteristicValues(
    current_inactive=HVACAction.OFF,
    current_heating=HVACAction.HEATING,
    current_cooling=HVACAction.COOLING,
    target_heat=HVACMode.HEAT,
    target_cool=HVACMode.COOL,
)

THRESHOLD_CHARACTERISTICS = {
    HVACMode.COOL: Characteristic.COOLING_THRESHOLD_TEMPERATURE,
    HVACMode.HEAT: Characteristic.HEATING_THRESHOLD_TEMPERATURE,
}


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the climate entity for a CoolMaster unit."""
    entry_data = hass.data[DOMAIN][entry.entry_id]
    accessory = CoolMasterAccessory(
        entry_data["client"],
        entry_data["device"],
        values=CLIMATE_VALUES,
    )
    async_add_entities(
        [CoolMasterClimateEntity(accessory, entry_data["connection"])],
        update_before_add=True,
    )


class CoolMasterClimateEntity(ClimateEntity):
    """Climate entity for one AC unit behind a CoolMaster controller.

    The controller has a single setpoint, so the entity exposes one target
    temperature whose lower bound follows the threshold registered for the
    current target mode.
    """

    _attr_temperature_unit = UnitOfTemperature.CELSIUS
    _attr_target_temperature_step = 0.5
    _attr_has_entity_name = True
    _attr_name = None
    _attr_should_poll = True
    _attr_hvac_modes = [HVACMode.OFF, HVACMode.COOL, HVACMode.HEAT]
    _attr_supported_features = (
        ClimateEntityFeature.TARGET_TEMPERATURE
        | ClimateEntityFeature.TURN_OFF
        | ClimateEntityFeature.TURN_ON
    )

    def __init__(
        self,
        accessory: CoolMasterAccessory,
        connection: CoolMasterConnection,
    ) -> None:
        """Initialize the CoolMaster climate entity.

        Args:
            accessory: Heater-cooler accessory of the unit.
            connection: Controller the unit is attached to.

        """
        self._accessory = accessory
        device = accessory.device
        self._attr_unique_id = f"{connection.serial}_{device.unique_id}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, self._attr_unique_id)},
            name=device.display_name,
            manufacturer=MANUFACTURER,
            model=MODEL,
            serial_number=connection.serial,
        )

        self._attr_hvac_mode = HVACMode.OFF
        self._attr_hvac_action = None
        self._attr_current_temperature = None
        self._attr_target_temperature = None
        # Last COOL/HEAT mode reported by the unit, kept while it is off
        self._target_mode = HVACMode.COOL

        accessory.set_notifier(self._handle_characteristic_update)

    @property
    def min_temp(self) -> float:
        """Return the minimum setpoint registered for the current mode."""
        props = self._accessory.props(THRESHOLD_CHARACTERISTICS[self._target_mode])
        if props.min_value is None:
            return super().min_temp
        return float(props.min_value)

    def _handle_characteristic_update(
        self, characteristic: Characteristic, value: Any  # noqa: ANN401
    ) -> None:
        """Apply an out-of-band characteristic update pushed by the accessory."""
        if characteristic not in THRESHOLD_CHARACTERISTICS.values():
            _LOGGER.debug(
                "%s: ignoring update of %s", self._accessory.name, characteristic
            )
            return

        self._attr_target_temperature = value
        self.async_write_ha_state()

    async def async_update(self) -> None:
        """Poll the unit through the accessory."""
        try:
            active = await self._accessory.async_get(Characteristic.ACTIVE)
            target_mode = await self._accessory.async_get(
                Characteristic.TARGET_HEATER_COOLER_STATE
            )
            hvac_action = await self._accessory.async_get(
                Characteristic.CURRENT_HEATER_COOLER_STATE
            )
            current_temperature = await self._accessory.async_get(
                Characteristic.CURRENT_TEMPERATURE
            )
            target_temperature = await self._accessory.async_get(
                THRESHOLD_CHARACTERISTICS[target_mode]
            )
        except (CoolMasterApiError, httpx.RequestError) as err:
            if self._attr_available:
                _LOGGER.warning(
                    "Failed to update %s: %s", self._accessory.name, err
                )
            self._attr_available = False
            return

        self._attr_available = True
        self._target_mode = target_mode
        self._attr_hvac_mode = target_mode if active else HVACMode.OFF
        self._attr_hvac_action = hvac_action
        self._attr_current_temperature = current_temperature
        self._attr_target_temperature = target_temperature

        _LOGGER.debug(
            "Updated %s: hvac_mode=%s, hvac_action=%s, temp=%s, target=%s",
            self._accessory.name,
            self._attr_hvac_mode,
            hvac_action,
            current_temperature,
            target_temperature,
        )

    async def _async_set(
        self, characteristic: Characteristic, value: Any  # noqa: ANN401
    ) -> None:
        try:
            await self._accessory.async_set(characteristic, value)
        except (CoolMasterApiError, httpx.RequestError) as err:
            error_msg = (
                f"Failed to set {characteristic} on {self._accessory.name}: {err}"
            )
            raise HomeAssistantError(error_msg) from err

    async def async_set_hvac_mode(self, hvac_mode: HVACMode) -> None:
        """Set the HVAC mode.

        Args:
            hvac_mode: OFF switches the unit off; COOL and HEAT switch it on
                in that mode.

        """
        if hvac_mode == HVACMode.OFF:
            await self._async_set(Characteristic.ACTIVE, Active.INACTIVE)
            self._attr_hvac_mode = HVACMode.OFF
            self._attr_hvac_action = HVACAction.OFF
            self.async_write_ha_state()
            return

        if hvac_mode not in THRESHOLD_CHARACTERISTICS:
            error_msg = (
                f"Unsupported HVAC mode for {self._accessory.name}: {hvac_mode}"
            )
            raise HomeAssistantError(error_msg)

        if self.hvac_mode == HVACMode.OFF:
            await self._async_set(Characteristic.ACTIVE, Active.ACTIVE)
        await self._async_set(Characteristic.TARGET_HEATER_COOLER_STATE, hvac_mode)

        self._target_mode = hvac_mode
        self._attr_hvac_mode = hvac_mode
        self.async_write_ha_state()

    async def async_set_temperature(self, **kwargs: Any) -> None:  # noqa: ANN401
        """Set the target temperature.

        Args:
            **kwargs: Keyword arguments containing temperature data.

        """
        if (hvac_mode := kwargs.get(ATTR_HVAC_MODE)) is not None:
            await self.async_set_hvac_mode(hvac_mode)

        temperature = kwargs.get(ATTR_TEMPERATURE)
        if temperature is None:
            return

        await self._async_set(
            THRESHOLD_CHARACTERISTICS[self._target_mode], temperature
        )
        self._attr_target_temperature = temperature
        self.async_write_ha_state()

    async def async_turn_on(self) -> None:
        """Turn the unit on in its last known mode."""
        await self.async_set_hvac_mode(self._target_mode)

    async def async_turn_off(self) -> None:
        """Turn the unit off."""
        await self.async_set_hvac_mode(HVACMode.OFF)
