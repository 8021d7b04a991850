from __future__ import annotations

import logging

from homeassistant.config_entries import ConfigEntry
from homeassistant.const import CONF_IP_ADDRESS, CONF_NAME, CONF_UNIQUE_ID, Platform
from homeassistant.core import HomeAssistant
from homeassistant.helpers.httpx_client import get_async_client

from .api import CoolMasterClient, create_session_client
from .const import (
    CONF_BACKOFF_FACTOR,
    CONF_MAX_ATTEMPTS,
    CONF_MAX_BACKOFF,
    CONF_SERIAL,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_BACKOFF,
    DOMAIN,
)
from .models import CoolMasterConnection, CoolMasterDevice, RetryPolicy

_LOGGER = logging.getLogger(__name__)

PLATFORMS = [Platform.CLIMATE]


def retry_policy_from_config(data: dict) -> RetryPolicy:
    """Build the retry policy stored in a config entry.

    A ``max_attempts`` of 0 means the controller is retried forever.
    """
    max_attempts = int(data.get(CONF_MAX_ATTEMPTS, DEFAULT_MAX_ATTEMPTS))
    return RetryPolicy(
        max_attempts=max_attempts or None,
        backoff_factor=float(data.get(CONF_BACKOFF_FACTOR, DEFAULT_BACKOFF_FACTOR)),
        max_backoff=float(data.get(CONF_MAX_BACKOFF, DEFAULT_MAX_BACKOFF)),
    )


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Setting up CoolMaster HVAC integration for entry %s", entry.entry_id)

    missing = [
        key
        for key in (CONF_IP_ADDRESS, CONF_SERIAL, CONF_UNIQUE_ID)
        if key not in entry.data
    ]
    if missing:
        _LOGGER.error(
            "Missing %s in configuration for entry %s",
            ", ".join(missing),
            entry.entry_id,
        )
        return False

    try:
        policy = retry_policy_from_config(entry.data)
    except ValueError as err:
        _LOGGER.error(
            "Invalid retry settings for entry %s: %s", entry.entry_id, err
        )
        return False

    connection = CoolMasterConnection(
        ip=entry.data[CONF_IP_ADDRESS],
        serial=entry.data[CONF_SERIAL],
    )
    device = CoolMasterDevice(
        display_name=entry.data.get(CONF_NAME) or entry.data[CONF_UNIQUE_ID],
        unique_id=entry.data[CONF_UNIQUE_ID],
    )
    session = create_session_client(hass, policy)
    client = CoolMasterClient(
        session, connection, policy, status_session=get_async_client(hass)
    )

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = {
        "session": session,
        "client": client,
        "connection": connection,
        "device": device,
    }
    _LOGGER.debug(
        "Stored data for entry %s: unit %s on controller %s (%s)",
        entry.entry_id,
        device.unique_id,
        connection.serial,
        policy,
    )

    try:
        await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
        _LOGGER.info(
            "Successfully setup CoolMaster HVAC integration for entry %s",
            entry.entry_id,
        )
        return True
    except Exception as err:
        _LOGGER.error("Failed to setup platforms for entry %s: %s", entry.entry_id, err)
        hass.data[DOMAIN].pop(entry.entry_id, None)
        return False


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    _LOGGER.info("Unloading CoolMaster HVAC integration for entry %s", entry.entry_id)

    try:
        unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
        if unload_ok:
            if DOMAIN in hass.data and entry.entry_id in hass.data[DOMAIN]:
                hass.data[DOMAIN].pop(entry.entry_id)
                _LOGGER.debug("Cleaned up data for entry %s", entry.entry_id)
            _LOGGER.info(
                "Successfully unloaded CoolMaster HVAC integration for entry %s",
                entry.entry_id,
            )
        else:
            _LOGGER.warning(
                "Failed to unload some platforms for entry %s", entry.entry_id
            )

        return unload_ok
    except Exception as err:
        _LOGGER.error(
            "Error unloading CoolMaster HVAC integration for entry %s: %s",
            entry.entry_id,
            err,
        )
        return False
