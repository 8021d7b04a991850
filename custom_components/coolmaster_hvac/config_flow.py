"""
Configuration flow for CoolMaster HVAC integration.

This module handles the setup of one CoolMaster-controlled AC unit through
Home Assistant's config flow system.
"""

import logging
from typing import Any

import httpx
import voluptuous as vol
from homeassistant.config_entries import ConfigFlow, ConfigFlowResult
from homeassistant.const import CONF_IP_ADDRESS, CONF_NAME, CONF_UNIQUE_ID
from homeassistant.helpers.httpx_client import get_async_client

from . import api
from .const import (
    CONF_BACKOFF_FACTOR,
    CONF_MAX_ATTEMPTS,
    CONF_MAX_BACKOFF,
    CONF_SERIAL,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_BACKOFF,
    DOMAIN,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_RESPONSE,
    ERROR_UNKNOWN,
)
from .models import CoolMasterConnection, RetryPolicy

_LOGGER = logging.getLogger(__name__)

# The probe must fail fast instead of retrying forever
PROBE_RETRY_POLICY = RetryPolicy(max_attempts=1, jitter=0.0)

STEP_USER_DATA_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_IP_ADDRESS): str,
        vol.Required(CONF_SERIAL): str,
        vol.Required(CONF_UNIQUE_ID): str,
        vol.Optional(CONF_NAME): str,
        vol.Optional(CONF_MAX_ATTEMPTS, default=DEFAULT_MAX_ATTEMPTS): vol.All(
            vol.Coerce(int), vol.Range(min=0)
        ),
        vol.Optional(CONF_BACKOFF_FACTOR, default=DEFAULT_BACKOFF_FACTOR): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
        vol.Optional(CONF_MAX_BACKOFF, default=DEFAULT_MAX_BACKOFF): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)
        ),
    }
)


class CoolMasterHvacConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle configuration flow for CoolMaster HVAC integration."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """
        Handle the initial step of the config flow.

        Args:
            user_input: Controller address, unit id and retry settings.

        Returns:
            ConfigFlowResult indicating the next step or errors.

        """
        errors: dict[str, str] = {}

        if user_input is not None:
            connection = CoolMasterConnection(
                ip=user_input[CONF_IP_ADDRESS],
                serial=user_input[CONF_SERIAL],
            )
            unique_id = user_input[CONF_UNIQUE_ID]

            try:
                client = api.CoolMasterClient(
                    get_async_client(self.hass), connection, PROBE_RETRY_POLICY
                )
                await client.async_get_power(unique_id)
                _LOGGER.info(
                    "Reached unit %s on CoolMaster %s", unique_id, connection.serial
                )

            except api.CoolMasterRetryExhaustedError:
                _LOGGER.warning(
                    "Controller %s unreachable (%s)",
                    connection.base_url,
                    ERROR_CANNOT_CONNECT,
                )
                errors["base"] = ERROR_CANNOT_CONNECT
            except api.CoolMasterResponseError:
                _LOGGER.exception("Unexpected response (%s)", ERROR_INVALID_RESPONSE)
                errors["base"] = ERROR_INVALID_RESPONSE
            except Exception:
                _LOGGER.exception(
                    "Unexpected error while probing the controller (%s)",
                    ERROR_UNKNOWN,
                )
                errors["base"] = ERROR_UNKNOWN

            else:
                await self.async_set_unique_id(f"{connection.serial}_{unique_id}")
                self._abort_if_unique_id_configured()

                name = user_input.get(CONF_NAME) or unique_id
                return self.async_create_entry(
                    title=f"CoolMaster {name}",
                    data={**user_input, CONF_NAME: name},
                )

        return self.async_show_form(
            step_id="user",
            data_schema=STEP_USER_DATA_SCHEMA,
            errors=errors,
        )
