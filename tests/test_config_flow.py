"""Tests for the CoolMaster HVAC Config Flow."""

from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
import voluptuous as vol
from homeassistant.const import CONF_IP_ADDRESS, CONF_NAME, CONF_UNIQUE_ID
from homeassistant.data_entry_flow import FlowResultType
from pytest_httpx import HTTPXMock

from custom_components.coolmaster_hvac import api
from custom_components.coolmaster_hvac.config_flow import (
    PROBE_RETRY_POLICY,
    STEP_USER_DATA_SCHEMA,
    CoolMasterHvacConfigFlow,
)
from custom_components.coolmaster_hvac.const import (
    CONF_BACKOFF_FACTOR,
    CONF_MAX_ATTEMPTS,
    CONF_MAX_BACKOFF,
    CONF_SERIAL,
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_BACKOFF,
    ERROR_CANNOT_CONNECT,
    ERROR_INVALID_RESPONSE,
    ERROR_UNKNOWN,
)

from .conftest import CONTROLLER_IP, CONTROLLER_SERIAL, RAW_URL, UNIT_ID, envelope

GET_CLIENT = "custom_components.coolmaster_hvac.config_flow.get_async_client"


@pytest.fixture
def mock_hass() -> Mock:
    """Create a mock Home Assistant instance."""
    return Mock()


@pytest.fixture
def flow(mock_hass: Mock) -> CoolMasterHvacConfigFlow:
    """Create a CoolMasterHvacConfigFlow instance for testing."""
    flow_instance = CoolMasterHvacConfigFlow()
    flow_instance.hass = mock_hass
    flow_instance.async_set_unique_id = AsyncMock()
    flow_instance._abort_if_unique_id_configured = Mock()
    flow_instance.async_create_entry = Mock(
        return_value={"type": FlowResultType.CREATE_ENTRY},
    )
    flow_instance.async_show_form = Mock(return_value={"type": FlowResultType.FORM})
    return flow_instance


@pytest.fixture
def user_input() -> dict[str, Any]:
    """Create the input of the user step."""
    return {
        CONF_IP_ADDRESS: CONTROLLER_IP,
        CONF_SERIAL: CONTROLLER_SERIAL,
        CONF_UNIQUE_ID: UNIT_ID,
        CONF_NAME: "Bedroom AC",
        CONF_MAX_ATTEMPTS: 5,
        CONF_BACKOFF_FACTOR: 1.0,
        CONF_MAX_BACKOFF: 10.0,
    }


class TestStepUserDataSchema:
    """Tests for the user step schema."""

    def test_schema_applies_retry_defaults(self) -> None:
        """Test that omitted retry settings get their defaults."""
        data = STEP_USER_DATA_SCHEMA(
            {
                CONF_IP_ADDRESS: CONTROLLER_IP,
                CONF_SERIAL: CONTROLLER_SERIAL,
                CONF_UNIQUE_ID: UNIT_ID,
            }
        )
        assert data[CONF_MAX_ATTEMPTS] == DEFAULT_MAX_ATTEMPTS
        assert data[CONF_BACKOFF_FACTOR] == DEFAULT_BACKOFF_FACTOR
        assert data[CONF_MAX_BACKOFF] == DEFAULT_MAX_BACKOFF

    def test_schema_rejects_negative_attempts(self) -> None:
        """Test that a negative attempt count is invalid."""
        with pytest.raises(vol.Invalid):
            STEP_USER_DATA_SCHEMA(
                {
                    CONF_IP_ADDRESS: CONTROLLER_IP,
                    CONF_SERIAL: CONTROLLER_SERIAL,
                    CONF_UNIQUE_ID: UNIT_ID,
                    CONF_MAX_ATTEMPTS: -1,
                }
            )

    def test_schema_rejects_zero_max_backoff(self) -> None:
        """Test that the backoff cap must be positive."""
        with pytest.raises(vol.Invalid):
            STEP_USER_DATA_SCHEMA(
                {
                    CONF_IP_ADDRESS: CONTROLLER_IP,
                    CONF_SERIAL: CONTROLLER_SERIAL,
                    CONF_UNIQUE_ID: UNIT_ID,
                    CONF_MAX_BACKOFF: 0,
                }
            )

    def test_schema_requires_unit_id(self) -> None:
        """Test that the unit id is required."""
        with pytest.raises(vol.Invalid):
            STEP_USER_DATA_SCHEMA(
                {CONF_IP_ADDRESS: CONTROLLER_IP, CONF_SERIAL: CONTROLLER_SERIAL}
            )


class TestCoolMasterHvacConfigFlowAsyncStepUser:
    """Tests for async_step_user method."""

    def test_probe_policy_sends_a_single_request(self) -> None:
        """Test that the probe never retries."""
        assert PROBE_RETRY_POLICY.max_attempts == 1

    @pytest.mark.asyncio
    async def test_async_step_user_shows_form_when_no_input(
        self,
        flow: CoolMasterHvacConfigFlow,
    ) -> None:
        """Test that async_step_user shows form when no input provided."""
        result = await flow.async_step_user()
        flow.async_show_form.assert_called_once()
        assert flow.async_show_form.call_args[1]["errors"] == {}
        assert result["type"] == FlowResultType.FORM

    @pytest.mark.asyncio
    async def test_async_step_user_creates_entry_when_unit_answers(
        self,
        flow: CoolMasterHvacConfigFlow,
        user_input: dict[str, Any],
        httpx_mock: HTTPXMock,
    ) -> None:
        """Test that async_step_user creates entry when the probe succeeds."""
        httpx_mock.add_response(url=f"{RAW_URL}query&{UNIT_ID}&o", json=envelope("0"))
        async with httpx.AsyncClient() as session:
            with patch(GET_CLIENT, return_value=session):
                result = await flow.async_step_user(user_input)

        flow.async_set_unique_id.assert_called_once_with(
            f"{CONTROLLER_SERIAL}_{UNIT_ID}"
        )
        flow._abort_if_unique_id_configured.assert_called_once()
        call_args = flow.async_create_entry.call_args
        assert call_args[1]["title"] == "CoolMaster Bedroom AC"
        assert call_args[1]["data"][CONF_IP_ADDRESS] == CONTROLLER_IP
        assert call_args[1]["data"][CONF_MAX_ATTEMPTS] == 5
        assert result["type"] == FlowResultType.CREATE_ENTRY

    @pytest.mark.asyncio
    async def test_async_step_user_defaults_name_to_unit_id(
        self,
        flow: CoolMasterHvacConfigFlow,
        user_input: dict[str, Any],
    ) -> None:
        """Test that the unit id is used when no name is given."""
        del user_input[CONF_NAME]
        with (
            patch(GET_CLIENT, return_value=Mock()),
            patch.object(
                api.CoolMasterClient,
                "async_get_power",
                AsyncMock(return_value=1),
            ),
        ):
            await flow.async_step_user(user_input)

        call_args = flow.async_create_entry.call_args
        assert call_args[1]["title"] == f"CoolMaster {UNIT_ID}"
        assert call_args[1]["data"][CONF_NAME] == UNIT_ID

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("error", "expected_error"),
        [
            (api.CoolMasterRetryExhaustedError("gave up"), ERROR_CANNOT_CONNECT),
            (api.CoolMasterResponseError("bad envelope"), ERROR_INVALID_RESPONSE),
            (RuntimeError("boom"), ERROR_UNKNOWN),
        ],
    )
    async def test_async_step_user_shows_error(
        self,
        flow: CoolMasterHvacConfigFlow,
        user_input: dict[str, Any],
        error: Exception,
        expected_error: str,
    ) -> None:
        """Test that probe failures are reported on the form."""
        with (
            patch(GET_CLIENT, return_value=Mock()),
            patch.object(
                api.CoolMasterClient,
                "async_get_power",
                AsyncMock(side_effect=error),
            ),
        ):
            result = await flow.async_step_user(user_input)

        flow.async_create_entry.assert_not_called()
        flow.async_show_form.assert_called_once()
        assert flow.async_show_form.call_args[1]["errors"] == {"base": expected_error}
        assert result["type"] == FlowResultType.FORM

    @pytest.mark.asyncio
    async def test_async_step_user_does_not_retry_unreachable_controller(
        self,
        flow: CoolMasterHvacConfigFlow,
        user_input: dict[str, Any],
        httpx_mock: HTTPXMock,
    ) -> None:
        """Test that an unreachable controller fails after one request."""
        httpx_mock.add_exception(
            httpx.ConnectError("refused"), url=f"{RAW_URL}query&{UNIT_ID}&o"
        )
        async with httpx.AsyncClient() as session:
            with patch(GET_CLIENT, return_value=session):
                await flow.async_step_user(user_input)

        assert len(httpx_mock.get_requests()) == 1
        assert flow.async_show_form.call_args[1]["errors"] == {
            "base": ERROR_CANNOT_CONNECT
        }
