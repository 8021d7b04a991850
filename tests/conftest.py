"""Pytest configuration and fixtures for CoolMaster HVAC tests."""

from typing import Any
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from httpx_retries import RetryTransport

from custom_components.coolmaster_hvac.api import CoolMasterClient, build_retry
from custom_components.coolmaster_hvac.models import (
    CoolMasterConnection,
    CoolMasterDevice,
    RetryPolicy,
    Setpoint,
    StatusLine,
)

CONTROLLER_IP = "192.168.1.50"
CONTROLLER_SERIAL = "283B96002117"
UNIT_ID = "L1.100"
UNIT_NAME = "Living Room AC"
BASE_URL = f"http://{CONTROLLER_IP}:10103"
RAW_URL = f"{BASE_URL}/v1.0/device/{CONTROLLER_SERIAL}/raw?command="
STATUS_V2_URL = f"{BASE_URL}/v2.0/device/{CONTROLLER_SERIAL}/ls2&{UNIT_ID}"


def envelope(*values: Any) -> dict[str, Any]:
    """Build a controller response envelope.

    Args:
        *values: Entries of the ``data`` list.

    Returns:
        A dictionary shaped like a controller response.

    """
    return {"rc": "OK", "data": list(values)}


def retry_client(policy: RetryPolicy) -> httpx.AsyncClient:
    """Create a client retrying through the transport the integration mounts.

    Args:
        policy: Retry policy of the transport.

    Returns:
        httpx AsyncClient with retry transport.

    """
    return httpx.AsyncClient(
        transport=RetryTransport(
            transport=httpx.AsyncHTTPTransport(), retry=build_retry(policy)
        )
    )


@pytest.fixture
def connection() -> CoolMasterConnection:
    """Fixture providing the controller address."""
    return CoolMasterConnection(ip=CONTROLLER_IP, serial=CONTROLLER_SERIAL)


@pytest.fixture
def device() -> CoolMasterDevice:
    """Fixture providing the unit descriptor."""
    return CoolMasterDevice(display_name=UNIT_NAME, unique_id=UNIT_ID)


@pytest.fixture
def fast_policy() -> RetryPolicy:
    """Fixture providing a retry policy without delays."""
    return RetryPolicy(backoff_factor=0.0, jitter=0.0)


@pytest.fixture
def mock_client() -> Mock:
    """Create a mock CoolMaster client answering for a unit in cooling mode."""
    client = Mock(spec=CoolMasterClient)
    client.async_get_power = AsyncMock(return_value=1)
    client.async_set_power = AsyncMock()
    client.async_get_mode_code = AsyncMock(return_value=0)
    client.async_set_cool = AsyncMock()
    client.async_set_heat = AsyncMock()
    client.async_get_setpoint = AsyncMock(return_value=Setpoint(22.0))
    client.async_set_setpoint = AsyncMock()
    client.async_get_status_line = AsyncMock(
        return_value=StatusLine(
            raw="L1.100 ON  22.0C 24.5C Low  Cool OK   - 0",
            unit_id="L1.100",
            power="ON",
            setpoint="22.0",
            current_temperature=24.5,
        )
    )
    client.async_get_unit_status = AsyncMock(
        return_value={"onoff": "ON", "mode": "Cool"}
    )
    return client
