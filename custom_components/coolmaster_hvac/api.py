"""API client for CoolMaster HVAC controllers.

This module provides functions to talk to the local CoolMaster REST API,
including URL building, the retrying fetcher, response envelope parsing,
status line decoding and the raw command client.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx
from homeassistant.core import HomeAssistant
from homeassistant.helpers.httpx_client import create_async_httpx_client
from httpx_retries import Retry, RetryTransport

from .const import (
    COMMAND_COOL,
    COMMAND_HEAT,
    COMMAND_OFF,
    COMMAND_ON,
    COMMAND_QUERY,
    COMMAND_STATUS,
    COMMAND_TEMP,
    DEFAULT_TIMEOUT,
    QUERY_MODE,
    QUERY_POWER,
    QUERY_SETPOINT,
    RETRIES_PER_ROUND,
    RETRY_STATUS_CODES,
)
from .models import CoolMasterConnection, RetryPolicy, Setpoint, StatusLine

_LOGGER = logging.getLogger(__name__)

# Positional schema of the v1 ls2 status line, e.g.
# "L1.100 ON  20.0C 24.5C Low  Cool OK   - 0"
STATUS_UNIT_ID = slice(0, 6)
STATUS_POWER = slice(7, 10)
STATUS_SETPOINT = slice(11, 15)
STATUS_TEMPERATURE = slice(17, 21)
STATUS_MIN_LENGTH = STATUS_TEMPERATURE.stop


class CoolMasterApiError(Exception):
    """Base exception for CoolMaster API errors."""


class CoolMasterResponseError(CoolMasterApiError):
    """Exception raised when a response envelope is malformed."""


class CoolMasterStatusFormatError(CoolMasterResponseError):
    """Exception raised when a status line does not match the expected layout."""


class CoolMasterRetryExhaustedError(CoolMasterApiError):
    """Exception raised when a bounded retry policy gives up."""


class CoolMasterReadOnlyError(CoolMasterApiError):
    """Exception raised when writing a read-only characteristic."""


def build_raw_url(connection: CoolMasterConnection, command: str) -> str:
    """Build the v1 raw command URL.

    The command is passed verbatim: the controller expects the ``&``
    separated arguments unencoded inside the ``command`` parameter.

    Args:
        connection: Controller address.
        command: Raw command string, e.g. "query&L1.100&o".

    Returns:
        Absolute URL of the raw command endpoint.

    """
    device_url = f"{connection.base_url}/v1.0/device/{connection.serial}"
    return f"{device_url}/raw?command={command}"


def build_status_url(connection: CoolMasterConnection, unique_id: str) -> str:
    """Build the v2 structured ls2 status URL for one unit."""
    return f"{connection.base_url}/v2.0/device/{connection.serial}/ls2&{unique_id}"


def format_temperature(value: float) -> str:
    """Format a temperature for the ``temp`` command.

    Integral values are sent without a decimal part.
    """
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return str(number)


def extract_first(data: Any) -> Any:  # noqa: ANN401
    """Return the first element of the ``data`` list of a response envelope.

    Args:
        data: Parsed JSON response.

    Returns:
        The first entry of ``data``.

    Raises:
        CoolMasterResponseError: If the envelope has no usable ``data`` list.

    """
    if not isinstance(data, dict):
        error_msg = f"Unexpected response envelope: {data!r}"
        raise CoolMasterResponseError(error_msg)

    values = data.get("data")
    if not isinstance(values, list) or not values:
        error_msg = f"Response has no data entries: {data!r}"
        raise CoolMasterResponseError(error_msg)

    return values[0]


def decode_json(response: httpx.Response) -> Any:  # noqa: ANN401
    """Parse a response body as JSON.

    Raises:
        CoolMasterResponseError: If the body is not valid JSON.

    """
    try:
        return response.json()
    except ValueError as err:
        error_msg = f"Response is not valid JSON: {response.text!r}"
        raise CoolMasterResponseError(error_msg) from err


def parse_number(value: Any) -> float:  # noqa: ANN401
    """Convert a numeric string from the controller into a float.

    Raises:
        CoolMasterResponseError: If the value is not a finite number.

    """
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        error_msg = f"Expected a numeric value, got {value!r}"
        raise CoolMasterResponseError(error_msg) from err

    if not math.isfinite(number):
        error_msg = f"Expected a finite numeric value, got {value!r}"
        raise CoolMasterResponseError(error_msg)
    return number


def parse_status_line(line: Any) -> StatusLine:  # noqa: ANN401
    """Decode a v1 ls2 status line.

    Field layout (0-based offsets):
        0-5:   Unit id
        7-9:   Power ("ON"/"OFF")
        11-14: Setpoint
        17-20: Room temperature

    Only the length and the room temperature are validated; the other fields
    are returned as stripped text.

    Args:
        line: Status line as returned in ``data[0]``.

    Returns:
        StatusLine with the decoded fields.

    Raises:
        CoolMasterStatusFormatError: If the line is too short or the room
            temperature is not numeric.

    """
    if not isinstance(line, str):
        error_msg = f"Unexpected status format: expected text, got {line!r}"
        raise CoolMasterStatusFormatError(error_msg)

    if len(line) < STATUS_MIN_LENGTH:
        error_msg = (
            f"Unexpected status format: {len(line)} characters "
            f"(minimum {STATUS_MIN_LENGTH} required): {line!r}"
        )
        raise CoolMasterStatusFormatError(error_msg)

    temperature_text = line[STATUS_TEMPERATURE]
    try:
        temperature = float(temperature_text)
    except ValueError as err:
        error_msg = (
            f"Unexpected status format: temperature field {temperature_text!r} "
            f"is not numeric in {line!r}"
        )
        raise CoolMasterStatusFormatError(error_msg) from err

    return StatusLine(
        raw=line,
        unit_id=line[STATUS_UNIT_ID].strip(),
        power=line[STATUS_POWER].strip(),
        setpoint=line[STATUS_SETPOINT].strip(),
        current_temperature=temperature,
    )


def build_retry(policy: RetryPolicy) -> Retry:
    """Translate a retry policy into the transport's retry configuration.

    Transport errors and every non-2xx status are retried. An unbounded
    policy gets a budget of ``RETRIES_PER_ROUND`` retries, renewed by
    ``async_fetch_with_retry`` each time it runs out.

    Args:
        policy: Retry policy of the client.

    Returns:
        Retry configuration for ``RetryTransport``.

    """
    if policy.unbounded:
        total = RETRIES_PER_ROUND
    else:
        total = policy.max_attempts - 1
    return Retry(
        total=total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff,
        backoff_jitter=policy.jitter,
        status_forcelist=RETRY_STATUS_CODES,
        retry_on_exceptions=(httpx.RequestError,),
        respect_retry_after_header=False,
    )


def create_session_client(
    hass: HomeAssistant, policy: RetryPolicy | None = None
) -> httpx.AsyncClient:
    """Create HTTP client with retry logic for the controller.

    Args:
        hass: Home Assistant instance.
        policy: Retry policy, defaults to an unbounded ``RetryPolicy()``.

    Returns:
        Configured httpx AsyncClient with retry transport.

    """
    base_client = create_async_httpx_client(hass, timeout=DEFAULT_TIMEOUT)
    base_client._transport = RetryTransport(  # noqa: SLF001
        transport=base_client._transport,  # noqa: SLF001
        retry=build_retry(policy or RetryPolicy()),
    )
    return base_client


async def async_fetch_with_retry(
    session: httpx.AsyncClient,
    url: str,
    policy: RetryPolicy | None = None,
) -> httpx.Response:
    """GET ``url`` until the controller answers with a 2xx status.

    Backoff between attempts is done by the session's ``RetryTransport``
    (see ``create_session_client``). When the transport gives up, a bounded
    policy raises; an unbounded one starts a new retry round, so the call
    only ends on success or when the calling task is cancelled, e.g. by
    ``asyncio.timeout``.

    Args:
        session: HTTP client session built with ``create_session_client``.
        url: Absolute URL to fetch.
        policy: Retry policy the session was built with.

    Returns:
        The first successful response.

    Raises:
        CoolMasterRetryExhaustedError: If a bounded policy runs out of attempts.

    """
    policy = policy or RetryPolicy()
    rounds = 0

    while True:
        rounds += 1
        try:
            response = await session.get(url)
        except httpx.RequestError as err:
            failure = f"{type(err).__name__}: {err}"
        else:
            if response.is_success:
                return response
            failure = f"HTTP {response.status_code}"

        if not policy.unbounded:
            error_msg = (
                f"Giving up on {url} after {policy.max_attempts} attempts ({failure})"
            )
            raise CoolMasterRetryExhaustedError(error_msg)

        _LOGGER.warning(
            "Controller still failing at %s (%s), starting retry round %d",
            url,
            failure,
            rounds + 1,
        )


class CoolMasterClient:
    """Raw command client for one CoolMaster controller."""

    def __init__(
        self,
        session: httpx.AsyncClient,
        connection: CoolMasterConnection,
        retry_policy: RetryPolicy | None = None,
        status_session: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            session: HTTP client session with retry transport.
            connection: Controller address.
            retry_policy: Policy the retry transport of ``session`` uses.
            status_session: Client without retry transport for the v2
                status, defaults to ``session``.

        """
        self._session = session
        self._status_session = status_session or session
        self.connection = connection
        self.retry_policy = retry_policy or RetryPolicy()

    async def async_command(self, command: str) -> httpx.Response:
        """Send a raw v1 command through the retrying fetcher."""
        url = build_raw_url(self.connection, command)
        _LOGGER.debug("Sending raw command %s", command)
        return await async_fetch_with_retry(self._session, url, self.retry_policy)

    async def async_query(self, command: str) -> Any:  # noqa: ANN401
        """Send a raw v1 command and return ``data[0]`` of its response."""
        response = await self.async_command(command)
        return extract_first(decode_json(response))

    async def async_get_power(self, unique_id: str) -> int:
        """Return 1 if the unit is on, 0 if it is off."""
        value = await self.async_query(f"{COMMAND_QUERY}&{unique_id}&{QUERY_POWER}")
        return int(parse_number(value))

    async def async_set_power(self, unique_id: str, on: bool) -> None:  # noqa: FBT001
        """Switch the unit on or off."""
        verb = COMMAND_ON if on else COMMAND_OFF
        await self.async_command(f"{verb}&{unique_id}")

    async def async_get_mode_code(self, unique_id: str) -> int:
        """Return the raw mode code of the unit."""
        value = await self.async_query(f"{COMMAND_QUERY}&{unique_id}&{QUERY_MODE}")
        return int(parse_number(value))

    async def async_set_cool(self, unique_id: str) -> None:
        """Put the unit in cooling mode."""
        await self.async_command(f"{COMMAND_COOL}&{unique_id}")

    async def async_set_heat(self, unique_id: str) -> None:
        """Put the unit in heating mode."""
        await self.async_command(f"{COMMAND_HEAT}&{unique_id}")

    async def async_get_setpoint(self, unique_id: str) -> Setpoint:
        """Return the unit setpoint."""
        value = await self.async_query(
            f"{COMMAND_QUERY}&{unique_id}&{QUERY_SETPOINT}"
        )
        return Setpoint(parse_number(value))

    async def async_set_setpoint(self, unique_id: str, value: float) -> None:
        """Change the unit setpoint."""
        await self.async_command(
            f"{COMMAND_TEMP}&{unique_id}&{format_temperature(value)}"
        )

    async def async_get_status_line(self, unique_id: str) -> StatusLine:
        """Return the decoded v1 ls2 status line of the unit."""
        value = await self.async_query(f"{COMMAND_STATUS}&{unique_id}")
        return parse_status_line(value)

    async def async_get_unit_status(self, unique_id: str) -> dict[str, Any]:
        """Return the structured v2 ls2 status of the unit.

        This request is sent once through the status session, bypassing the
        retry transport and the retrying fetcher. It is not known whether the
        controller needs this to avoid retry storms on the heavier v2
        endpoint, so the single-shot behaviour is kept.
        """
        url = build_status_url(self.connection, unique_id)
        _LOGGER.debug("Fetching v2 status for %s", unique_id)
        response = await self._status_session.get(url)
        status = extract_first(decode_json(response))
        if not isinstance(status, dict):
            error_msg = f"Unexpected v2 status entry: {status!r}"
            raise CoolMasterResponseError(error_msg)
        return status
