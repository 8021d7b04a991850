"""Data models for CoolMaster HVAC integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .const import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_JITTER,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_PORT,
    CurrentHeaterCoolerState,
    TargetHeaterCoolerState,
)


@dataclass(frozen=True)
class CoolMasterDevice:
    """Represents one AC unit managed by a CoolMaster controller.

    Attributes:
        display_name: Human-readable unit name.
        unique_id: Controller-assigned unit token (e.g. "L1.100").

    """

    display_name: str
    unique_id: str


@dataclass(frozen=True)
class CoolMasterConnection:
    """Address of a CoolMaster controller on the local network."""

    ip: str
    serial: str
    port: int = DEFAULT_PORT

    @property
    def base_url(self) -> str:
        """Return the controller base URL."""
        return f"http://{self.ip}:{self.port}"


@dataclass(frozen=True, slots=True)
class Setpoint:
    """The single target temperature stored by the controller.

    The controller keeps one setpoint per unit, so the cooling and heating
    thresholds of the accessory are two views of the same value.
    """

    value: float

    @property
    def cooling_threshold(self) -> float:
        """Return the setpoint as the cooling threshold."""
        return self.value

    @property
    def heating_threshold(self) -> float:
        """Return the setpoint as the heating threshold."""
        return self.value


@dataclass(frozen=True, slots=True)
class StatusLine:
    """A v1 ``ls2`` status line split into its positional fields."""

    raw: str
    unit_id: str
    power: str
    setpoint: str
    current_temperature: float


@dataclass(frozen=True)
class RetryPolicy:
    """Retry behaviour for controller requests.

    Attributes:
        max_attempts: Total number of requests before giving up, or None to
            retry forever.
        backoff_factor: Base delay in seconds, doubled on each retry.
        max_backoff: Upper bound of the delay in seconds.
        jitter: Fraction of the delay randomly added or removed (0 to 1).

    """

    max_attempts: int | None = None
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
    max_backoff: float = DEFAULT_MAX_BACKOFF
    jitter: float = DEFAULT_JITTER

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            error_msg = "max_attempts must be at least 1 or None"
            raise ValueError(error_msg)
        if self.max_backoff <= 0:
            error_msg = "max_backoff must be positive"
            raise ValueError(error_msg)
        if not 0 <= self.jitter <= 1:
            error_msg = "jitter must be between 0 and 1"
            raise ValueError(error_msg)

    @property
    def unbounded(self) -> bool:
        """Return True if requests are retried forever."""
        return self.max_attempts is None


@dataclass(frozen=True)
class CharacteristicValues:
    """Enum values the host platform uses for the heater-cooler characteristics.

    Defaults follow the HomeKit numbering. A platform with its own vocabulary
    injects its values so the handlers never depend on platform constants.
    """

    current_inactive: Any = CurrentHeaterCoolerState.INACTIVE
    current_heating: Any = CurrentHeaterCoolerState.HEATING
    current_cooling: Any = CurrentHeaterCoolerState.COOLING
    target_heat: Any = TargetHeaterCoolerState.HEAT
    target_cool: Any = TargetHeaterCoolerState.COOL


@dataclass(slots=True)
class CharacteristicProps:
    """Platform-level constraints registered for a characteristic."""

    valid_values: list[Any] | None = None
    min_value: float | None = None
    max_value: float | None = None


@dataclass(slots=True)
class CharacteristicRegistration:
    """Handlers and props registered for one characteristic."""

    getter: Any
    setter: Any = None
    props: CharacteristicProps = field(default_factory=CharacteristicProps)

    @property
    def writable(self) -> bool:
        """Return True if the characteristic accepts writes."""
        return self.setter is not None
