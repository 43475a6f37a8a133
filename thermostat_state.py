"""
State record and command payload for the thermostat simulator.

The simulator owns exactly one ThermostatState. It is mutated only by the
tick step and by command handling, both of which go through
ThermostatSimulator so that they run under the same lock.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

SETPOINT_RANGE = (10.0, 30.0)
HUMIDITY_SETPOINT_RANGE = (30.0, 60.0)
OUTSIDE_HUMIDITY_RANGE = (20.0, 95.0)


class Mode(str, Enum):
    """Operating modes selectable from the dashboard (wire values are its labels)."""
    HEATING = "Ogrevanje"
    COOLING = "Hlajenje"
    OFF = "Izklop"
    DEHUMIDIFY = "Razvlazevanje"


class HvacState(str, Enum):
    """Actuation state derived by the controller on every tick."""
    HEATING = "HEATING"
    COOLING = "COOLING"
    DRYING = "DRYING"
    IDLE = "IDLE"


MODE_VALUES = {mode.value for mode in Mode}


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def round_one(value: float) -> float:
    return round(value * 10) / 10


def format_number(value: float) -> str:
    """Render a stored value exactly, without a trailing .0 for whole numbers."""
    return str(int(value)) if float(value).is_integer() else str(value)


def utc_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z."""
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class ThermostatState:
    setpoint: float = 22.0
    humidity_setpoint: float = 45.0
    mode: Mode = Mode.HEATING
    hvac_state: HvacState = HvacState.IDLE
    current_temp: float = 20.2
    current_humidity: float = 48
    outside_temp: float = 5.0
    outside_humidity: float = 70.0
    duty: float = 0.0
    last_updated: datetime = field(default_factory=utc_timestamp)

    @classmethod
    def from_config(cls, values: Optional[Dict[str, Any]]) -> "ThermostatState":
        """Build the initial state from the `simulator.initial_state` config block.

        Keys use the same camelCase names as the HTTP payloads. Setpoints and
        outside humidity are clamped to their domains, unknown modes fall back
        to the default.
        """
        state = cls()
        if not values:
            return state

        setpoint = _as_number(values.get("setpoint"))
        if setpoint is not None:
            state.setpoint = clamp(setpoint, *SETPOINT_RANGE)
        humidity_setpoint = _as_number(values.get("humiditySetpoint"))
        if humidity_setpoint is not None:
            state.humidity_setpoint = clamp(humidity_setpoint, *HUMIDITY_SETPOINT_RANGE)
        if values.get("mode") in MODE_VALUES:
            state.mode = Mode(values["mode"])
        current_temp = _as_number(values.get("currentTemp"))
        if _is_finite(current_temp):
            state.current_temp = current_temp
        if _is_finite(_as_number(values.get("currentHumidity"))):
            state.current_humidity = values["currentHumidity"]
        outside_temp = _as_number(values.get("outsideTemp"))
        if _is_finite(outside_temp):
            state.outside_temp = round_one(outside_temp)
        outside_humidity = _as_number(values.get("outsideHumidity"))
        if outside_humidity is not None:
            state.outside_humidity = clamp(outside_humidity, *OUTSIDE_HUMIDITY_RANGE)
        return state

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the field names the dashboard expects."""
        return {
            "setpoint": self.setpoint,
            "humiditySetpoint": self.humidity_setpoint,
            "mode": self.mode.value,
            "hvacState": self.hvac_state.value,
            "currentTemp": self.current_temp,
            "currentHumidity": self.current_humidity,
            "outsideTemp": self.outside_temp,
            "outsideHumidity": self.outside_humidity,
            "duty": self.duty,
            "lastUpdated": format_timestamp(self.last_updated),
        }


def _as_number(value: Any) -> Optional[float]:
    """Return a JSON number as a float, or None if `value` is not one.

    Integers too large for a float become +/-inf so that clamped fields still
    clamp them. NaN is not a usable number.
    """
    # bool is an int subclass but JSON true/false is not a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        number = math.inf if value > 0 else -math.inf
    if math.isnan(number):
        return None
    return number


def _is_finite(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


class ThermostatCommand(BaseModel):
    """Partial update submitted to POST /command. A None field means "no change"."""
    setpoint: Optional[float] = None
    humidity_setpoint: Optional[float] = Field(default=None, alias="humiditySetpoint")
    mode: Optional[Mode] = None
    outside_temp: Optional[float] = Field(default=None, alias="outsideTemp")
    outside_humidity: Optional[float] = Field(default=None, alias="outsideHumidity")

    @classmethod
    def from_payload(cls, payload: Any) -> "ThermostatCommand":
        """Keep only well-typed fields from a decoded JSON body.

        Anything that is not an object yields an empty command. Numeric fields
        must be JSON numbers and mode must be one of the known literals;
        everything else is dropped silently. Infinite values are kept for the
        clamped fields; outsideTemp has no range to clamp to, so it must be
        finite.
        """
        if not isinstance(payload, dict):
            return cls()

        fields = {}
        for key in ("setpoint", "humiditySetpoint", "outsideHumidity"):
            number = _as_number(payload.get(key))
            if number is not None:
                fields[key] = number

        outside_temp = _as_number(payload.get("outsideTemp"))
        if _is_finite(outside_temp):
            fields["outsideTemp"] = outside_temp

        mode = payload.get("mode")
        if isinstance(mode, str) and mode in MODE_VALUES:
            fields["mode"] = Mode(mode)

        return cls(**fields)

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.setpoint, self.humidity_setpoint, self.mode,
                          self.outside_temp, self.outside_humidity)
        )
