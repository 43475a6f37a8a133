"""
HVAC activation state machine.

The decision is a pure function of the operating mode, the current readings,
the two setpoints and the previous actuation state. Inside the hysteresis band
the previous state is held, so the unit does not toggle on every tick.
"""
from thermostat_state import HvacState, Mode

HYSTERESIS_C = 0.4
DRYING_ON_MARGIN = 3
DRYING_OFF_MARGIN = 2


def _hold(active: HvacState, previous: HvacState) -> HvacState:
    return active if previous == active else HvacState.IDLE


def next_hvac_state(mode: Mode, current_temp: float, current_humidity: float,
                    setpoint: float, humidity_setpoint: float,
                    previous: HvacState) -> HvacState:
    """Return the actuation state for the coming tick."""
    if mode == Mode.OFF:
        return HvacState.IDLE

    if mode == Mode.HEATING:
        if current_temp <= setpoint - HYSTERESIS_C:
            return HvacState.HEATING
        if current_temp >= setpoint + HYSTERESIS_C:
            return HvacState.IDLE
        return _hold(HvacState.HEATING, previous)

    if mode == Mode.COOLING:
        if current_temp >= setpoint + HYSTERESIS_C:
            return HvacState.COOLING
        if current_temp <= setpoint - HYSTERESIS_C:
            return HvacState.IDLE
        return _hold(HvacState.COOLING, previous)

    if mode == Mode.DEHUMIDIFY:
        if current_humidity >= humidity_setpoint + DRYING_ON_MARGIN:
            return HvacState.DRYING
        if current_humidity <= humidity_setpoint - DRYING_OFF_MARGIN:
            return HvacState.IDLE
        return _hold(HvacState.DRYING, previous)

    return HvacState.IDLE
