"""
Physical model of the simulated room.

One call to `advance` is one tick: passive exchange with the outside plus the
contribution of whatever the HVAC unit is doing. Temperature is kept to two
decimals, indoor humidity to whole percent.
"""
from thermostat_state import HvacState, ThermostatState, clamp, round_one

LEAK_RATE = 0.01              # fraction of the indoor/outdoor gap closed per tick
HEAT_RATE = 0.12              # °C per tick at full duty
COOL_RATE = 0.12
DRY_RATE = 0.3                # % RH removed per tick while drying
DRYING_HEAT_FACTOR = 0.2      # drying warms the room a little
HEATING_DRY_RATE = 0.05       # heating dries the air a little
HUMIDITY_EXCHANGE_RATE = 0.01
MIN_NET_DELTA = 0.02
MIN_DUTY = 0.3
MAX_DUTY = 1.0
INDOOR_HUMIDITY_RANGE = (20, 70)


def passive_leak(state: ThermostatState) -> float:
    """Newton's-law drift of the indoor temperature toward the outside."""
    return (state.outside_temp - state.current_temp) * LEAK_RATE


def base_duty(state: ThermostatState) -> float:
    """Duty scaled by the distance of the controlled variable from its target."""
    if state.hvac_state == HvacState.DRYING:
        diff = max(0.0, state.current_humidity - state.humidity_setpoint)
    else:
        diff = abs(state.setpoint - state.current_temp)
    return clamp(diff / 2, MIN_DUTY, MAX_DUTY)


def effective_drive(state: ThermostatState, leak: float) -> float:
    """Duty actually applied this tick.

    The floor keeps the net temperature change at least MIN_NET_DELTA in the
    requested direction, so the unit can never sit exactly balanced against the
    leak. The result may exceed 1 when the leak is stronger than the unit's
    nominal rate.
    """
    if state.hvac_state == HvacState.IDLE:
        return 0.0

    duty = base_duty(state)
    if state.hvac_state == HvacState.HEATING:
        floor = max(0.0, MIN_NET_DELTA - leak) / HEAT_RATE
    elif state.hvac_state == HvacState.COOLING:
        floor = max(0.0, leak + MIN_NET_DELTA) / COOL_RATE
    else:
        floor = duty
    return max(duty, floor)


def reported_duty(drive: float) -> float:
    return round_one(min(MAX_DUTY, drive))


def temperature_change(state: ThermostatState, leak: float, drive: float) -> float:
    if state.hvac_state == HvacState.HEATING:
        return leak + HEAT_RATE * drive
    if state.hvac_state == HvacState.COOLING:
        return leak - COOL_RATE * drive
    if state.hvac_state == HvacState.DRYING:
        return leak + HEAT_RATE * DRYING_HEAT_FACTOR
    return leak


def humidity_change(state: ThermostatState) -> float:
    change = (state.outside_humidity - state.current_humidity) * HUMIDITY_EXCHANGE_RATE
    if state.hvac_state == HvacState.DRYING:
        change -= DRY_RATE
    elif state.hvac_state == HvacState.HEATING:
        change -= HEATING_DRY_RATE
    return change


def advance(state: ThermostatState, leak: float, drive: float) -> None:
    """Apply one tick of temperature and humidity change to `state` in place."""
    temp_delta = temperature_change(state, leak, drive)
    humidity_delta = humidity_change(state)

    state.current_temp = round(state.current_temp + temp_delta, 2)
    state.current_humidity = round(clamp(state.current_humidity + humidity_delta, *INDOOR_HUMIDITY_RANGE))
