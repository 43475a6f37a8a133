"""Tests for the room physics: leak, duty floor and per-tick updates."""
import pytest

from thermal_model import (
    MIN_NET_DELTA,
    advance,
    base_duty,
    effective_drive,
    humidity_change,
    passive_leak,
    reported_duty,
    temperature_change,
)
from thermostat_state import HvacState, ThermostatState


def test_passive_leak_pulls_toward_outside():
    state = ThermostatState(outside_temp=5.0, current_temp=20.2)

    assert passive_leak(state) == pytest.approx(-0.152)


@pytest.mark.parametrize("current_temp, expected", [
    (21.9, 0.3),   # small gap floors at the minimum duty
    (20.8, 0.6),
    (19.0, 1.0),   # large gap saturates
])
def test_base_duty_scales_with_temperature_gap(current_temp, expected):
    state = ThermostatState(hvac_state=HvacState.HEATING, setpoint=22.0, current_temp=current_temp)

    assert base_duty(state) == pytest.approx(expected)


def test_base_duty_for_drying_uses_humidity_excess():
    assert base_duty(ThermostatState(hvac_state=HvacState.DRYING, current_humidity=50,
                                     humidity_setpoint=45.0)) == pytest.approx(1.0)
    assert base_duty(ThermostatState(hvac_state=HvacState.DRYING, current_humidity=44,
                                     humidity_setpoint=45.0)) == pytest.approx(0.3)


def test_idle_has_no_drive():
    state = ThermostatState(hvac_state=HvacState.IDLE)

    assert effective_drive(state, passive_leak(state)) == 0.0


def test_heating_floor_overcomes_cold_outside():
    # Arrange
    state = ThermostatState(hvac_state=HvacState.HEATING, setpoint=22.0,
                            current_temp=20.2, outside_temp=5.0)
    leak = passive_leak(state)

    # Act
    drive = effective_drive(state, leak)

    # Assert - base duty 0.9 is raised so heating beats the 0.152 leak by 0.02
    assert drive == pytest.approx((0.02 + 0.152) / 0.12)
    assert reported_duty(drive) == 1.0
    assert temperature_change(state, leak, drive) == pytest.approx(MIN_NET_DELTA)


def test_heating_with_warm_outside_uses_base_duty():
    state = ThermostatState(hvac_state=HvacState.HEATING, setpoint=22.0,
                            current_temp=20.0, outside_temp=30.0)

    assert effective_drive(state, passive_leak(state)) == pytest.approx(1.0)


def test_cooling_with_cold_outside_uses_base_duty():
    state = ThermostatState(hvac_state=HvacState.COOLING, setpoint=22.0,
                            current_temp=23.0, outside_temp=5.0)

    assert effective_drive(state, passive_leak(state)) == pytest.approx(0.5)


def test_cooling_floor_overcomes_hot_outside():
    state = ThermostatState(hvac_state=HvacState.COOLING, setpoint=22.0,
                            current_temp=23.0, outside_temp=35.0)
    leak = passive_leak(state)

    drive = effective_drive(state, leak)

    assert drive == pytest.approx(0.14 / 0.12)
    assert reported_duty(drive) == 1.0
    assert temperature_change(state, leak, drive) == pytest.approx(-MIN_NET_DELTA)


@pytest.mark.parametrize("hvac_state, sign", [(HvacState.HEATING, 1), (HvacState.COOLING, -1)])
@pytest.mark.parametrize("outside_temp", [-15.0, 0.0, 10.0, 22.0, 30.0, 40.0])
@pytest.mark.parametrize("current_temp", [15.0, 21.7, 22.3, 28.0])
def test_active_unit_always_makes_net_progress(hvac_state, sign, outside_temp, current_temp):
    state = ThermostatState(hvac_state=hvac_state, setpoint=22.0,
                            current_temp=current_temp, outside_temp=outside_temp)
    leak = passive_leak(state)
    drive = effective_drive(state, leak)

    assert sign * temperature_change(state, leak, drive) >= MIN_NET_DELTA - 1e-9
    assert 0.3 <= reported_duty(drive) <= 1.0


def test_advance_heating_rounds_temperature_to_two_decimals():
    state = ThermostatState(hvac_state=HvacState.HEATING, setpoint=22.0,
                            current_temp=20.2, outside_temp=5.0)
    leak = passive_leak(state)

    advance(state, leak, effective_drive(state, leak))

    assert state.current_temp == 20.22


def test_advance_cooling_against_hot_outside():
    state = ThermostatState(hvac_state=HvacState.COOLING, setpoint=22.0,
                            current_temp=23.0, outside_temp=35.0)
    leak = passive_leak(state)

    advance(state, leak, effective_drive(state, leak))

    assert state.current_temp == 22.98


def test_drying_removes_moisture_and_warms_slightly():
    # Arrange
    state = ThermostatState(hvac_state=HvacState.DRYING, current_temp=20.0, outside_temp=20.0,
                            current_humidity=50, outside_humidity=20.0, humidity_setpoint=45.0)
    leak = passive_leak(state)

    # Act
    advance(state, leak, effective_drive(state, leak))

    # Assert
    assert state.current_temp == 20.02
    assert state.current_humidity == 49


def test_heating_dries_the_air():
    state = ThermostatState(hvac_state=HvacState.HEATING, current_humidity=48, outside_humidity=48.0)

    assert humidity_change(state) == pytest.approx(-0.05)


def test_indoor_humidity_is_clamped_and_whole():
    humid = ThermostatState(hvac_state=HvacState.IDLE, current_humidity=70, outside_humidity=95.0)
    dry = ThermostatState(hvac_state=HvacState.DRYING, current_humidity=20, outside_humidity=20.0,
                          current_temp=20.0, outside_temp=20.0)

    for state in (humid, dry):
        advance(state, passive_leak(state), effective_drive(state, passive_leak(state)))

    assert humid.current_humidity == 70
    assert dry.current_humidity == 20
    assert isinstance(humid.current_humidity, int)
