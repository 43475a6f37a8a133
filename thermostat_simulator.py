#!/usr/bin/env python3
"""
Thermostat Simulator

Holds the single room state, advances the physical model on a fixed cadence
and applies setpoint/mode commands. Ticks run on a `schedule` job pumped by a
daemon thread; every read, tick and command takes the same lock.
"""
import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

import schedule

from action_logger import ActionLogger
from hvac_control import next_hvac_state
from thermal_model import advance, effective_drive, passive_leak, reported_duty
from thermostat_state import (
    HUMIDITY_SETPOINT_RANGE,
    OUTSIDE_HUMIDITY_RANGE,
    SETPOINT_RANGE,
    HvacState,
    ThermostatCommand,
    ThermostatState,
    clamp,
    format_number,
    round_one,
    utc_timestamp,
)

logger = logging.getLogger('thermostat_simulator')

DEFAULT_TICK_INTERVAL_MS = 1000


class ThermostatSimulator:
    def __init__(self, state: Optional[ThermostatState] = None,
                 tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS,
                 action_logger: Optional[ActionLogger] = None):
        self.state = state or ThermostatState()
        self.tick_interval_ms = tick_interval_ms
        self.action_logger = action_logger
        self._lock = threading.Lock()
        self._scheduler = schedule.Scheduler()
        self._stop_event = threading.Event()
        self.ticker_thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any],
                    action_logger: Optional[ActionLogger] = None) -> "ThermostatSimulator":
        sim_config = config.get('simulator', {})
        return cls(
            state=ThermostatState.from_config(sim_config.get('initial_state')),
            tick_interval_ms=sim_config.get('tick_interval_ms', DEFAULT_TICK_INTERVAL_MS),
            action_logger=action_logger,
        )

    def snapshot(self) -> Dict[str, Any]:
        """Return the current state as it is served on GET /state."""
        with self._lock:
            return self.state.to_dict()

    def tick(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Advance the room by one step and return the resulting state."""
        with self._lock:
            state = self.state
            previous = state.hvac_state
            state.hvac_state = next_hvac_state(
                state.mode,
                state.current_temp,
                state.current_humidity,
                state.setpoint,
                state.humidity_setpoint,
                previous,
            )

            leak = passive_leak(state)
            drive = effective_drive(state, leak)
            state.duty = reported_duty(drive)

            if state.hvac_state != previous:
                self._log_transition(previous)

            advance(state, leak, drive)
            state.last_updated = now or utc_timestamp()
            return state.to_dict()

    def _log_transition(self, previous: HvacState) -> None:
        state = self.state
        if state.hvac_state == HvacState.IDLE:
            logger.info("IDLE (within hysteresis)")
        else:
            logger.info(
                f"{state.hvac_state.value} (temp={state.current_temp:.1f} -> "
                f"target={state.setpoint:.1f}, outside={state.outside_temp:.1f}, "
                f"duty={state.duty:.1f})"
            )
        if self.action_logger:
            self.action_logger.log_hvac_transition(
                previous.value, state.hvac_state.value, state.current_temp,
                state.setpoint, state.outside_temp, state.duty,
            )

    def apply_command(self, command: ThermostatCommand) -> Dict[str, Any]:
        """Merge a partial command into the state and return the full result.

        Values are clamped or rounded before comparison; only fields whose
        stored value actually changes are written and logged.
        """
        with self._lock:
            state = self.state
            changes = []
            changed_fields = {}

            if command.setpoint is not None:
                value = clamp(command.setpoint, *SETPOINT_RANGE)
                if value != state.setpoint:
                    state.setpoint = value
                    changes.append(f"setpoint={value:.1f}")
                    changed_fields["setpoint"] = value

            if command.humidity_setpoint is not None:
                value = clamp(command.humidity_setpoint, *HUMIDITY_SETPOINT_RANGE)
                if value != state.humidity_setpoint:
                    state.humidity_setpoint = value
                    changes.append(f"humidity={format_number(value)}")
                    changed_fields["humiditySetpoint"] = value

            if command.mode is not None and command.mode != state.mode:
                state.mode = command.mode
                changes.append(f"mode={command.mode.value}")
                changed_fields["mode"] = command.mode.value

            if command.outside_temp is not None:
                value = round_one(command.outside_temp)
                if value != state.outside_temp:
                    state.outside_temp = value
                    changes.append(f"outside={value:.1f}")
                    changed_fields["outsideTemp"] = value

            if command.outside_humidity is not None:
                value = clamp(command.outside_humidity, *OUTSIDE_HUMIDITY_RANGE)
                if value != state.outside_humidity:
                    state.outside_humidity = value
                    changes.append(f"outsideHumidity={format_number(value)}")
                    changed_fields["outsideHumidity"] = value

            if changes:
                logger.info(f"COMMAND ({', '.join(changes)})")
                if self.action_logger:
                    self.action_logger.log_command(changed_fields)

            return state.to_dict()

    def _run_tick(self) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("Error in thermostat tick")

    def start_ticker(self) -> None:
        """Start ticking every `tick_interval_ms` on a background thread."""
        self._scheduler.clear()
        interval_seconds = self.tick_interval_ms / 1000
        self._scheduler.every(interval_seconds).seconds.do(self._run_tick)

        if self.ticker_thread is None or not self.ticker_thread.is_alive():
            self._stop_event.clear()
            self.ticker_thread = threading.Thread(target=self._run_scheduler, daemon=True)
            self.ticker_thread.start()
            logger.info(f"Thermostat ticker started (interval: {self.tick_interval_ms} ms)")

    def stop_ticker(self) -> None:
        self._stop_event.set()
        if self.ticker_thread is not None:
            self.ticker_thread.join(timeout=2)
            self.ticker_thread = None
        self._scheduler.clear()

    def _run_scheduler(self) -> None:
        """Run the scheduler in a separate thread."""
        while not self._stop_event.is_set():
            self._scheduler.run_pending()
            self._stop_event.wait(0.05)
