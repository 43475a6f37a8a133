#!/usr/bin/env python3
"""
Action Logger for the Thermostat Simulator

This module writes a structured JSON-lines record of what the simulator did:
HVAC state transitions, accepted commands and lifecycle events. It sits next
to the human-readable application log and is enabled through the
`action_log` section of config.yaml.
"""
import logging
import json
import time
import os
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional, Union
from pathlib import Path


class ActionType(Enum):
    """Types of actions that can be logged"""
    HVAC_TRANSITION = "hvac_transition"
    COMMAND = "command"
    SYSTEM_EVENT = "system_event"


class ActionLogger:
    """Logger for simulator actions with structured data"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the action logger.

        Args:
            config: Optional configuration dictionary with an `action_log` section
        """
        self.config = config or {}
        self.logger = logging.getLogger('thermostat_simulator.actions')
        self.logger.setLevel(logging.INFO)
        # Records are JSON only; keep them out of the console output
        self.logger.propagate = False
        self.log_file = self._setup_file_logger()

    def _setup_file_logger(self) -> Path:
        """Set up file-based action logging and return the active file path"""
        log_config = self.config.get('action_log', {})

        log_dir = Path(log_config.get('file_path', 'logs/actions'))
        log_dir.mkdir(parents=True, exist_ok=True)

        # File path with date-based naming
        today = datetime.now().strftime('%Y-%m-%d')
        log_file = log_dir / f"actions_{today}.log"

        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        self.logger.addHandler(file_handler)

        return log_file

    def log_action(self, action_type: Union[ActionType, str], data: Dict[str, Any]) -> None:
        """
        Log an action with structured data.

        Args:
            action_type: Type of action being logged
            data: Dictionary containing action-specific data
        """
        if isinstance(action_type, ActionType):
            action_type = action_type.value

        action = {
            "timestamp": datetime.now().isoformat(),
            "unix_time": time.time(),
            "action_type": action_type,
            "data": data,
            "hostname": os.uname().nodename,
            "process_id": os.getpid(),
        }

        self.logger.info(json.dumps(action))

    def log_hvac_transition(self, previous: str, current: str, current_temp: float,
                            setpoint: float, outside_temp: float, duty: float) -> None:
        """Log a change of the derived HVAC state."""
        self.log_action(ActionType.HVAC_TRANSITION, {
            "previous_state": previous,
            "new_state": current,
            "current_temperature": current_temp,
            "target_temperature": setpoint,
            "outside_temperature": outside_temp,
            "duty": duty,
        })

    def log_command(self, changes: Dict[str, Any]) -> None:
        """
        Log the fields a command actually changed.

        Args:
            changes: Mapping of wire field name to the value now stored
        """
        self.log_action(ActionType.COMMAND, {"changes": changes})

    def log_system_event(self, event: str, details: Dict[str, Any] = None) -> None:
        data = {"event": event}
        if details:
            data.update(details)
        self.log_action(ActionType.SYSTEM_EVENT, data)

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)


def get_action_logger(config: Dict[str, Any] = None) -> Optional[ActionLogger]:
    """
    Create an action logger if it is enabled in the configuration.

    Args:
        config: Optional configuration dictionary

    Returns:
        ActionLogger instance, or None when `action_log.enabled` is false
    """
    config = config or {}
    if not config.get('action_log', {}).get('enabled', False):
        return None
    return ActionLogger(config)
