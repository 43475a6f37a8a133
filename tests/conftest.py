"""Shared fixtures for the thermostat simulator tests."""
import pytest
from fastapi.testclient import TestClient

import thermostat_api
from thermostat_simulator import ThermostatSimulator
from thermostat_state import ThermostatState


@pytest.fixture
def simulator():
    return ThermostatSimulator(ThermostatState())


@pytest.fixture
def client(simulator, monkeypatch):
    # No context manager: the lifespan (config, logging, ticker) is not started
    monkeypatch.setattr(thermostat_api, "simulator", simulator)
    return TestClient(thermostat_api.app)
