#!/usr/bin/env python3
"""
HTTP surface of the thermostat simulator.

GET /state returns the full state record, POST /command merges a partial
command into it. Every response carries permissive CORS headers so the
dashboard can call the simulator from any origin.
"""
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import argparse
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from action_logger import get_action_logger
from config_loader import load_config, resolve_port, setup_logging
from thermostat_simulator import ThermostatSimulator
from thermostat_state import ThermostatCommand

logger = logging.getLogger('thermostat_simulator')

MAX_BODY_BYTES = 1_000_000
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

# Global instances
simulator: Optional[ThermostatSimulator] = None
config_path: Optional[str] = None
console_level: Optional[str] = None
listen_url: Optional[str] = None


class PayloadTooLarge(Exception):
    pass


@asynccontextmanager
async def lifespan(app: FastAPI):
    global simulator
    try:
        config = load_config(config_path)
        setup_logging(config, console_level)
        logger.info("=== Thermostat Simulator Starting ===")
        if listen_url:
            logger.info(f"Simulator running at {listen_url}")
        action_logger = get_action_logger(config)
        simulator = ThermostatSimulator.from_config(config, action_logger=action_logger)
        simulator.start_ticker()
        if action_logger:
            action_logger.log_system_event("startup", {"state": simulator.snapshot()})
        yield
    finally:
        logger.info("=== Thermostat Simulator Shutting Down ===")
        if simulator is not None:
            simulator.stop_ticker()
            if simulator.action_logger:
                simulator.action_logger.log_system_event("shutdown")
                simulator.action_logger.close()


app = FastAPI(
    title="Thermostat Simulator",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)


@app.middleware("http")
async def apply_cors(request: Request, call_next):
    """Attach CORS headers to every response and answer any OPTIONS with 204."""
    if request.method == "OPTIONS":
        response = Response(status_code=204)
    else:
        response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Wrong method on a known path is reported the same as an unknown path
    if exc.status_code in (404, 405):
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def read_json_body(request: Request):
    """Read the request body as JSON; anything unparsable decodes to {}."""
    body = b""
    async for chunk in request.stream():
        body += chunk
        if len(body) > MAX_BODY_BYTES:
            raise PayloadTooLarge()

    if not body:
        return {}
    try:
        return json.loads(body)
    except (ValueError, RecursionError):
        logger.debug("Ignoring unparsable command body")
        return {}


@app.get("/state")
def get_state():
    """Get the full current thermostat state."""
    return simulator.snapshot()


@app.post("/command")
async def post_command(request: Request):
    """Apply a setpoint/mode/outside-condition command."""
    try:
        payload = await read_json_body(request)
    except PayloadTooLarge:
        logger.warning(f"Rejected command body over {MAX_BODY_BYTES} bytes")
        return Response(status_code=413, headers={"Connection": "close"})

    command = ThermostatCommand.from_payload(payload)
    if command.is_empty():
        logger.debug("Command carried no applicable fields")
    return simulator.apply_command(command)


def main():
    global config_path, console_level, listen_url
    import uvicorn

    parser = argparse.ArgumentParser(description='Thermostat Simulator')
    parser.add_argument('--port', type=int, default=None,
                        help='Port to listen on (default: THERMO_PORT, config, or 8081)')
    parser.add_argument('--config', default=None, help='Path to config.yaml')
    parser.add_argument('--log-level', default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help='Console log level')
    args = parser.parse_args()

    config_path = args.config
    console_level = args.log_level

    config = load_config(config_path)
    host = config.get('api', {}).get('host', '0.0.0.0')
    port = resolve_port(config, args.port)

    listen_url = f"http://{host}:{port}"
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
