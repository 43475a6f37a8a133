#!/usr/bin/env python3
import argparse
import json
import os
import sys
import requests

DEFAULT_HOST = os.environ.get('THERMO_URL', 'http://localhost:8081')
REQUEST_TIMEOUT = 5


def get_state(host):
    """Fetch the current simulator state."""
    response = requests.get(f"{host}/state", timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


def send_command(host, payload):
    """Post a partial command and return the resulting state."""
    response = requests.post(f"{host}/command", json=payload, timeout=REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.json()


def build_payload(args):
    """Only fields given on the command line are sent."""
    fields = {
        'setpoint': args.setpoint,
        'humiditySetpoint': args.humidity_setpoint,
        'mode': args.mode,
        'outsideTemp': args.outside_temp,
        'outsideHumidity': args.outside_humidity,
    }
    return {key: value for key, value in fields.items() if value is not None}


def build_parser():
    parser = argparse.ArgumentParser(description='Control the Thermostat Simulator')
    parser.add_argument('--host', default=DEFAULT_HOST,
                        help=f'Simulator URL (default: {DEFAULT_HOST})')
    subparsers = parser.add_subparsers(dest='action', required=True)

    subparsers.add_parser('state', help='Print the current state')

    command = subparsers.add_parser('command', help='Send a setpoint/mode command')
    command.add_argument('--setpoint', type=float, help='Target temperature (°C)')
    command.add_argument('--humidity-setpoint', type=float, help='Target relative humidity (%%)')
    command.add_argument('--mode', choices=['Ogrevanje', 'Hlajenje', 'Izklop', 'Razvlazevanje'],
                         help='Operating mode')
    command.add_argument('--outside-temp', type=float, help='Outside temperature (°C)')
    command.add_argument('--outside-humidity', type=float, help='Outside relative humidity (%%)')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        if args.action == 'state':
            result = get_state(args.host)
        else:
            result = send_command(args.host, build_payload(args))
    except requests.exceptions.HTTPError as e:
        print(f"Error: simulator replied {e.response.status_code}", file=sys.stderr)
        return 1
    except requests.exceptions.RequestException as e:
        print(f"Error connecting to simulator: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
