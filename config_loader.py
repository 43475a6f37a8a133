import os
import yaml
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any, Optional, Union

logger = logging.getLogger('thermostat_simulator')

DEFAULT_CONFIG_PATH = Path(__file__).parent / 'config.yaml'
DEFAULT_PORT = 8081
PORT_ENV_VAR = 'THERMO_PORT'


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Load the simulator configuration file."""
    config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
        return config or {}
    except Exception as e:
        logger.error(f"Error loading configuration from {config_path}: {str(e)}")
        raise


def resolve_port(config: Dict[str, Any], cli_port: Optional[int] = None) -> int:
    """Pick the listen port: CLI flag, then THERMO_PORT, then config, then 8081."""
    if cli_port:
        return cli_port
    env_port = os.environ.get(PORT_ENV_VAR)
    if env_port:
        try:
            return int(env_port)
        except ValueError:
            logger.warning(f"Ignoring invalid {PORT_ENV_VAR} value: {env_port!r}")
    return int(config.get('api', {}).get('port', DEFAULT_PORT))


def setup_logging(config: dict, console_level: Optional[str] = None) -> logging.Logger:
    """Setup logging configuration."""
    log_config = config.get('logging', {})
    log_path = Path(log_config.get('file_path', 'logs/thermostat_simulator.log'))

    # Create logs directory if it doesn't exist
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger('thermostat_simulator')
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    file_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(name)s] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    # File handler with rotation
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=log_config.get('max_size_kb', 500) * 1024,
        backupCount=log_config.get('backup_count', 4)
    )
    file_handler.setLevel(getattr(logging, log_config.get('file_level', 'DEBUG').upper()))
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler()
    level_name = console_level or log_config.get('console_level', 'INFO')
    console_handler.setLevel(getattr(logging, level_name.upper()))
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    return logger
