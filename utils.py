# utils.py
"""
Helpers shared by the host and the sessions: logging setup and access to
the JSON configuration. Nothing here knows about particles or rendering.
"""
import json
import logging
import logging.handlers
import os
from typing import Any, Dict

import constants

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Reads the optional "logging" section: "level", "format", "log_file",
#     "max_bytes", "backup_count".
#   - Side Effects: replaces every handler of the root logger with one
#     console handler and one rotating file handler; creates the log
#     directory when needed. Calling it again does not duplicate output.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Missing files and malformed JSON are logged and re-raised as is.
#   - A file whose top level is not a JSON object raises ValueError.
#
# run_settings(config) -> Dict[str, Any]:
#   - The "run_control" section with every missing key filled in.
#
# simulation_section(config, kind) -> Dict[str, Any]:
#   - The parameter section of one simulation, {} when absent.

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = 'logs/simulation.log'
# Rotate at 1 MB, keep 5 old files.
DEFAULT_MAX_BYTES = 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


def setup_logging(config: Dict[str, Any]) -> None:
    """Configures the root logger for console and rotating-file output."""
    section = config.get('logging', {})
    level = str(section.get('level', 'INFO')).upper()
    log_file = section.get('log_file', DEFAULT_LOG_FILE)
    formatter = logging.Formatter(section.get('format', DEFAULT_LOG_FORMAT))

    directory = os.path.dirname(log_file)
    if directory:
        os.makedirs(directory, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        # Release the log file of a previous call.
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.close()

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    rotating = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=int(section.get('max_bytes', DEFAULT_MAX_BYTES)),
        backupCount=int(section.get('backup_count', DEFAULT_BACKUP_COUNT)),
    )
    rotating.setFormatter(formatter)
    root.addHandler(rotating)

    logging.info(f"Logging initialized at {level}, writing to {log_file}.")


def load_config(path: str) -> Dict[str, Any]:
    """Reads the JSON configuration file at path."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError as e:
        logging.error(f"Malformed JSON in {path}: {e}")
        raise

    if not isinstance(config, dict):
        msg = f"Configuration error: {path} must hold a JSON object, got {type(config).__name__}."
        logging.critical(msg)
        raise ValueError(msg)
    logging.info(f"Configuration loaded ({', '.join(sorted(config))}).")
    return config


def run_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """Host settings with defaults for everything the file leaves out."""
    settings = {
        'simulation': constants.SIMULATION_KINDS[0],
        'width': constants.DEFAULT_WIDTH,
        'height': constants.DEFAULT_HEIGHT,
        'fullscreen': constants.FULLSCREEN,
        'max_steps': 0,
        'log_throttle_steps': 100,
        'profile': False,
    }
    settings.update(config.get('run_control', {}))
    return settings


def simulation_section(config: Dict[str, Any], kind: str) -> Dict[str, Any]:
    """Returns the parameter section for one simulation kind (empty if absent)."""
    section = config.get(kind, {})
    if not isinstance(section, dict):
        msg = f"Configuration error: section '{kind}' must be an object, got {type(section).__name__}."
        logging.critical(msg)
        raise ValueError(msg)
    return section
