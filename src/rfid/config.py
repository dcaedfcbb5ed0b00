"""
Configuration and logging setup for the RFID detector.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_PATH = "config/detector.yaml"

DEFAULT_CONFIG = {
    'logging': {
        'level': 'INFO',
        'log_file': 'logs/detector.log',
    },
    'data': {
        'test_data_path': 'test/test_data.json',
    },
    'reports': {
        'output_dir': 'reports/rfid',
        'make_plots': True,
    },
}


def load_config(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> dict:
    """
    Load detector configuration, filling any missing section from the defaults.

    A missing file yields the defaults unchanged.
    """
    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}

    if config_path is None or not Path(config_path).exists():
        return config

    with open(config_path, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file '{config_path}' must contain a mapping")

    for section, values in loaded.items():
        if isinstance(values, dict) and section in config:
            config[section].update(values)
        else:
            config[section] = values

    return config


def setup_logging(config: dict) -> logging.Logger:
    """Setup logging configuration."""
    log_level = getattr(logging, str(config['logging']['level']).upper())
    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = config['logging'].get('log_file')
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_path, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        handlers=handlers,
        force=True,
    )

    return logging.getLogger("rfid")
