import configparser
from pathlib import Path
import logging

# Default configuration values
DEFAULT_CONFIG = {
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(levelname)s - %(message)s',
    },
    'output': {
        'overwrite': True,
        'history': True,
    },
}


def default_config():
    # interpolation off so the log format's %(...)s survives
    config = configparser.ConfigParser(interpolation=None)
    for section, options in DEFAULT_CONFIG.items():
        if not config.has_section(section):
            config.add_section(section)
        for key, value in options.items():
            config.set(section, key, str(value))
    return config


def load_config(config_file='lrgb.ini'):
    """Defaults from DEFAULT_CONFIG, overridden by config_file when it exists"""
    logger = logging.getLogger(__name__)
    config = default_config()

    if Path(config_file).exists():
        try:
            config.read(config_file)
            logger.info(f"Loaded configuration from {config_file}")
        except configparser.Error as e:
            # a failed read may already have applied part of the file
            config = default_config()
            logger.warning(f"Error loading config file: {e}, using defaults")
    else:
        logger.info(f"Config file {config_file} not found, using defaults")

    return config
