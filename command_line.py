import argparse
import logging


def setup_argparser():
    """Set up command line argument parser"""
    parser = argparse.ArgumentParser(
        description='Merge luminance, red, green and blue FITS frames into an LRGB colour composite')

    # Channel inputs and output
    parser.add_argument('-l', '--lum-file', required=True, help='Input file for luminance channel')
    parser.add_argument('-r', '--red-file', required=True, help='Input file for red channel')
    parser.add_argument('-g', '--green-file', required=True, help='Input file for green channel')
    parser.add_argument('-b', '--blue-file', required=True, help='Input file for blue channel')
    parser.add_argument('-o', '--out-file', required=True, help='Output FITS file')

    # Configuration file
    parser.add_argument('--config', default='lrgb.ini', help='Configuration file path')

    # Logging options
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--log-file', help='Log file path')

    return parser


def setup_logging(args, config=None):
    """Set up logging based on command line arguments and the [logging] section"""
    level_name = config['logging']['level'] if config is not None else 'INFO'
    log_level = getattr(logging, level_name.upper(), logging.INFO)
    log_format = config['logging']['format'] if config is not None else '%(asctime)s - %(levelname)s - %(message)s'

    # Create handlers
    handlers = [logging.StreamHandler()]

    # Add file handler if specified
    if args.log_file:
        try:
            handlers.append(logging.FileHandler(args.log_file, mode='w'))
        except OSError as e:
            print(f"Warning: Could not set up log file: {e}")

    # replace any handlers installed before the config was known
    logging.basicConfig(level=log_level, format=log_format, handlers=handlers, force=True)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized")
    return logger


def update_config_from_args(config, args):
    """Update configuration with values from command line arguments"""
    if args.debug:
        config['logging']['level'] = 'DEBUG'
    return config
