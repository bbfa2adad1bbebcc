#!/usr/bin/env python3
import logging
import sys

from tqdm import tqdm

from command_line import setup_argparser, setup_logging, update_config_from_args
from composite_module import compose
from config_handling import load_config
from errors_module import LRGBError
from fits_module import write_composite
from selection_module import load_grayscale


def execute(args, config):
    """
    Load the four channel files, build the composite and save it.

    Nothing is written unless every channel loads and the composite
    is built.
    """
    logger = logging.getLogger(__name__)

    channel_files = {
        'red': args.red_file,
        'green': args.green_file,
        'blue': args.blue_file,
        'luminance': args.lum_file,
    }

    planes = {}
    for channel, path in tqdm(channel_files.items(), desc="Loading channels"):
        plane = load_grayscale(path)
        logger.info(f"{channel}: {path} {plane.shape} {plane.encoding.name}")
        planes[channel] = plane

    lum = planes['luminance']
    composite = compose(lum.width, lum.height, lum, planes['red'], planes['green'], planes['blue'])

    sources = None
    if config.getboolean('output', 'history'):
        sources = {channel: channel_files[channel] for channel in ('luminance', 'red', 'green', 'blue')}
    write_composite(args.out_file, composite, sources=sources,
                    overwrite=config.getboolean('output', 'overwrite'))
    return composite


def main(argv=None):
    parser = setup_argparser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    config = update_config_from_args(config, args)
    setup_logging(args, config)
    logger = logging.getLogger(__name__)

    try:
        execute(args, config)
    except LRGBError as e:
        logger.error(f"LRGB merge failed: {e}")
        return 1

    logger.info("LRGB merge complete")
    return 0


if __name__ == "__main__":
    sys.exit(main())
