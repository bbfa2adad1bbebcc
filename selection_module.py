import logging

from errors_module import AmbiguousGrayscaleError, GrayscaleNotFoundError
from fits_module import FitsContainer, ImagePlane


def is_grayscale_shape(shape):
    """2-D image, or 3-D with a single trailing plane (NAXIS3 = 1)"""
    if shape is None:
        return False
    return len(shape) == 2 or (len(shape) == 3 and shape[2] == 1)


def select_grayscale(container) -> ImagePlane:
    """
    Find the one grayscale data unit of an open container and read it.

    Extensions with an unsupported encoding are skipped. A second
    grayscale candidate aborts the scan with AmbiguousGrayscaleError;
    none at all raises GrayscaleNotFoundError.
    """
    logger = logging.getLogger(__name__)
    source = getattr(container, 'path', 'container')

    found = None
    for extension in container:
        if extension.encoding is None:
            logger.debug(f"Skipping {extension}: no supported image data")
            continue
        if not is_grayscale_shape(extension.shape):
            logger.debug(f"Skipping {extension}: not a grayscale shape")
            continue
        if found is not None:
            raise AmbiguousGrayscaleError(
                f"Ambiguous grayscale data in {source}: HDU {found.index} and HDU {extension.index}")
        found = extension

    if found is None:
        raise GrayscaleNotFoundError(f"Grayscale data not found in {source}")

    logger.debug(f"Using HDU {found.index} of {source}")
    return found.read_plane()


def load_grayscale(path) -> ImagePlane:
    """Open a FITS file and return its grayscale plane"""
    with FitsContainer(path) as container:
        return select_grayscale(container)
