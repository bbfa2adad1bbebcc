"""Exceptions raised while merging LRGB channel files."""


class LRGBError(Exception):
    """Base class for all LRGB merge failures"""


class AmbiguousGrayscaleError(LRGBError, ValueError):
    """More than one grayscale data unit found in a FITS file"""


class GrayscaleNotFoundError(LRGBError, ValueError):
    """No grayscale data unit found in a FITS file"""


class EncodingMismatchError(LRGBError, ValueError):
    """Channels do not share one numeric encoding"""


class ShapeMismatchError(LRGBError, ValueError):
    """Channels do not share one pixel geometry"""


class FitsIOError(LRGBError, OSError):
    """A FITS file could not be opened, read or written"""
