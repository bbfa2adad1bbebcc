import logging
from dataclasses import dataclass

import numpy as np
from numpy import ma

from errors_module import EncodingMismatchError, ShapeMismatchError
from fits_module import Encoding

CHANNELS = ('luminance', 'red', 'green', 'blue')


@dataclass
class Composite:
    """Planar RGB result: data has shape (3, width*height), one row per colour"""
    encoding: Encoding
    width: int
    height: int
    data: np.ndarray

    @property
    def shape(self):
        return (self.width, self.height, 3)

    @property
    def red(self):
        return self.data[0]

    @property
    def green(self):
        return self.data[1]

    @property
    def blue(self):
        return self.data[2]

    def cube(self):
        """Numpy (3, height, width) view, the layout astropy writes as NAXIS1=width"""
        return self.data.reshape(3, self.height, self.width)


def check_channels(luminance, red, green, blue):
    """
    Verify the four planes share one encoding and one pixel geometry.

    Raises EncodingMismatchError or ShapeMismatchError naming the first
    channel that disagrees with luminance.
    """
    planes = dict(zip(CHANNELS, (luminance, red, green, blue)))

    encodings = {name: plane.encoding for name, plane in planes.items()}
    if len(set(encodings.values())) > 1:
        listing = ', '.join(f"{name}={encoding.name}" for name, encoding in encodings.items())
        raise EncodingMismatchError(f"Types of FITS channels don't match: {listing}")

    for name, plane in planes.items():
        if plane.data.size != luminance.data.size or tuple(plane.shape[:2]) != tuple(luminance.shape[:2]):
            raise ShapeMismatchError(
                f"{name} channel shape {plane.shape} does not match luminance shape {luminance.shape}")


def redistribute_luminance(encoding, lum, red, green, blue):
    """
    Core LRGB formula over flat sample arrays.

    For every pixel: out_c = L * c / (R + G + B) for c in R, G, B.
    Pixels with a zero chrominance sum, or with any missing sample on a
    nullable encoding, come out black. Integer encodings are computed in
    float64 and converted back through the encoding; float encodings stay
    in their native precision.

    Returns an array of shape (3, n) in the encoding's dtype.
    """
    n = lum.size
    if encoding.nullable:
        missing = ma.getmaskarray(lum) | ma.getmaskarray(red) | ma.getmaskarray(green) | ma.getmaskarray(blue)
        lum, red, green, blue = (ma.getdata(c) for c in (lum, red, green, blue))
        # 64-bit accumulation so 32-bit sums cannot wrap to zero
        rgb_sum = red.astype(np.int64) + green.astype(np.int64) + blue.astype(np.int64)
        valid = ~missing & (rgb_sum != 0)
    else:
        rgb_sum = red + green + blue
        valid = rgb_sum != 0

    result = np.zeros((3, n), dtype=encoding.dtype)
    if not valid.any():
        return result

    rgb_sum = encoding.to_working(rgb_sum[valid])
    lum = encoding.to_working(lum[valid])
    for row, channel in enumerate((red, green, blue)):
        norm = encoding.to_working(channel[valid]) / rgb_sum
        result[row, valid] = encoding.from_working(lum * norm)
    return result


def compose(width, height, luminance, red, green, blue) -> Composite:
    """
    Build the colour composite from luminance and three chrominance planes.

    Parameters:
    width, height: pixel geometry, normally luminance.shape[:2]
    luminance, red, green, blue: ImagePlanes of one encoding and size

    Returns:
    Composite with shape (width, height, 3) in the input encoding
    """
    logger = logging.getLogger(__name__)

    check_channels(luminance, red, green, blue)
    total = width * height
    if luminance.data.size != total:
        raise ShapeMismatchError(
            f"Luminance holds {luminance.data.size} pixels, expected {width}x{height}={total}")

    encoding = luminance.encoding
    if encoding.nullable:
        for name, plane in zip(CHANNELS, (luminance, red, green, blue)):
            missing = plane.missing_count
            if missing:
                logger.warning(f"{name} channel: {missing}/{total} missing samples will be black")

    data = redistribute_luminance(encoding, luminance.data, red.data, green.data, blue.data)
    logger.debug(f"Composite {width}x{height} {encoding.name}: "
                 f"{int(np.count_nonzero(data.any(axis=0)))}/{total} non-black pixels")
    return Composite(encoding, width, height, data)
