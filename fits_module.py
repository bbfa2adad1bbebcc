import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from numpy import ma
from astropy.io import fits

from errors_module import FitsIOError, ShapeMismatchError

UINT32_BZERO = 2 ** 31


class Encoding(Enum):
    """Numeric sample encodings understood by the LRGB merge.

    Each member knows its numpy dtype, whether it can carry missing
    samples (FITS BLANK), and how to move values in and out of the
    floating-point working domain used by the composite.
    """
    INT32 = ('int32', True)
    UINT32 = ('uint32', True)
    FLOAT32 = ('float32', False)
    FLOAT64 = ('float64', False)

    def __init__(self, dtype_name, nullable):
        self.dtype = np.dtype(dtype_name)
        self.nullable = nullable

    def to_working(self, values):
        if not self.nullable:
            return values
        return np.asarray(values, dtype=np.float64)

    def from_working(self, values):
        if not self.nullable:
            return values.astype(self.dtype, copy=False)
        # round half to even, saturate at the integer range
        info = np.iinfo(self.dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(self.dtype)


def detect_encoding(header) -> Optional[Encoding]:
    """
    Map the raw BITPIX/BZERO/BSCALE cards of an image header to an Encoding.

    Returns None for anything the merge does not handle (8/16/64 bit
    integers, scaled data).
    """
    bitpix = header.get('BITPIX')
    bzero = header.get('BZERO', 0)
    bscale = header.get('BSCALE', 1)
    if bscale != 1:
        return None
    if bitpix == 32:
        if bzero == 0:
            return Encoding.INT32
        if bzero == UINT32_BZERO:
            return Encoding.UINT32
        return None
    if bzero != 0:
        return None
    if bitpix == -32:
        return Encoding.FLOAT32
    if bitpix == -64:
        return Encoding.FLOAT64
    return None


def image_shape(header) -> Tuple[int, ...]:
    """Axis extents in FITS order (NAXIS1 = width, NAXIS2 = height, ...)"""
    naxis = header.get('NAXIS', 0)
    return tuple(int(header[f'NAXIS{i}']) for i in range(1, naxis + 1))


@dataclass
class ImagePlane:
    """A single channel: encoding, FITS-order shape and flat row-major samples.

    For nullable encodings `data` is a masked array; masked samples are
    missing ("no data"), everything else is present.
    """
    encoding: Encoding
    shape: Tuple[int, ...]
    data: np.ndarray

    def __post_init__(self):
        expected = int(np.prod(self.shape)) if self.shape else 0
        if self.data.ndim != 1 or self.data.size != expected:
            raise ShapeMismatchError(
                f"Plane buffer holds {self.data.size} samples, shape {self.shape} needs {expected}")

    @property
    def width(self):
        return self.shape[0]

    @property
    def height(self):
        return self.shape[1]

    @property
    def missing_count(self):
        if not self.encoding.nullable:
            return 0
        return int(ma.count_masked(self.data))


class FitsExtension:
    """One HDU of an open FITS file, inspected from its header only"""

    def __init__(self, hdu, index, path):
        self._hdu = hdu
        self.index = index
        self.name = hdu.name
        self.path = path
        if hdu.is_image and hdu.header.get('NAXIS', 0) > 0:
            self.shape = image_shape(hdu.header)
            self.encoding = detect_encoding(hdu.header)
        else:
            self.shape = None
            self.encoding = None

    def __repr__(self):
        return f"FitsExtension({self.path}[{self.index}] {self.name!r}, shape={self.shape}, encoding={self.encoding})"

    def read_plane(self) -> ImagePlane:
        """Read the data unit into memory as a flat ImagePlane"""
        if self.encoding is None:
            raise FitsIOError(f"{self.path}[{self.index}]: unsupported data encoding")

        header = self._hdu.header
        try:
            raw = np.asarray(self._hdu.data).reshape(-1)
        except (OSError, ValueError) as e:
            raise FitsIOError(f"Could not read data of {self.path}[{self.index}]: {e}") from e

        if not self.encoding.nullable:
            return ImagePlane(self.encoding, self.shape, raw.astype(self.encoding.dtype))

        blank = header.get('BLANK')
        mask = raw == blank if blank is not None else ma.nomask
        if self.encoding is Encoding.UINT32:
            values = (raw.astype(np.int64) + UINT32_BZERO).astype(np.uint32)
        else:
            values = raw.astype(np.int32)
        return ImagePlane(self.encoding, self.shape, ma.MaskedArray(values, mask=mask))


class FitsContainer:
    """
    Context manager over a FITS file exposing its HDUs as FitsExtension views.

    Data is opened unscaled so BITPIX, BZERO and BLANK can be interpreted
    here rather than by astropy's float conversion.
    """

    def __init__(self, path):
        self.path = str(path)
        self._hdul = None
        self._extensions = []

    def __enter__(self):
        logger = logging.getLogger(__name__)
        try:
            self._hdul = fits.open(self.path, do_not_scale_image_data=True)
        except OSError as e:
            raise FitsIOError(f"Could not open FITS file {self.path}: {e}") from e
        self._extensions = [FitsExtension(hdu, i, self.path) for i, hdu in enumerate(self._hdul)]
        logger.debug(f"Opened {self.path} with {len(self._extensions)} HDUs")
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._hdul is not None:
            self._hdul.close()
            self._hdul = None
        return False

    def __iter__(self):
        return iter(self._extensions)

    def __len__(self):
        return len(self._extensions)


CHANNEL_CARDS = {
    'luminance': 'LUMFILE',
    'red': 'REDFILE',
    'green': 'GRNFILE',
    'blue': 'BLUFILE',
}


def write_composite(path, composite, sources=None, overwrite=True):
    """
    Save a composite as the primary data unit of a new FITS file.

    Parameters:
    path: output FITS path, replaced if it exists and overwrite is set
    composite: Composite with planar R, G, B data
    sources: optional {channel: input path} recorded in the header

    The cube is stored with NAXIS1=width, NAXIS2=height, NAXIS3=3.
    """
    logger = logging.getLogger(__name__)

    hdu = fits.PrimaryHDU(composite.cube())
    hdu.header['COLORIMG'] = True
    if sources:
        for channel, source in sources.items():
            hdu.header[CHANNEL_CARDS[channel]] = str(source)
        hdu.header['HISTORY'] = 'LRGB composite: luminance redistributed by R:G:B ratios'

    path = Path(path)
    if path.exists() and not overwrite:
        raise FitsIOError(f"Could not write FITS file {path}: file exists and overwrite is off")

    # a failed write must never leave a partial file at path
    temp_path = path.with_name(f".{path.name}.partial")
    try:
        hdu.writeto(str(temp_path), overwrite=True)
        os.replace(temp_path, path)
    except OSError as e:
        raise FitsIOError(f"Could not write FITS file {path}: {e}") from e
    finally:
        if temp_path.exists():
            temp_path.unlink()
    logger.info(f"Saved {composite.width}x{composite.height} {composite.encoding.name} composite to {path}")
