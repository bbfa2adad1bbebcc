import itertools
import logging

import numpy as np
import pytest
from astropy.io import fits


@pytest.fixture
def fits_file(tmp_path):
    """Factory writing the given HDUs to a new FITS file, returns its path"""
    counter = itertools.count()

    def _make(*hdus, name=None):
        hdus = list(hdus)
        if not hdus or not isinstance(hdus[0], fits.PrimaryHDU):
            hdus.insert(0, fits.PrimaryHDU())
        path = tmp_path / (name or f"frame_{next(counter)}.fits")
        fits.HDUList(hdus).writeto(path, overwrite=True)
        return path

    return _make


@pytest.fixture
def plane_file(fits_file):
    """Factory writing one 2-D array as the primary HDU, optionally with BLANK"""

    def _make(array, blank=None, name=None):
        hdu = fits.PrimaryHDU(np.asarray(array))
        if blank is not None:
            hdu.header['BLANK'] = blank
        return fits_file(hdu, name=name)

    return _make


@pytest.fixture
def restore_logging():
    """Put the root logger back the way it was after main() reconfigured it"""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
