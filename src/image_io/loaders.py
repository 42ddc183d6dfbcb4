import os

import cv2
import numpy as np
from astropy.io import fits

from shared_utils import InvalidInputError

FITS_SUFFIXES = (".fits", ".fit", ".fts", ".fits.gz")
# Every FITS file starts with the mandatory SIMPLE keyword card
FITS_MAGIC = b"SIMPLE  ="


def _check_exists(path):
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found at {path}.")


def is_fits_file(path):
    """FITS by suffix, or by the header magic for files with any other name"""
    if str(path).lower().endswith(FITS_SUFFIXES):
        return True
    with open(path, "rb") as f:
        return f.read(len(FITS_MAGIC)) == FITS_MAGIC


def read_fits_map(path):
    """
        Read the primary HDU of a FITS file into a float64 [H, W] array.
        NaNs become 0 and the rows are flipped, since FITS images start at the bottom.
    """
    _check_exists(path)
    with fits.open(path) as hdul:
        data = hdul[0].data
        if data is None or data.ndim != 2:
            raise InvalidInputError(f"Primary HDU of {path} is not a 2D image")
        data = np.asarray(data, dtype=np.float64)

    data = np.nan_to_num(data, nan=0.)
    return np.ascontiguousarray(np.flipud(data))


def read_convergence_map(path):
    """
        Load a lens convergence map: FITS files as float64, any other image format
        supported by OpenCV as uint8 grayscale.
    """
    path = str(path)
    _check_exists(path)
    if is_fits_file(path):
        return read_fits_map(path)

    kappa = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
    if kappa is None:
        raise InvalidInputError(f"Error opening the image file {path}")
    return kappa


def read_source_image(path):
    """Load a source image (*.PNG, *.JPG, ...) as a uint8 [H, W, 3] array in R, G, B order."""
    path = str(path)
    _check_exists(path)
    image_bgr = cv2.imread(path, cv2.IMREAD_COLOR)
    if image_bgr is None:
        raise InvalidInputError(f"Error opening the image file {path}")
    return cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)
