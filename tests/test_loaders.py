"""
Tests for loading convergence maps and source images.
"""

import cv2
import numpy as np
import pytest
from astropy.io import fits

from image_io import is_fits_file, read_convergence_map, read_fits_map, read_source_image
from shared_utils import InvalidInputError


class TestFitsLoading:
    """Tests for FITS convergence maps."""

    def test_rows_flipped_and_nan_zeroed(self, tmp_path):
        path = tmp_path / "kappa.fits"
        fits.PrimaryHDU(np.array([[1., np.nan], [3., 4.]], dtype=np.float32)).writeto(path)

        kappa = read_convergence_map(path)

        assert kappa.dtype == np.float64
        assert kappa.tolist() == [[3., 4.], [1., 0.]]

    def test_fits_detected_by_header(self, tmp_path):
        """A FITS file without a FITS suffix is still read as FITS."""
        path = tmp_path / "kappa.dat"
        fits.PrimaryHDU(np.array([[0.5, 1.5], [2.5, 3.5]])).writeto(path)

        kappa = read_convergence_map(path)

        assert is_fits_file(path)
        assert kappa.dtype == np.float64
        assert kappa.tolist() == [[2.5, 3.5], [0.5, 1.5]]

    def test_png_is_not_fits(self, tmp_path):
        path = tmp_path / "kappa.png"
        cv2.imwrite(str(path), np.zeros((3, 3), dtype=np.uint8))

        assert not is_fits_file(path)

    def test_cube_rejected(self, tmp_path):
        path = tmp_path / "cube.fits"
        fits.PrimaryHDU(np.zeros((2, 3, 3))).writeto(path)

        with pytest.raises(InvalidInputError):
            read_fits_map(str(path))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_convergence_map(tmp_path / "missing.fits")


class TestImageLoading:
    """Tests for PNG convergence maps and source images."""

    def test_grayscale_convergence(self, tmp_path):
        path = tmp_path / "kappa.png"
        kappa_in = np.arange(30, dtype=np.uint8).reshape(5, 6) * 8
        cv2.imwrite(str(path), kappa_in)

        kappa = read_convergence_map(path)

        assert kappa.dtype == np.uint8
        assert np.array_equal(kappa, kappa_in)

    def test_source_is_rgb(self, tmp_path):
        path = tmp_path / "source.png"
        image_bgr = np.zeros((4, 4, 3), dtype=np.uint8)
        image_bgr[..., 0] = 10
        image_bgr[..., 1] = 20
        image_bgr[..., 2] = 30
        cv2.imwrite(str(path), image_bgr)

        image = read_source_image(path)

        assert image.shape == (4, 4, 3)
        assert image[0, 0].tolist() == [30, 20, 10]

    def test_unreadable_image(self, tmp_path):
        path = tmp_path / "junk.png"
        path.write_text("not an image")

        with pytest.raises(InvalidInputError):
            read_source_image(path)
        with pytest.raises(InvalidInputError):
            read_convergence_map(path)

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_source_image(tmp_path / "missing.png")
