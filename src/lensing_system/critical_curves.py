import cv2
import numpy as np
import torch

from image_filters import GaussKernel, gaussian_blur
from shared_utils import RowPartitionedPool


def jacobian_determinant(kappa, shear, weight, include_radial_lines):
    """
        Jacobian determinant proxy from the eigenvalues of the lens mapping.

        The tangential eigenvalue is 1 - w*(kappa + shear), the radial one 1 - w*(kappa - shear).
        With radial lines the full determinant (their product) is returned, otherwise the
        tangential eigenvalue alone.
    """
    tan_eigenval = 1. - weight * (kappa + shear)
    if not include_radial_lines:
        return tan_eigenval
    rad_eigenval = 1. - weight * (kappa - shear)
    return tan_eigenval * rad_eigenval


class CriticalCurveDetector:
    """
        Critical curve and caustic maps of a lens.

        The maps are rebuilt only when the weight or the "include radial lines" switch differ
        from the ones they were built for, or after invalidate(). The critical curves are the
        contours of the region where the smoothed determinant is <= 0; the caustics are the
        critical curve pixels mapped into the source plane with the lens equation.
    """

    def __init__(self, gauss_kernel=None, pool=None):
        self.gauss_kernel = gauss_kernel if gauss_kernel is not None else GaussKernel()
        self.pool = pool if pool is not None else RowPartitionedPool()
        self.cc_map = None
        self.caustic_map = None
        self._built_for = None

    def is_stale(self, weight, include_radial_lines):
        return self._built_for != (float(weight), bool(include_radial_lines))

    def invalidate(self):
        self._built_for = None

    def update(self, lens, include_radial_lines, force=False):
        """
            (Re)compute critical curves and caustics of the lens if needed.
            Returns True if the maps were recomputed.
        """
        if not force and not self.is_stale(lens.weight, include_radial_lines):
            return False

        detJ = jacobian_determinant(lens.kappa, lens.shear, lens.weight, include_radial_lines)

        # Remove numerical pixel artifacts in the contours
        detJ = gaussian_blur(detJ, self.gauss_kernel.to(detJ.device))

        binary = self._binary_from_sign(detJ)
        self.cc_map = self._draw_contours(binary).to(lens.kappa.device)
        self.caustic_map = self._invert_cc_map(lens, self.cc_map)
        self._built_for = (float(lens.weight), bool(include_radial_lines))
        return True

    def _binary_from_sign(self, detJ):
        """uint8 map with 1 where detJ <= 0, filled row range by row range"""
        binary = np.zeros(tuple(detJ.shape), dtype=np.uint8)
        detJ_cpu = detJ.cpu()

        def body(start, end):
            binary[start:end] = (detJ_cpu[start:end] <= 0).numpy()

        self.pool.map_rows(detJ.shape[0], body)
        return binary

    @staticmethod
    def _draw_contours(binary):
        """Replace the binary map by its contours, drawn as anti-aliased 1px white lines"""
        contours, _ = cv2.findContours(binary, cv2.RETR_LIST, cv2.CHAIN_APPROX_SIMPLE)
        cc_map = np.zeros_like(binary)
        if len(contours):
            cv2.drawContours(cc_map, contours, -1, 255, thickness=1, lineType=cv2.LINE_AA)
        return torch.from_numpy(cc_map)

    def _invert_cc_map(self, lens, cc_map):
        """
            Raytrace every critical curve pixel to the source plane. Interpolation is left out
            to save runtime, which leads to a slightly coarser line; each hit also marks the
            pixel above and the one to the left to keep the line connected.
        """
        height, width = cc_map.shape

        def body(start, end):
            rows, cols = torch.nonzero(cc_map[start:end] > 0, as_tuple=True)
            rows = rows + start
            beta1, beta2 = lens.raytrace(cols, rows, cols, rows, 1.)
            b1 = torch.floor(beta1 + 0.5).to(torch.long)
            b2 = torch.floor(beta2 + 0.5).to(torch.long)
            inside = (b1 >= 0) & (b1 < width) & (b2 >= 0) & (b2 < height)
            return b1[inside], b2[inside]

        caustic_map = torch.zeros((height, width), dtype=torch.uint8, device=cc_map.device)
        for b1, b2 in self.pool.map_rows(height, body):
            caustic_map[b2, b1] = 255
            caustic_map[torch.clamp(b2 - 1, min=0), b1] = 255
            caustic_map[b2, torch.clamp(b1 - 1, min=0)] = 255
        return caustic_map
