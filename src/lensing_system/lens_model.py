import warnings

import numpy as np
import torch
import torch.nn as nn

from config import (DEFAULT_WEIGHT, UINT8_KAPPA_MAX, KAPPA_DISPLAY_LOG_OFFSET,
                    KAPPA_DISPLAY_LOG_SCALE)
from shared_utils import InvalidInputError, as_grid_tensor
from .potential_solver import PotentialSolver
from .derivatives import DerivativeEngine
from .critical_curves import CriticalCurveDetector


class Lens(nn.Module):
    def __init__(self, kappa_in, x, y, weight=DEFAULT_WEIGHT, device=None, pool=None, verbose=True):
        """
            Gravitational lens given by a convergence map, placed on the screen with its
            center at (x, y).

            The construction does the expensive part once: the lensing potential psi is obtained
            from kappa by convolution with the Green's function, then differentiated to get the
            deflection field and the shear. Afterwards the lens is only moved or reweighted.

            kappa_in: [H, W] convergence map. uint8 maps (e.g. from PNG files) are rescaled so
                that grayscale 255 means kappa = 2, real-valued maps are used as they are.
        """
        super().__init__()
        self.device = device if device is not None else torch.device('cpu')
        self.verbose = verbose
        if kappa_in is None or len(kappa_in.shape) != 2 or kappa_in.shape[0] == 0 or kappa_in.shape[1] == 0:
            raise InvalidInputError(f"Convergence map must be a non-empty 2D grid, got shape {None if kappa_in is None else tuple(kappa_in.shape)}")

        self.h, self.w = int(kappa_in.shape[0]), int(kappa_in.shape[1])
        self.origin = (0, 0)
        self.move(x, y)

        self.kappa, self.kappa8u = self._convert_kappa(kappa_in)
        self._weight = float(weight)
        self.critical_curves = CriticalCurveDetector(pool=pool)

        if self.verbose:
            print("-> Performing Fourier transforms and convolution...")
        self.psi = PotentialSolver(device=self.device).solve(self.kappa)
        if self.verbose:
            print("-> Creating deflection field and shear...")
        engine = DerivativeEngine()
        self.alpha1, self.alpha2 = engine.deflection(self.psi)
        self.shear = engine.shear(self.alpha1, self.alpha2)

        self.update_critical_curves(include_radial_lines=True)

    def _convert_kappa(self, kappa_in):
        """
            Returns the float64 convergence used in the calculations and its uint8 version
            for display.
        """
        is_uint8 = (kappa_in.dtype == torch.uint8) if isinstance(kappa_in, torch.Tensor) else (np.asarray(kappa_in).dtype == np.uint8)
        if is_uint8:
            kappa8u = as_grid_tensor(kappa_in, self.device, dtype=torch.uint8)
            kappa = kappa8u.to(torch.float64)
            k_min, k_max = kappa.min(), kappa.max()
            if k_max > k_min:
                kappa = (kappa - k_min) / (k_max - k_min) * UINT8_KAPPA_MAX
            else:
                kappa = torch.zeros_like(kappa)
            return kappa, kappa8u

        kappa = as_grid_tensor(kappa_in, self.device, dtype=torch.float64)
        if not torch.isfinite(kappa).all():
            warnings.warn("Convergence map contains non-finite values", UserWarning, stacklevel=3)

        # Logarithmic display scaling, restricting kappa to [10^(-2.5), 255/70] on screen
        display = (torch.log(kappa) + KAPPA_DISPLAY_LOG_OFFSET) * KAPPA_DISPLAY_LOG_SCALE
        display = torch.nan_to_num(display, nan=0., posinf=255., neginf=0.)
        kappa8u = torch.clamp(display, 0., 255.).to(torch.uint8)
        return kappa, kappa8u

    # Geometry

    def move(self, x_pos, y_pos):
        """Move the lens center to (x_pos, y_pos); the origin keeps the grid centered on it"""
        self.origin = (int(x_pos) - self.w // 2, int(y_pos) - self.h // 2)

    @property
    def width(self):
        return self.w

    @property
    def height(self):
        return self.h

    @property
    def end_points(self):
        return self.origin[0] + self.w, self.origin[1] + self.h

    def contains(self, x, y):
        """Whether screen pixel (x, y) lies within the area covered by lens pixel data"""
        end_x, end_y = self.end_points
        return (self.origin[0] <= x) & (x < end_x) & (self.origin[1] <= y) & (y < end_y)

    # Weight and derived maps

    @property
    def weight(self):
        return self._weight

    @weight.setter
    def weight(self, value):
        if value < 0:
            raise InvalidInputError(f"Lens weight must not be negative, got {value}")
        if float(value) != self._weight:
            self._weight = float(value)
            self.critical_curves.invalidate()

    @property
    def alpha(self):
        return self.alpha1, self.alpha2

    @property
    def cc_map(self):
        return self.critical_curves.cc_map

    @property
    def caustic_map(self):
        return self.critical_curves.caustic_map

    def update_critical_curves(self, include_radial_lines, force=False):
        """(Re)compute critical curves and caustics for the current weight, if they are stale"""
        return self.critical_curves.update(self, include_radial_lines, force=force)

    # Lens equation

    def raytrace(self, x1, x2, safe1, safe2, scale):
        """
            Solve the lens equation y = x - alpha * scale * weight.

            x1, x2: lens plane pixel coordinates
            safe1, safe2: deflection grid indices, already clamped into the grid
            scale: additional factor, used to extrapolate alpha beyond the lens area
        """
        safe1 = torch.as_tensor(safe1, dtype=torch.long, device=self.alpha1.device)
        safe2 = torch.as_tensor(safe2, dtype=torch.long, device=self.alpha1.device)
        fac = torch.as_tensor(scale, dtype=torch.float64, device=self.alpha1.device) * self._weight
        y1 = x1 - self.alpha1[safe2, safe1] * fac
        y2 = x2 - self.alpha2[safe2, safe1] * fac
        return y1, y2

    def forward(self, x1, x2, safe1, safe2, scale=1.):
        return self.raytrace(x1, x2, safe1, safe2, scale)
