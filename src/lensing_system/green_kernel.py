import math

import torch
from scipy.fft import next_fast_len

from shared_utils import InvalidInputError
from config import GREEN_ZERO_REGULARIZATION


def optimal_kernel_shape(height, width):
    """
        Kernel size for a convergence map of the given size: the kernel has to be twice
        as large as the data to fit it entirely, then it is enlarged to the next even size
        for which the DFT is fast.
    """
    return _even_fast_len(2 * height), _even_fast_len(2 * width)


def _even_fast_len(n):
    size = next_fast_len(n, real=True)
    while size % 2:
        size = next_fast_len(size + 1, real=True)
    return size


class GreenKernel:
    def __init__(self, kernel_shape, device=None, dtype=torch.float64):
        """
        Discretized Green's function of the 2D Poisson equation, G = ln(r)/pi.

        Args:
            kernel_shape (tuple): (height, width) of the kernel, both positive and even
            device (torch.device, optional): Device to place the kernel on
            dtype (torch.dtype, optional): Data type for the kernel (default: torch.float64)
        """
        height, width = kernel_shape
        if height <= 0 or width <= 0 or height % 2 or width % 2:
            raise InvalidInputError(f"Green's function kernel needs positive, even dimensions, got {kernel_shape}")
        self.kernel_shape = (int(height), int(width))
        self.device = device if device is not None else torch.device('cpu')
        self.dtype = dtype
        self.kernel = self._create_kernel()

    def _create_kernel(self):
        """
            Values are computed for one quarter of the plane and mirrored into the remaining
            quarters, i.e. G(i,j) = G(H-i,j) = G(i,W-j) = G(H-i,W-j).
        """
        height, width = self.kernel_shape
        rows = torch.arange(height, device=self.device, dtype=self.dtype)
        cols = torch.arange(width, device=self.device, dtype=self.dtype)
        rows = torch.minimum(rows, height - rows)
        cols = torch.minimum(cols, width - cols)

        dist = torch.sqrt(rows[:, None] ** 2 + cols[None, :] ** 2)
        # log(0) is replaced right below
        dist[0, 0] = 1.
        kernel = torch.log(dist) / math.pi
        kernel[0, 0] = GREEN_ZERO_REGULARIZATION
        return kernel

    def get_kernel(self):
        """Return the Green's function kernel"""
        return self.kernel

    def to(self, device):
        """Move kernel to specified device"""
        self.device = device
        self.kernel = self.kernel.to(device)
        return self
