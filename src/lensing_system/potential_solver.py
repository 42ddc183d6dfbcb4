import torch
import torch.nn.functional as F

from shared_utils import InvalidInputError
from .green_kernel import GreenKernel, optimal_kernel_shape


class PotentialSolver:
    """
        Lensing potential from convergence, psi = kappa * G, with G = ln(r)/pi the Green's
        function of the 2D Poisson equation. The linear convolution is carried out in Fourier
        space on a zero-padded grid of the kernel's size.
    """

    def __init__(self, green_kernel=None, device=None):
        self.green_kernel = green_kernel
        self.device = device if device is not None else torch.device('cpu')

    def kernel_for(self, kappa_shape):
        """Return the Green's kernel, building one of optimal size if none was given."""
        if self.green_kernel is None:
            self.green_kernel = GreenKernel(optimal_kernel_shape(*kappa_shape), device=self.device)
        return self.green_kernel

    def solve(self, kappa):
        if kappa.ndim != 2 or kappa.numel() == 0:
            raise InvalidInputError(f"Convergence map must be a non-empty 2D grid, got shape {tuple(kappa.shape)}")

        orig_h, orig_w = kappa.shape
        kernel = self.kernel_for(kappa.shape).get_kernel().to(kappa.device)
        pad_h, pad_w = kernel.shape
        if pad_h < orig_h or pad_w < orig_w:
            raise InvalidInputError(f"Green's kernel {tuple(kernel.shape)} is smaller than the convergence map {tuple(kappa.shape)}")

        # Zero-padding at the end of both axes, as for the kernel
        padded = F.pad(kappa.to(kernel.dtype), (0, pad_w - orig_w, 0, pad_h - orig_h))

        kappa_hat = torch.fft.rfft2(padded)
        kernel_hat = torch.fft.rfft2(kernel)
        psi = torch.fft.irfft2(kappa_hat * kernel_hat, s=(pad_h, pad_w))

        # Crop back to the original size of kappa
        return psi[:orig_h, :orig_w].contiguous()
