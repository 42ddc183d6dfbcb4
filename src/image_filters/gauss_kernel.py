import torch
import torch.nn.functional as F

from config import CC_SMOOTHING_KERNEL_SIZE, CC_SMOOTHING_SIGMA


class GaussKernel:
    def __init__(self, kernel_size=CC_SMOOTHING_KERNEL_SIZE, sigma=CC_SMOOTHING_SIGMA, device=None, dtype=torch.float64):
        """
        Create a Gaussian kernel for smoothing 2D maps.

        Args:
            kernel_size (int): Size of the square kernel (made odd if even)
            sigma (float): Standard deviation of the Gaussian in pixels
            device (torch.device, optional): Device to place the kernel on
            dtype (torch.dtype, optional): Data type for the kernel (default: torch.float64)
        """
        self.kernel_size = kernel_size
        self.sigma = sigma
        self.device = device if device is not None else torch.device('cpu')
        self.dtype = dtype
        self.kernel = self._create_kernel()

    def _create_kernel(self):
        """Create a normalized 2D Gaussian kernel of shape [1, 1, k, k]"""
        if self.kernel_size % 2 == 0:
            self.kernel_size += 1

        center = self.kernel_size // 2
        coords = torch.arange(self.kernel_size, device=self.device, dtype=self.dtype) - center
        dist_squared = coords[None, :] ** 2 + coords[:, None] ** 2
        kernel = torch.exp(-dist_squared / (2 * self.sigma ** 2))
        kernel = kernel / kernel.sum()

        return kernel.unsqueeze(0).unsqueeze(0)

    def get_kernel(self):
        """Return the Gaussian kernel"""
        return self.kernel

    @property
    def radius(self):
        return self.kernel_size // 2

    def to(self, device):
        """Move kernel to specified device"""
        self.device = device
        self.kernel = self.kernel.to(device)
        return self


def gaussian_blur(field, gauss_kernel):
    """
        Smooth a [H, W] map with the given GaussKernel. Borders are reflected
        (without repeating the edge pixel); maps too small for that are padded by replication.
    """
    r = gauss_kernel.radius
    height, width = field.shape
    mode = 'reflect' if min(height, width) > r else 'replicate'
    padded = F.pad(field[None, None].to(gauss_kernel.dtype), (r, r, r, r), mode=mode)
    blurred = F.conv2d(padded, gauss_kernel.get_kernel())
    return blurred[0, 0].to(field.dtype)
