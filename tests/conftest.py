import numpy as np
import pytest
import torch

from shared_utils import RowPartitionedPool


class StubLens:
    """
    Lens with zero deflection and hand-set overlay maps.

    Records the scale factors passed to raytrace and the requested
    critical curve updates.
    """

    def __init__(self, h, w, x, y):
        self.h, self.w = h, w
        self.origin = (x - w // 2, y - h // 2)
        self.weight = 1.0
        self.cc_map = torch.zeros((h, w), dtype=torch.uint8)
        self.caustic_map = torch.zeros((h, w), dtype=torch.uint8)
        self.kappa8u = torch.zeros((h, w), dtype=torch.uint8)
        self.scales = []
        self.cc_updates = []

    @property
    def width(self):
        return self.w

    @property
    def height(self):
        return self.h

    def move(self, x, y):
        self.origin = (x - self.w // 2, y - self.h // 2)

    def contains(self, x, y):
        return (self.origin[0] <= x) & (x < self.origin[0] + self.w) & (self.origin[1] <= y) & (y < self.origin[1] + self.h)

    def update_critical_curves(self, include_radial_lines, force=False):
        self.cc_updates.append((self.weight, include_radial_lines))
        return True

    def raytrace(self, x1, x2, safe1, safe2, scale):
        self.scales.append(torch.as_tensor(scale))
        y1, y2 = torch.broadcast_tensors(torch.as_tensor(x1, dtype=torch.float64),
                                         torch.as_tensor(x2, dtype=torch.float64))
        return y1, y2


@pytest.fixture
def stub_lens_factory():
    return StubLens


@pytest.fixture
def pool():
    return RowPartitionedPool(2)


@pytest.fixture
def gradient_image():
    """10x12 RGB image with distinct pixel values."""
    rows, cols = np.meshgrid(np.arange(10), np.arange(12), indexing="ij")
    image = np.stack([rows * 20, cols * 20, rows + cols], axis=-1)
    return image.astype(np.uint8)
