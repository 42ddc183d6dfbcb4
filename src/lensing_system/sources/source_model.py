import cv2
import torch
import torch.nn as nn

from shared_utils import InvalidInputError, as_grid_tensor


class Source(nn.Module):
    """
        Background source: an RGB image placed on the screen around a center position.

        The original image is kept untouched so that the source can be resized any number
        of times without loss of quality; the rescaled working copy is what gets sampled.
    """

    def __init__(self, image_rgb, x_pos, y_pos, device=None):
        """
            image_rgb: [H, W, 3] uint8 image (numpy array or tensor) in R, G, B order
            x_pos, y_pos: screen position of the source center
        """
        super().__init__()
        self.device = device if device is not None else torch.device('cpu')
        if image_rgb is None or len(image_rgb.shape) != 3 or image_rgb.shape[2] != 3:
            raise InvalidInputError(f"Source image must have shape [H, W, 3], got {None if image_rgb is None else tuple(image_rgb.shape)}")
        if image_rgb.shape[0] == 0 or image_rgb.shape[1] == 0:
            raise InvalidInputError("Source image is empty")

        self._original = as_grid_tensor(image_rgb, self.device, dtype=torch.uint8)
        self.image = self._original.clone()
        self.factor = 1.
        self.h, self.w = self.image.shape[:2]
        self.pos = (0, 0)
        self.origin = (0, 0)
        self.move(x_pos, y_pos)

    @property
    def original(self):
        return self._original

    @property
    def width(self):
        return self.w

    @property
    def height(self):
        return self.h

    @property
    def end_points(self):
        return self.origin[0] + self.w, self.origin[1] + self.h

    def move(self, x_pos, y_pos):
        """Move source center, the origin follows from the current size"""
        self.pos = (int(x_pos), int(y_pos))
        self.origin = (self.pos[0] - self.w // 2, self.pos[1] - self.h // 2)

    def resize_area(self, factor):
        """
            Resize the angular extent of the source by factor, relative to the original image.
            The center stays where it is.
        """
        if factor < 0:
            raise InvalidInputError(f"Source size factor must not be negative, got {factor}")
        self.factor = float(factor)
        orig_h, orig_w = self._original.shape[:2]
        self.w = int(orig_w * factor)
        self.h = int(orig_h * factor)

        if self.w > 0 and self.h > 0:
            rescaled = cv2.resize(self._original.cpu().numpy(), (self.w, self.h), interpolation=cv2.INTER_LINEAR)
            self.image = torch.from_numpy(rescaled).to(self.device)
        else:
            self.image = torch.zeros((max(self.h, 0), max(self.w, 0), 3), dtype=torch.uint8, device=self.device)

        self.move(*self.pos)

    def contains(self, beta1, beta2):
        """Whether (beta1, beta2) lies in the area covered by the source pixel data"""
        x = torch.floor(torch.as_tensor(beta1, dtype=torch.float64))
        y = torch.floor(torch.as_tensor(beta2, dtype=torch.float64) + 0.5)
        end_x, end_y = self.end_points
        return (self.origin[0] <= x) & (x < end_x) & (self.origin[1] <= y) & (y < end_y)

    def sample(self, beta1, beta2):
        """
            Source color at (beta1, beta2) by linear interpolation between the four neighboring
            pixels. Coordinates outside the source area are black.

            beta1, beta2: floats or tensors of the same shape
            Returns:
                uint8 tensor of shape [..., 3]
        """
        beta1 = torch.as_tensor(beta1, dtype=torch.float64, device=self.device)
        beta2 = torch.as_tensor(beta2, dtype=torch.float64, device=self.device)
        beta1, beta2 = torch.broadcast_tensors(beta1, beta2)
        if self.w <= 0 or self.h <= 0:
            return torch.zeros(beta1.shape + (3,), dtype=torch.uint8, device=self.device)

        inside = self.contains(beta1, beta2)
        rel_beta1 = beta1 - self.origin[0]
        rel_beta2 = beta2 - self.origin[1]
        fl1 = torch.floor(rel_beta1)
        fl2 = torch.floor(rel_beta2)
        low1 = torch.clamp(fl1, 0, self.w - 1).to(torch.long)
        low2 = torch.clamp(fl2, 0, self.h - 1).to(torch.long)
        up1 = torch.clamp(fl1 + 1., 0, self.w - 1).to(torch.long)
        up2 = torch.clamp(fl2 + 1., 0, self.h - 1).to(torch.long)
        x = (rel_beta1 - fl1).unsqueeze(-1)
        y = (rel_beta2 - fl2).unsqueeze(-1)
        xy = x * y

        # Coefficients of the linear interpolation
        c00 = 1. - x - y + xy
        c01 = x - xy
        c10 = y - xy
        c11 = xy

        img = self.image.to(torch.float64)
        val = (img[low2, low1] * c00 + img[low2, up1] * c01
               + img[up2, low1] * c10 + img[up2, up1] * c11)
        val = torch.where(inside.unsqueeze(-1), val, torch.zeros_like(val))
        return torch.clamp(val, 0., 255.).to(torch.uint8)

    def forward(self, beta1, beta2):
        return self.sample(beta1, beta2)
