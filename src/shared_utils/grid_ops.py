import numpy as np
import torch

from .errors import InvalidInputError


def as_grid_tensor(value, device, dtype=torch.float64):
    """
        Convert a numpy array, nested list or tensor into a tensor on the device.
        A deep copy is always made so that callers can keep mutating their input.
    """
    if isinstance(value, torch.Tensor):
        return value.detach().clone().to(device=device, dtype=dtype)
    if isinstance(value, np.ndarray):
        return torch.from_numpy(np.ascontiguousarray(value).copy()).to(device=device, dtype=dtype)
    try:
        return torch.as_tensor(value, device=device, dtype=dtype)
    except (TypeError, ValueError, RuntimeError) as e:
        raise InvalidInputError(f"Cannot convert {type(value).__name__} to a grid: {e}")


def relocate_and_falloff(rel_px, length):
    """
        Exponential fall-off of the deflection field outside the area covered by lens data,
        together with rel_px clamped into [0, length-1].

        rel_px is the pixel coordinate relative to the lens origin (int or integer tensor).
        Inside [0, length) the factor is 1, before the area exp(rel/half) and behind it
        exp((length-1-rel)/half) with half = length/2. The 2D factor is the product f_i*f_j.

        Returns:
            (factor, safe) with factor a float64 tensor and safe a long tensor
    """
    rel = torch.as_tensor(rel_px)
    rel_d = rel.to(torch.float64)
    half = 0.5 * length
    lm1 = length - 1.

    factor = torch.ones_like(rel_d)
    factor = torch.where(rel_d < 0, torch.exp(rel_d / half), factor)
    factor = torch.where(rel_d >= length, torch.exp((lm1 - rel_d) / half), factor)
    safe = torch.clamp(rel.to(torch.long), 0, length - 1)
    return factor, safe


def shift_field(field, offset, dim):
    """
        Translate a 2D field so that out[i] = field[i + offset] along dim.
        Cells that would read outside the field are zero (required for finite differences).
    """
    out = torch.zeros_like(field)
    n = field.shape[dim]
    if abs(offset) >= n:
        return out
    if offset >= 0:
        out.narrow(dim, 0, n - offset).copy_(field.narrow(dim, offset, n - offset))
    else:
        k = -offset
        out.narrow(dim, k, n - k).copy_(field.narrow(dim, 0, n - k))
    return out
