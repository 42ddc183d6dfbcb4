import torch

from shared_utils import InvalidInputError, shift_field

# Need column 2 and column N-3 to exist as valid interior values
_MIN_AXIS_LEN = 5


def _check_axis(field, dim):
    if field.ndim != 2:
        raise InvalidInputError(f"Expected a 2D field, got shape {tuple(field.shape)}")
    if field.shape[dim] < _MIN_AXIS_LEN:
        raise InvalidInputError(
            f"Field needs at least {_MIN_AXIS_LEN} pixels along axis {dim} to be differentiated, got {field.shape[dim]}")


def deriv_x(field):
    """
        Partial derivative along x (columns) by centered finite differences.
        The first two and last two columns are replaced by the nearest valid value,
        which avoids artifacts from the zero padding at the edge of the grid.
    """
    _check_axis(field, 1)
    result = (shift_field(field, 1, dim=1) - shift_field(field, -1, dim=1)) / 2.0

    n_c = result.shape[1]
    border1 = result[:, 2].clone()
    border2 = result[:, n_c - 3].clone()
    result[:, 0] = border1
    result[:, 1] = border1
    result[:, n_c - 1] = border2
    result[:, n_c - 2] = border2
    return result


def deriv_y(field):
    """Partial derivative along y (rows), see deriv_x."""
    _check_axis(field, 0)
    result = (shift_field(field, 1, dim=0) - shift_field(field, -1, dim=0)) / 2.0

    n_r = result.shape[0]
    border1 = result[2, :].clone()
    border2 = result[n_r - 3, :].clone()
    result[0, :] = border1
    result[1, :] = border1
    result[n_r - 1, :] = border2
    result[n_r - 2, :] = border2
    return result


class DerivativeEngine:
    """Deflection field and shear magnitude from the lensing potential."""

    def deflection(self, psi):
        """alpha = grad(psi), returned as (alpha1, alpha2)"""
        return deriv_x(psi), deriv_y(psi)

    def shear(self, alpha1, alpha2):
        psi_11 = deriv_x(alpha1)
        psi_22 = deriv_y(alpha2)
        psi_12 = deriv_y(alpha1)

        diff = psi_11 - psi_22
        return torch.sqrt(0.25 * diff * diff + psi_12 * psi_12)
