# __init__.py
from .green_kernel import GreenKernel, optimal_kernel_shape
from .potential_solver import PotentialSolver
from .derivatives import DerivativeEngine, deriv_x, deriv_y
from .critical_curves import CriticalCurveDetector, jacobian_determinant
from .lens_model import Lens
from .sources import Source

__all__ = ['GreenKernel', 'optimal_kernel_shape', 'PotentialSolver', 'DerivativeEngine',
           'deriv_x', 'deriv_y', 'CriticalCurveDetector', 'jacobian_determinant', 'Lens', 'Source']
